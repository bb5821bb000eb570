"""Unit tests for the command catalog validation script."""

from __future__ import annotations

import importlib.util
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import typer

if TYPE_CHECKING:
    from types import ModuleType


def _load_check_command_catalog_module() -> "ModuleType":
    script_path = Path(__file__).resolve().parents[3] / "scripts" / "check_command_catalog.py"
    spec = importlib.util.spec_from_file_location("check_command_catalog_script", script_path)
    assert spec is not None
    loader = spec.loader
    assert loader is not None
    module = importlib.util.module_from_spec(spec)
    loader.exec_module(module)
    return module


_check_module = _load_check_command_catalog_module()
validate_command_catalog = _check_module.validate_command_catalog


def test_validate_command_catalog_returns_aliases() -> None:
    keys = validate_command_catalog()

    assert "help" in keys
    assert "th" in keys
    assert len(keys) == len(set(keys))


def test_main_exits_cleanly() -> None:
    with pytest.raises(typer.Exit) as exc_info:
        _check_module.main()

    assert exc_info.value.exit_code == 0
