from termshell.commands.catalog import BUILTIN_COMMANDS, builtin_names, get_builtin
from termshell.commands.registry import find_registration_conflicts


def test_get_builtin_is_case_insensitive() -> None:
    command = get_builtin(" HELP ")

    assert command is not None
    assert command.category == "system"
    assert get_builtin("nope") is None


def test_builtin_names_include_history_and_theme() -> None:
    names = builtin_names()

    assert "history" in names
    assert "theme" in names


def test_builtin_catalog_has_no_collisions() -> None:
    assert find_registration_conflicts(BUILTIN_COMMANDS) == []


def test_builtin_catalog_is_metadata_only() -> None:
    assert all(command.handler is None for command in BUILTIN_COMMANDS)
