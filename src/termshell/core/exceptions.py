"""Exception hierarchy for termshell."""

from __future__ import annotations


class TermShellError(Exception):
    """Base exception carrying a short message and optional details."""

    def __init__(self, message: str, details: str = "") -> None:
        self.message = message
        self.details = details
        super().__init__(f"{message}\n\n{details}" if details else message)


class ConfigError(TermShellError):
    """Raised when configuration cannot be loaded or is invalid."""


class RegistrationConflictError(TermShellError):
    """Raised by a strict registry when a name or alias is already taken."""


class HistoryStoreError(TermShellError):
    """Raised by history stores when persisted history cannot be read or written."""
