"""Custom exception hierarchy for the repository fork-and-import migrator."""

from __future__ import annotations


class MigratorError(Exception):
    """Base exception for all migration-related errors."""


class UsageError(MigratorError):
    """Raised when the command line is malformed (e.g. --only with --exclude)."""


class ValidationError(MigratorError):
    """Raised when the configuration snapshot is missing or malformed."""


class ConfigError(MigratorError):
    """Raised when the migrator configuration or credentials are invalid."""


class ConflictError(MigratorError):
    """Raised when a selected repository already exists in the target organization.

    Attributes:
        repositories: Target names of every conflicting repository.
    """

    def __init__(self, message: str, repositories: list[str] | None = None) -> None:
        super().__init__(message)
        self.repositories = list(repositories or [])


class APIError(MigratorError):
    """Raised when a hosting API or git call fails."""


class StepFailure(MigratorError):
    """Raised when a structural pipeline step fails for one repository.

    Attributes:
        repository: Target name of the repository being migrated.
        stage: Name of the last stage the repository completed.
    """

    def __init__(self, message: str, repository: str = "", stage: str = "") -> None:
        super().__init__(message)
        self.repository = repository
        self.stage = stage


class PartialWarning(MigratorError):
    """Raised by non-structural steps; logged and recorded, never fatal."""
