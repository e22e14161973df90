"""Immutable migration context.

MigrationContext is a frozen dataclass that holds all configuration for a
migration run. It is created once by the CLI and shared (read-only) with
every component that needs paths, mode flags or organization settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from repo_migrator.core.config import MigrationConfig


@dataclass(frozen=True)
class MigrationContext:
    """Immutable context for a migration run. Created once, shared everywhere."""

    # Paths
    stack_dir: Path
    output_dir: str | None

    # Mode flags
    dry_run: bool
    verbose: bool

    # Selection
    only: tuple[str, ...] | None
    exclude: tuple[str, ...]

    # Loaded configuration
    config: MigrationConfig

    @property
    def snapshot_path(self) -> Path:
        """Path to the synthesized configuration snapshot."""
        return self.stack_dir / self.config.snapshot_filename

    @property
    def artifact_path(self) -> Path:
        """Path the import declarations are written to."""
        return self.stack_dir / self.config.artifact_filename

    @property
    def filtered(self) -> bool:
        """True when --only or --exclude narrowed the selection."""
        return bool(self.only) or bool(self.exclude)

    @property
    def inter_repository_delay(self) -> float:
        """Delay between repositories; dry runs make no API writes and skip it."""
        return 0.0 if self.dry_run else self.config.inter_repository_delay

    @property
    def log_prefix(self) -> str:
        """Mode-aware log prefix, ``"[DRY RUN] "`` or empty."""
        return "[DRY RUN] " if self.dry_run else ""

    @property
    def filter_description(self) -> str:
        """Human readable description of the active filter, or empty."""
        if self.only:
            return f"--only={','.join(self.only)}"
        if self.exclude:
            return f"--exclude={','.join(self.exclude)}"
        return ""
