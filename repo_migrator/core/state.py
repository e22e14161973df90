"""
Migration state container for a repository migration run.

Mutable tracking state, separated from the immutable MigrationContext. The
only state that crosses repository iterations is the result list and the
counters derived from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from repo_migrator.types import (
    MigrationAction,
    MigrationOutcome,
    MigrationResult,
    PipelineStage,
)


@dataclass
class ProgressState:
    """Which repository is in flight and how far it got."""

    current_repository: str | None = None
    current_stage: PipelineStage = PipelineStage.PENDING
    started_at: str | None = None
    finished_at: str | None = None


@dataclass
class MigrationState:
    """Holds all mutable tracking state for a migration run.

    - ``results``: append-only list, one MigrationResult per repository
    - ``progress``: current repository and stage, used by partial reports
    - ``repository_handlers``: per-repository log handlers to close at the end
    """

    results: list[MigrationResult] = field(default_factory=list)
    progress: ProgressState = field(default_factory=ProgressState)
    repository_handlers: dict[str, Any] = field(default_factory=dict)

    def record(self, result: MigrationResult) -> None:
        """Append a result; a repository may only be recorded once."""
        name = result.descriptor.target_name
        if any(r.descriptor.target_name == name for r in self.results):
            raise ValueError(f"Result for {name} has already been recorded")
        self.results.append(result)

    def count(self, outcome: MigrationOutcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    def count_action(self, action: MigrationAction) -> int:
        return sum(1 for r in self.results if r.success and r.action is action)

    @property
    def succeeded(self) -> int:
        return self.count(MigrationOutcome.SUCCESS)

    @property
    def failed(self) -> int:
        return self.count(MigrationOutcome.FAILED)

    @property
    def skipped(self) -> int:
        return self.count(MigrationOutcome.SKIPPED)

    @property
    def warning_count(self) -> int:
        return sum(len(r.warnings) for r in self.results)

    @property
    def has_errors(self) -> bool:
        """Return True if any repository failed."""
        return self.failed > 0

    def set_stage(self, repository: str, stage: PipelineStage) -> None:
        self.progress.current_repository = repository
        self.progress.current_stage = stage
