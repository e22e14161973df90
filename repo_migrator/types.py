"""Shared type definitions for the repository fork-and-import migrator.

Provides the dataclasses and enums that flow through the migration pipeline:
descriptors extracted from the snapshot, probed repository state, per-repository
results and the import artifact.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class MigrationAction(str, Enum):
    """What the pipeline does for a repository."""

    FORK = "fork"
    CREATE_FRESH = "create-fresh"


class MigrationOutcome(str, Enum):
    """Final outcome recorded for a repository."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class PipelineStage(str, Enum):
    """Pipeline stages in the order a repository passes through them."""

    PENDING = "PENDING"
    REMOTE_CREATED = "REMOTE_CREATED"
    ACTIONS_DISABLED = "ACTIONS_DISABLED"
    HISTORY_MIGRATED = "HISTORY_MIGRATED"
    REFERENCES_FIXED = "REFERENCES_FIXED"
    ACTIONS_ENABLED = "ACTIONS_ENABLED"
    DONE = "DONE"
    FAILED = "FAILED"


# ---------------------------------------------------------------------------
# Desired and observed state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RepositoryDescriptor:
    """A repository declared in the configuration snapshot."""

    resource_type: str
    resource_name: str
    target_name: str
    source_name: str

    @property
    def resource_address(self) -> str:
        """Terraform address of the repository resource, e.g. ``github_repository.x``."""
        return f"{self.resource_type}.{self.resource_name}"

    @property
    def renamed(self) -> bool:
        """True when the source repository lives under a different name."""
        return self.source_name != self.target_name


@dataclass(frozen=True)
class RepositoryState:
    """Probed state of one descriptor in the source and target organizations."""

    descriptor: RepositoryDescriptor
    source_exists: bool
    target_exists: bool
    action: MigrationAction

    def __post_init__(self) -> None:
        """Validate that the action agrees with the source probe."""
        expected = (
            MigrationAction.FORK if self.source_exists else MigrationAction.CREATE_FRESH
        )
        if self.action is not expected:
            raise ValueError(
                f"action {self.action.value} does not match source_exists="
                f"{self.source_exists} for {self.descriptor.target_name}"
            )

    @classmethod
    def from_probe(
        cls, descriptor: RepositoryDescriptor, source_exists: bool, target_exists: bool
    ) -> RepositoryState:
        """Build a state, deriving the action from the source probe."""
        return cls(
            descriptor=descriptor,
            source_exists=source_exists,
            target_exists=target_exists,
            action=(
                MigrationAction.FORK
                if source_exists
                else MigrationAction.CREATE_FRESH
            ),
        )


@dataclass(frozen=True)
class ServiceIdentity:
    """Author identity used for commits made by the migrator."""

    name: str
    email: str


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MigrationResult:
    """Outcome of one repository's pass through the pipeline.

    Three-state model: *success*, *skipped* (not attempted because the run
    aborted earlier), or *failed*. ``warnings`` holds partial failures that
    did not stop the repository from being migrated.
    """

    descriptor: RepositoryDescriptor
    action: MigrationAction
    outcome: MigrationOutcome
    stage: PipelineStage
    error: str | None = None
    warnings: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        return self.outcome is MigrationOutcome.SUCCESS

    @property
    def failed(self) -> bool:
        return self.outcome is MigrationOutcome.FAILED


@dataclass(frozen=True)
class ImportArtifact:
    """Content of the generated import declaration document."""

    imports: tuple[tuple[str, str], ...] = ()  # (resource_address, external_id)
    fresh: tuple[str, ...] = ()
    generated_at: str = ""
