"""
Run orchestration for the repository fork-and-import migrator.

``RepositoryMigrator.migrate`` wires the components together::

    snapshot -> descriptors -> filter -> probe -> conflict check
             -> pipeline (sequential, fail-fast) -> import artifact

Everything up to and including the conflict check is read-only. Whether a
run mutates anything is decided solely by the clients it is given: the CLI
passes the dry-run stand-ins unless ``--yes`` was supplied.
"""

from __future__ import annotations

import datetime
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from repo_migrator.core.artifact import build_import_artifact, write_import_artifact
from repo_migrator.core.context import MigrationContext
from repo_migrator.core.extractor import extract_descriptors, load_snapshot
from repo_migrator.core.filtering import filter_descriptors
from repo_migrator.core.migration_logging import (
    log_migration_failure,
    log_migration_success,
)
from repo_migrator.core.pipeline import run_pipeline
from repo_migrator.core.prober import ensure_no_conflicts, probe_repositories
from repo_migrator.core.state import MigrationState
from repo_migrator.services.hosting import HostingClient
from repo_migrator.services.vcs import GitClient
from repo_migrator.types import RepositoryDescriptor, RepositoryState
from repo_migrator.utils.logging import log_with_context


def _now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


class RepositoryMigrator:
    """Drives one migration run from snapshot to import artifact."""

    def __init__(
        self,
        ctx: MigrationContext,
        hosting: HostingClient,
        vcs: GitClient,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.ctx = ctx
        self.hosting = hosting
        self.vcs = vcs
        self.state = MigrationState()
        self._sleep = sleep

        self.snapshot: dict[str, Any] | None = None
        self.descriptors: list[RepositoryDescriptor] = []
        self.selected: list[RepositoryDescriptor] = []
        self.repo_states: list[RepositoryState] = []
        self.artifact_path: Path | None = None
        self.report_file: str | None = None

    @property
    def dry_run(self) -> bool:
        return self.ctx.dry_run

    def migrate(self) -> bool:
        """Run the migration.

        Returns:
            True if repositories were processed, False when the filter
            selected nothing (a successful no-op).

        Raises:
            ValidationError: The snapshot is missing or malformed.
            UsageError: Both --only and --exclude were given.
            ConflictError: A selected repository already exists in the target.
            StepFailure: A repository failed; the run was aborted.
        """
        start_time = time.time()
        self.state.progress.started_at = _now()
        cfg = self.ctx.config

        log_with_context(
            logging.INFO,
            f"{self.ctx.log_prefix}Migrating repositories from {cfg.source_org} "
            f"to {cfg.target_org}",
        )

        self.snapshot = load_snapshot(self.ctx.snapshot_path)
        self.descriptors = extract_descriptors(self.snapshot, cfg)
        self.selected = filter_descriptors(
            self.descriptors, only=self.ctx.only, exclude=self.ctx.exclude
        )
        if self.ctx.filtered:
            log_with_context(
                logging.INFO,
                f"🔍 {self.ctx.filter_description}: {len(self.selected)} of "
                f"{len(self.descriptors)} repositories selected",
            )
        if not self.selected:
            log_with_context(
                logging.WARNING, "⚠️  No repositories to process after filtering"
            )
            return False

        self.repo_states = probe_repositories(self.selected, self.hosting, cfg)
        ensure_no_conflicts(self.repo_states, cfg.target_org)

        try:
            run_pipeline(
                self.ctx,
                self.repo_states,
                self.hosting,
                self.vcs,
                self.state,
                sleep=self._sleep,
            )
        except BaseException as e:
            self.state.progress.finished_at = _now()
            log_migration_failure(self.ctx, self.state, e, time.time() - start_time)
            raise

        artifact = build_import_artifact(self.repo_states)
        self.artifact_path = write_import_artifact(self.ctx.artifact_path, artifact)

        self.state.progress.finished_at = _now()
        log_migration_success(self.ctx, self.state, time.time() - start_time)
        return True
