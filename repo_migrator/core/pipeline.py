"""
Per-repository migration pipeline.

Each repository moves through::

    PENDING -> REMOTE_CREATED -> ACTIONS_DISABLED -> HISTORY_MIGRATED
            -> REFERENCES_FIXED -> ACTIONS_ENABLED -> DONE

or to FAILED from any stage. Fresh repositories skip the history and
reference stages. Repositories are processed one at a time, in input order,
with a fixed pause between them. The first structural failure deletes the
partially created target repository and aborts the run.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from tqdm import tqdm

from repo_migrator.core.context import MigrationContext
from repo_migrator.core.references import rewrite_references
from repo_migrator.core.state import MigrationState
from repo_migrator.exceptions import APIError, PartialWarning, StepFailure
from repo_migrator.services.hosting import HostingClient
from repo_migrator.services.vcs import GitClient, migration_workdir
from repo_migrator.types import (
    MigrationAction,
    MigrationOutcome,
    MigrationResult,
    PipelineStage,
    RepositoryDescriptor,
    RepositoryState,
)
from repo_migrator.utils.logging import log_with_context, setup_repository_logger


class RepositoryPipeline:
    """Runs the migration steps for one repository at a time."""

    def __init__(
        self,
        ctx: MigrationContext,
        hosting: HostingClient,
        vcs: GitClient,
        state: MigrationState,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.ctx = ctx
        self.hosting = hosting
        self.vcs = vcs
        self.state = state
        self._sleep = sleep
        self._stage = PipelineStage.PENDING
        self._created = False

    @property
    def stage(self) -> PipelineStage:
        """Last stage the current repository completed."""
        return self._stage

    def run(self, repo_state: RepositoryState) -> MigrationResult:
        """Migrate one repository.

        Args:
            repo_state: Probed state; its action selects the fork or fresh path.

        Returns:
            A SUCCESS result, possibly carrying partial warnings.

        Raises:
            StepFailure: A structural step failed. The target repository has
                already been deleted (best effort) when this is raised.
        """
        descriptor = repo_state.descriptor
        name = descriptor.target_name
        self._created = False
        self._advance(name, PipelineStage.PENDING)
        warnings: list[str] = []

        try:
            self._create_remote(name)
            self._set_actions(name, enabled=False)
            self._advance(name, PipelineStage.ACTIONS_DISABLED)

            if repo_state.action is MigrationAction.FORK:
                with migration_workdir(name) as workdir:
                    self._migrate_history(descriptor, workdir)
                    try:
                        self._fix_references(name, workdir)
                    except PartialWarning as w:
                        warnings.append(str(w))

            self._set_actions(name, enabled=True)
            self._advance(name, PipelineStage.ACTIONS_ENABLED)

            try:
                self._allow_pr_approvals(name)
            except PartialWarning as w:
                warnings.append(str(w))
        except Exception as e:
            completed = self._stage
            self.state.set_stage(name, PipelineStage.FAILED)
            log_with_context(
                logging.ERROR,
                f"   ❌ Failed after {completed.value}: {e}",
                repository=name,
                stage=completed.value,
            )
            self._compensate(name)
            raise StepFailure(
                f"Migration of {name} failed after {completed.value}: {e}",
                repository=name,
                stage=completed.value,
            ) from e

        self._advance(name, PipelineStage.DONE)
        log_with_context(logging.INFO, f"   ✅ {name} migrated", repository=name)
        return MigrationResult(
            descriptor=descriptor,
            action=repo_state.action,
            outcome=MigrationOutcome.SUCCESS,
            stage=PipelineStage.DONE,
            warnings=tuple(warnings),
        )

    # -- Steps ----------------------------------------------------------------

    def _create_remote(self, name: str) -> None:
        cfg = self.ctx.config
        log_with_context(logging.INFO, "   🔨 Creating empty repository...", repository=name)
        self.hosting.create_repo(cfg.target_org, name, cfg.visibility)
        self._created = True

        for attempt in range(1, cfg.creation_poll_attempts + 1):
            try:
                if self.hosting.repo_exists(cfg.target_org, name):
                    log_with_context(
                        logging.INFO,
                        f"   ✅ Repository created: {cfg.target_org}/{name}",
                        repository=name,
                    )
                    self._advance(name, PipelineStage.REMOTE_CREATED)
                    return
            except APIError as e:
                log_with_context(
                    logging.DEBUG, f"   Poll {attempt} failed: {e}", repository=name
                )
            if attempt < cfg.creation_poll_attempts:
                self._sleep(cfg.creation_poll_interval)

        raise APIError(
            f"Repository creation timeout: {cfg.target_org}/{name} not visible after "
            f"{cfg.creation_poll_attempts} attempts"
        )

    def _set_actions(self, name: str, enabled: bool) -> None:
        verb = "Re-enabling" if enabled else "Disabling"
        icon = "🔓" if enabled else "🔒"
        log_with_context(
            logging.INFO, f"   {icon} {verb} GitHub Actions...", repository=name
        )
        self.hosting.set_workflow_execution_enabled(
            self.ctx.config.target_org, name, enabled
        )

    def _migrate_history(self, descriptor: RepositoryDescriptor, workdir: Path) -> None:
        cfg = self.ctx.config
        name = descriptor.target_name
        log_with_context(logging.INFO, "   📥 Cloning source repository...", repository=name)
        mirror = self.vcs.mirror_clone(
            self.hosting.clone_url(cfg.source_org, descriptor.source_name), workdir
        )
        log_with_context(
            logging.INFO, "   🔄 Pushing all history to new repository...", repository=name
        )
        self.vcs.mirror_push(mirror, self.hosting.clone_url(cfg.target_org, name))
        self._advance(name, PipelineStage.HISTORY_MIGRATED)

    def _fix_references(self, name: str, workdir: Path) -> None:
        cfg = self.ctx.config
        log_with_context(logging.INFO, "   🔧 Fixing team references...", repository=name)
        try:
            checkout = self.vcs.clone(
                self.hosting.clone_url(cfg.target_org, name),
                workdir,
                branch=cfg.default_branch,
            )
            changed = rewrite_references(
                checkout, cfg.reference_files, cfg.reference_rules, repository=name
            )
            if changed:
                self.vcs.commit(
                    checkout,
                    [checkout / path for path in changed],
                    cfg.service_identity,
                    cfg.commit_message,
                )
                self.vcs.push(checkout, cfg.default_branch)
                log_with_context(
                    logging.INFO,
                    f"   ✅ Pushed {len(changed)} reference fix(es) to {cfg.default_branch}",
                    repository=name,
                )
            else:
                log_with_context(logging.INFO, "   ⏭️  No changes needed", repository=name)
        except Exception as e:
            log_with_context(
                logging.WARNING,
                f"   ⚠️  Failed to fix team references: {e}",
                repository=name,
            )
            raise PartialWarning(f"Reference rewrite failed: {e}") from e
        self._advance(name, PipelineStage.REFERENCES_FIXED)

    def _allow_pr_approvals(self, name: str) -> None:
        log_with_context(
            logging.INFO, "   🔐 Enabling Actions to approve PRs...", repository=name
        )
        try:
            self.hosting.set_workflow_pr_approval_permission(
                self.ctx.config.target_org, name, True
            )
        except Exception as e:
            log_with_context(
                logging.WARNING,
                f"   ⚠️  Failed to enable PR approvals: {e}",
                repository=name,
            )
            raise PartialWarning(f"PR approval permission not set: {e}") from e

    def _compensate(self, name: str) -> None:
        """Best-effort deletion of a target repository this run created."""
        if not self._created:
            return
        target_org = self.ctx.config.target_org
        try:
            self.hosting.delete_repo(target_org, name)
            log_with_context(
                logging.INFO, "   🧹 Cleaned up partial repository", repository=name
            )
        except Exception as e:
            log_with_context(
                logging.ERROR,
                f"   ⚠️  Manual cleanup needed: gh repo delete {target_org}/{name} ({e})",
                repository=name,
            )

    def _advance(self, name: str, stage: PipelineStage) -> None:
        self._stage = stage
        self.state.set_stage(name, stage)
        log_with_context(
            logging.DEBUG, f"   stage -> {stage.value}", repository=name, stage=stage.value
        )


def run_pipeline(
    ctx: MigrationContext,
    repo_states: Sequence[RepositoryState],
    hosting: HostingClient,
    vcs: GitClient,
    state: MigrationState,
    sleep: Callable[[float], None] = time.sleep,
) -> list[MigrationResult]:
    """
    Run every repository through the pipeline, sequentially and fail-fast.

    On a StepFailure the failing repository is recorded as FAILED, every
    repository after it as SKIPPED, and the failure is re-raised; nothing
    further is attempted.

    Args:
        ctx: Run context.
        repo_states: Probed states, in the order to process them.
        hosting: Hosting client (real or dry-run).
        vcs: Git client (real or dry-run).
        state: Mutable run state; results are appended here.
        sleep: Injected for tests.

    Returns:
        The accumulated results.
    """
    pipeline = RepositoryPipeline(ctx, hosting, vcs, state, sleep)
    total = len(repo_states)
    delay = ctx.inter_repository_delay

    log_with_context(
        logging.INFO,
        f"{ctx.log_prefix}🚀 Creating {total} independent repositories...",
    )

    pbar = tqdm(repo_states, desc=f"{ctx.log_prefix}Migrating repositories", unit="repo")
    for index, repo_state in enumerate(pbar):
        name = repo_state.descriptor.target_name
        pbar.set_postfix_str(name)
        if ctx.output_dir and name not in state.repository_handlers:
            state.repository_handlers[name] = setup_repository_logger(ctx.output_dir, name)
        log_with_context(logging.INFO, f"[{index + 1}/{total}] {name}", repository=name)

        try:
            result = pipeline.run(repo_state)
        except StepFailure as failure:
            pbar.close()
            state.record(
                MigrationResult(
                    descriptor=repo_state.descriptor,
                    action=repo_state.action,
                    outcome=MigrationOutcome.FAILED,
                    stage=pipeline.stage,
                    error=str(failure),
                )
            )
            for remaining in repo_states[index + 1 :]:
                state.record(
                    MigrationResult(
                        descriptor=remaining.descriptor,
                        action=remaining.action,
                        outcome=MigrationOutcome.SKIPPED,
                        stage=PipelineStage.PENDING,
                        error=f"Not attempted: run aborted after {name} failed",
                    )
                )
            raise
        state.record(result)

        if index < total - 1 and delay > 0:
            log_with_context(
                logging.INFO,
                f"   ⏸️  Waiting {delay:g} seconds before next repository...",
                repository=name,
            )
            sleep(delay)

    return state.results
