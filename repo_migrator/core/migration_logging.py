"""
Run-level success/failure logging for the repository migrator.

Kept out of ``migrator.py`` so the orchestrator stays focused on control
flow. Each record carries its statistic as structured kwargs so the values
are available to file handlers as well as the console.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from repo_migrator.core.context import MigrationContext
from repo_migrator.core.state import MigrationState
from repo_migrator.types import MigrationAction
from repo_migrator.utils.logging import log_with_context


def collect_statistics(state: MigrationState) -> dict[str, Any]:
    """Gather run counters from ``state`` into a flat dict.

    Args:
        state: Run state holding the recorded results.

    Returns:
        Dict with keys: repositories, forked, created_fresh, succeeded,
        skipped, failed, warnings.
    """
    return {
        "repositories": len(state.results),
        "forked": state.count_action(MigrationAction.FORK),
        "created_fresh": state.count_action(MigrationAction.CREATE_FRESH),
        "succeeded": state.succeeded,
        "skipped": state.skipped,
        "failed": state.failed,
        "warnings": state.warning_count,
    }


def log_migration_success(
    ctx: MigrationContext, state: MigrationState, duration: float
) -> None:
    """Log the final summary of a run that completed every repository.

    Args:
        ctx: Run context.
        state: Run state holding the recorded results.
        duration: Run duration in seconds.
    """
    stats = collect_statistics(state)

    # --- Outcome header ---------------------------------------------------
    if ctx.dry_run:
        log_with_context(
            logging.INFO, "DRY RUN COMPLETED SUCCESSFULLY", outcome="dry_run_complete"
        )
    else:
        log_with_context(
            logging.INFO,
            "REPOSITORY MIGRATION COMPLETED SUCCESSFULLY",
            outcome="success",
        )

    # --- Statistics --------------------------------------------------------
    log_with_context(
        logging.INFO, f"Duration: {duration:.1f} seconds", duration_seconds=duration
    )
    verb = "would be " if ctx.dry_run else ""
    for key, label in (
        ("forked", f"Repositories {verb}migrated with history"),
        ("created_fresh", f"Repositories {verb}created fresh"),
    ):
        log_with_context(
            logging.INFO, f"{label}: {stats[key]}", stat=key, count=stats[key]
        )
    if ctx.filtered:
        log_with_context(logging.INFO, f"Filter: {ctx.filter_description}")

    # --- Issues -----------------------------------------------------------
    if stats["warnings"]:
        log_with_context(
            logging.WARNING,
            f"Partial warnings: {stats['warnings']}",
            stat="warnings",
            count=stats["warnings"],
        )
        for result in state.results:
            for warning in result.warnings:
                log_with_context(
                    logging.WARNING,
                    f"  {result.descriptor.target_name}: {warning}",
                )
    else:
        log_with_context(logging.INFO, "No issues detected")


def log_migration_failure(
    ctx: MigrationContext,
    state: MigrationState,
    exception: BaseException,
    duration: float,
) -> None:
    """Log the final status of a run that aborted.

    Args:
        ctx: Run context.
        state: Run state holding the results recorded before the abort.
        exception: The exception that aborted the run.
        duration: Run duration in seconds before the abort.
    """
    stats = collect_statistics(state)
    is_interrupt = isinstance(exception, KeyboardInterrupt)
    prefix = "DRY RUN" if ctx.dry_run else "REPOSITORY MIGRATION"

    if is_interrupt:
        log_with_context(
            logging.WARNING,
            f"{prefix} INTERRUPTED BY USER",
            outcome="interrupted",
            exception_type="KeyboardInterrupt",
        )
    else:
        log_with_context(
            logging.ERROR,
            f"{prefix} FAILED",
            outcome="failed",
            exception_type=type(exception).__name__,
            exception_message=str(exception),
        )
        log_with_context(
            logging.ERROR,
            f"Exception: {type(exception).__name__}: {exception!s}",
            duration_seconds=duration,
        )

    level = logging.WARNING if is_interrupt else logging.ERROR
    label = "PROGRESS BEFORE INTERRUPTION" if is_interrupt else "PROGRESS BEFORE FAILURE"
    log_with_context(
        level,
        f"{label}: {stats['succeeded']} succeeded, {stats['failed']} failed, "
        f"{stats['skipped']} skipped",
        succeeded=stats["succeeded"],
        failed=stats["failed"],
        skipped=stats["skipped"],
    )

    # Traceback only at DEBUG; the console shows the message above.
    if not is_interrupt:
        tb = traceback.format_exc()
        if tb and tb.strip() != "NoneType: None":
            log_with_context(logging.DEBUG, f"Traceback:\n{tb}")

    if state.progress.current_repository:
        log_with_context(
            level,
            f"Last repository: {state.progress.current_repository} "
            f"(stage {state.progress.current_stage.value})",
        )
