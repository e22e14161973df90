"""
Run report and console summaries for the repository migrator.
"""

from __future__ import annotations

import datetime
import os
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import yaml

from repo_migrator.constants import (
    MIGRATE_PROVIDER_WORKFLOW,
    PROVIDER_INFIX,
    REPORT_FILENAME,
)
from repo_migrator.core.context import MigrationContext
from repo_migrator.core.extractor import generate_target_flags
from repo_migrator.core.migration_logging import collect_statistics
from repo_migrator.core.state import MigrationState
from repo_migrator.types import MigrationAction, MigrationOutcome, RepositoryState
from repo_migrator.utils.logging import logger


def _repository_entries(
    state: MigrationState, repo_states: Sequence[RepositoryState]
) -> dict[str, dict[str, Any]]:
    results = {r.descriptor.target_name: r for r in state.results}
    entries: dict[str, dict[str, Any]] = {}

    for repo_state in repo_states:
        descriptor = repo_state.descriptor
        entry: dict[str, Any] = {
            "source": descriptor.source_name,
            "resource": descriptor.resource_address,
            "action": repo_state.action.value,
            "source_exists": repo_state.source_exists,
            "target_exists": repo_state.target_exists,
        }
        result = results.get(descriptor.target_name)
        if result is None:
            entry["outcome"] = "not_attempted"
        else:
            entry["outcome"] = result.outcome.value
            entry["stage"] = result.stage.value
            if result.error:
                entry["error"] = result.error
            if result.warnings:
                entry["warnings"] = list(result.warnings)
        entries[descriptor.target_name] = entry

    return entries


def _recommendations(
    ctx: MigrationContext,
    state: MigrationState,
    repo_states: Sequence[RepositoryState],
) -> list[dict[str, str]]:
    target_org = ctx.config.target_org
    recommendations = []

    conflicts = [s.descriptor.target_name for s in repo_states if s.target_exists]
    if conflicts:
        recommendations.append(
            {
                "type": "conflict",
                "message": "Delete or rename the existing repositories, then run again: "
                + "; ".join(f"gh repo delete {target_org}/{name}" for name in conflicts),
                "severity": "error",
            }
        )

    for result in state.results:
        name = result.descriptor.target_name
        if result.outcome is MigrationOutcome.FAILED:
            recommendations.append(
                {
                    "type": "step_failure",
                    "message": f"{name} failed after {result.stage.value}. Check that "
                    f"{target_org}/{name} was removed (gh repo delete "
                    f"{target_org}/{name} if not), fix the cause and run again "
                    f"with --only for the remaining repositories.",
                    "severity": "error",
                }
            )
        if result.warnings:
            recommendations.append(
                {
                    "type": "partial_warning",
                    "message": f"{name} was migrated with {len(result.warnings)} "
                    "warning(s); team references or Actions permissions may need "
                    "a manual fix.",
                    "severity": "warning",
                }
            )

    if ctx.dry_run and not conflicts and not state.has_errors:
        recommendations.append(
            {
                "type": "dry_run",
                "message": "Review the generated import file, then run again with --yes.",
                "severity": "info",
            }
        )
    return recommendations


def generate_report(
    ctx: MigrationContext,
    state: MigrationState,
    repo_states: Sequence[RepositoryState],
    output_file: str = REPORT_FILENAME,
) -> str:
    """Write the YAML run report and return its path.

    Safe to call after a failure or interruption; repositories that were
    probed but never reached are reported as ``not_attempted``.

    Args:
        ctx: Run context.
        state: Run state.
        repo_states: Probed repository states (may be empty).
        output_file: Report filename inside the output directory.

    Returns:
        Path of the written report.
    """
    output_dir = ctx.output_dir or "."
    report_path = os.path.join(output_dir, output_file)
    stats = collect_statistics(state)

    report = {
        "migration_summary": {
            "timestamp": datetime.datetime.now().isoformat(),
            "dry_run": ctx.dry_run,
            "source_org": ctx.config.source_org,
            "target_org": ctx.config.target_org,
            "stack_dir": str(ctx.stack_dir),
            "output_path": str(output_dir),
            "filter": ctx.filter_description or None,
            "started_at": state.progress.started_at,
            "finished_at": state.progress.finished_at,
            "repositories_selected": len(repo_states),
            **stats,
        },
        "repositories": _repository_entries(state, repo_states),
        "recommendations": _recommendations(ctx, state, repo_states),
    }

    os.makedirs(output_dir, exist_ok=True)
    with open(report_path, "w") as f:
        yaml.safe_dump(report, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Migration report generated: {report_path}")
    return report_path


def print_dry_run_summary(
    ctx: MigrationContext,
    repo_states: Sequence[RepositoryState],
    artifact_path: Path | None,
    report_file: str | None = None,
) -> None:
    """Print a summary of the dry run to the console."""
    forks = sum(1 for s in repo_states if s.action is MigrationAction.FORK)
    fresh = len(repo_states) - forks

    print("\n" + "=" * 60)
    print("DRY RUN SUMMARY")
    print("=" * 60)
    print(f"Repositories to migrate:   {forks}")
    print(f"Repositories to create:    {fresh}")
    print(f"Total (filtered):          {len(repo_states)}")
    if ctx.filtered:
        print(f"Filter: {ctx.filter_description}")
    if artifact_path:
        print(f"\nGenerated: {artifact_path}")
    if report_file:
        print(f"Detailed report saved to {report_file}")
    print("=" * 60)
    print("\nNo repositories were created. Next steps:")
    if artifact_path:
        print("  1. Review the generated import file:")
        print(f"     cat {artifact_path}")
    print("  2. If everything looks good, run again with --yes:")
    print(f"     repo-migrator {ctx.stack_dir} --yes {ctx.filter_description}".rstrip())
    print("=" * 60)


def forked_provider_names(
    repo_states: Iterable[RepositoryState], target_prefix: str
) -> list[str]:
    """Return the provider names of forked ``<prefix>provider-<name>`` repos.

    ``cdktn-provider-aws`` yields ``aws``. Repositories ending in ``-go``
    are skipped; the result is sorted and free of duplicates.
    """
    prefix = f"{target_prefix}{PROVIDER_INFIX}"
    names = set()
    for repo_state in repo_states:
        if repo_state.action is not MigrationAction.FORK:
            continue
        target_name = repo_state.descriptor.target_name
        if target_name.endswith("-go") or not target_name.startswith(prefix):
            continue
        provider = target_name[len(prefix) :]
        if provider:
            names.add(provider)
    return sorted(names)


def _print_provider_migration(ctx: MigrationContext, providers: Sequence[str]) -> None:
    target_org = ctx.config.target_org
    repo_prefix = f"{ctx.config.target_prefix}{PROVIDER_INFIX}"

    print("\nMigrate providers to the new package scope:")
    print("\nAfter the Terraform import completes, trigger the migrate-provider")
    print("workflow for each repository to open the migration PRs.")
    print("\n  5. Trigger the workflows (one command per provider):")
    for provider in providers:
        print(f"     gh workflow run {MIGRATE_PROVIDER_WORKFLOW} -f provider={provider}")
    print("\n     Or trigger them all in a loop:")
    print(f"     for provider in {' '.join(providers)}; do")
    print(f"       gh workflow run {MIGRATE_PROVIDER_WORKFLOW} -f provider=$provider")
    print("       sleep 2")
    print("     done")
    print("  6. Wait for the migration PRs to be created and merged")
    print(f"     gh pr list -R {target_org}/{repo_prefix}<name>")
    print(
        f"\nThe workflows authenticate as {ctx.config.service_identity.name}; make sure "
        "its app credentials are configured as repository secrets."
    )


def print_next_steps(
    ctx: MigrationContext,
    snapshot: dict[str, Any] | None,
    selected: Sequence[str],
    repo_states: Sequence[RepositoryState] = (),
) -> None:
    """Print the Terraform follow-up commands after an executed run.

    When a filter narrowed the run, the ``-target`` flags covering every
    resource of the selected repositories are printed as well. Forked
    provider repositories get the ``gh workflow run`` commands that start
    their package migration.
    """
    artifact_name = ctx.config.artifact_filename
    print("\nMigration completed successfully!")
    print("\nNext steps:")
    print(f"  1. cd {ctx.stack_dir}")
    print("  2. terraform plan  # Verify imports")

    if ctx.filtered:
        print("\nTo apply only the filtered repositories, use -target flags:")
        flags = generate_target_flags(snapshot or {}, selected)
        if flags:
            joined = " \\\n      ".join(flags)
            print("     terraform apply \\")
            print(f"      {joined}")
        else:
            print("     (No matching resources found for filtering)")
        print("\n   Or apply all changes (including related resources):")

    print("  3. terraform apply # Import into state")
    print(f"  4. rm {artifact_name}    # Clean up after import")

    providers = forked_provider_names(repo_states, ctx.config.target_prefix)
    if providers:
        _print_provider_migration(ctx, providers)
