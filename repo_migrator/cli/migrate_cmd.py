"""CLI command handler for the migrate workflow."""

from __future__ import annotations

import datetime
import logging
import os
import sys
from pathlib import Path

import click

from repo_migrator.cli.common import (
    cli,
    common_options,
    handle_exception,
    stack_dir_argument,
)
from repo_migrator.cli.report import (
    generate_report,
    print_dry_run_summary,
    print_next_steps,
)
from repo_migrator.constants import EXIT_FAILURE, OUTPUT_ROOT
from repo_migrator.core.cleanup import cleanup_repository_handlers
from repo_migrator.core.config import load_config, read_github_token
from repo_migrator.core.context import MigrationContext
from repo_migrator.core.filtering import parse_name_list
from repo_migrator.core.migrator import RepositoryMigrator
from repo_migrator.exceptions import UsageError
from repo_migrator.services.dry_run_service import DryRunGitClient, DryRunHostingClient
from repo_migrator.services.hosting import GitHubHostingClient, HostingClient
from repo_migrator.services.vcs import GitClient
from repo_migrator.utils.logging import log_with_context, setup_logger

# ---------------------------------------------------------------------------
# migrate subcommand
# ---------------------------------------------------------------------------


@cli.command()
@stack_dir_argument
@common_options
@click.option(
    "--yes",
    is_flag=True,
    default=False,
    help="Actually create repositories. Without it the run is a dry run.",
)
@click.option(
    "--only",
    default=None,
    help="Comma-separated repository names to migrate (whitelist)",
)
@click.option(
    "--exclude",
    default=None,
    help="Comma-separated repository names to skip (blacklist)",
)
def migrate(
    stack_dir: str,
    config: str,
    verbose: bool,
    yes: bool,
    only: str | None,
    exclude: str | None,
) -> None:
    """Fork the repositories of STACK_DIR into the target organization.

    Args:
        stack_dir: Directory holding the synthesized stack.
        config: Path to config YAML.
        verbose: Enable verbose console logging.
        yes: Execute instead of dry-running.
        only: Comma-separated whitelist.
        exclude: Comma-separated blacklist.
    """
    only_names = parse_name_list(only)
    exclude_names = parse_name_list(exclude)

    # Reject malformed invocations before anything touches disk
    if only_names and exclude_names:
        setup_logger(verbose)
        handle_exception(UsageError("--only and --exclude cannot be used together"))
        sys.exit(EXIT_FAILURE)

    output_dir = create_migration_output_directory()
    setup_logger(verbose, output_dir)

    migrator: RepositoryMigrator | None = None
    processed = False
    exit_code = 0
    try:
        cfg = load_config(Path(config))
        ctx = MigrationContext(
            stack_dir=Path(stack_dir),
            output_dir=output_dir,
            dry_run=not yes,
            verbose=verbose,
            only=only_names or None,
            exclude=exclude_names,
            config=cfg,
        )
        log_startup_info(ctx, config)

        hosting, vcs = create_clients(ctx)
        migrator = RepositoryMigrator(ctx, hosting, vcs)
        processed = migrator.migrate()
    except (Exception, KeyboardInterrupt) as e:
        handle_exception(e)
        exit_code = EXIT_FAILURE
    finally:
        if migrator is not None:
            finish_run(migrator, failed=exit_code != 0)

    if exit_code:
        sys.exit(exit_code)
    if migrator is None or not processed:
        return

    if migrator.dry_run:
        print_dry_run_summary(
            migrator.ctx,
            migrator.repo_states,
            migrator.artifact_path,
            migrator.report_file,
        )
    else:
        print_next_steps(
            migrator.ctx,
            migrator.snapshot,
            [d.target_name for d in migrator.selected],
            migrator.repo_states,
        )


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def create_clients(ctx: MigrationContext) -> tuple[HostingClient, GitClient]:
    """Build the hosting and git clients for this run.

    Execute runs get the real clients. Dry runs get stand-ins that forward
    reads to GitHub (so probing reflects live state) and only log writes.

    Args:
        ctx: Run context.

    Returns:
        ``(hosting, vcs)``.

    Raises:
        ConfigError: No token is set for an execute run.
    """
    token = read_github_token(required=not ctx.dry_run)
    if token is None:
        log_with_context(
            logging.WARNING,
            "No GitHub token set; the dry run uses unauthenticated API calls "
            "(low rate limit, private repositories are invisible)",
        )

    hosting: HostingClient = GitHubHostingClient(
        token, host=ctx.config.github_host, api_url=ctx.config.github_api_url
    )
    vcs = GitClient()
    if ctx.dry_run:
        return DryRunHostingClient(hosting), DryRunGitClient()
    return hosting, vcs


def finish_run(migrator: RepositoryMigrator, failed: bool) -> None:
    """Write the run report and release per-repository log handlers.

    Runs on every exit path, so a failed or interrupted run still leaves a
    (partial) report behind.
    """
    try:
        migrator.report_file = generate_report(
            migrator.ctx, migrator.state, migrator.repo_states
        )
        if failed:
            log_with_context(
                logging.INFO,
                f"Migration report (with partial results) available at: "
                f"{migrator.report_file}",
            )
    except Exception as report_error:
        log_with_context(
            logging.WARNING,
            f"Failed to generate migration report: {report_error}",
        )
    finally:
        cleanup_repository_handlers(migrator.state)


def log_startup_info(ctx: MigrationContext, config: str) -> None:
    """Log startup information.

    Args:
        ctx: Run context.
        config: Config path as given on the command line.
    """
    config_path = Path(config)
    if not config_path.is_absolute():
        config_path = Path.cwd() / config

    log_with_context(logging.INFO, "Starting migration with the following parameters:")
    log_with_context(logging.INFO, f"- Stack directory: {ctx.stack_dir}")
    log_with_context(logging.INFO, f"- Config: {config_path}")
    log_with_context(
        logging.INFO, f"- Source: {ctx.config.source_org} -> {ctx.config.target_org}"
    )
    log_with_context(logging.INFO, f"- Dry run: {ctx.dry_run}")
    if ctx.filtered:
        log_with_context(logging.INFO, f"- Filter: {ctx.filter_description}")
    log_with_context(logging.INFO, f"- Verbose logging: {ctx.verbose}")
    if ctx.dry_run:
        log_with_context(
            logging.INFO, "🔍 DRY-RUN MODE (use --yes to actually create repos)"
        )


def create_migration_output_directory() -> str:
    """Create output directory for migration with timestamp.

    Returns:
        The path to the newly created output directory.
    """
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = f"{OUTPUT_ROOT}/run_{timestamp}"

    # Create subdirectories
    os.makedirs(output_dir, exist_ok=True)
    os.makedirs(os.path.join(output_dir, "repository_logs"), exist_ok=True)

    return output_dir
