"""CLI command handler for printing Terraform -target flags."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from repo_migrator.cli.common import (
    cli,
    common_options,
    handle_exception,
    stack_dir_argument,
)
from repo_migrator.constants import EXIT_FAILURE
from repo_migrator.core.config import load_config
from repo_migrator.core.extractor import generate_target_flags, load_snapshot
from repo_migrator.core.filtering import parse_name_list
from repo_migrator.exceptions import UsageError
from repo_migrator.utils.logging import setup_logger

# ---------------------------------------------------------------------------
# targets subcommand
# ---------------------------------------------------------------------------


@cli.command()
@stack_dir_argument
@common_options
@click.option(
    "--only",
    default=None,
    help="Comma-separated repository names whose resources to target",
)
def targets(stack_dir: str, config: str, verbose: bool, only: str | None) -> None:
    """Print terraform -target flags for the resources of the named repositories.

    Useful after a filtered migration to apply only the migrated repositories.

    Args:
        stack_dir: Directory holding the synthesized stack.
        config: Path to config YAML.
        verbose: Enable verbose console logging.
        only: Comma-separated repository names.
    """
    setup_logger(verbose)

    try:
        names = parse_name_list(only)
        if not names:
            raise UsageError("targets requires --only=<repo>[,<repo>...]")
        cfg = load_config(Path(config))
        snapshot = load_snapshot(Path(stack_dir) / cfg.snapshot_filename)
        flags = generate_target_flags(snapshot, names)
    except Exception as e:
        handle_exception(e)
        sys.exit(EXIT_FAILURE)

    if not flags:
        click.echo("(No matching resources found for filtering)", err=True)
        return
    for flag in flags:
        click.echo(flag)
