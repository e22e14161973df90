"""CLI command handler for writing a default configuration file."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from repo_migrator.cli.common import cli
from repo_migrator.constants import DEFAULT_CONFIG_FILENAME, EXIT_FAILURE
from repo_migrator.core.config import create_default_config
from repo_migrator.utils.logging import setup_logger

# ---------------------------------------------------------------------------
# init-config subcommand
# ---------------------------------------------------------------------------


@cli.command("init-config")
@click.argument("path", default=DEFAULT_CONFIG_FILENAME, type=click.Path(dir_okay=False))
def init_config(path: str) -> None:
    """Write a configuration file holding every default setting.

    Refuses to overwrite an existing file.

    Args:
        path: Where to write the YAML file.
    """
    setup_logger()
    if not create_default_config(Path(path)):
        sys.exit(EXIT_FAILURE)
