#!/usr/bin/env python3
"""
Command-line entry point for the repository migrator.

Importing the subcommand modules registers them on the shared ``cli``
group; ``main`` hands control to click.
"""

from __future__ import annotations

from repo_migrator.cli.common import DefaultGroup, cli, handle_exception
from repo_migrator.cli.init_config_cmd import init_config
from repo_migrator.cli.migrate_cmd import (
    create_clients,
    create_migration_output_directory,
    migrate,
)
from repo_migrator.cli.targets_cmd import targets

__all__ = [
    "DefaultGroup",
    "cli",
    "create_clients",
    "create_migration_output_directory",
    "handle_exception",
    "init_config",
    "main",
    "migrate",
    "targets",
]


def main() -> None:
    """Main entry point for the ``repo-migrator`` console script."""
    cli()


if __name__ == "__main__":
    main()
