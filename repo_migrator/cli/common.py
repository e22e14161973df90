"""Shared CLI infrastructure: option decorators, error handlers, and the CLI group."""

from __future__ import annotations

import logging
import sys
from typing import Any, Callable, ClassVar

import click

import repo_migrator
from repo_migrator.constants import DEFAULT_CONFIG_FILENAME, EXIT_FAILURE
from repo_migrator.exceptions import (
    APIError,
    ConfigError,
    ConflictError,
    MigratorError,
    StepFailure,
    UsageError,
    ValidationError,
)
from repo_migrator.utils.logging import log_with_context


class DefaultGroup(click.Group):
    """Group that falls back to ``default_command`` for unknown first tokens.

    ``repo-migrator ./stack --yes`` is parsed as
    ``repo-migrator migrate ./stack --yes``. Group-level flags
    (``--help``, ``-h``, ``--version``) and an empty command line are left
    alone.
    """

    GROUP_FLAGS: ClassVar[frozenset[str]] = frozenset({"--help", "-h", "--version"})

    def __init__(self, *args: Any, default_command: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.default_command = default_command

    def _routes_to_default(self, args: list[str]) -> bool:
        if not self.default_command or not args:
            return False
        first = args[0]
        return first not in self.commands and first not in self.GROUP_FLAGS

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if self._routes_to_default(args):
            args = [self.default_command, *args]
        return super().parse_args(ctx, args)

    def main(self, *args: Any, standalone_mode: bool = True, **kwargs: Any) -> Any:
        """Run the group; in standalone mode usage errors exit with status 1."""
        if not standalone_mode:
            return super().main(*args, standalone_mode=False, **kwargs)
        try:
            rv = super().main(*args, standalone_mode=False, **kwargs)
        except click.ClickException as e:
            e.show()
            sys.exit(EXIT_FAILURE)
        except click.Abort:
            click.echo("Aborted!", err=True)
            sys.exit(EXIT_FAILURE)
        sys.exit(rv if isinstance(rv, int) else 0)


# ---------------------------------------------------------------------------
# Shared option decorator
# ---------------------------------------------------------------------------


def common_options(f: Callable[..., None]) -> Callable[..., None]:
    """Decorator that adds options shared across subcommands.

    Args:
        f: The Click command function to decorate.

    Returns:
        The decorated function with common options attached.
    """
    f = click.option(
        "--config",
        default=DEFAULT_CONFIG_FILENAME,
        show_default=True,
        help="Path to config YAML (defaults are used when it does not exist)",
    )(f)
    f = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose console logging (shows DEBUG level messages)",
    )(f)
    return f


def stack_dir_argument(f: Callable[..., None]) -> Callable[..., None]:
    """Decorator adding the STACK_DIR positional argument."""
    return click.argument(
        "stack_dir",
        type=click.Path(file_okay=False, path_type=str),
    )(f)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group(
    cls=DefaultGroup,
    default_command="migrate",
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=repo_migrator.__version__, prog_name="repo-migrator")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Fork archived repositories into a new organization and generate
    Terraform import blocks for them.

    Args:
        ctx: The Click context (injected by ``@click.pass_context``).
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help(), err=True)
        ctx.exit(EXIT_FAILURE)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


def handle_exception(e: BaseException) -> None:
    """Log an exception with remediation hints matching its type.

    Args:
        e: The exception to handle.
    """
    if isinstance(e, UsageError):
        log_with_context(logging.ERROR, f"Usage error: {e}")
        log_with_context(logging.INFO, "Run 'repo-migrator --help' for usage.")
    elif isinstance(e, ValidationError):
        log_with_context(logging.ERROR, f"Invalid stack: {e}")
        log_with_context(
            logging.INFO,
            "Run 'cdktf synth' (or your synth step) first so the stack directory "
            "contains the synthesized configuration.",
        )
    elif isinstance(e, ConfigError):
        log_with_context(logging.ERROR, f"Configuration error: {e}")
    elif isinstance(e, ConflictError):
        log_with_context(logging.ERROR, "❌ ERROR: Target repositories already exist")
        log_with_context(logging.ERROR, str(e))
    elif isinstance(e, StepFailure):
        log_with_context(logging.ERROR, f"❌ Migration failed: {e}")
        log_with_context(logging.INFO, "Aborting. You may need to:")
        log_with_context(
            logging.INFO,
            "  1. Check your GitHub token has repo, workflow and admin:org scopes",
        )
        log_with_context(
            logging.INFO, "  2. Verify the source repo exists and is accessible"
        )
        log_with_context(logging.INFO, "  3. Check GitHub API rate limits")
        log_with_context(
            logging.INFO,
            "  4. Re-run with --only for the repositories that were not migrated",
        )
    elif isinstance(e, APIError):
        log_with_context(logging.ERROR, f"GitHub API error: {e}")
    elif isinstance(e, MigratorError):
        log_with_context(logging.ERROR, str(e))
    elif isinstance(e, KeyboardInterrupt):
        log_with_context(logging.WARNING, "Migration interrupted by user.")
        log_with_context(
            logging.INFO,
            "📋 Check the partial migration report in the output directory.",
        )
        log_with_context(
            logging.INFO,
            "🧹 The repository in flight may need manual cleanup (see the report).",
        )
    else:
        log_with_context(logging.ERROR, f"Migration failed: {e}", exc_info=True)
