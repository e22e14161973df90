"""Post-run cleanup of per-repository log handlers."""

from __future__ import annotations

import logging

from repo_migrator.core.state import MigrationState
from repo_migrator.utils.logging import close_handler, log_with_context


def cleanup_repository_handlers(state: MigrationState) -> None:
    """Close and detach every per-repository log handler held in ``state``.

    Args:
        state: Run state whose ``repository_handlers`` are drained.
    """
    if not state.repository_handlers:
        return

    for repository, handler in list(state.repository_handlers.items()):
        try:
            close_handler(handler)
            log_with_context(
                logging.DEBUG, f"Cleaned up log handler for repository: {repository}"
            )
        except Exception as e:
            # print: the logging machinery itself may be what failed
            print(
                f"Warning: Failed to clean up log handler"
                f" for repository {repository}: {e}"
            )

    state.repository_handlers.clear()
