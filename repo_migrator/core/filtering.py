"""
Repository selection for the --only and --exclude command-line filters.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from repo_migrator.exceptions import UsageError
from repo_migrator.types import RepositoryDescriptor
from repo_migrator.utils.logging import log_with_context


def parse_name_list(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated option value, dropping blanks and whitespace."""
    if not value:
        return ()
    return tuple(name.strip() for name in value.split(",") if name.strip())


def filter_descriptors(
    descriptors: Sequence[RepositoryDescriptor],
    only: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
) -> list[RepositoryDescriptor]:
    """
    Select descriptors by target repository name.

    1. If ``only`` is given, keep just those repositories (a whitelist) and
       warn about names that are not in the snapshot.
    2. Then drop every repository named in ``exclude`` (a blacklist).

    Input order is preserved.

    Args:
        descriptors: Descriptors extracted from the snapshot.
        only: Names to keep.
        exclude: Names to drop.

    Returns:
        The selected descriptors.

    Raises:
        UsageError: If both ``only`` and ``exclude`` are non-empty.
    """
    only_names = list(only or [])
    exclude_names = set(exclude or [])

    if only_names and exclude_names:
        raise UsageError("--only and --exclude cannot be used together")

    selected = list(descriptors)

    if only_names:
        wanted = set(only_names)
        selected = [d for d in selected if d.target_name in wanted]

        found = {d.target_name for d in selected}
        not_found = [name for name in only_names if name not in found]
        if not_found:
            log_with_context(
                logging.WARNING,
                f"The following repos were not found in stack: {', '.join(not_found)}",
            )

    if exclude_names:
        selected = [d for d in selected if d.target_name not in exclude_names]

    log_with_context(
        logging.DEBUG,
        f"Selected {len(selected)} of {len(descriptors)} repositories",
    )
    return selected
