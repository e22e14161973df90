"""
State probing: where does each selected repository exist today?

Probing only reads. It classifies each descriptor as a fork (the source
repository exists) or a fresh creation, and refuses the whole run when any
target repository already exists.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from repo_migrator.core.config import MigrationConfig
from repo_migrator.exceptions import ConflictError
from repo_migrator.services.hosting import HostingClient
from repo_migrator.types import RepositoryDescriptor, RepositoryState
from repo_migrator.utils.logging import log_with_context


def probe_repository(
    descriptor: RepositoryDescriptor, hosting: HostingClient, config: MigrationConfig
) -> RepositoryState:
    """Probe one descriptor in both organizations."""
    name = descriptor.target_name
    log_with_context(logging.INFO, f"📦 {name}", repository=name)
    if descriptor.renamed:
        log_with_context(
            logging.INFO,
            f"   Source: {config.source_org}/{descriptor.source_name}",
            repository=name,
        )

    source_exists = hosting.repo_exists(config.source_org, descriptor.source_name)
    if source_exists:
        log_with_context(
            logging.INFO,
            f"   ✅ Found in {config.source_org} org ({descriptor.source_name})",
            repository=name,
        )
    else:
        log_with_context(
            logging.INFO,
            f"   ⚠️  NOT found in {config.source_org} org (will create fresh)",
            repository=name,
        )

    target_exists = hosting.repo_exists(config.target_org, name)
    if target_exists:
        log_with_context(
            logging.ERROR,
            f"   💥 EXISTS in {config.target_org} org (conflict!)",
            repository=name,
        )
    else:
        log_with_context(
            logging.INFO, f"   ✅ Not in {config.target_org} org", repository=name
        )

    return RepositoryState.from_probe(descriptor, source_exists, target_exists)


def probe_repositories(
    descriptors: Sequence[RepositoryDescriptor],
    hosting: HostingClient,
    config: MigrationConfig,
) -> list[RepositoryState]:
    """Probe every descriptor, in order. Makes no mutating calls."""
    log_with_context(logging.INFO, "🔍 Checking repository status...")
    return [probe_repository(d, hosting, config) for d in descriptors]


def ensure_no_conflicts(states: Sequence[RepositoryState], target_org: str) -> None:
    """Raise ConflictError if any probed repository already exists in the target.

    Args:
        states: Probed repository states.
        target_org: Target organization, used in the remediation message.

    Raises:
        ConflictError: Listing every conflicting repository.
    """
    conflicts = [s.descriptor.target_name for s in states if s.target_exists]
    if not conflicts:
        return

    lines = [
        f"{len(conflicts)} repository(ies) already exist in the {target_org} org: "
        f"{', '.join(conflicts)}.",
        "To resolve:",
        "  1. Delete conflicting repos manually:",
        *(f"     gh repo delete {target_org}/{name}" for name in conflicts),
        "  2. Or rename them if you want to keep them",
        "  3. Then run the migration again",
    ]
    raise ConflictError("\n".join(lines), repositories=conflicts)
