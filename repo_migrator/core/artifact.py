"""
Terraform import-declaration artifact.

The artifact binds every forked repository to its resource slot so that a
subsequent ``terraform apply`` adopts it instead of creating a new one.
Repositories created fresh are listed in a trailing comment only. Output is
byte-identical for identical input apart from the ``Generated at`` line.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Sequence
from pathlib import Path

from repo_migrator.types import ImportArtifact, MigrationAction, RepositoryState
from repo_migrator.utils.logging import log_with_context

HEADER_LINES = (
    "# Generated by repo-migrator",
    "# Generated at: {generated_at}",
    "# Import blocks for migrated repositories",
    "",
    "# Only repository resources are imported. Other resources (labels, webhooks, etc.)",
    "# will be created fresh by Terraform, which is acceptable for settings.",
    "",
)


def build_import_artifact(
    repo_states: Sequence[RepositoryState], generated_at: str | None = None
) -> ImportArtifact:
    """Build the artifact model from probed states, preserving their order.

    Args:
        repo_states: Probed repository states.
        generated_at: ISO-8601 timestamp; defaults to now (UTC).

    Returns:
        An ImportArtifact with one import per FORK repository.
    """
    if generated_at is None:
        generated_at = datetime.datetime.now(datetime.timezone.utc).isoformat()

    imports = tuple(
        (s.descriptor.resource_address, s.descriptor.target_name)
        for s in repo_states
        if s.action is MigrationAction.FORK
    )
    fresh = tuple(
        s.descriptor.target_name
        for s in repo_states
        if s.action is MigrationAction.CREATE_FRESH
    )
    return ImportArtifact(imports=imports, fresh=fresh, generated_at=generated_at)


def render_import_artifact(artifact: ImportArtifact) -> str:
    """Render the artifact as HCL text."""
    lines = [line.format(generated_at=artifact.generated_at) for line in HEADER_LINES]

    for address, external_id in artifact.imports:
        lines.extend(["import {", f"  to = {address}", f'  id = "{external_id}"', "}", ""])

    if artifact.fresh:
        lines.append("# The following repositories will be created fresh (not imported):")
        lines.extend(f"#   - {name}" for name in artifact.fresh)
        lines.append("")

    return "\n".join(lines)


def write_import_artifact(path: Path, artifact: ImportArtifact) -> Path:
    """Render ``artifact`` to ``path``, replacing any previous file."""
    path.write_text(render_import_artifact(artifact), encoding="utf-8")
    log_with_context(
        logging.INFO,
        f"📝 Generated: {path} ({len(artifact.imports)} import(s), "
        f"{len(artifact.fresh)} fresh)",
    )
    return path
