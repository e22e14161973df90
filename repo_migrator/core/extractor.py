"""
Desired-state extraction from a synthesized Terraform JSON snapshot.

The snapshot has the shape ``{"resource": {<type>: {<name>: {"name": ...}}}}``.
Only resources of the configured repository type become descriptors; every
resource type is consulted when building ``-target`` flags.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from repo_migrator.core.config import MigrationConfig
from repo_migrator.exceptions import ValidationError
from repo_migrator.types import RepositoryDescriptor
from repo_migrator.utils.logging import log_with_context


def swap_prefix(name: str, old_prefix: str, new_prefix: str) -> str:
    """Replace a leading ``old_prefix`` with ``new_prefix``.

    Names that do not start with ``old_prefix`` are returned unchanged.
    """
    if old_prefix and name.startswith(old_prefix):
        return new_prefix + name[len(old_prefix) :]
    return name


def derive_source_name(target_name: str, target_prefix: str, source_prefix: str) -> str:
    """Map a target repository name to its name in the source organization.

    >>> derive_source_name("cdktn-provider-aws", "cdktn-", "cdktf-")
    'cdktf-provider-aws'
    """
    return swap_prefix(target_name, target_prefix, source_prefix)


def derive_target_name(source_name: str, target_prefix: str, source_prefix: str) -> str:
    """Inverse of :func:`derive_source_name`."""
    return swap_prefix(source_name, source_prefix, target_prefix)


def load_snapshot(path: Path) -> dict[str, Any]:
    """Read and parse the configuration snapshot.

    Args:
        path: Path to the ``cdk.tf.json`` file.

    Returns:
        The parsed document.

    Raises:
        ValidationError: If the file is missing, unreadable or not a JSON object.
    """
    if not path.is_file():
        raise ValidationError(
            f"{path.name} not found in {path.parent}. "
            "Make sure you synthesize the stack first."
        )
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"{path} is not valid JSON: {e}") from e
    except OSError as e:
        raise ValidationError(f"Failed to read {path}: {e}") from e

    if not isinstance(document, dict):
        raise ValidationError(f"{path} must contain a JSON object at the top level")
    return document


def _resources(snapshot: dict[str, Any] | None) -> dict[str, Any]:
    if not snapshot:
        raise ValidationError("Configuration snapshot is empty")
    resources = snapshot.get("resource")
    if not isinstance(resources, dict):
        raise ValidationError("Configuration snapshot has no 'resource' section")
    return resources


def extract_descriptors(
    snapshot: dict[str, Any] | None, config: MigrationConfig
) -> list[RepositoryDescriptor]:
    """Build one descriptor per repository resource, in document order.

    Args:
        snapshot: The parsed configuration snapshot.
        config: Supplies the repository resource type and naming prefixes.

    Returns:
        Repository descriptors.

    Raises:
        ValidationError: If the resource collection is absent or malformed,
            or two resources declare the same repository name.
    """
    resource_type = config.repository_resource_type
    repositories = _resources(snapshot).get(resource_type)
    if not isinstance(repositories, dict):
        raise ValidationError(
            f"Configuration snapshot declares no '{resource_type}' resources"
        )

    descriptors = []
    claimed: dict[str, str] = {}
    for resource_name, resource_config in repositories.items():
        target_name = (
            resource_config.get("name") if isinstance(resource_config, dict) else None
        )
        if not isinstance(target_name, str) or not target_name:
            raise ValidationError(
                f"Resource {resource_type}.{resource_name} has no 'name' attribute"
            )
        if target_name in claimed:
            raise ValidationError(
                f"Resources {resource_type}.{claimed[target_name]} and "
                f"{resource_type}.{resource_name} both declare repository "
                f"'{target_name}'"
            )
        claimed[target_name] = resource_name
        descriptors.append(
            RepositoryDescriptor(
                resource_type=resource_type,
                resource_name=resource_name,
                target_name=target_name,
                source_name=derive_source_name(
                    target_name, config.target_prefix, config.source_prefix
                ),
            )
        )

    log_with_context(
        logging.INFO, f"Found {len(descriptors)} repository resources in snapshot"
    )
    return descriptors


def generate_target_flags(
    snapshot: dict[str, Any], repo_names: Iterable[str]
) -> list[str]:
    """Build Terraform ``-target`` flags for every resource owned by the repos.

    Resource names follow ``<repo-name>_<kind>_<hash>``, so a resource belongs
    to a repository only when its name starts with ``<repo-name>_``. Repo
    ``foo`` therefore does not claim ``foo-bar_repo_123``.

    Args:
        snapshot: The parsed configuration snapshot.
        repo_names: Target repository names.

    Returns:
        Flags such as ``-target=github_repository.foo_repo_1A2B``, in
        document order.
    """
    prefixes = tuple(f"{name}_" for name in repo_names)
    if not prefixes:
        return []

    targets = []
    for resource_type, instances in _resources(snapshot).items():
        if not isinstance(instances, dict):
            continue
        for resource_name in instances:
            if resource_name.startswith(prefixes):
                targets.append(f"-target={resource_type}.{resource_name}")
    return targets
