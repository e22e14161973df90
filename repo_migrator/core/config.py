"""
Configuration module for the repository migrator.

This module provides functions for loading migrator settings from a YAML
file, creating a default configuration, and reading the credentials the
hosting clients need.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from repo_migrator import constants
from repo_migrator.exceptions import ConfigError
from repo_migrator.types import ServiceIdentity
from repo_migrator.utils.logging import log_with_context

VALID_VISIBILITIES = ("public", "private", "internal")


@dataclass(frozen=True)
class ReplacementRule:
    """A literal token and the text that replaces it."""

    pattern: str
    replacement: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReplacementRule:
        pattern = data.get("pattern")
        replacement = data.get("replacement")
        if not isinstance(pattern, str) or not pattern:
            raise ConfigError(f"Reference rule has no pattern: {data!r}")
        if not isinstance(replacement, str):
            raise ConfigError(f"Reference rule has no replacement: {data!r}")
        return cls(pattern=pattern, replacement=replacement)


def _default_reference_rules() -> list[ReplacementRule]:
    # The email contains the team name, so it must be rewritten first.
    return [
        ReplacementRule(constants.LEGACY_EMAIL, constants.SERVICE_ACCOUNT_EMAIL),
        ReplacementRule(constants.LEGACY_TEAM, constants.SERVICE_ACCOUNT_NAME),
        ReplacementRule(constants.LEGACY_OWNER_HANDLE, constants.OWNER_HANDLE),
    ]


def _default_reference_files() -> list[str]:
    return [*constants.WORKFLOW_FILE_GLOBS, constants.OWNERSHIP_FILE]


@dataclass
class MigrationConfig:
    """Typed configuration for the migrator.

    All fields default to the values used for the cdktf -> cdktn-io move.
    """

    # Organizations and naming
    source_org: str = constants.DEFAULT_SOURCE_ORG
    target_org: str = constants.DEFAULT_TARGET_ORG
    source_prefix: str = constants.DEFAULT_SOURCE_PREFIX
    target_prefix: str = constants.DEFAULT_TARGET_PREFIX
    repository_resource_type: str = constants.DEFAULT_REPOSITORY_RESOURCE_TYPE
    visibility: str = constants.DEFAULT_VISIBILITY
    default_branch: str = constants.DEFAULT_BRANCH
    github_host: str = constants.GITHUB_HOST

    # Files
    snapshot_filename: str = constants.DEFAULT_SNAPSHOT_FILENAME
    artifact_filename: str = constants.DEFAULT_ARTIFACT_FILENAME

    # Timing
    creation_poll_attempts: int = constants.CREATION_POLL_ATTEMPTS
    creation_poll_interval: float = constants.CREATION_POLL_INTERVAL
    inter_repository_delay: float = constants.INTER_REPOSITORY_DELAY

    # Reference rewriting
    service_identity: ServiceIdentity = field(
        default_factory=lambda: ServiceIdentity(
            constants.SERVICE_ACCOUNT_NAME, constants.SERVICE_ACCOUNT_EMAIL
        )
    )
    reference_rules: list[ReplacementRule] = field(
        default_factory=_default_reference_rules
    )
    reference_files: list[str] = field(default_factory=_default_reference_files)
    commit_message: str = (
        f"fix: update team references from {constants.LEGACY_TEAM}"
        f" to {constants.SERVICE_ACCOUNT_NAME}"
    )

    def __post_init__(self) -> None:
        """Validate values that would otherwise fail deep inside the pipeline."""
        if self.visibility not in VALID_VISIBILITIES:
            raise ConfigError(
                f"Invalid visibility '{self.visibility}'. "
                f"Valid values: {', '.join(VALID_VISIBILITIES)}"
            )
        if self.creation_poll_attempts < 1:
            raise ConfigError(
                f"creation_poll_attempts must be at least 1, got {self.creation_poll_attempts}"
            )
        if self.creation_poll_interval < 0 or self.inter_repository_delay < 0:
            raise ConfigError("Delays and poll intervals must be non-negative")
        if not self.source_org or not self.target_org:
            raise ConfigError("source_org and target_org must be set")

    @property
    def github_api_url(self) -> str:
        """REST API root for ``github_host`` (GitHub Enterprise uses /api/v3)."""
        if self.github_host == constants.GITHUB_HOST:
            return constants.GITHUB_API_URL
        return f"https://{self.github_host}/api/v3"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationConfig:
        """Create a MigrationConfig from a raw config dictionary."""
        defaults = cls()
        identity = data.get("service_identity") or {}
        rules = data.get("reference_rules")
        try:
            return cls(
                source_org=data.get("source_org", defaults.source_org),
                target_org=data.get("target_org", defaults.target_org),
                source_prefix=data.get("source_prefix", defaults.source_prefix),
                target_prefix=data.get("target_prefix", defaults.target_prefix),
                repository_resource_type=data.get(
                    "repository_resource_type", defaults.repository_resource_type
                ),
                visibility=data.get("visibility", defaults.visibility),
                default_branch=data.get("default_branch", defaults.default_branch),
                github_host=data.get("github_host", defaults.github_host),
                snapshot_filename=data.get(
                    "snapshot_filename", defaults.snapshot_filename
                ),
                artifact_filename=data.get(
                    "artifact_filename", defaults.artifact_filename
                ),
                creation_poll_attempts=int(
                    data.get("creation_poll_attempts", defaults.creation_poll_attempts)
                ),
                creation_poll_interval=float(
                    data.get("creation_poll_interval", defaults.creation_poll_interval)
                ),
                inter_repository_delay=float(
                    data.get("inter_repository_delay", defaults.inter_repository_delay)
                ),
                service_identity=ServiceIdentity(
                    name=identity.get("name", defaults.service_identity.name),
                    email=identity.get("email", defaults.service_identity.email),
                ),
                reference_rules=(
                    [ReplacementRule.from_dict(r) for r in rules]
                    if rules is not None
                    else defaults.reference_rules
                ),
                reference_files=data.get("reference_files")
                or defaults.reference_files,
                commit_message=data.get("commit_message", defaults.commit_message),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e


def load_config(config_path: Path) -> MigrationConfig:
    """
    Load configuration from YAML file and apply default values.

    A missing file is not an error: the defaults are used and a warning is
    logged. A file that exists but cannot be parsed, or that holds invalid
    values, raises ConfigError.

    Args:
        config_path: Path to the config YAML file

    Returns:
        MigrationConfig with all necessary defaults applied
    """
    raw: dict[str, Any] = {}

    if config_path.exists():
        try:
            with open(config_path) as f:
                loaded_config = yaml.safe_load(f)
        except (yaml.YAMLError, OSError) as e:
            raise ConfigError(f"Failed to load config file {config_path}: {e}") from e
        # Handle None result from empty file
        if loaded_config is not None:
            if not isinstance(loaded_config, dict):
                raise ConfigError(
                    f"Config file {config_path} must contain a mapping at the top level"
                )
            raw = loaded_config
        log_with_context(logging.INFO, f"Loaded configuration from {config_path}")
    else:
        log_with_context(
            logging.DEBUG,
            f"Config file {config_path} not found, using default settings",
        )

    return MigrationConfig.from_dict(raw)


def create_default_config(output_path: Path) -> bool:
    """
    Create a default configuration file with recommended settings.

    The function will not overwrite an existing configuration file.

    Args:
        output_path: Path where the default config should be saved

    Returns:
        True if the config file was created successfully, False otherwise
    """
    if output_path.exists():
        log_with_context(
            logging.WARNING,
            f"Config file {output_path} already exists, not overwriting",
        )
        return False

    config = MigrationConfig()
    default_config = {
        "source_org": config.source_org,
        "target_org": config.target_org,
        "source_prefix": config.source_prefix,
        "target_prefix": config.target_prefix,
        "repository_resource_type": config.repository_resource_type,
        "visibility": config.visibility,
        "default_branch": config.default_branch,
        "snapshot_filename": config.snapshot_filename,
        "artifact_filename": config.artifact_filename,
        "creation_poll_attempts": config.creation_poll_attempts,
        "creation_poll_interval": config.creation_poll_interval,
        "inter_repository_delay": config.inter_repository_delay,
        "service_identity": {
            "name": config.service_identity.name,
            "email": config.service_identity.email,
        },
        # Applied in order, to every file matching reference_files
        "reference_rules": [
            {"pattern": r.pattern, "replacement": r.replacement}
            for r in config.reference_rules
        ],
        "reference_files": list(config.reference_files),
        "commit_message": config.commit_message,
    }

    try:
        with open(output_path, "w") as f:
            yaml.safe_dump(default_config, f, default_flow_style=False, sort_keys=False)
        log_with_context(logging.INFO, f"Created default config file at {output_path}")
        return True
    except OSError as e:
        log_with_context(logging.ERROR, f"Failed to create default config file: {e}")
        return False


def read_github_token(required: bool = True) -> str | None:
    """Read the GitHub token from the environment.

    Args:
        required: Raise ConfigError when no token is set.

    Returns:
        The token, or None when it is absent and not required.
    """
    for env_var in constants.TOKEN_ENV_VARS:
        token = os.environ.get(env_var)
        if token:
            return token
    if required:
        raise ConfigError(
            f"None of {', '.join(constants.TOKEN_ENV_VARS)} is set. Export a GitHub "
            "token with repo, workflow and admin:org scopes to run the migration."
        )
    return None
