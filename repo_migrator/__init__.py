#!/usr/bin/env python3
"""
Fork archived GitHub repositories into a new organization and generate
Terraform import blocks for them
"""

__version__ = "0.1.0"

from repo_migrator.core.artifact import render_import_artifact
from repo_migrator.core.config import MigrationConfig, load_config

# Import the main classes and functions for easier access
from repo_migrator.core.migrator import RepositoryMigrator
