"""Clients for the hosting service and git, plus their dry-run stand-ins."""

__all__ = [
    "dry_run_service",
    "hosting",
    "vcs",
]
