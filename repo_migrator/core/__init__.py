"""Core migration logic including configuration and orchestration."""

__all__ = [
    "artifact",
    "cleanup",
    "config",
    "context",
    "extractor",
    "filtering",
    "migration_logging",
    "migrator",
    "pipeline",
    "prober",
    "references",
    "state",
]
