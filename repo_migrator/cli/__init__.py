"""Click command group, subcommands and run reporting."""

__all__ = [
    "commands",
    "common",
    "init_config_cmd",
    "migrate_cmd",
    "report",
    "targets_cmd",
]
