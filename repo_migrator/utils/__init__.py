"""Shared utilities."""

__all__ = [
    "logging",
]
