"""
Rewriting of legacy team, email and ownership references.

Rules are literal (no regex, no shell quoting) and applied in order, so a
rule whose pattern contains another rule's pattern must come first. A file
is written only when its content actually changes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from repo_migrator.core.config import ReplacementRule
from repo_migrator.utils.logging import log_with_context


def apply_rules(content: str, rules: Sequence[ReplacementRule]) -> str:
    """Apply every rule to ``content`` in order."""
    for rule in rules:
        content = content.replace(rule.pattern, rule.replacement)
    return content


def find_reference_files(root: Path, patterns: Iterable[str]) -> list[Path]:
    """Resolve glob patterns relative to ``root`` into a sorted, unique file list."""
    found: set[Path] = set()
    for pattern in patterns:
        found.update(p for p in root.glob(pattern) if p.is_file())
    return sorted(found)


def rewrite_file(path: Path, rules: Sequence[ReplacementRule]) -> bool:
    """Rewrite one file in place; return True if it changed."""
    before = path.read_text(encoding="utf-8")
    after = apply_rules(before, rules)
    if after == before:
        return False
    path.write_text(after, encoding="utf-8")
    return True


def rewrite_references(
    root: Path,
    patterns: Iterable[str],
    rules: Sequence[ReplacementRule],
    repository: str | None = None,
) -> list[Path]:
    """
    Apply ``rules`` to every file under ``root`` matching ``patterns``.

    Files that cannot be decoded as UTF-8 are skipped with a warning.

    Args:
        root: Working tree of the cloned repository.
        patterns: Glob patterns relative to ``root``.
        rules: Ordered replacement rules.
        repository: Repository name used for log routing.

    Returns:
        Paths of the files that were modified, relative to ``root``.
    """
    changed = []
    for path in find_reference_files(root, patterns):
        relative = path.relative_to(root)
        try:
            modified = rewrite_file(path, rules)
        except UnicodeDecodeError:
            log_with_context(
                logging.WARNING,
                f"   Skipped {relative} (not UTF-8 text)",
                repository=repository,
            )
            continue
        if modified:
            changed.append(relative)
            log_with_context(
                logging.INFO, f"    - Updated: {relative}", repository=repository
            )
    return changed
