"""No-op hosting and git clients for dry-run mode.

Mirror the interfaces of the real clients but log instead of mutating
anything. Read calls are forwarded to the real hosting client so probing
still reflects live state; repositories "created" during the dry run are
remembered so the creation poll succeeds.

The CLI injects these in place of the real clients when ``--yes`` is not
given, which keeps ``if dry_run`` checks out of the pipeline.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from repo_migrator.services.hosting import HostingClient
from repo_migrator.services.vcs import GitClient
from repo_migrator.types import ServiceIdentity
from repo_migrator.utils.logging import log_with_context, redact


class DryRunHostingClient(HostingClient):
    """HostingClient that forwards reads and records writes."""

    def __init__(self, delegate: HostingClient) -> None:
        self._delegate = delegate
        self._created: set[tuple[str, str]] = set()
        self._counter = 0
        self.calls: list[tuple[str, str, str]] = []

    def repo_exists(self, org: str, name: str) -> bool:
        if (org, name) in self._created:
            return True
        return self._delegate.repo_exists(org, name)

    def create_repo(self, org: str, name: str, visibility: str) -> int:
        self._counter += 1
        self._created.add((org, name))
        self._record("create_repo", org, name)
        log_with_context(
            logging.INFO,
            f"[DRY RUN] Would create {visibility} repository {org}/{name}",
            repository=name,
        )
        return -self._counter

    def delete_repo(self, org: str, name: str) -> None:
        self._created.discard((org, name))
        self._record("delete_repo", org, name)
        log_with_context(
            logging.INFO, f"[DRY RUN] Would delete {org}/{name}", repository=name
        )

    def set_workflow_execution_enabled(self, org: str, name: str, enabled: bool) -> None:
        self._record("set_workflow_execution_enabled", org, name)
        log_with_context(
            logging.INFO,
            f"[DRY RUN] Would {'enable' if enabled else 'disable'} Actions on {org}/{name}",
            repository=name,
        )

    def set_workflow_pr_approval_permission(
        self, org: str, name: str, enabled: bool
    ) -> None:
        self._record("set_workflow_pr_approval_permission", org, name)
        log_with_context(
            logging.INFO,
            f"[DRY RUN] Would set PR approval permission={enabled} on {org}/{name}",
            repository=name,
        )

    def clone_url(self, org: str, name: str) -> str:
        return self._delegate.clone_url(org, name)

    def _record(self, method: str, org: str, name: str) -> None:
        self.calls.append((method, org, name))


class DryRunGitClient(GitClient):
    """GitClient that creates empty directories instead of cloning."""

    def mirror_clone(self, url: str, workdir: Path) -> Path:
        path = workdir / "mirror.git"
        path.mkdir(exist_ok=True)
        log_with_context(logging.INFO, f"[DRY RUN] Would bare-clone {redact(url)}")
        return path

    def mirror_push(self, path: Path, remote_url: str) -> None:
        log_with_context(
            logging.INFO, f"[DRY RUN] Would mirror-push to {redact(remote_url)}"
        )

    def clone(
        self,
        url: str,
        workdir: Path,
        name: str = "checkout",
        branch: str | None = None,
    ) -> Path:
        path = workdir / name
        path.mkdir(exist_ok=True)
        log_with_context(
            logging.DEBUG, f"[DRY RUN] Would clone {redact(url)} ({branch or 'HEAD'})"
        )
        return path

    def commit(
        self,
        path: Path,
        files: Sequence[Path],
        identity: ServiceIdentity,
        message: str,
    ) -> str:
        log_with_context(
            logging.INFO,
            f"[DRY RUN] Would commit {len(files)} file(s) as {identity.name}",
        )
        return "dry-run"

    def push(self, path: Path, branch: str) -> None:
        log_with_context(logging.INFO, f"[DRY RUN] Would push to {branch}")
