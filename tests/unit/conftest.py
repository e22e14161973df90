"""Unit test configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from repo_migrator.core.config import MigrationConfig
from repo_migrator.core.context import MigrationContext
from repo_migrator.exceptions import APIError
from repo_migrator.services.hosting import HostingClient
from repo_migrator.services.vcs import GitClient
from repo_migrator.types import (
    RepositoryDescriptor,
    RepositoryState,
    ServiceIdentity,
)

READ_METHODS = {"repo_exists"}

# ---------------------------------------------------------------------------
# In-memory clients
# ---------------------------------------------------------------------------


class FakeHostingClient(HostingClient):
    """In-memory hosting service.

    ``existing`` seeds ``(org, name)`` pairs that already exist. ``fail_on``
    maps ``(method, name)`` to the exception that call should raise.
    ``visible_after`` maps a repository name to the number of ``repo_exists``
    polls that report it missing after creation.
    """

    def __init__(
        self,
        existing: set[tuple[str, str]] | None = None,
        fail_on: dict[tuple[str, str], Exception] | None = None,
        visible_after: dict[str, int] | None = None,
    ) -> None:
        self.repos: set[tuple[str, str]] = set(existing or ())
        self.fail_on = dict(fail_on or {})
        self.visible_after = dict(visible_after or {})
        self.calls: list[tuple[Any, ...]] = []

    @property
    def mutating_calls(self) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] not in READ_METHODS]

    def calls_for(self, name: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[2] == name]

    def _call(self, method: str, org: str, name: str, *extra: Any) -> None:
        self.calls.append((method, org, name, *extra))
        error = self.fail_on.get((method, name))
        if error is not None:
            raise error

    def repo_exists(self, org: str, name: str) -> bool:
        self._call("repo_exists", org, name)
        if (org, name) not in self.repos:
            return False
        if self.visible_after.get(name, 0) > 0:
            self.visible_after[name] -= 1
            return False
        return True

    def create_repo(self, org: str, name: str, visibility: str) -> int:
        self._call("create_repo", org, name, visibility)
        self.repos.add((org, name))
        return len(self.repos)

    def delete_repo(self, org: str, name: str) -> None:
        self._call("delete_repo", org, name)
        self.repos.discard((org, name))

    def set_workflow_execution_enabled(self, org: str, name: str, enabled: bool) -> None:
        self._call("set_workflow_execution_enabled", org, name, enabled)

    def set_workflow_pr_approval_permission(
        self, org: str, name: str, enabled: bool
    ) -> None:
        self._call("set_workflow_pr_approval_permission", org, name, enabled)

    def clone_url(self, org: str, name: str) -> str:
        return f"https://git.example.test/{org}/{name}.git"


class FakeGitClient(GitClient):
    """GitClient that works on plain directories.

    ``checkout_files`` maps a relative path to the content a fresh clone of
    the target repository contains. ``fail_on`` maps a method name to the
    exception it raises. Every working directory seen is kept in
    ``workdirs`` so tests can assert it was removed.
    """

    def __init__(
        self,
        checkout_files: dict[str, str] | None = None,
        fail_on: dict[str, Exception] | None = None,
    ) -> None:
        self.checkout_files = dict(checkout_files or {})
        self.fail_on = dict(fail_on or {})
        self.calls: list[tuple[Any, ...]] = []
        self.workdirs: list[Path] = []
        self.commits: list[dict[str, Any]] = []

    def _call(self, method: str, *args: Any) -> None:
        self.calls.append((method, *args))
        error = self.fail_on.get(method)
        if error is not None:
            raise error

    def mirror_clone(self, url: str, workdir: Path) -> Path:
        self.workdirs.append(workdir)
        self._call("mirror_clone", url)
        path = workdir / "mirror.git"
        path.mkdir()
        return path

    def mirror_push(self, path: Path, remote_url: str) -> None:
        self._call("mirror_push", remote_url)

    def clone(
        self,
        url: str,
        workdir: Path,
        name: str = "checkout",
        branch: str | None = None,
    ) -> Path:
        self._call("clone", url, branch)
        path = workdir / name
        for relative, content in self.checkout_files.items():
            target = path / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        path.mkdir(exist_ok=True)
        return path

    def commit(
        self,
        path: Path,
        files: Any,
        identity: ServiceIdentity,
        message: str,
    ) -> str:
        self._call("commit", message)
        self.commits.append(
            {
                "files": sorted(str(Path(f).relative_to(path)) for f in files),
                "contents": {
                    str(Path(f).relative_to(path)): Path(f).read_text(encoding="utf-8")
                    for f in files
                },
                "identity": identity,
                "message": message,
            }
        )
        return "abc123"

    def push(self, path: Path, branch: str) -> None:
        self._call("push", branch)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_descriptor(name: str = "cdktn-provider-a", **overrides: Any) -> RepositoryDescriptor:
    """Build a descriptor with the usual naming conventions."""
    fields: dict[str, Any] = {
        "resource_type": "github_repository",
        "resource_name": f"{name}_repo_1A2B",
        "target_name": name,
        "source_name": name.replace("cdktn-", "cdktf-", 1),
    }
    fields.update(overrides)
    return RepositoryDescriptor(**fields)


def make_state(
    name: str = "cdktn-provider-a", source_exists: bool = True, target_exists: bool = False
) -> RepositoryState:
    return RepositoryState.from_probe(make_descriptor(name), source_exists, target_exists)


def make_context(
    stack_dir: Path | None = None,
    dry_run: bool = False,
    only: tuple[str, ...] | None = None,
    exclude: tuple[str, ...] = (),
    output_dir: str | None = None,
    **config_overrides: Any,
) -> MigrationContext:
    """Build a MigrationContext with zero delays unless overridden."""
    config_values: dict[str, Any] = {
        "creation_poll_interval": 0.0,
        "inter_repository_delay": 0.0,
    }
    config_values.update(config_overrides)
    return MigrationContext(
        stack_dir=stack_dir or Path("."),
        output_dir=output_dir,
        dry_run=dry_run,
        verbose=False,
        only=only,
        exclude=exclude,
        config=MigrationConfig(**config_values),
    )


@pytest.fixture()
def fake_hosting():
    return FakeHostingClient()


@pytest.fixture()
def fake_git():
    return FakeGitClient()


@pytest.fixture()
def api_error():
    return APIError("boom")
