"""Git operations used by the migration pipeline, built on GitPython.

Every method takes an explicit path; nothing here changes the process
working directory. Paths are created under the per-repository scratch
directory handed out by :func:`migration_workdir`.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from git import Actor, GitCommandError, Repo

from repo_migrator.exceptions import APIError
from repo_migrator.types import ServiceIdentity
from repo_migrator.utils.logging import log_with_context, redact


@contextmanager
def migration_workdir(repository: str) -> Iterator[Path]:
    """Yield a private scratch directory that is removed on every exit path."""
    with tempfile.TemporaryDirectory(prefix=f"repo-migrator-{repository}-") as tmp:
        log_with_context(
            logging.DEBUG, f"Using working directory {tmp}", repository=repository
        )
        yield Path(tmp)


class GitClient:
    """Thin wrapper around GitPython for the clone/push/commit steps."""

    def mirror_clone(self, url: str, workdir: Path) -> Path:
        """Bare-clone ``url`` so every branch and tag is captured."""
        path = workdir / "mirror.git"
        log_with_context(logging.DEBUG, f"git clone --bare {redact(url)} {path}")
        try:
            Repo.clone_from(url, path, bare=True)
        except GitCommandError as e:
            raise APIError(f"Bare clone failed: {redact(str(e))}") from e
        return path

    def mirror_push(self, path: Path, remote_url: str) -> None:
        """Push every ref of the bare clone to ``remote_url`` in one operation."""
        log_with_context(logging.DEBUG, f"git push --mirror {redact(remote_url)}")
        try:
            Repo(path).git.push("--mirror", remote_url)
        except GitCommandError as e:
            raise APIError(f"Mirror push failed: {redact(str(e))}") from e

    def clone(
        self,
        url: str,
        workdir: Path,
        name: str = "checkout",
        branch: str | None = None,
    ) -> Path:
        """Clone ``url`` with a working tree.

        When ``branch`` is given it is checked out explicitly, so a later
        ``push(path, branch)`` updates that branch rather than whatever the
        remote HEAD points at. A missing branch raises :class:`APIError`.
        """
        path = workdir / name
        log_with_context(logging.DEBUG, f"git clone {redact(url)} {path}")
        options = {"branch": branch} if branch else {}
        try:
            Repo.clone_from(url, path, **options)
        except GitCommandError as e:
            raise APIError(f"Clone failed: {redact(str(e))}") from e
        return path

    def commit(
        self,
        path: Path,
        files: Sequence[Path],
        identity: ServiceIdentity,
        message: str,
    ) -> str:
        """Stage ``files`` and commit them as ``identity``; return the new sha."""
        repo = Repo(path)
        actor = Actor(identity.name, identity.email)
        relative = [str(f.relative_to(path)) if f.is_absolute() else str(f) for f in files]
        try:
            repo.index.add(relative)
            commit = repo.index.commit(message, author=actor, committer=actor)
        except (GitCommandError, OSError) as e:
            raise APIError(f"Commit failed: {redact(str(e))}") from e
        return commit.hexsha

    def push(self, path: Path, branch: str) -> None:
        """Push HEAD to ``branch`` on origin."""
        try:
            Repo(path).git.push("origin", f"HEAD:refs/heads/{branch}")
        except GitCommandError as e:
            raise APIError(f"Push to {branch} failed: {redact(str(e))}") from e
