"""Repository hosting client.

``HostingClient`` is the capability set the pipeline consumes. The GitHub
implementation uses PyGithub for repository lookup, creation and deletion,
and plain ``requests`` calls for the Actions permission endpoints, which
PyGithub does not expose.

The client does **not** retry: mutation failures must surface immediately
so the pipeline can compensate and abort.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import requests
from github import Auth, Github, GithubException, UnknownObjectException

from repo_migrator import constants
from repo_migrator.exceptions import APIError
from repo_migrator.utils.logging import log_with_context


class HostingClient(ABC):
    """Operations the migrator performs against the hosting service."""

    @abstractmethod
    def repo_exists(self, org: str, name: str) -> bool:
        """Return True when ``org/name`` exists and is visible to the caller."""

    @abstractmethod
    def create_repo(self, org: str, name: str, visibility: str) -> int:
        """Create an empty repository and return its numeric id."""

    @abstractmethod
    def delete_repo(self, org: str, name: str) -> None:
        """Delete ``org/name``."""

    @abstractmethod
    def set_workflow_execution_enabled(self, org: str, name: str, enabled: bool) -> None:
        """Enable or disable Actions workflow runs on a repository."""

    @abstractmethod
    def set_workflow_pr_approval_permission(
        self, org: str, name: str, enabled: bool
    ) -> None:
        """Allow or forbid workflow runs to approve pull requests."""

    @abstractmethod
    def clone_url(self, org: str, name: str) -> str:
        """URL git uses to clone from and push to ``org/name``."""


class GitHubHostingClient(HostingClient):
    """HostingClient backed by the GitHub REST API."""

    def __init__(
        self,
        token: str | None,
        host: str = constants.GITHUB_HOST,
        api_url: str = constants.GITHUB_API_URL,
        github: Github | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._token = token
        self._host = host
        self._api_url = api_url.rstrip("/")
        if github is None:
            auth = Auth.Token(token) if token else None
            github = Github(base_url=self._api_url, auth=auth)
        self._github = github
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": constants.GITHUB_API_VERSION,
            }
        )
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    # -- Repositories ---------------------------------------------------------

    def repo_exists(self, org: str, name: str) -> bool:
        try:
            self._github.get_repo(f"{org}/{name}")
        except UnknownObjectException:
            return False
        except GithubException as e:
            raise APIError(
                f"Failed to look up {org}/{name}: {e.status} {_github_message(e)}"
            ) from e
        return True

    def create_repo(self, org: str, name: str, visibility: str) -> int:
        kwargs: dict[str, object] = {"private": visibility != "public"}
        if visibility == "internal":
            kwargs["visibility"] = "internal"
        try:
            repo = self._github.get_organization(org).create_repo(name, **kwargs)
        except GithubException as e:
            raise APIError(
                f"Failed to create {org}/{name}: {e.status} {_github_message(e)}"
            ) from e
        log_with_context(
            logging.DEBUG, f"Created {repo.full_name} (id {repo.id})", repository=name
        )
        return repo.id

    def delete_repo(self, org: str, name: str) -> None:
        try:
            self._github.get_repo(f"{org}/{name}").delete()
        except GithubException as e:
            raise APIError(
                f"Failed to delete {org}/{name}: {e.status} {_github_message(e)}"
            ) from e

    # -- Actions permissions --------------------------------------------------

    def set_workflow_execution_enabled(self, org: str, name: str, enabled: bool) -> None:
        payload: dict[str, object] = {"enabled": enabled}
        if enabled:
            payload["allowed_actions"] = "all"
        self._put(f"/repos/{org}/{name}/actions/permissions", payload)

    def set_workflow_pr_approval_permission(
        self, org: str, name: str, enabled: bool
    ) -> None:
        # Not manageable through the Terraform GitHub provider, so set here.
        self._put(
            f"/repos/{org}/{name}/actions/permissions/workflow",
            {
                "default_workflow_permissions": "read",
                "can_approve_pull_request_reviews": enabled,
            },
        )

    def clone_url(self, org: str, name: str) -> str:
        if self._token:
            return f"https://x-access-token:{self._token}@{self._host}/{org}/{name}.git"
        return f"https://{self._host}/{org}/{name}.git"

    def _put(self, path: str, payload: dict[str, object]) -> None:
        url = f"{self._api_url}{path}"
        try:
            response = self._session.put(
                url, json=payload, timeout=constants.REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            raise APIError(f"PUT {path} failed: {e}") from e
        if not response.ok:
            raise APIError(
                f"PUT {path} failed: {response.status_code} {response.text[:200]}"
            )
        log_with_context(logging.DEBUG, f"PUT {path} -> {response.status_code}")


def _github_message(e: GithubException) -> str:
    data = e.data if isinstance(e.data, dict) else {}
    return str(data.get("message", e.data))
