"""
github_client.py

Responsibility: Fork template repositories and look up forks on GitHub.

Two REST calls are used:
- POST /repos/{owner}/{repo}/forks queues a fork (GitHub answers 202 before the copy exists)
- GET /repos/{owner}/{repo} tells whether a fork can be read yet

HTTP failures are sorted into typed errors (auth, not found, conflict, transport) so the
poller can decide what to wait out and the orchestrator can name the cause.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

logger = logging.getLogger(__name__)


class GitHubError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubTransportError(GitHubError):
    """Network failure, timeout, or an undecodable response."""


class GitHubAuthError(GitHubError):
    """The token is missing, invalid, or lacks permission (401/403)."""


class GitHubNotFoundError(GitHubError):
    """The repository does not exist or is not visible yet (404)."""


class GitHubConflictError(GitHubError):
    """The request was rejected as unprocessable, e.g. the repository already exists (422)."""


class ForkError(GitHubError):
    def __init__(self, source: RepositoryRef, cause: GitHubError) -> None:
        super().__init__(f"failed to fork repository {source.full_name}: {cause}", cause.status_code)
        self.source = source
        self.cause = cause


_STATUS_ERRORS: dict[int, type[GitHubError]] = {
    401: GitHubAuthError,
    403: GitHubAuthError,
    404: GitHubNotFoundError,
    422: GitHubConflictError,
}


@dataclass(frozen=True)
class RepositoryRef:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class ForkRequest:
    """
    A fork of `source` into `destination_namespace`.

    An empty namespace means the authenticated user's own account.
    """

    source: RepositoryRef
    destination_namespace: str = ""


@dataclass(frozen=True)
class ForkResult:
    forked_repository: RepositoryRef
    owner_login: str
    html_url: str = ""


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    name: str
    html_url: str
    clone_url: str
    default_branch: str


class GitHubClient:
    def __init__(self, token: str, api_base: str = "https://api.github.com", timeout: float = 30.0) -> None:
        if not token.strip():
            raise GitHubAuthError("GitHub token is required.")
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "saaskit-cli",
        }

    def _request(self, method: str, path: str, *, json_body: dict[str, Any] | None = None) -> Any:
        url = f"{self._api_base}{path}"
        try:
            r = requests.request(method, url, headers=self._headers(), json=json_body, timeout=self._timeout)
        except requests.RequestException as e:
            raise GitHubTransportError(f"GitHub API request failed {method} {path}: {e}") from e
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            message = payload.get("message", payload) if isinstance(payload, dict) else payload
            error_cls = _STATUS_ERRORS.get(r.status_code, GitHubError)
            raise error_cls(f"GitHub API error {r.status_code} {method} {path}: {message}", r.status_code)
        if r.status_code == 204:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise GitHubTransportError(f"GitHub API returned invalid JSON for {method} {path}") from e

    @staticmethod
    def _repo_info(data: dict[str, Any], owner: str, name: str) -> RepoInfo:
        return RepoInfo(
            owner=str((data.get("owner") or {}).get("login") or owner),
            name=str(data.get("name") or name),
            html_url=data["html_url"],
            clone_url=data.get("clone_url") or f"{data['html_url']}.git",
            default_branch=data.get("default_branch") or "main",
        )

    def get_repo(self, owner: str, name: str) -> RepoInfo | None:
        """
        Return RepoInfo if the repo exists and is accessible; otherwise None.

        Authentication and transport failures are raised, not folded into None.
        """
        try:
            data = self._request("GET", f"/repos/{owner}/{name}")
        except GitHubNotFoundError:
            return None
        return self._repo_info(data, owner, name)

    def fork(self, request: ForkRequest) -> ForkResult:
        """
        Ask GitHub to fork `request.source`.

        GitHub accepts forks asynchronously (202): a returned result means the fork was
        queued, not that it can be read yet. The `organization` field is only sent when a
        namespace was requested; an empty string would be rejected.
        """
        source = request.source
        body: dict[str, Any] | None = None
        if request.destination_namespace:
            body = {"organization": request.destination_namespace}
        try:
            data = self._request("POST", f"/repos/{source.owner}/{source.name}/forks", json_body=body)
        except GitHubError as e:
            raise ForkError(source, e) from e
        if not isinstance(data, dict):
            raise ForkError(source, GitHubTransportError("GitHub API returned an empty fork response"))

        owner_login = str((data.get("owner") or {}).get("login") or request.destination_namespace)
        forked = RepositoryRef(owner=owner_login, name=str(data.get("name") or source.name))
        logger.info("Fork of %s accepted as %s", source.full_name, forked.full_name)
        return ForkResult(forked_repository=forked, owner_login=owner_login, html_url=str(data.get("html_url") or ""))
