"""
poller.py

Responsibility: Wait for freshly requested forks to become readable.

GitHub creates forks asynchronously, so the only contract available is to poll
"get repository" a bounded number of times with a constant wait in between.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Sequence

from saaskit.github_client import GitHubAuthError, GitHubClient, GitHubError, RepositoryRef

logger = logging.getLogger(__name__)


class RetryExhaustedError(GitHubError):
    def __init__(self, repo: RepositoryRef, attempts: int, last_error: BaseException | None = None) -> None:
        super().__init__("fork not completed after retries")
        self.repo = repo
        self.attempts = attempts
        self.last_error = last_error


class PollFailure(GitHubError):
    """Raised when at least one repository never became ready."""

    def __init__(self, ready: dict[str, str], failed: dict[str, BaseException]) -> None:
        names = ", ".join(sorted(failed))
        super().__init__(f"forks not ready: {names}")
        self.ready = ready
        self.failed = failed


@dataclass
class FetchAttempt:
    attempt: int = 0
    last_error: BaseException | None = None
    elapsed: float = 0.0


def await_ready(
    client: GitHubClient,
    owner: str,
    repo: RepositoryRef,
    max_attempts: int = 3,
    interval: float = 10.0,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    Poll `owner/repo.name` until it can be fetched and return its html URL.

    Sleeps `interval` seconds between attempts (never after the last one) and raises
    `RetryExhaustedError` once `max_attempts` fetches have failed. A 404, a network
    failure or a server error counts as a failed fetch; authentication errors are raised
    at once.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    state = FetchAttempt()
    while True:
        state.attempt += 1
        try:
            info = client.get_repo(owner, repo.name)
        except GitHubAuthError:
            raise
        except GitHubError as e:
            logger.debug("Fetching %s/%s failed: %s", owner, repo.name, e)
            info, state.last_error = None, e

        if info is not None:
            logger.info("Fork %s/%s ready after %d attempt(s)", owner, repo.name, state.attempt)
            return info.html_url

        if state.attempt >= max_attempts:
            logger.warning("Fork %s/%s not ready after %d attempt(s)", owner, repo.name, state.attempt)
            raise RetryExhaustedError(RepositoryRef(owner, repo.name), state.attempt, state.last_error)

        logger.info("Fork %s/%s not ready yet, retrying in %s seconds...", owner, repo.name, interval)
        sleep(interval)
        state.elapsed += interval


@dataclass
class PollReport:
    ready: dict[str, str] = field(default_factory=dict)
    failed: dict[str, BaseException] = field(default_factory=dict)


def await_all_ready(
    client: GitHubClient,
    owner: str,
    repos: Sequence[RepositoryRef],
    max_attempts: int = 3,
    interval: float = 10.0,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, str]:
    """
    Poll every repository to completion; return {repo name: html URL}.

    Raises `PollFailure` listing the ready URLs alongside the failures when any
    repository is exhausted or rejected by GitHub.
    """
    report = PollReport()
    for repo in repos:
        try:
            report.ready[repo.name] = await_ready(client, owner, repo, max_attempts, interval, sleep=sleep)
        except GitHubError as e:
            report.failed[repo.name] = e
    if report.failed:
        raise PollFailure(report.ready, report.failed)
    return report.ready
