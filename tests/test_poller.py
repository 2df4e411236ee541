"""
Unit tests for fork readiness polling in saaskit.poller.
"""

import pytest

from saaskit.github_client import GitHubAuthError, GitHubError, GitHubTransportError, RepoInfo, RepositoryRef
from saaskit.poller import PollFailure, RetryExhaustedError, await_all_ready, await_ready


class FakeGitHub:
    """get_repo fails `failures[name]` times (None or a raised error) before succeeding."""

    def __init__(self, failures=None, error=None):
        self.failures = dict(failures or {})
        self.error = error
        self.calls = []

    def get_repo(self, owner, name):
        self.calls.append((owner, name))
        remaining = self.failures.get(name, 0)
        if remaining:
            self.failures[name] = remaining - 1
            if self.error is not None:
                raise self.error
            return None
        return RepoInfo(
            owner=owner,
            name=name,
            html_url=f"https://github.com/{owner}/{name}",
            clone_url=f"https://github.com/{owner}/{name}.git",
            default_branch="main",
        )


class RecordingSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


REPO = RepositoryRef("alice", "saas.service")


@pytest.mark.parametrize("failures, succeeds", [(0, True), (1, True), (2, True), (3, False), (5, False)])
def test_succeeds_only_within_three_attempts(failures, succeeds):
    client = FakeGitHub({"saas.service": failures})
    sleep = RecordingSleep()

    if succeeds:
        url = await_ready(client, "alice", REPO, max_attempts=3, interval=10.0, sleep=sleep)
        assert url == "https://github.com/alice/saas.service"
        assert len(client.calls) == failures + 1
        assert sleep.calls == [10.0] * failures
    else:
        with pytest.raises(RetryExhaustedError):
            await_ready(client, "alice", REPO, max_attempts=3, interval=10.0, sleep=sleep)


def test_exhaustion_after_exactly_three_attempts_with_sleeps_between():
    client = FakeGitHub({"saas.service": 99})
    sleep = RecordingSleep()

    with pytest.raises(RetryExhaustedError) as excinfo:
        await_ready(client, "alice", REPO, max_attempts=3, interval=2.5, sleep=sleep)

    assert len(client.calls) == 3
    assert sleep.calls == [2.5, 2.5]
    assert excinfo.value.attempts == 3
    assert str(excinfo.value) == "fork not completed after retries"


def test_polls_the_given_owner():
    client = FakeGitHub()

    await_ready(client, "acme", REPO, sleep=RecordingSleep())

    assert client.calls == [("acme", "saas.service")]


def test_transport_errors_are_retried_and_kept():
    error = GitHubTransportError("connection reset")
    client = FakeGitHub({"saas.service": 3}, error=error)

    with pytest.raises(RetryExhaustedError) as excinfo:
        await_ready(client, "alice", REPO, max_attempts=3, interval=0, sleep=RecordingSleep())

    assert excinfo.value.last_error is error


def test_auth_errors_are_not_retried():
    client = FakeGitHub({"saas.service": 3}, error=GitHubAuthError("Bad credentials", 401))
    sleep = RecordingSleep()

    with pytest.raises(GitHubAuthError):
        await_ready(client, "alice", REPO, sleep=sleep)

    assert len(client.calls) == 1
    assert sleep.calls == []


def test_invalid_attempt_budget():
    with pytest.raises(ValueError):
        await_ready(FakeGitHub(), "alice", REPO, max_attempts=0)


def test_all_ready_returns_every_url():
    client = FakeGitHub({"starterkit.client": 1})
    repos = [REPO, RepositoryRef("alice", "starterkit.client")]

    urls = await_all_ready(client, "alice", repos, sleep=RecordingSleep())

    assert urls == {
        "saas.service": "https://github.com/alice/saas.service",
        "starterkit.client": "https://github.com/alice/starterkit.client",
    }


def test_partial_readiness_reports_ready_urls():
    client = FakeGitHub({"starterkit.client": 10})
    repos = [REPO, RepositoryRef("alice", "starterkit.client")]

    with pytest.raises(PollFailure) as excinfo:
        await_all_ready(client, "alice", repos, max_attempts=3, interval=0, sleep=RecordingSleep())

    assert excinfo.value.ready == {"saas.service": "https://github.com/alice/saas.service"}
    assert list(excinfo.value.failed) == ["starterkit.client"]
    assert "starterkit.client" in str(excinfo.value)


def test_server_errors_are_retried():
    client = FakeGitHub({"saas.service": 1}, error=GitHubError("GitHub API error 502 GET /repos/alice/saas.service", 502))
    sleep = RecordingSleep()

    url = await_ready(client, "alice", REPO, max_attempts=3, interval=0, sleep=sleep)

    assert url == "https://github.com/alice/saas.service"
    assert len(client.calls) == 2
    assert sleep.calls == [0]


def test_persistent_server_error_is_kept_as_last_error():
    error = GitHubError("GitHub API error 503", 503)
    client = FakeGitHub({"saas.service": 5}, error=error)

    with pytest.raises(RetryExhaustedError) as excinfo:
        await_ready(client, "alice", REPO, max_attempts=3, interval=0, sleep=RecordingSleep())

    assert excinfo.value.last_error is error
    assert len(client.calls) == 3


def test_rejected_repo_keeps_ready_urls():
    client = FakeGitHub({"starterkit.client": 1}, error=GitHubAuthError("Bad credentials", 401))
    repos = [REPO, RepositoryRef("alice", "starterkit.client")]

    with pytest.raises(PollFailure) as excinfo:
        await_all_ready(client, "alice", repos, sleep=RecordingSleep())

    assert excinfo.value.ready == {"saas.service": "https://github.com/alice/saas.service"}
    assert isinstance(excinfo.value.failed["starterkit.client"], GitHubAuthError)
