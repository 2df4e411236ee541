"""
Unit tests for GitHubClient in saaskit.github_client.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from saaskit.github_client import (
    ForkError,
    ForkRequest,
    GitHubAuthError,
    GitHubClient,
    GitHubConflictError,
    GitHubTransportError,
    RepositoryRef,
)

SOURCE = RepositoryRef("saltandpepperstudios", "saas.service")


def make_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    response.text = ""
    return response


def fork_payload(owner="alice", name="saas.service"):
    return {
        "name": name,
        "owner": {"login": owner},
        "html_url": f"https://github.com/{owner}/{name}",
        "clone_url": f"https://github.com/{owner}/{name}.git",
    }


@pytest.fixture
def mock_request():
    with patch("saaskit.github_client.requests.request") as mock:
        yield mock


@pytest.fixture
def client():
    return GitHubClient("token", api_base="https://api.github.test/")


def test_empty_token_is_rejected():
    with pytest.raises(GitHubAuthError):
        GitHubClient("   ")


def test_fork_without_namespace_omits_organization(client, mock_request):
    mock_request.return_value = make_response(202, fork_payload())

    result = client.fork(ForkRequest(source=SOURCE))

    args, kwargs = mock_request.call_args
    assert args == ("POST", "https://api.github.test/repos/saltandpepperstudios/saas.service/forks")
    assert kwargs["json"] is None
    assert kwargs["headers"]["Authorization"] == "Bearer token"
    assert result.owner_login == "alice"
    assert result.forked_repository == RepositoryRef("alice", "saas.service")


def test_fork_into_organization_sends_organization(client, mock_request):
    mock_request.return_value = make_response(202, fork_payload(owner="acme"))

    result = client.fork(ForkRequest(source=SOURCE, destination_namespace="acme"))

    assert mock_request.call_args.kwargs["json"] == {"organization": "acme"}
    assert result.owner_login == "acme"
    assert result.html_url == "https://github.com/acme/saas.service"


@pytest.mark.parametrize(
    "status_code, error_cls",
    [(401, GitHubAuthError), (403, GitHubAuthError), (422, GitHubConflictError)],
)
def test_fork_http_errors_keep_their_cause(client, mock_request, status_code, error_cls):
    mock_request.return_value = make_response(status_code, {"message": "boom"})

    with pytest.raises(ForkError) as excinfo:
        client.fork(ForkRequest(source=SOURCE))

    assert isinstance(excinfo.value.cause, error_cls)
    assert excinfo.value.__cause__ is excinfo.value.cause
    assert excinfo.value.source == SOURCE
    assert "boom" in str(excinfo.value)


def test_fork_network_failure_is_transport_error(client, mock_request):
    mock_request.side_effect = requests.ConnectionError("unreachable")

    with pytest.raises(ForkError) as excinfo:
        client.fork(ForkRequest(source=SOURCE))

    assert isinstance(excinfo.value.cause, GitHubTransportError)


def test_get_repo_returns_info(client, mock_request):
    mock_request.return_value = make_response(200, fork_payload())

    info = client.get_repo("alice", "saas.service")

    assert info.html_url == "https://github.com/alice/saas.service"
    assert info.clone_url == "https://github.com/alice/saas.service.git"
    assert info.default_branch == "main"


def test_get_repo_missing_returns_none(client, mock_request):
    mock_request.return_value = make_response(404, {"message": "Not Found"})

    assert client.get_repo("alice", "saas.service") is None


def test_get_repo_auth_failure_raises(client, mock_request):
    mock_request.return_value = make_response(401, {"message": "Bad credentials"})

    with pytest.raises(GitHubAuthError):
        client.get_repo("alice", "saas.service")
