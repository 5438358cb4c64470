"""Unit tests for GitHubClient."""

from unittest.mock import MagicMock

import httpx
import pytest

from docrebuild.exceptions import CommitLookupError
from docrebuild.poller import GitHubClient, RepoRef

REF = RepoRef(host="github.com", owner="acme", repo="docs")


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a mock HTTP client."""
    return MagicMock()


@pytest.fixture
def github(mock_client: MagicMock) -> GitHubClient:
    """Create a GitHubClient with mocked HTTP client."""
    client = GitHubClient(token="test-token")
    client._client = mock_client
    return client


@pytest.mark.unit
class TestGetHeadCommit:
    """Tests for get_head_commit."""

    def test_returns_sha(self, github: GitHubClient, mock_client: MagicMock) -> None:
        """The sha of HEAD is returned."""
        mock_client.get.return_value = MagicMock(
            status_code=200, json=MagicMock(return_value={"sha": "def456"})
        )

        assert github.get_head_commit(REF) == "def456"
        mock_client.get.assert_called_once_with("/repos/acme/docs/commits/HEAD")

    def test_non_200_raises(self, github: GitHubClient, mock_client: MagicMock) -> None:
        """API errors raise CommitLookupError with the status."""
        mock_client.get.return_value = MagicMock(status_code=404, text='{"message":"Not Found"}')

        with pytest.raises(CommitLookupError) as exc_info:
            github.get_head_commit(REF)

        assert "404" in str(exc_info.value)
        assert "acme/docs" in str(exc_info.value)

    def test_timeout_raises(self, github: GitHubClient, mock_client: MagicMock) -> None:
        """Timeouts raise CommitLookupError."""
        mock_client.get.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(CommitLookupError):
            github.get_head_commit(REF)

    def test_connection_error_raises(self, github: GitHubClient, mock_client: MagicMock) -> None:
        """Transport failures raise CommitLookupError."""
        mock_client.get.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(CommitLookupError):
            github.get_head_commit(REF)

    def test_invalid_json_raises(self, github: GitHubClient, mock_client: MagicMock) -> None:
        """A body that is not JSON raises CommitLookupError."""
        mock_client.get.return_value = MagicMock(
            status_code=200, json=MagicMock(side_effect=ValueError("bad json"))
        )

        with pytest.raises(CommitLookupError):
            github.get_head_commit(REF)

    @pytest.mark.parametrize("body", [{}, {"sha": ""}, {"sha": None}, ["def456"]])
    def test_missing_sha_raises(
        self, github: GitHubClient, mock_client: MagicMock, body: object
    ) -> None:
        """A response without a usable sha raises CommitLookupError."""
        mock_client.get.return_value = MagicMock(
            status_code=200, json=MagicMock(return_value=body)
        )

        with pytest.raises(CommitLookupError):
            github.get_head_commit(REF)


@pytest.mark.unit
class TestClientSetup:
    """Tests for HTTP client construction."""

    def test_sends_bearer_token(self) -> None:
        """The token is sent as a bearer Authorization header."""
        github = GitHubClient(token="test-token")
        try:
            assert github.client.headers["Authorization"] == "Bearer test-token"
            assert github.client.headers["Accept"] == "application/vnd.github+json"
        finally:
            github.close()

    def test_anonymous_without_token(self) -> None:
        """No Authorization header is sent without a token."""
        github = GitHubClient(token="")
        try:
            assert "Authorization" not in github.client.headers
        finally:
            github.close()

    def test_uses_base_url_and_timeout(self) -> None:
        """Base URL and timeout are applied to the HTTP client."""
        github = GitHubClient(base_url="https://ghe.example.com/api/v3/", timeout=3.0)
        try:
            assert str(github.client.base_url) == "https://ghe.example.com/api/v3/"
            assert github.client.timeout.read == 3.0
        finally:
            github.close()

    def test_close_resets_client(self, github: GitHubClient, mock_client: MagicMock) -> None:
        """close() closes and drops the HTTP client."""
        github.close()

        mock_client.close.assert_called_once()
        assert github._client is None

    def test_context_manager_closes(self, mock_client: MagicMock) -> None:
        """Leaving the with block closes the client."""
        with GitHubClient(token="test-token") as github:
            github._client = mock_client

        mock_client.close.assert_called_once()
