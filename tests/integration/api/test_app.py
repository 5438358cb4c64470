"""Integration tests for the FastAPI application."""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from fastapi.testclient import TestClient

from docrebuild.api import create_app
from docrebuild.api.dependencies import close_engine
from docrebuild.exceptions import ConfigurationError

REPO = "https://github.com/acme/docs"


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch) -> Path:
    """Write a config tracking one repository."""
    monkeypatch.setenv("GITHUB_TOKEN", "test-token")
    monkeypatch.delenv("DOCREBUILD_CACHE_PATH", raising=False)
    path = tmp_path / "docrebuild.yaml"
    path.write_text(yaml.safe_dump({"sources": [REPO], "cache_path": "cache.json"}))
    return path


@pytest.fixture
def client(config_file: Path):
    """Create a test client running the app lifespan."""
    app = create_app(config_path=config_file)
    with TestClient(app) as client:
        yield client
    close_engine()


@pytest.mark.integration
class TestApp:
    """Tests for the assembled application."""

    def test_webhook_then_decision(self, client: TestClient, tmp_path: Path) -> None:
        """A content push flags the source and the next decision consumes it."""
        client.post("/api/v1/rebuild/complete")

        pushed = client.post(
            "/api/v1/webhooks/github",
            json={"repository": {"html_url": REPO}, "commits": [{"added": ["guide.md"]}]},
            headers={"X-GitHub-Event": "push"},
        )
        assert pushed.json()["data"]["outcome"] == "rebuild_requested"
        assert (tmp_path / "cache.json").exists()

        first = client.post("/api/v1/rebuild").json()["data"]
        second = client.post("/api/v1/rebuild").json()["data"]
        assert first["changed_sources"] == [REPO]
        assert second["has_changes"] is False

    def test_check_uses_github_client(self, client: TestClient) -> None:
        """The cycle route goes through the configured GitHub client."""
        with patch(
            "docrebuild.poller.github.GitHubClient.get_head_commit", return_value="abc123"
        ) as head:
            data = client.post("/api/v1/rebuild/check").json()["data"]

        head.assert_called_once()
        assert data["changed_sources"] == [REPO]

    def test_cache_route(self, client: TestClient, tmp_path: Path) -> None:
        """The cache route reports the configured path."""
        data = client.get("/api/v1/cache").json()["data"]

        assert data["path"] == str(tmp_path / "cache.json")

    def test_cache_store_error_handler(self, client: TestClient, tmp_path: Path) -> None:
        """A cache file that cannot be removed becomes a 500 with an error body."""
        client.post("/api/v1/rebuild/complete")

        with patch.object(Path, "unlink", side_effect=PermissionError("read-only")):
            response = client.delete("/api/v1/cache")

        assert response.status_code == 500
        assert response.json() == {"data": None, "error": "Cache could not be written"}
        assert (tmp_path / "cache.json").exists()


@pytest.mark.integration
def test_startup_fails_without_config(tmp_path: Path) -> None:
    """A missing config file stops the app from starting."""
    app = create_app(config_path=tmp_path / "missing.yaml")

    with pytest.raises(ConfigurationError), TestClient(app):
        pass
