"""Unit tests for the HTTP routes."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docrebuild.api.dependencies import get_cache_store, get_policy, get_processor
from docrebuild.api.routes import cache, rebuild, webhooks
from docrebuild.cache_store import BuildCacheRecord, CacheStore
from docrebuild.cache_store.models import utcnow
from docrebuild.local_detector import LocalChangeResult
from docrebuild.poller import RemotePoller
from docrebuild.policy import RebuildPolicy
from docrebuild.webhook import WebhookProcessor

REPO = "https://github.com/acme/docs"


@pytest.fixture
def github() -> MagicMock:
    """Create a mock GitHub client."""
    return MagicMock()


@pytest.fixture
def policy(store: CacheStore, github: MagicMock) -> RebuildPolicy:
    """Create a policy with mocked lookups."""
    local_detector = MagicMock()
    local_detector.check.return_value = LocalChangeResult(
        changed=False, commit_time=None, reason="up to date"
    )
    return RebuildPolicy(store, [REPO], local_detector, RemotePoller(github))


@pytest.fixture
def app(store: CacheStore, policy: RebuildPolicy):
    """Create a test FastAPI app with overridden dependencies."""
    app = FastAPI()
    processor = WebhookProcessor(store, [REPO])

    def override_get_cache_store():
        yield store

    def override_get_policy():
        yield policy

    def override_get_processor():
        yield processor

    app.dependency_overrides[get_cache_store] = override_get_cache_store
    app.dependency_overrides[get_policy] = override_get_policy
    app.dependency_overrides[get_processor] = override_get_processor

    # Include routes
    app.include_router(webhooks.router, prefix="/api/v1")
    app.include_router(rebuild.router, prefix="/api/v1")
    app.include_router(cache.router, prefix="/api/v1")

    return app


@pytest.fixture
def client(app: FastAPI):
    """Create a test client."""
    return TestClient(app)


def push(path: str, url: str = REPO) -> dict:
    """Build a minimal push payload."""
    return {"repository": {"html_url": url}, "commits": [{"modified": [path]}]}


@pytest.mark.unit
class TestWebhookRoute:
    """Tests for POST /webhooks/github."""

    def test_ping(self, client: TestClient, store: CacheStore) -> None:
        """Ping deliveries are answered without touching the cache."""
        response = client.post(
            "/api/v1/webhooks/github",
            json={"zen": "Keep it simple"},
            headers={"X-GitHub-Event": "ping"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["outcome"] == "pong"
        assert store.exists is False

    def test_push_with_content(self, client: TestClient, store: CacheStore) -> None:
        """A push touching README.md requests a rebuild."""
        response = client.post(
            "/api/v1/webhooks/github", json=push("README.md"), headers={"X-GitHub-Event": "push"}
        )

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["outcome"] == "rebuild_requested"
        assert data["rebuild"] is True
        assert data["content_paths"] == ["README.md"]
        assert store.load().stale_sources() == [REPO]

    def test_push_without_content(self, client: TestClient, store: CacheStore) -> None:
        """A push touching only logo.png changes nothing."""
        response = client.post(
            "/api/v1/webhooks/github", json=push("logo.png"), headers={"X-GitHub-Event": "push"}
        )

        assert response.json()["data"]["outcome"] == "no_rebuild_needed"
        assert store.exists is False

    def test_untracked_repository(self, client: TestClient) -> None:
        """Pushes to other repositories are not tracked."""
        response = client.post(
            "/api/v1/webhooks/github",
            json=push("README.md", url="https://github.com/other/repo"),
            headers={"X-GitHub-Event": "push"},
        )

        assert response.json()["data"]["outcome"] == "not_tracked"

    def test_other_events_ignored(self, client: TestClient, store: CacheStore) -> None:
        """Non-push events are ignored."""
        response = client.post(
            "/api/v1/webhooks/github", json=push("README.md"), headers={"X-GitHub-Event": "issues"}
        )

        data = response.json()["data"]
        assert data["outcome"] == "ignored"
        assert data["rebuild"] is False
        assert store.exists is False

    def test_invalid_json_requests_rebuild(self, client: TestClient) -> None:
        """A body that is not JSON resolves to a rebuild request."""
        response = client.post(
            "/api/v1/webhooks/github",
            content=b"{not json",
            headers={"X-GitHub-Event": "push", "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["outcome"] == "rebuild_requested"

    def test_missing_event_header_treated_as_push(self, client: TestClient) -> None:
        """Deliveries without an event header are handled as pushes."""
        response = client.post("/api/v1/webhooks/github", json=push("docs/intro.md"))

        assert response.json()["data"]["event"] == "push"
        assert response.json()["data"]["rebuild"] is True


@pytest.mark.unit
class TestRebuildRoutes:
    """Tests for the rebuild decision routes."""

    def test_should_rebuild_cold_start(self, client: TestClient) -> None:
        """No cache means rebuild."""
        response = client.post("/api/v1/rebuild")

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["force_rebuild"] is True
        assert data["has_changes"] is True
        assert data["reason"] == "no cache"

    def test_should_rebuild_consumes_flags(self, client: TestClient, store: CacheStore) -> None:
        """Stale sources are reported once."""
        record = BuildCacheRecord(last_build_time=utcnow() - timedelta(hours=1))
        record.get_or_create(REPO).stale = True
        store.save(record)

        first = client.post("/api/v1/rebuild").json()["data"]
        second = client.post("/api/v1/rebuild").json()["data"]

        assert first["changed_sources"] == [REPO]
        assert second["has_changes"] is False

    def test_get_does_not_consume_flags(self, client: TestClient, store: CacheStore) -> None:
        """The decision is POST only, so a GET leaves stale flags alone."""
        record = BuildCacheRecord(last_build_time=utcnow() - timedelta(hours=1))
        record.get_or_create(REPO).stale = True
        store.save(record)

        response = client.get("/api/v1/rebuild")

        assert response.status_code == 405
        assert store.load().stale_sources() == [REPO]

    def test_check(self, client: TestClient, github: MagicMock, store: CacheStore) -> None:
        """The cycle route polls and records commits."""
        github.get_head_commit.return_value = "abc123"

        data = client.post("/api/v1/rebuild/check").json()["data"]

        assert data["changed_sources"] == [REPO]
        assert store.load().sources[REPO].last_commit == "abc123"

    def test_record_build(self, client: TestClient, store: CacheStore) -> None:
        """Recording a build sets lastBuildTime."""
        response = client.post("/api/v1/rebuild/complete")

        assert response.json()["data"] == {"recorded": True}
        assert store.load().last_build_time is not None
        assert client.post("/api/v1/rebuild").json()["data"]["has_changes"] is False


@pytest.mark.unit
class TestCacheRoutes:
    """Tests for the cache routes."""

    def test_cache_info_missing(self, client: TestClient) -> None:
        """A missing cache is reported as such."""
        data = client.get("/api/v1/cache").json()["data"]

        assert data["exists"] is False
        assert data["sources"] == []

    def test_cache_info(self, client: TestClient, store: CacheStore) -> None:
        """Sources and stale flags are listed without being consumed."""
        record = BuildCacheRecord(last_build_time=utcnow())
        record.get_or_create(REPO).stale = True
        store.save(record)

        data = client.get("/api/v1/cache").json()["data"]

        assert data["exists"] is True
        assert data["stale_sources"] == [REPO]
        assert store.load().stale_sources() == [REPO]

    def test_clear_cache(self, client: TestClient, store: CacheStore) -> None:
        """DELETE removes the cache file."""
        store.save(BuildCacheRecord())

        assert client.delete("/api/v1/cache").json()["data"] == {"removed": True}
        assert store.exists is False
        assert client.delete("/api/v1/cache").json()["data"] == {"removed": False}
