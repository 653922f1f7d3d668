"""Smoke tests for the assembled application and its settings."""

from fastapi.testclient import TestClient

from delivery_tracking.config import Settings


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings()
        assert s.batch_size == 10
        assert s.batch_timeout_seconds == 300.0
        assert s.sink_url is None

    def test_env_override(self, monkeypatch) -> None:
        monkeypatch.setenv("TRACKING_BATCH_SIZE", "25")
        monkeypatch.setenv("TRACKING_SINK_URL", "https://example.com/batch")
        s = Settings()
        assert s.batch_size == 25
        assert s.sink_url == "https://example.com/batch"


class TestApp:
    def test_health(self) -> None:
        from delivery_tracking.main import app

        with TestClient(app) as client:
            body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["sink"] == "StoreLocationSink"
        assert body["active_sessions"] == 0
