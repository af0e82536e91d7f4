"""
Unit tests for the HTTP API over the snapshot store.

Tests cover:
- The four snapshot routes and their status codes
- Health reporting when persistence is unavailable
- Storage error mapping
"""

import logging
import sqlite3
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from omnidash.api import create_app
from omnidash.api.config import Settings
from omnidash.config import AppConfig
from omnidash.storage import SnapshotStore


def snapshot_body(snapshot_id: str, saved_at: int, **extra) -> dict:
    body = {
        "id": snapshot_id,
        "originalUrl": f"https://example.com/{snapshot_id}",
        "timestamp": "20240101000000",
        "savedAt": saved_at,
    }
    body.update(extra)
    return body


class TestSnapshotRoutes:
    """Tests for /api/v1/snapshots."""

    @pytest.fixture
    def data_dir(self):
        """Create temporary data directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir

    @pytest.fixture
    def store(self, data_dir):
        store = SnapshotStore(data_dir, wal_mode=False)
        yield store
        store.close()

    @pytest.fixture
    def client(self, store):
        app = create_app(config=AppConfig(), store=store, settings=Settings())
        with TestClient(app) as client:
            yield client

    def test_put_then_get(self, client):
        body = snapshot_body("a", 1, title="Example", digest="XYZ")

        put = client.put("/api/v1/snapshots/a", json=body)
        get = client.get("/api/v1/snapshots/a")

        assert put.status_code == 200
        assert get.status_code == 200
        assert get.json()["originalUrl"] == "https://example.com/a"
        assert get.json()["title"] == "Example"
        assert get.json()["digest"] == "XYZ"

    def test_get_missing_is_404(self, client):
        response = client.get("/api/v1/snapshots/missing")

        assert response.status_code == 404

    def test_put_replaces(self, client):
        client.put("/api/v1/snapshots/a", json=snapshot_body("a", 1, title="old"))
        client.put(
            "/api/v1/snapshots/a",
            json={"id": "a", "originalUrl": "y", "timestamp": "2", "savedAt": 2},
        )

        data = client.get("/api/v1/snapshots/a").json()

        assert data["originalUrl"] == "y"
        assert data["savedAt"] == 2
        assert data.get("title") is None

    def test_opaque_fields_round_trip(self, client):
        body = snapshot_body("a", 1, note=None, tags=["x"])

        put = client.put("/api/v1/snapshots/a", json=body)
        get = client.get("/api/v1/snapshots/a")
        listed = client.get("/api/v1/snapshots")

        assert put.json() == body
        assert get.json() == body
        assert listed.json() == [body]

    def test_put_id_mismatch_is_400(self, client):
        response = client.put("/api/v1/snapshots/a", json=snapshot_body("b", 1))

        assert response.status_code == 400

    def test_put_missing_field_is_422(self, client):
        response = client.put("/api/v1/snapshots/a", json={"id": "a", "savedAt": 1})

        assert response.status_code == 422

    def test_list_newest_first(self, client):
        for snapshot_id, saved_at in (("five", 5), ("one", 1), ("three", 3)):
            client.put(
                f"/api/v1/snapshots/{snapshot_id}", json=snapshot_body(snapshot_id, saved_at)
            )

        response = client.get("/api/v1/snapshots")

        assert response.status_code == 200
        assert [s["savedAt"] for s in response.json()] == [5, 3, 1]

    def test_delete_then_list(self, client):
        client.put("/api/v1/snapshots/a", json=snapshot_body("a", 1))
        client.put("/api/v1/snapshots/b", json=snapshot_body("b", 2))

        response = client.delete("/api/v1/snapshots/a")

        assert response.status_code == 204
        assert [s["id"] for s in client.get("/api/v1/snapshots").json()] == ["b"]

    def test_delete_missing_is_204(self, client):
        response = client.delete("/api/v1/snapshots/nonexistent")

        assert response.status_code == 204

    def test_health_available(self, client):
        response = client.get("/api/v1/health")

        assert response.json() == {"status": "healthy", "persistence": "available"}

    def test_write_error_is_500(self, client, store):
        client.put("/api/v1/snapshots/a", json=snapshot_body("a", 1))
        conn = sqlite3.connect(str(store.db_path))
        conn.execute(
            """
            CREATE TRIGGER reject_all BEFORE INSERT ON snapshots
            BEGIN
                SELECT RAISE(ABORT, 'rejected');
            END
            """
        )
        conn.commit()
        conn.close()

        response = client.put("/api/v1/snapshots/a", json=snapshot_body("a", 2))

        assert response.status_code == 500
        assert response.json()["error_code"] == "STORAGE_WRITE_ERROR"
        assert client.get("/api/v1/snapshots/a").json()["savedAt"] == 1


class TestPersistenceUnavailable:
    """Tests for an app whose store cannot be opened."""

    @pytest.fixture
    def client(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            blocker = Path(tmpdir) / "blocker"
            blocker.write_text("x")
            store = SnapshotStore(str(blocker), wal_mode=False)
            app = create_app(config=AppConfig(), store=store, settings=Settings())
            with TestClient(app) as client:
                yield client
            store.close()

    def test_startup_does_not_crash(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["persistence"] == "unavailable"

    def test_operations_return_503(self, client):
        response = client.get("/api/v1/snapshots")

        assert response.status_code == 503
        assert response.json()["error_code"] == "STORAGE_INIT_ERROR"

    def test_init_failure_logged_once(self, caplog):
        with tempfile.TemporaryDirectory() as tmpdir:
            blocker = Path(tmpdir) / "blocker"
            blocker.write_text("x")
            store = SnapshotStore(str(blocker), wal_mode=False)
            app = create_app(config=AppConfig(), store=store, settings=Settings())

            with caplog.at_level(logging.DEBUG, logger="omnidash"):
                with TestClient(app) as client:
                    for _ in range(3):
                        assert client.get("/api/v1/snapshots").status_code == 503
            store.close()

        errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert len(errors) == 1
        assert "Persistence unavailable" in errors[0].getMessage()
