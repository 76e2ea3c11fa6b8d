"""
Tests for the application factory, health, categories, downloads and cache admin.
"""

from __future__ import annotations

from fastapi import FastAPI

from mediawatch.api import create_app
from mediawatch.core.settings import MediaWatchSettings


class TestCreateApp:
    def test_returns_fastapi_instance(self):
        app = create_app(settings=MediaWatchSettings(), configure_logs=False)
        assert isinstance(app, FastAPI)
        assert app.openapi_url == "/api/openapi.json"

    def test_custom_prefix(self):
        app = create_app(settings=MediaWatchSettings(api_prefix="/v2", api_title="Custom"), configure_logs=False)
        paths = app.openapi()["paths"]
        assert app.title == "Custom"
        assert "/v2/articles" in paths
        assert "/health" in paths

    def test_cors_middleware_present(self):
        app = create_app(settings=MediaWatchSettings(), configure_logs=False)
        assert "CORSMiddleware" in [m.cls.__name__ for m in app.user_middleware]

    def test_container_started_and_stopped(self, settings, container):
        from fastapi.testclient import TestClient

        app = create_app(settings=settings, container=container, configure_logs=False)
        with TestClient(app):
            assert container.started
            assert container.cache.running
        assert not container.started


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "healthy"
        assert set(body["details"]["circuits"]) == {"openai", "newsdata"}

    def test_live_and_ready(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}
        assert client.get("/health/ready").status_code == 200


class TestCategories:
    def test_create_and_list(self, client):
        created = client.post("/api/categories", json={"slug": "tech", "name_en": "Tech", "name_ar": "تقنية"})
        assert created.status_code == 201

        listing = client.get("/api/categories", params={"language": "ar"})
        assert listing.json()[0]["name"] == "تقنية"
        assert listing.headers["Cache-Control"] == "public, max-age=1800"

        assert client.get("/api/categories/tech").json()["name"] == "Tech"
        assert client.get("/api/categories/none").status_code == 404

    def test_bad_language_is_400(self, client):
        assert client.get("/api/categories", params={"language": "fr"}).status_code == 400


class TestDownloads:
    def test_list_track_and_delete(self, client, seed_download):
        download_id = seed_download()
        listing = client.get("/api/downloads").json()
        assert listing["pagination"]["total"] == 1

        tracked = client.post(f"/api/downloads/{download_id}/track")
        assert tracked.json() == {"id": download_id, "download_count": 1}

        detail = client.get(f"/api/downloads/{download_id}").json()
        assert detail["download_count"] == 1

        assert client.delete(f"/api/downloads/{download_id}").status_code == 204
        assert client.post(f"/api/downloads/{download_id}/track").status_code == 404

    def test_update(self, client, seed_download):
        download_id = seed_download()
        response = client.put(f"/api/downloads/{download_id}", json={"featured": True})
        assert response.status_code == 200
        assert response.json()["featured"] is True


class TestCacheAdmin:
    def test_stats_and_clear(self, client, seed_articles):
        seed_articles(1)
        client.get("/api/articles")
        client.get("/api/articles")

        stats = client.get("/api/cache/stats").json()
        assert stats["cache"]["hits"] == 1
        assert stats["cache"]["entries"] == 1
        assert stats["circuits"]["openai"]["state"] == "closed"

        assert client.post("/api/cache/clear").json() == {"cleared": 1}
        assert client.get("/api/articles").headers["X-Cache"] == "MISS"
