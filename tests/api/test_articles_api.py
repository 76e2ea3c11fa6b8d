"""
Tests for the article endpoints.
"""

from __future__ import annotations

import base64

NEW_ARTICLE = {
    "slug": "breaking-news",
    "title_en": "Breaking news",
    "content_en": "Something happened today.",
    "author_name": "Desk",
    "publish_now": True,
}


class TestListArticles:
    def test_flat_list_with_cache_headers(self, client, seed_articles):
        seed_articles(3)
        first = client.get("/api/articles")
        assert first.status_code == 200
        assert [a["id"] for a in first.json()] == [3, 2, 1]
        assert first.headers["X-Cache"] == "MISS"
        assert first.headers["Cache-Control"] == "public, max-age=300"
        assert first.headers["ETag"].startswith('"')
        assert "X-Request-ID" in first.headers

        second = client.get("/api/articles")
        assert second.headers["X-Cache"] == "HIT"
        assert second.headers["ETag"] == first.headers["ETag"]

    def test_if_none_match_returns_304(self, client, seed_articles):
        seed_articles(2)
        etag = client.get("/api/articles").headers["ETag"]
        response = client.get("/api/articles", headers={"If-None-Match": etag})
        assert response.status_code == 304
        assert response.content == b""

    def test_cursor_walk(self, client, seed_articles):
        seed_articles(25)
        seen = []
        params = {"limit": 10, "paginated": "true"}
        while True:
            body = client.get("/api/articles", params=params).json()
            seen.extend(a["id"] for a in body["data"])
            cursor = body["pagination"]["next_cursor"]
            if cursor is None:
                break
            params = {"limit": 10, "cursor": cursor}
        assert seen == list(range(25, 0, -1))

    def test_garbage_cursor_degrades_to_first_page(self, client, seed_articles):
        seed_articles(3)
        body = client.get("/api/articles", params={"cursor": "garbage", "limit": 2}).json()
        assert [a["id"] for a in body["data"]] == [3, 2]
        assert body["pagination"]["offset"] == 0

    def test_deeply_nested_cursor_degrades_to_first_page(self, client, seed_articles):
        seed_articles(3)
        token = base64.urlsafe_b64encode(b"[" * 100_000 + b"]" * 100_000).decode()
        response = client.get("/api/articles", params={"cursor": token, "limit": 2})
        assert response.status_code == 200
        assert [a["id"] for a in response.json()["data"]] == [3, 2]

    def test_unknown_sort_field_is_400(self, client):
        response = client.get("/api/articles", params={"sort_by": "title"})
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION"
        assert body["instance"] == "/api/articles"

    def test_non_integer_limit_is_422(self, client):
        response = client.get("/api/articles", params={"limit": "many"})
        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "query.limit"


class TestArticleDetail:
    def test_int_path_is_id_lookup(self, client, seed_articles):
        seed_articles(2)
        body = client.get("/api/articles/2").json()
        assert body["id"] == 2
        assert "published" in body

    def test_slug_path(self, client, seed_articles):
        seed_articles(2)
        body = client.get("/api/articles/article-1", params={"language": "ar"}).json()
        assert body["title"] == "مقال 1"
        assert body["language"] == "ar"

    def test_missing_is_problem_detail(self, client):
        response = client.get("/api/articles/42")
        assert response.status_code == 404
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["title"] == "Not Found"
        assert body["detail"] == "Article not found: 42"
        assert body["code"] == "NOT_FOUND"

    def test_search(self, client, seed_articles):
        seed_articles(3)
        response = client.get("/api/articles/search", params={"q": "article 2"})
        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [2]
        assert response.headers["Cache-Control"] == "public, max-age=120"


class TestArticleWrites:
    def test_create_update_delete(self, client):
        created = client.post("/api/articles", json=NEW_ARTICLE)
        assert created.status_code == 201
        article_id = created.json()["id"]
        assert created.json()["published"] is True

        updated = client.put(f"/api/articles/{article_id}", json={"title_en": "Updated"})
        assert updated.status_code == 200
        assert updated.json()["title"] == "Updated"

        assert client.delete(f"/api/articles/{article_id}").status_code == 204
        assert client.get(f"/api/articles/{article_id}").status_code == 404

    def test_duplicate_slug_is_409(self, client):
        client.post("/api/articles", json=NEW_ARTICLE)
        response = client.post("/api/articles", json=NEW_ARTICLE)
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    def test_unknown_field_is_422(self, client):
        response = client.post("/api/articles", json={**NEW_ARTICLE, "rating": 5})
        assert response.status_code == 422

    def test_create_invalidates_listing(self, client, seed_articles):
        seed_articles(1)
        client.get("/api/articles")
        client.post("/api/articles", json=NEW_ARTICLE)
        response = client.get("/api/articles")
        assert response.headers["X-Cache"] == "MISS"
        assert len(response.json()) == 2
