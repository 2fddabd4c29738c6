"""
Tests for HTTP routes: status, feed, search, sync, favorites, preferences.
"""

from newsync.services import DEFAULT_CATEGORIES


class TestHealthCheck:
    """Tests for /status endpoint."""

    def test_health_check_returns_ok(self, client):
        response = client.get("/status")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["store"] == "sqlite"
        assert "version" in data
        assert data["circuit_open"] is False

    def test_reports_connection_after_first_read(self, client):
        client.get("/news")
        data = client.get("/status").json()
        assert data["store_connected"] is True
        assert data["consecutive_failures"] == 0
        assert data["last_fetch_at"] is not None


class TestFeed:
    """Tests for /news endpoints."""

    def test_feed_fetches_and_annotates(self, client):
        response = client.get("/news")
        assert response.status_code == 200
        data = response.json()
        assert data["refreshed"] is True
        assert data["tier"] == "remote"
        assert data["degraded"] is False
        assert [a["id"] for a in data["articles"]] == ["2", "3", "1"]

        article = data["articles"][2]
        assert article["categories"] == ["BTC", "Mining"]
        assert article["is_favorite"] is False
        assert set(article["reactions"]) == {"bull", "bear", "neutral"}

    def test_feed_category_filter(self, client):
        response = client.get("/news?categories=ETH&categories=DeFi")
        assert [a["id"] for a in response.json()["articles"]] == ["2"]

    def test_feed_rejects_negative_count(self, client):
        response = client.get("/news?current_article_count=-1")
        assert response.status_code == 422

    def test_search_requires_query(self, client):
        response = client.get("/news/search")
        assert response.status_code == 422

    def test_search_finds_matches(self, client):
        client.get("/news")
        response = client.get("/news/search?q=ethereum")
        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == ["2"]

    def test_search_blank_query(self, client):
        client.get("/news")
        response = client.get("/news/search?q=%20")
        assert response.json() == []

    def test_categories_default_when_empty(self, client):
        response = client.get("/categories")
        assert response.json() == DEFAULT_CATEGORIES

    def test_categories_after_sync(self, client):
        client.post("/news/sync")
        response = client.get("/categories")
        assert response.json() == ["BTC", "DeFi", "ETH", "Mining", "Regulation"]


class TestSync:
    """Tests for /news/sync endpoint."""

    def test_sync_succeeds(self, client):
        response = client.post("/news/sync?limit=10")
        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_sync_validates_limit(self, client):
        response = client.post("/news/sync?limit=500")
        assert response.status_code == 422

    def test_sync_rate_limited(self, client):
        statuses = [client.post("/news/sync").status_code for _ in range(11)]
        assert statuses[:10] == [200] * 10
        assert statuses[10] == 429
        assert client.post("/news/sync").headers["Retry-After"] == "60"

    def test_sync_limit_is_per_user(self, client):
        for _ in range(10):
            client.post("/news/sync", headers={"X-User-Id": "busy"})

        assert client.post("/news/sync", headers={"X-User-Id": "busy"}).status_code == 429
        assert client.post("/news/sync", headers={"X-User-Id": "calm"}).status_code == 200


class TestFavorites:
    """Tests for favorites endpoints."""

    def test_toggle_adds_then_removes(self, client):
        client.get("/news")
        headers = {"X-User-Id": "reader-1"}

        response = client.post("/favorites/1/toggle", json={"current_status": False}, headers=headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "is_favorite": True}

        favorites = client.get("/favorites", headers=headers).json()
        assert [a["id"] for a in favorites] == ["1"]
        assert favorites[0]["is_favorite"] is True

        response = client.post("/favorites/1/toggle", json={"current_status": True}, headers=headers)
        assert response.json() == {"success": True, "is_favorite": False}
        assert client.get("/favorites", headers=headers).json() == []

    def test_favorites_scoped_by_user(self, client):
        client.get("/news")
        client.post("/favorites/1/toggle", json={"current_status": False}, headers={"X-User-Id": "a"})

        assert client.get("/favorites", headers={"X-User-Id": "b"}).json() == []

    def test_feed_reflects_favorite(self, client):
        headers = {"X-User-Id": "reader-1"}
        client.get("/news")
        client.post("/favorites/2/toggle", json={"current_status": False}, headers=headers)

        articles = client.get("/news", headers=headers).json()["articles"]
        assert {a["id"]: a["is_favorite"] for a in articles}["2"] is True

    def test_toggle_requires_body(self, client):
        response = client.post("/favorites/1/toggle")
        assert response.status_code == 422


class TestInteractionsAndPreferences:
    """Tests for interaction and preference endpoints."""

    def test_track_interaction(self, client):
        response = client.post("/interactions", json={"news_item_id": "1", "type": "view"})
        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_rejects_unknown_interaction_type(self, client):
        response = client.post("/interactions", json={"news_item_id": "1", "type": "bookmark"})
        assert response.status_code == 422

    def test_rejects_empty_item_id(self, client):
        response = client.post("/interactions", json={"news_item_id": "", "type": "like"})
        assert response.status_code == 422

    def test_default_preferences(self, client):
        response = client.get("/preferences")
        assert response.json() == {"categories": ["All", "Bitcoin", "Ethereum", "Altcoins"]}

    def test_save_preferences(self, client):
        headers = {"X-User-Id": "reader-1"}
        response = client.put("/preferences", json={"categories": ["NFT", "Mining"]}, headers=headers)
        assert response.json() == {"success": True}

        response = client.get("/preferences", headers=headers)
        assert response.json() == {"categories": ["NFT", "Mining"]}
