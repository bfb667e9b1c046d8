"""HTTP tests for the search, indexing and health routers over in-memory fakes."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tradesearch.config import Settings
from tradesearch.routers import indexing, ping, search


@pytest.fixture
def app(fake_engine, opensearch_client, cache_client, search_service, indexing_service, diagnostics):
    app = FastAPI()
    app.include_router(ping.router, prefix="/api/v1")
    app.include_router(search.router, prefix="/api/v1")
    app.include_router(indexing.router, prefix="/api/v1")

    app.state.settings = Settings()
    app.state.opensearch_client = opensearch_client
    app.state.cache_client = cache_client
    app.state.search_service = search_service
    app.state.indexing_service = indexing_service
    app.state.diagnostics = diagnostics
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def _seed_products(fake_engine):
    fake_engine.docs["products"] = {
        "p1": {"name": "Roma Tomato", "price": 2.0, "category": "vegetables", "inventory": {"current": 10}},
        "p2": {"name": "Cherry Tomato", "price": 6.0, "category": "vegetables", "inventory": {"current": 0}},
        "p3": {"name": "Gala Apple", "price": 1.0, "category": "fruit", "inventory": {"current": 5}},
    }


@pytest.mark.unit
class TestEntitySearch:
    def test_product_search_with_domain_filters(self, client, fake_engine):
        _seed_products(fake_engine)

        response = client.post(
            "/api/v1/search/products",
            json={"query": "tomato", "entity_filters": {"price": {"max": 5}, "in_stock": True}},
        )

        assert response.status_code == 200
        body = response.json()
        assert [hit["id"] for hit in body["hits"]] == ["p1"]
        assert body["total"] == 1
        assert body["from"] == 0
        assert body["from_cache"] is False
        multi_match = fake_engine.search_bodies[-1]["query"]["bool"]["must"][0]["multi_match"]
        assert "name^3" in multi_match["fields"]

    def test_second_identical_request_is_cached(self, client, fake_engine):
        _seed_products(fake_engine)
        payload = {"query": "apple"}

        client.post("/api/v1/search/products", json=payload)
        response = client.post("/api/v1/search/products", json=payload)

        assert response.json()["from_cache"] is True
        assert fake_engine.search_calls["products"] == 1

    def test_unknown_entity_is_404(self, client):
        response = client.post("/api/v1/search/invoices", json={"query": "x"})

        assert response.status_code == 404
        assert "invoices" in response.json()["detail"]

    def test_engine_down_is_503(self, client, fake_engine):
        fake_engine.down = True

        response = client.post("/api/v1/search/products", json={"query": "tomato"})

        assert response.status_code == 503

    def test_bad_domain_filter_is_422(self, client):
        response = client.post(
            "/api/v1/search/products",
            json={"entity_filters": {"price": {"max": "cheap"}}},
        )

        assert response.status_code == 422

    def test_bad_tagged_filter_is_422(self, client):
        response = client.post(
            "/api/v1/search/products",
            json={"filters": {"price": {"kind": "range"}}},
        )

        assert response.status_code == 422

    def test_sort_preset_only_for_products(self, client):
        response = client.post("/api/v1/search/companies", json={"sort_by": "price_asc"})

        assert response.status_code == 422

    def test_page_size_cap(self, client):
        response = client.post("/api/v1/search/products", json={"size": 101})

        assert response.status_code == 422


@pytest.mark.unit
class TestFanOutAndSuggest:
    def test_fan_out_excludes_failing_index(self, client, fake_engine):
        _seed_products(fake_engine)
        fake_engine.failing_indices.add("users")

        response = client.get("/api/v1/search", params={"q": "tomato"})

        assert response.status_code == 200
        body = response.json()
        assert set(body["results"]) == {"products", "companies"}
        assert body["requested"] == ["products", "companies", "users"]
        assert body["results"]["products"]["total"]["value"] == 2

    def test_fan_out_query_too_short(self, client):
        response = client.get("/api/v1/search", params={"q": "t"})

        assert response.status_code == 422

    def test_fan_out_size_cap(self, client):
        response = client.get("/api/v1/search", params={"q": "tomato", "size": 51})

        assert response.status_code == 422

    def test_suggest(self, client, fake_engine):
        _seed_products(fake_engine)

        response = client.get("/api/v1/suggest/products", params={"prefix": "ro"})

        assert response.status_code == 200
        assert response.json()["suggestions"] == ["Roma Tomato"]

    def test_suggest_never_fails_on_engine_error(self, client, fake_engine):
        fake_engine.down = True

        response = client.get("/api/v1/suggest/products", params={"prefix": "ro"})

        assert response.status_code == 200
        assert response.json()["suggestions"] == []

    def test_stats(self, client, fake_engine):
        _seed_products(fake_engine)

        response = client.get("/api/v1/search/products/stats")

        assert response.status_code == 200
        assert response.json()["document_count"] == 3


@pytest.mark.unit
class TestIndexingRoutes:
    def test_bulk_partial_failure_is_200(self, client, registry, fake_engine):
        fake_engine.mappings["products"] = registry.get("products").body()

        response = client.post(
            "/api/v1/index/products/_bulk",
            json={
                "documents": [
                    {"id": "a", "doc": {"name": "Leek", "price": 1.5}},
                    {"id": "b", "doc": {"name": "Kale", "price": "cheap"}},
                ]
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["succeeded"] == 1
        assert body["errors"] is True
        assert [failure["id"] for failure in body["failed"]] == ["b"]

    def test_put_then_search_sees_new_document(self, client):
        client.post("/api/v1/search/products", json={"query": "leek"})

        put = client.put("/api/v1/index/products/p9", json={"name": "Leek"})
        response = client.post("/api/v1/search/products", json={"query": "leek"})

        assert put.json()["result"] == "indexed"
        assert response.json()["from_cache"] is False
        assert [hit["id"] for hit in response.json()["hits"]] == ["p9"]

    def test_patch_missing_document_is_404(self, client):
        response = client.patch("/api/v1/index/products/ghost", json={"doc": {"price": 1.0}})

        assert response.status_code == 404

    def test_delete_is_idempotent(self, client):
        client.put("/api/v1/index/products/p1", json={"name": "Leek"})

        first = client.delete("/api/v1/index/products/p1")
        second = client.delete("/api/v1/index/products/p1")

        assert first.json()["result"] == "deleted"
        assert second.status_code == 200
        assert second.json()["result"] == "not_found"

    def test_write_to_down_engine_is_503(self, client, fake_engine):
        fake_engine.down = True

        response = client.put("/api/v1/index/products/p1", json={"name": "Leek"})

        assert response.status_code == 503


@pytest.mark.unit
class TestHealth:
    def test_healthy(self, client):
        body = client.get("/api/v1/health").json()

        assert body["status"] == "ok"
        assert body["services"]["opensearch"]["status"] == "healthy"
        assert body["services"]["redis"]["status"] == "healthy"

    def test_engine_down_is_degraded(self, client, fake_engine):
        fake_engine.down = True

        body = client.get("/api/v1/health").json()

        assert body["status"] == "degraded"
        assert body["services"]["opensearch"]["status"] == "unhealthy"

    def test_redis_down_does_not_degrade(self, client, fake_redis):
        fake_redis.fail = True

        body = client.get("/api/v1/health").json()

        assert body["status"] == "ok"
        assert body["services"]["redis"]["status"] == "unhealthy"

    def test_cache_disabled(self, app, client):
        app.state.cache_client = None

        body = client.get("/api/v1/health").json()

        assert body["services"]["redis"]["status"] == "disabled"


@pytest.mark.unit
def test_simple_health_without_lifespan():
    from tradesearch.main import app

    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
