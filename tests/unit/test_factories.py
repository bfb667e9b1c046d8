"""Unit tests for factories, diagnostics and HTTP error mapping."""

import pytest

from tradesearch.config import RedisSettings, SearchSettings, Settings
from tradesearch.exceptions import (
    ConfigurationError,
    DocumentNotFound,
    InvalidFilterError,
    MappingCreationFailed,
    SearchUnavailable,
    UnknownEntityType,
)
from tradesearch.middlewares import to_http_exception
from tradesearch.services.cache.factory import make_cache_client
from tradesearch.services.indexing.factory import make_indexing_service
from tradesearch.services.opensearch.factory import make_opensearch_client_fresh
from tradesearch.services.search.diagnostics import SearchDiagnostics
from tradesearch.services.search.factory import make_search_service


@pytest.mark.unit
class TestFactories:
    def test_empty_host_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            make_opensearch_client_fresh(Settings(), host="")

    @pytest.mark.asyncio
    async def test_cache_disabled_by_configuration(self):
        settings = Settings(redis=RedisSettings(enabled=False))

        assert await make_cache_client(settings) is None

    def test_search_service_uses_prefixed_registry(self, opensearch_client):
        settings = Settings(search=SearchSettings(fan_out_max_size=5))
        settings.opensearch.index_prefix = "qa-"

        service = make_search_service(opensearch_client, settings=settings)

        assert service.registry.index_name("orders") == "qa-orders"
        assert service.settings.fan_out_max_size == 5
        assert service.cache_client is None

    def test_indexing_service_batch_size_from_settings(self, opensearch_client):
        settings = Settings(search=SearchSettings(bulk_batch_size=250))

        service = make_indexing_service(settings, opensearch_client=opensearch_client)

        assert service.batch_size == 250
        assert service.opensearch_client is opensearch_client


@pytest.mark.unit
class TestDiagnostics:
    def test_counters_and_ratio(self):
        diagnostics = SearchDiagnostics()
        diagnostics.record_miss("search:products:a")
        diagnostics.record_write("search:products:a")
        diagnostics.record_hit("search:products:a")
        diagnostics.record_hit("search:orders:b")

        snapshot = diagnostics.snapshot()

        assert snapshot["cache_hits"] == 2
        assert snapshot["cache_misses"] == 1
        assert snapshot["hit_ratio"] == pytest.approx(0.6667)
        assert snapshot["tracked_keys"] == 2

    def test_invalidation_drops_keys_of_that_index(self):
        diagnostics = SearchDiagnostics()
        diagnostics.record_write("search:products:a")
        diagnostics.record_write("search:orders:b")

        diagnostics.record_invalidation("products")

        assert diagnostics.keys == {"search:orders:b"}
        assert diagnostics.invalidations == 1

    def test_tracked_keys_are_capped(self):
        diagnostics = SearchDiagnostics(max_tracked_keys=10)
        for n in range(5000):
            diagnostics.record_miss(f"search:products:{n}")
            diagnostics.record_write(f"search:products:{n}")

        assert len(diagnostics.keys) == 10
        assert diagnostics.snapshot()["tracked_keys"] == 10
        assert diagnostics.cache_misses == 5000
        assert diagnostics.cache_writes == 5000

    def test_room_frees_up_after_invalidation(self):
        diagnostics = SearchDiagnostics(max_tracked_keys=2)
        diagnostics.record_write("search:products:a")
        diagnostics.record_write("search:products:b")
        diagnostics.record_write("search:orders:c")

        diagnostics.record_invalidation("products")
        diagnostics.record_write("search:orders:c")

        assert diagnostics.keys == {"search:orders:c"}

    def test_reset(self):
        diagnostics = SearchDiagnostics()
        diagnostics.record_engine_error("products")
        diagnostics.reset()

        assert diagnostics.snapshot()["engine_errors"] == 0
        assert diagnostics.errors_by_index == {}


@pytest.mark.unit
class TestHttpErrorMapping:
    @pytest.mark.parametrize(
        "error,status",
        [
            (SearchUnavailable("down", index="products", operation="search"), 503),
            (InvalidFilterError("price", {"gte": 1}), 422),
            (UnknownEntityType("invoices", {"products": "products"}), 404),
            (DocumentNotFound("products", "p1"), 404),
            (MappingCreationFailed("orders", "bad mapping"), 500),
        ],
    )
    def test_status_codes(self, error, status):
        assert to_http_exception(error).status_code == status
