"""Shared test fixtures: in-memory OpenSearch and Redis fakes."""

import copy
import fnmatch
from typing import Any, Dict, List, Optional, Set

import pytest
from opensearchpy import ConnectionError as OpenSearchConnectionError
from opensearchpy import NotFoundError, RequestError
from redis.exceptions import ConnectionError as RedisConnectionError

from tradesearch.config import SearchSettings
from tradesearch.services.cache.client import CacheClient
from tradesearch.services.indexing.service import IndexingService
from tradesearch.services.opensearch.client import OpenSearchClient
from tradesearch.services.opensearch.index_config import default_registry
from tradesearch.services.search.diagnostics import SearchDiagnostics
from tradesearch.services.search.service import SearchService

NUMERIC_TYPES = {"float", "double", "integer", "long", "short", "scaled_float"}


def _get_path(doc: Dict[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _flatten_text(value: Any) -> List[str]:
    if isinstance(value, dict):
        return [text for item in value.values() for text in _flatten_text(item)]
    if isinstance(value, list):
        return [text for item in value for text in _flatten_text(item)]
    if isinstance(value, str):
        return [value.lower()]
    return []


class FakeIndices:
    def __init__(self, engine: "FakeOpenSearch"):
        self.engine = engine

    async def exists(self, index: str) -> bool:
        return index in self.engine.mappings

    async def create(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]:
        if index in self.engine.reject_create:
            raise RequestError(400, "mapper_parsing_exception", {"error": "bad mapping"})
        if index in self.engine.mappings:
            raise RequestError(400, "resource_already_exists_exception", {})
        self.engine.mappings[index] = body
        self.engine.docs.setdefault(index, {})
        return {"acknowledged": True, "index": index}

    async def stats(self, index: str) -> Dict[str, Any]:
        return {
            "indices": {
                index: {
                    "total": {
                        "docs": {"count": len(self.engine.docs.get(index, {}))},
                        "store": {"size_in_bytes": 2048},
                        "search": {"query_total": self.engine.search_calls.get(index, 0)},
                        "indexing": {"index_total": self.engine.write_calls.get(index, 0)},
                    }
                }
            }
        }

    async def get_mapping(self, index: str) -> Dict[str, Any]:
        body = self.engine.mappings.get(index, {})
        return {index: {"mappings": body.get("mappings", {})}}


class FakeCluster:
    def __init__(self, engine: "FakeOpenSearch"):
        self.engine = engine

    async def health(self) -> Dict[str, Any]:
        if self.engine.down:
            raise OpenSearchConnectionError("N/A", "connection refused", Exception("down"))
        return {"status": self.engine.health_status}


class FakeOpenSearch:
    """Enough of AsyncOpenSearch to run the search layer end to end.

    Supports match_all / multi_match (any token in any string field),
    term / terms / range filters, from/size, completion suggestions on
    `name`, strict top-level mappings and per-index failure injection.
    """

    def __init__(self):
        self.docs: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.mappings: Dict[str, Dict[str, Any]] = {}
        self.search_calls: Dict[str, int] = {}
        self.write_calls: Dict[str, int] = {}
        self.search_bodies: List[Dict[str, Any]] = []
        self.failing_indices: Set[str] = set()
        self.reject_create: Set[str] = set()
        self.health_status = "green"
        self.down = False
        self.closed = False
        self.indices = FakeIndices(self)
        self.cluster = FakeCluster(self)

    # ─── helpers ───────────────────────────────────────────────

    def total_search_calls(self) -> int:
        return sum(self.search_calls.values())

    def _check_available(self, index: str) -> None:
        if self.down or index in self.failing_indices:
            raise OpenSearchConnectionError("N/A", "connection refused", Exception(index))

    def _rejection(self, index: str, doc: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        body = self.mappings.get(index)
        if not body:
            return None
        mappings = body["mappings"]
        return self._check_object(doc, mappings["properties"], mappings.get("dynamic", "true"), "")

    def _check_object(
        self, doc: Dict[str, Any], properties: Dict[str, Any], dynamic: str, prefix: str
    ) -> Optional[Dict[str, Any]]:
        """Walk a document against mapped properties; sub-objects inherit `dynamic`."""
        for field, value in doc.items():
            path = f"{prefix}{field}"
            if field not in properties:
                if dynamic == "strict":
                    return {
                        "type": "strict_dynamic_mapping_exception",
                        "reason": f"mapping set to strict, dynamic introduction of [{path}] is not allowed",
                    }
                continue
            spec = properties[field]
            field_type = spec.get("type", "object")
            values = value if isinstance(value, list) else [value]
            for item in values:
                if item is None:
                    continue
                if field_type in ("object", "nested") and isinstance(item, dict):
                    rejection = self._check_object(
                        item, spec.get("properties", {}), spec.get("dynamic", dynamic), f"{path}."
                    )
                    if rejection:
                        return rejection
                elif field_type in NUMERIC_TYPES and (isinstance(item, bool) or not isinstance(item, (int, float))):
                    return {
                        "type": "mapper_parsing_exception",
                        "reason": f"failed to parse field [{path}] of type [{field_type}]",
                    }
        return None

    def _store(self, index: str, doc_id: str, doc: Dict[str, Any]) -> None:
        self.docs.setdefault(index, {})[doc_id] = copy.deepcopy(doc)
        self.write_calls[index] = self.write_calls.get(index, 0) + 1

    @staticmethod
    def _matches_text(doc: Dict[str, Any], clause: Dict[str, Any]) -> bool:
        if "match_all" in clause:
            return True
        multi_match = clause["multi_match"]
        tokens = multi_match["query"].lower().split()
        fields = multi_match.get("fields")
        if fields:
            texts = [
                text
                for field in fields
                for text in _flatten_text(_get_path(doc, field.split("^")[0]))
            ]
        else:
            texts = _flatten_text(doc)
        return any(token in text for token in tokens for text in texts)

    @staticmethod
    def _matches_filter(doc: Dict[str, Any], clause: Dict[str, Any]) -> bool:
        kind, spec = next(iter(clause.items()))
        if kind == "term":
            field, expected = next(iter(spec.items()))
            value = _get_path(doc, field)
            return expected in value if isinstance(value, list) else value == expected
        if kind == "terms":
            field, expected = next(iter(spec.items()))
            value = _get_path(doc, field)
            values = value if isinstance(value, list) else [value]
            return any(item in expected for item in values)
        if kind == "range":
            field, bounds = next(iter(spec.items()))
            value = _get_path(doc, field)
            if value is None:
                return False
            checks = {
                "gte": lambda bound: value >= bound,
                "gt": lambda bound: value > bound,
                "lte": lambda bound: value <= bound,
                "lt": lambda bound: value < bound,
            }
            return all(checks[op](bound) for op, bound in bounds.items())
        # geo_distance and anything else: not evaluated by the fake
        return True

    # ─── AsyncOpenSearch surface ──────────────────────────────

    async def search(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]:
        self._check_available(index)
        self.search_calls[index] = self.search_calls.get(index, 0) + 1
        self.search_bodies.append(copy.deepcopy(body))
        docs = self.docs.get(index, {})

        if "suggest" in body:
            suggest = body["suggest"]["text_suggest"]
            prefix = suggest["prefix"].lower()
            size = suggest["completion"]["size"]
            names = sorted(
                doc["name"] for doc in docs.values()
                if isinstance(doc.get("name"), str) and doc["name"].lower().startswith(prefix)
            )
            options = [{"text": name} for name in names[:size]]
            return {"suggest": {"text_suggest": [{"text": prefix, "options": options}]}}

        query = body["query"]["bool"]
        matched = [
            (doc_id, doc)
            for doc_id, doc in docs.items()
            if all(self._matches_text(doc, clause) for clause in query.get("must", []))
            and all(self._matches_filter(doc, clause) for clause in query.get("filter", []))
        ]
        start = body.get("from", 0)
        page = matched[start:start + body.get("size", 10)]
        response: Dict[str, Any] = {
            "took": 3,
            "hits": {
                "total": {"value": len(matched), "relation": "eq"},
                "hits": [
                    {"_id": doc_id, "_score": 1.0, "_source": copy.deepcopy(doc)}
                    for doc_id, doc in page
                ],
            },
        }
        if body.get("aggs"):
            response["aggregations"] = {name: {} for name in body["aggs"]}
        return response

    async def index(self, index: str, id: str, body: Dict[str, Any], refresh: str = "false") -> Dict[str, Any]:
        self._check_available(index)
        rejection = self._rejection(index, body)
        if rejection:
            raise RequestError(400, rejection["type"], {"error": rejection})
        created = id not in self.docs.get(index, {})
        self._store(index, id, body)
        return {"_id": id, "result": "created" if created else "updated"}

    async def update(self, index: str, id: str, body: Dict[str, Any], refresh: str = "false") -> Dict[str, Any]:
        self._check_available(index)
        existing = self.docs.get(index, {}).get(id)
        if existing is None and not body.get("doc_as_upsert"):
            raise NotFoundError(404, "document_missing_exception", {"_id": id})
        merged = {**(existing or {}), **body["doc"]}
        self._store(index, id, merged)
        return {"_id": id, "result": "updated"}

    async def delete(self, index: str, id: str, refresh: str = "false") -> Dict[str, Any]:
        self._check_available(index)
        if id not in self.docs.get(index, {}):
            raise NotFoundError(404, "not_found", {"_id": id, "result": "not_found"})
        del self.docs[index][id]
        return {"_id": id, "result": "deleted"}

    async def bulk(self, body: List[Dict[str, Any]], refresh: str = "false") -> Dict[str, Any]:
        items = []
        for action, doc in zip(body[::2], body[1::2]):
            meta = action["index"]
            index, doc_id = meta["_index"], meta["_id"]
            self._check_available(index)
            rejection = self._rejection(index, doc)
            if rejection:
                items.append({"index": {"_index": index, "_id": doc_id, "status": 400, "error": rejection}})
                continue
            self._store(index, doc_id, doc)
            items.append({"index": {"_index": index, "_id": doc_id, "status": 201, "result": "created"}})
        return {
            "took": 5,
            "errors": any("error" in item["index"] for item in items),
            "items": items,
        }

    async def count(self, index: str) -> Dict[str, Any]:
        self._check_available(index)
        return {"count": len(self.docs.get(index, {}))}

    async def close(self) -> None:
        self.closed = True


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis (decode_responses=True)."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, Optional[int]] = {}
        self.fail = False
        self.closed = False

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("Connection refused")

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._check()
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def scan_iter(self, match: Optional[str] = None):
        self._check()
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def delete(self, *keys: str) -> int:
        self._check()
        deleted = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                self.ttls.pop(key, None)
                deleted += 1
        return deleted

    async def ping(self) -> bool:
        self._check()
        return True

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_engine() -> FakeOpenSearch:
    return FakeOpenSearch()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def opensearch_client(fake_engine) -> OpenSearchClient:
    return OpenSearchClient(client=fake_engine, host="http://fake:9200")


@pytest.fixture
def cache_client(fake_redis) -> CacheClient:
    return CacheClient(redis_client=fake_redis, ttl_seconds=300, key_prefix="search")


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def diagnostics() -> SearchDiagnostics:
    return SearchDiagnostics()


@pytest.fixture
def search_service(opensearch_client, cache_client, registry, diagnostics) -> SearchService:
    return SearchService(
        opensearch_client=opensearch_client,
        registry=registry,
        cache_client=cache_client,
        settings=SearchSettings(),
        diagnostics=diagnostics,
    )


@pytest.fixture
def indexing_service(opensearch_client, cache_client, registry, diagnostics) -> IndexingService:
    return IndexingService(
        opensearch_client=opensearch_client,
        registry=registry,
        cache_client=cache_client,
        diagnostics=diagnostics,
        batch_size=2,
    )
