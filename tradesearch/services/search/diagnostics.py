"""Per-process cache diagnostics for the search facade."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Set

logger = logging.getLogger(__name__)


@dataclass
class SearchDiagnostics:
    """Records cache behavior for one process run.

    Passed into SearchService explicitly (None disables it). The health
    router exposes snapshot() in debug mode.
    """

    cache_hits: int = 0
    cache_misses: int = 0
    cache_writes: int = 0
    invalidations: int = 0
    engine_errors: int = 0
    keys: Set[str] = field(default_factory=set)
    errors_by_index: Counter = field(default_factory=Counter)
    max_tracked_keys: int = 1000

    def _track(self, key: str) -> None:
        # Bounded: keys past the cap are counted but not remembered.
        if key in self.keys or len(self.keys) < self.max_tracked_keys:
            self.keys.add(key)

    def record_hit(self, key: str) -> None:
        self.cache_hits += 1
        self._track(key)

    def record_miss(self, key: str) -> None:
        self.cache_misses += 1
        self._track(key)

    def record_write(self, key: str) -> None:
        self.cache_writes += 1
        self._track(key)

    def record_invalidation(self, index: str) -> None:
        self.invalidations += 1
        prefix_marker = f":{index}:"
        self.keys = {key for key in self.keys if prefix_marker not in key}

    def record_engine_error(self, index: str) -> None:
        self.engine_errors += 1
        self.errors_by_index[index] += 1

    @property
    def hit_ratio(self) -> float:
        lookups = self.cache_hits + self.cache_misses
        return self.cache_hits / lookups if lookups else 0.0

    def snapshot(self) -> Dict[str, object]:
        return {
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "cache_writes": self.cache_writes,
            "invalidations": self.invalidations,
            "engine_errors": self.engine_errors,
            "hit_ratio": round(self.hit_ratio, 4),
            "tracked_keys": len(self.keys),
            "errors_by_index": dict(self.errors_by_index),
        }

    def reset(self) -> None:
        logger.debug("Resetting search diagnostics")
        self.cache_hits = 0
        self.cache_misses = 0
        self.cache_writes = 0
        self.invalidations = 0
        self.engine_errors = 0
        self.keys.clear()
        self.errors_by_index.clear()
