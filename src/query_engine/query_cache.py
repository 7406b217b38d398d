"""
Query Result Cache

LRU cache of StructuredQuery results keyed by corrected text.

Features:
- LRU eviction policy
- Thread-safe operations
- Cache statistics and monitoring

Only the interpretation is cached. Request-specific fields (original text,
corrections) are re-applied by the pipeline on a hit.
"""
import hashlib
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Optional

from .models import StructuredQuery
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class CacheStats:
    """Cache statistics"""
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    total_queries: int = 0
    cache_size: int = 0
    max_size: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate"""
        if self.total_queries == 0:
            return 0.0
        return self.hits / self.total_queries

    def to_dict(self) -> Dict:
        """Convert to dictionary"""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "total_queries": self.total_queries,
            "hit_rate": round(self.hit_rate * 100, 2),
            "cache_size": self.cache_size,
            "max_size": self.max_size,
        }


class QueryCache:
    """LRU cache for query interpretations"""

    def __init__(self, max_size: int = 1000):
        self.max_size = max(1, max_size)
        self._cache: "OrderedDict[str, StructuredQuery]" = OrderedDict()
        self._lock = threading.RLock()
        self.stats = CacheStats(max_size=self.max_size)
        logger.info(f"✅ QueryCache initialized: max_size={self.max_size}")

    @staticmethod
    def make_key(corrected_text: str, rules_version: str = "") -> str:
        """Hash of whitespace-normalized corrected text (case kept, names are case-sensitive)."""
        normalized = " ".join(corrected_text.split())
        return hashlib.md5(f"{rules_version}|{normalized}".encode("utf-8")).hexdigest()

    def get(self, corrected_text: str, rules_version: str = "") -> Optional[StructuredQuery]:
        key = self.make_key(corrected_text, rules_version)
        with self._lock:
            self.stats.total_queries += 1
            result = self._cache.get(key)
            if result is None:
                self.stats.misses += 1
                return None
            self._cache.move_to_end(key)
            self.stats.hits += 1
            logger.debug(f"Cache HIT: {corrected_text[:50]}")
            return result

    def set(self, corrected_text: str, result: StructuredQuery, rules_version: str = ""):
        key = self.make_key(corrected_text, rules_version)
        with self._lock:
            self._cache[key] = result
            self._cache.move_to_end(key)
            while len(self._cache) > self.max_size:
                self._cache.popitem(last=False)
                self.stats.evictions += 1
            self.stats.cache_size = len(self._cache)

    def clear(self):
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            self.stats.cache_size = 0
        logger.info(f"Cache cleared: {count} entries removed")

    def get_stats(self) -> Dict:
        with self._lock:
            return self.stats.to_dict()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
