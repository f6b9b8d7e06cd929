"""
Schema metadata caching.

Column lists are cached per open database in cachetools TTL caches held by a
process-wide `Cache` singleton. Each `Database` keys its entries by the
table's catalog name, invalidates them on DDL and drops its cache on close.
"""
import logging
import threading

import cachetools

logger = logging.getLogger(__name__)

SCHEMA_CACHE_SIZE = 50
SCHEMA_CACHE_TTL = 600


def schema_cache_name(database_id: int) -> str:
    return f'schema_{database_id}'


class Cache:
    """Thread-safe singleton owning every named TTL cache.
    """

    _instance = None
    _caches: dict[str, cachetools.TTLCache] = {}
    _lock = threading.RLock()

    @classmethod
    def get_instance(cls) -> 'Cache':
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def get_cache(self, name: str, maxsize: int, ttl: int) -> cachetools.TTLCache:
        """Get the TTL cache called `name`, creating it on first use.
        """
        with self._lock:
            if name not in self._caches:
                self._caches[name] = cachetools.TTLCache(maxsize=maxsize, ttl=ttl)
            return self._caches[name]

    def get_schema_cache(self, database_id: int) -> cachetools.TTLCache:
        """Column-list cache of one `Database`, keyed by `id(database)`."""
        return self.get_cache(schema_cache_name(database_id),
                              maxsize=SCHEMA_CACHE_SIZE, ttl=SCHEMA_CACHE_TTL)

    def drop_cache(self, name: str) -> None:
        """Forget a cache entirely, e.g. when its database is closed."""
        with self._lock:
            if self._caches.pop(name, None) is not None:
                logger.debug(f'Dropped cache {name}')

    def clear_all(self) -> None:
        with self._lock:
            for cache in self._caches.values():
                cache.clear()
