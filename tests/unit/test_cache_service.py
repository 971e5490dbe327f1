"""
Unit tests for the owner-scoped cache.
"""

import fnmatch
from decimal import Decimal

from storemanager.services.cache_service import CacheService


class InMemoryRedis:
    """The subset of the redis client the cache uses."""

    def __init__(self):
        self.store = {}

    def ping(self):
        return True

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def delete(self, key):
        self.store.pop(key, None)

    def scan_iter(self, match='*', count=None):
        return [k for k in list(self.store) if fnmatch.fnmatch(k, match)]


def enabled_cache():
    cache = CacheService()
    cache._enabled = True
    cache._prefix = 'test'
    cache.client = InMemoryRedis()
    return cache


class TestCacheService:

    def test_disabled_cache_always_loads(self, app):
        cache = CacheService(app)
        calls = []

        def loader():
            calls.append(1)
            return ['fresh']

        assert cache.is_available() is False
        assert cache.memoize(1, 'products', 'all', loader) == ['fresh']
        assert cache.memoize(1, 'products', 'all', loader) == ['fresh']
        assert len(calls) == 2

    def test_memoize_hits_after_first_load(self):
        cache = enabled_cache()
        calls = []

        def loader():
            calls.append(1)
            return {'total': Decimal('90.00')}

        first = cache.memoize(1, 'reports', 'daily', loader, ttl=60)
        second = cache.memoize(1, 'reports', 'daily', loader, ttl=60)

        assert first == second == {'total': Decimal('90.00')}
        assert isinstance(second['total'], Decimal)
        assert len(calls) == 1

    def test_keys_are_isolated_per_owner(self):
        cache = enabled_cache()
        cache.set(1, 'products', 'all', ['owner one'], ttl=60)

        assert cache.get(2, 'products', 'all') is None
        assert cache.get(1, 'products', 'all') == ['owner one']

    def test_invalidate_module_only_touches_owner_and_module(self):
        cache = enabled_cache()
        cache.set(1, 'products', 'all', [1], ttl=60)
        cache.set(1, 'reports', 'daily', [2], ttl=60)
        cache.set(2, 'products', 'all', [3], ttl=60)

        assert cache.invalidate_module(1, 'products') == 1

        assert cache.get(1, 'products', 'all') is None
        assert cache.get(1, 'reports', 'daily') == [2]
        assert cache.get(2, 'products', 'all') == [3]
