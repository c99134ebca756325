"""Tests for the Redis-backed token cache."""
import redis

from electronics_store.utils.cache import CacheService


class RecordingRedis:
    def __init__(self):
        self.data = {}
        self.ttls = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    def delete(self, key):
        self.data.pop(key, None)

    def ping(self):
        return True


class DownRedis:
    def _fail(self, *args):
        raise redis.ConnectionError("Connection refused")

    get = setex = delete = ping = _fail


def test_set_get_delete_token():
    backend = RecordingRedis()
    cache = CacheService(client=backend, ttl=300)

    assert cache.set("cdek", "token:client", "abc", ttl=3540) is True
    assert backend.ttls["cdek:token:client"] == 3540
    assert cache.get("cdek", "token:client") == "abc"

    cache.delete("cdek", "token:client")
    assert cache.get("cdek", "token:client") is None


def test_default_ttl_applies():
    backend = RecordingRedis()
    CacheService(client=backend, ttl=300).set("cdek", "k", {"a": 1})

    assert backend.ttls["cdek:k"] == 300


def test_unavailable_redis_is_a_miss():
    cache = CacheService(client=DownRedis())

    assert cache.get("cdek", "token:client") is None
    assert cache.set("cdek", "token:client", "abc") is False
    assert cache.delete("cdek", "token:client") is False
    assert cache.ping() is False
