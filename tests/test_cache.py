"""Tests for the Redis-backed streak cache."""
import json
from datetime import date
from unittest.mock import MagicMock

from reading_tracker.utils.cache import CacheService


def test_disabled_cache_is_inert():
    cache = CacheService()

    assert cache.redis_client is None
    assert cache.get("streak:u1:2024-01-01") is None
    assert cache.set("streak:u1:2024-01-01", {"x": 1}) is False
    assert cache.invalidate_user("u1") is False


def test_keys():
    cache = CacheService(redis_client=MagicMock())

    assert cache.streak_key("u1", date(2024, 6, 15)) == "streak:u1:2024-06-15"
    assert cache.heatmap_key("u1", 2024) == "heatmap:u1:2024"


def test_set_uses_ttl():
    client = MagicMock()
    cache = CacheService(redis_client=client)

    assert cache.set("heatmap:u1:2024", [{"date": "2024-01-01", "pages_read": 1}], ttl=60) is True
    client.setex.assert_called_once_with(
        "heatmap:u1:2024", 60, json.dumps([{"date": "2024-01-01", "pages_read": 1}])
    )


def test_get_hit_and_miss():
    client = MagicMock()
    cache = CacheService(redis_client=client)

    client.get.return_value = json.dumps({"current_streak": 2})
    assert cache.get("streak:u1:2024-06-15") == {"current_streak": 2}

    client.get.return_value = None
    assert cache.get("streak:u1:2024-06-15") is None


def test_redis_errors_degrade_to_miss():
    client = MagicMock()
    client.get.side_effect = ConnectionError("down")
    client.setex.side_effect = ConnectionError("down")
    cache = CacheService(redis_client=client)

    assert cache.get("streak:u1:2024-06-15") is None
    assert cache.set("streak:u1:2024-06-15", {}) is False


def test_invalidate_user_drops_streak_and_heatmap_keys():
    client = MagicMock()
    client.scan_iter.side_effect = [iter(["streak:u1:2024-06-15"]), iter(["heatmap:u1:2024"])]
    cache = CacheService(redis_client=client)

    assert cache.invalidate_user("u1") is True
    client.delete.assert_called_once_with("streak:u1:2024-06-15", "heatmap:u1:2024")


def test_invalidate_user_matches_glob_characters_literally():
    client = MagicMock()
    client.scan_iter.return_value = iter([])
    cache = CacheService(redis_client=client)

    assert cache.invalidate_user("u*[1]?") is True

    patterns = [c.kwargs["match"] for c in client.scan_iter.call_args_list]
    assert patterns == [r"streak:u\*\[1\]\?:*", r"heatmap:u\*\[1\]\?:*"]
    client.keys.assert_not_called()
    client.delete.assert_not_called()
