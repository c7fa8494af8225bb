from __future__ import annotations

from types import SimpleNamespace

import pytest

from scoring_api import cache


@pytest.fixture(autouse=True)
def _clean_cache():
    cache.clear()
    yield
    cache.clear()


def test_make_key():
    assert cache.make_key("prediction", "abc", 17) == "prediction:abc:17"
    assert cache.make_key("prediction", "", " x ") == "prediction:x"
    with pytest.raises(ValueError):
        cache.make_key("", " ")


def test_set_get_and_expiry(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(cache, "time", SimpleNamespace(time=lambda: now[0]))

    cache.set("k", {"a": 1}, ttl_seconds=10)
    assert cache.get("k") == {"a": 1}

    now[0] += 4
    assert cache.get_with_age("k") == ({"a": 1}, 4.0)

    now[0] += 7
    assert cache.get("k") is None


def test_non_positive_ttl_is_not_stored():
    cache.set("k", 1, ttl_seconds=0)
    assert cache.get("k") is None
