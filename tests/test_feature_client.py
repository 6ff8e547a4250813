import io
import json
import urllib.request

import pytest

from app.petcare.modules.features.client import (
    FALLBACK_FEATURES,
    FeatureCache,
    FeatureClient,
    FeatureFetchError,
    build_feature_cache,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeFetcher:
    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []
        self.fail = False

    def __call__(self, user_id):
        self.calls.append(user_id)
        if self.fail:
            raise FeatureFetchError("boom")
        return set(self.responses.get(user_id, {"dashboard", "pets", "settings"}))


@pytest.fixture()
def clock():
    return FakeClock()


def test_cache_hit_within_ttl(clock):
    fetcher = FakeFetcher({"7": {"dashboard", "expenses"}})
    cache = FeatureCache(fetch=fetcher, clock=clock)

    assert cache.enabled_for(7) == {"dashboard", "expenses"}
    clock.advance(300)
    assert cache.enabled_for("7") == {"dashboard", "expenses"}
    assert fetcher.calls == ["7"]


def test_cache_expires_after_ttl(clock):
    fetcher = FakeFetcher()
    cache = FeatureCache(fetch=fetcher, clock=clock, ttl_seconds=300)

    cache.enabled_for(1)
    clock.advance(301)
    cache.enabled_for(1)
    assert fetcher.calls == ["1", "1"]


def test_entries_keyed_per_user(clock):
    fetcher = FakeFetcher({"1": {"expenses"}, None: {"dashboard"}})
    cache = FeatureCache(fetch=fetcher, clock=clock)

    assert cache.enabled_for(1) == {"expenses"}
    assert cache.enabled_for(None) == {"dashboard"}
    assert cache.enabled_for("") == {"dashboard"}
    assert fetcher.calls == ["1", None]


def test_fetch_failure_uses_fallback(clock):
    fetcher = FakeFetcher()
    fetcher.fail = True
    cache = FeatureCache(fetch=fetcher, clock=clock)

    assert cache.enabled_for(1) == FALLBACK_FEATURES
    assert cache.is_feature_enabled("expenses", 1) is True
    assert cache.is_feature_enabled("documents", 1) is False


def test_fallback_is_cached_until_expiry(clock):
    fetcher = FakeFetcher()
    fetcher.fail = True
    cache = FeatureCache(fetch=fetcher, clock=clock)

    cache.enabled_for(1)
    fetcher.fail = False
    assert cache.enabled_for(1) == FALLBACK_FEATURES
    clock.advance(301)
    assert cache.enabled_for(1) == {"dashboard", "pets", "settings"}


def test_core_features_always_enabled(clock):
    fetcher = FakeFetcher({"1": set()})
    cache = FeatureCache(fetch=fetcher, clock=clock)
    assert cache.is_feature_enabled("pets", 1) is True
    assert cache.is_feature_enabled("expenses", 1) is False
    # core answer does not need a fetch
    cache.is_feature_enabled("settings", 2)
    assert "2" not in fetcher.calls


def test_invalidate_and_refresh(clock):
    fetcher = FakeFetcher({"1": {"expenses"}})
    cache = FeatureCache(fetch=fetcher, clock=clock)

    cache.enabled_for(1)
    cache.invalidate(1)
    cache.enabled_for(1)
    cache.refresh(1)
    assert fetcher.calls == ["1", "1", "1"]

    cache.clear()
    cache.enabled_for(1)
    assert len(fetcher.calls) == 4


def test_build_feature_cache_uses_configured_ttl():
    cache = build_feature_cache({"FEATURE_CACHE_TTL_SECONDS": 60}, "http://localhost:8080")
    assert cache.ttl_seconds == 60
    assert isinstance(cache.fetch, FeatureClient)
    assert cache.fetch.base_url == "http://localhost:8080"


def test_client_unreachable_raises_fetch_error():
    client = FeatureClient(base_url="http://127.0.0.1:9", timeout_seconds=1)
    with pytest.raises(FeatureFetchError):
        client.fetch("1")


def test_client_parses_feature_response(monkeypatch):
    body = {
        "features": [
            {"name": "dashboard", "displayName": "Dashboard", "isCore": True},
            {"name": "expenses", "displayName": "Expenses", "isCore": False},
        ]
    }
    seen = []

    def fake_urlopen(req, timeout=None):
        seen.append(req)
        return io.BytesIO(json.dumps(body).encode("utf-8"))

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    client = FeatureClient(base_url="http://localhost:8080/", session_cookie="abc")

    assert client.fetch("7") == {"dashboard", "expenses"}
    assert seen[0].full_url == "http://localhost:8080/api/features?userId=7"
    assert seen[0].get_header("Cookie") == "session=abc"


def test_client_rejects_malformed_body(monkeypatch):
    monkeypatch.setattr(urllib.request, "urlopen", lambda req, timeout=None: io.BytesIO(b'{"items": []}'))
    with pytest.raises(FeatureFetchError):
        FeatureClient(base_url="http://localhost:8080").fetch(None)
