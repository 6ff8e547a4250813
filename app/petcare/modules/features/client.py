"""
Consumer-side entitlement cache.

One `FeatureCache` per client session. Entries are keyed by user id (or
"anonymous") and expire after `ttl_seconds`; a failed fetch degrades to
`FALLBACK_FEATURES` instead of leaving the caller with nothing.
"""
from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass, field

from app.petcare.modules.features.registry import is_core_feature

logger = logging.getLogger(__name__)

ANONYMOUS = "anonymous"
DEFAULT_TTL_SECONDS = 300
FALLBACK_FEATURES = frozenset({"dashboard", "pets", "settings", "appointments", "reminders", "expenses"})

Fetcher = Callable[[str | None], "set[str]"]


class FeatureFetchError(RuntimeError):
    pass


@dataclass(frozen=True)
class FeatureClient:
    """Fetches enabled feature names from `GET /api/features`."""

    base_url: str
    session_cookie: str | None = None
    timeout_seconds: int = 10

    def __call__(self, user_id: str | None) -> set[str]:
        return self.fetch(user_id)

    def fetch(self, user_id: str | None) -> set[str]:
        url = self.base_url.rstrip("/") + "/api/features"
        if user_id:
            url += "?" + urllib.parse.urlencode({"userId": user_id})
        req = urllib.request.Request(url, method="GET")
        req.add_header("Accept", "application/json")
        if self.session_cookie:
            req.add_header("Cookie", f"session={self.session_cookie}")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            raise FeatureFetchError(f"HTTP {e.code} from feature endpoint") from e
        except (urllib.error.URLError, OSError) as e:
            raise FeatureFetchError(f"Feature endpoint unreachable: {e}") from e
        try:
            data = json.loads(raw.decode("utf-8"))
            return {str(f["name"]) for f in data["features"]}
        except (ValueError, KeyError, TypeError) as e:
            raise FeatureFetchError("Invalid JSON from feature endpoint") from e


@dataclass
class _Entry:
    features: frozenset[str]
    fetched_at: float


@dataclass
class FeatureCache:
    fetch: Fetcher
    clock: Callable[[], float] = time.monotonic
    ttl_seconds: float = DEFAULT_TTL_SECONDS
    _entries: dict[str, _Entry] = field(default_factory=dict, init=False, repr=False)

    @staticmethod
    def key_for(user_id: str | int | None) -> str:
        return str(user_id) if user_id not in (None, "") else ANONYMOUS

    def _is_fresh(self, entry: _Entry) -> bool:
        return (self.clock() - entry.fetched_at) <= self.ttl_seconds

    def _load(self, key: str) -> frozenset[str]:
        try:
            names = frozenset(self.fetch(None if key == ANONYMOUS else key))
        except Exception as e:
            logger.warning("Feature fetch failed for %s, using fallback set: %s", key, e)
            names = FALLBACK_FEATURES
        self._entries[key] = _Entry(features=names, fetched_at=self.clock())
        return names

    def enabled_for(self, user_id: str | int | None = None) -> frozenset[str]:
        key = self.key_for(user_id)
        entry = self._entries.get(key)
        if entry is not None and self._is_fresh(entry):
            return entry.features
        return self._load(key)

    def is_feature_enabled(self, name: str, user_id: str | int | None = None) -> bool:
        if is_core_feature(name):
            return True
        return name in self.enabled_for(user_id)

    def invalidate(self, user_id: str | int | None = None) -> None:
        self._entries.pop(self.key_for(user_id), None)

    def refresh(self, user_id: str | int | None = None) -> frozenset[str]:
        """Drop the cached entry and fetch again (e.g. after an admin toggle)."""
        self.invalidate(user_id)
        return self._load(self.key_for(user_id))

    def clear(self) -> None:
        self._entries.clear()


def build_feature_cache(config: dict, base_url: str, session_cookie: str | None = None) -> FeatureCache:
    """Cache wired to the HTTP client, with TTL taken from FEATURE_CACHE_TTL_SECONDS."""
    ttl = config.get("FEATURE_CACHE_TTL_SECONDS") or DEFAULT_TTL_SECONDS
    return FeatureCache(fetch=FeatureClient(base_url=base_url, session_cookie=session_cookie), ttl_seconds=ttl)
