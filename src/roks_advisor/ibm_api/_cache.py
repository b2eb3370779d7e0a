"""In-memory TTL caches for IBM Cloud API responses."""

from __future__ import annotations

import time

# Cluster listings per region.
_CLUSTER_CACHE_TTL = 300  # 5 minutes
_cluster_cache: dict[str, tuple[float, object]] = {}

# IAM tokens: api key → (monotonic expiry, access token)
_token_cache: dict[str, tuple[float, str]] = {}


def _cached(key: str, ttl: int = _CLUSTER_CACHE_TTL) -> object | None:
    """Return cached value if still valid, else ``None``."""
    entry = _cluster_cache.get(key)
    if entry is not None:
        ts, data = entry
        if time.monotonic() - ts < ttl:
            return data
    return None


def _cache_set(key: str, data: object) -> None:
    """Store a value in the cluster cache."""
    _cluster_cache[key] = (time.monotonic(), data)


def clear_caches() -> None:
    _cluster_cache.clear()
    _token_cache.clear()
