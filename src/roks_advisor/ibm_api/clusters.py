"""Cluster inventory from the IBM Cloud Kubernetes Service (v1 API)."""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from roks_advisor.ibm_api._auth import _get_headers
from roks_advisor.ibm_api._cache import _cache_set, _cached
from roks_advisor.settings import settings

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS = 3


def _get_json(url: str) -> Any:
    """GET *url* and return the decoded JSON body.

    Retries HTTP 429 with back-off; any other non-2xx status raises
    ``requests.HTTPError``.
    """
    headers = _get_headers()
    resp = None
    for attempt in range(_MAX_ATTEMPTS):
        resp = requests.get(url, headers=headers, timeout=30)
        if resp.status_code == 429:
            try:
                retry_after = int(resp.headers.get("Retry-After", str(2**attempt)))
            except (TypeError, ValueError):
                retry_after = 2**attempt
            logger.warning(
                "Containers API 429, retrying in %ss (attempt %s/%s)",
                retry_after,
                attempt + 1,
                _MAX_ATTEMPTS,
            )
            time.sleep(retry_after)
            continue
        resp.raise_for_status()
        return resp.json()

    # Exhausted retries on 429
    if resp is not None:
        resp.raise_for_status()
    return None


def list_clusters() -> list[dict]:
    """Return the cluster summaries visible in the configured region.

    Results are cached for ``_CLUSTER_CACHE_TTL`` seconds.
    """
    cache_key = f"clusters:{settings.ibm_cloud_region}"
    cached = _cached(cache_key)
    if cached is not None:
        return cached  # type: ignore[return-value]

    data = _get_json(f"{settings.ibm_containers_url}/clusters")
    clusters: list[dict] = data or []
    logger.info("Found %d clusters in %s", len(clusters), settings.ibm_cloud_region)
    _cache_set(cache_key, clusters)
    return clusters


def get_cluster_details(cluster_id: str) -> dict:
    """Return ``{"cluster": {...}, "workers": [...]}`` for *cluster_id*."""
    base = f"{settings.ibm_containers_url}/clusters/{cluster_id}"
    cluster = _get_json(base)
    workers = _get_json(f"{base}/workers") or []
    logger.debug("Cluster %s has %d workers", cluster_id, len(workers))
    return {"cluster": cluster, "workers": workers}
