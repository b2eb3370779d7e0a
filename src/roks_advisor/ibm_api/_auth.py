"""IAM authentication for IBM Cloud API calls."""

from __future__ import annotations

import logging
import time

import requests

from roks_advisor.ibm_api._cache import _token_cache
from roks_advisor.settings import settings

logger = logging.getLogger(__name__)

IAM_GRANT_TYPE = "urn:ibm:params:oauth:grant-type:apikey"
NOT_CONFIGURED_MESSAGE = "IBM Cloud service not configured. Please set IBM_CLOUD_API_KEY."

# Refresh this many seconds before the token actually expires.
_TOKEN_EXPIRY_MARGIN = 60


class CloudNotConfiguredError(RuntimeError):
    """Raised when cluster analysis is requested without an API key."""


def is_configured() -> bool:
    """Return *True* when an IBM Cloud API key is available."""
    return settings.cloud_configured


def get_access_token() -> str:
    """Exchange the configured API key for an IAM bearer token.

    Tokens are cached until shortly before they expire.
    """
    api_key = settings.ibm_cloud_api_key
    if not api_key:
        raise CloudNotConfiguredError(NOT_CONFIGURED_MESSAGE)

    cached = _token_cache.get(api_key)
    if cached is not None:
        expires_at, token = cached
        if time.monotonic() < expires_at:
            return token

    resp = requests.post(
        settings.ibm_iam_url,
        data={"grant_type": IAM_GRANT_TYPE, "apikey": api_key},
        headers={
            "Accept": "application/json",
            "Content-Type": "application/x-www-form-urlencoded",
        },
        timeout=30,
    )
    if resp.status_code in (400, 401):
        logger.warning("IAM token request rejected (%s)", resp.status_code)
    resp.raise_for_status()

    body = resp.json()
    token: str = body["access_token"]
    expires_in = int(body.get("expires_in", 3600))
    _token_cache[api_key] = (
        time.monotonic() + max(expires_in - _TOKEN_EXPIRY_MARGIN, 0),
        token,
    )
    return token


def _get_headers() -> dict[str, str]:
    """Return authorization headers for the containers API."""
    return {
        "Authorization": f"Bearer {get_access_token()}",
        "X-Region": settings.ibm_cloud_region,
        "Accept": "application/json",
    }
