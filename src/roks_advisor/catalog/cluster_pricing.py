"""Hourly worker prices used when costing live clusters.

This table is keyed by the flavor names the cloud API reports (for example
``bx3d.16x64`` or ``b3c.16x64``) and is separate from the
scenario flavor catalog.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Mapping
from types import MappingProxyType

from roks_advisor.catalog._loader import load_data_file

UNKNOWN_FLAVOR = "unknown"

_SUFFIX_RE = re.compile(r"\.(encrypted|300gb\.encrypted)$")

# Secondary vendor naming → pricing-table naming (checked in order).
_PREFIX_ALIASES: tuple[tuple[str, str], ...] = (
    ("b3c.", "bx3d."),
    ("m3c.", "mx2."),
)


@functools.cache
def cluster_prices() -> Mapping[str, float]:
    raw: dict[str, float] = load_data_file("cluster_pricing.json", "prices")
    return MappingProxyType({name: float(price) for name, price in raw.items()})


def normalize_flavor(raw_flavor: str | None) -> str:
    """Map a cloud-reported flavor name onto the pricing-table naming.

    >>> normalize_flavor("b3c.16x64.encrypted")
    'bx3d.16x64'
    >>> normalize_flavor("m3c.8x64")
    'mx2.8x64'
    """
    if not raw_flavor:
        return UNKNOWN_FLAVOR
    normalized = _SUFFIX_RE.sub("", raw_flavor)
    for prefix, replacement in _PREFIX_ALIASES:
        if normalized.startswith(prefix):
            normalized = replacement + normalized[len(prefix) :]
    return normalized


def lookup_hourly_price(raw_flavor: str, normalized_flavor: str) -> float | None:
    """Return the hourly price for the raw name, else the normalised name.

    ``None`` means neither name is in the table.
    """
    prices = cluster_prices()
    if raw_flavor in prices:
        return prices[raw_flavor]
    return prices.get(normalized_flavor)
