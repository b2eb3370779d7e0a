"""Worker-node flavor catalog.

Flavors are read once from ``data/flavors.json`` and returned as frozen
:class:`NodeFlavor` models in file order.
"""

from __future__ import annotations

import functools

from roks_advisor.catalog._loader import load_data_file
from roks_advisor.models.costing import (
    BaselineProfile,
    FlavorSuggestion,
    NodeFlavor,
    Priority,
)

# Flavor series with the lower memory-to-vCPU ratio.
LOWER_DENSITY_SERIES = "bx2"
DENSE_SERIES = "bx3d"


@functools.cache
def _flavors() -> tuple[NodeFlavor, ...]:
    raw_flavors = load_data_file("flavors.json", "flavors")
    return tuple(NodeFlavor.model_validate(raw) for raw in raw_flavors)


def list_flavors() -> list[NodeFlavor]:
    return list(_flavors())


def get_flavor(flavor_id: str) -> NodeFlavor | None:
    """Return the flavor with *flavor_id* (e.g. ``bx2-16x32``), or ``None``."""
    return next((f for f in _flavors() if f.id == flavor_id), None)


def get_flavor_by_name(name: str) -> NodeFlavor | None:
    """Return the flavor whose display name (e.g. ``bx2.16x32``) matches."""
    return next((f for f in _flavors() if f.name == name), None)


def list_flavors_by_series(series: str) -> list[NodeFlavor]:
    return [f for f in _flavors() if f.series == series]


def recommend_flavors(baseline: BaselineProfile) -> list[FlavorSuggestion]:
    """Suggest up to three flavors that satisfy *baseline*'s per-node minimums.

    Candidates are ranked by total overhead (extra vCPU plus extra GB RAM),
    then by hourly rate:

    * the best match (high priority);
    * the first memory-dense alternative, if it is not the best match (medium);
    * the cheapest candidate, if it is not the best match (low).
    """
    suitable = [f for f in _flavors() if f.vcpu >= baseline.vcpu and f.ram >= baseline.ram]
    if not suitable:
        return [
            FlavorSuggestion(
                flavor=None,
                reason=(
                    "No single flavor meets the requirements. "
                    "Consider using larger flavors or adjusting configuration."
                ),
                priority=Priority.high,
            )
        ]

    suitable.sort(
        key=lambda f: ((f.vcpu - baseline.vcpu) + (f.ram - baseline.ram), f.hourlyRate)
    )
    best = suitable[0]
    suggestions = [
        FlavorSuggestion(
            flavor=best,
            reason="Best cost-performance match for your requirements",
            priority=Priority.high,
        )
    ]

    dense = next((f for f in suitable if f.series == DENSE_SERIES and f.id != best.id), None)
    if dense is not None:
        suggestions.append(
            FlavorSuggestion(
                flavor=dense,
                reason="Higher memory density option for memory-intensive workloads",
                priority=Priority.medium,
            )
        )

    cheapest = min(suitable, key=lambda f: f.hourlyRate)
    if cheapest.id != best.id and (dense is None or cheapest.id != dense.id):
        suggestions.append(
            FlavorSuggestion(
                flavor=cheapest,
                reason="Most cost-effective option meeting minimum requirements",
                priority=Priority.low,
            )
        )
    return suggestions


def validate_flavor(flavor: NodeFlavor, baseline: BaselineProfile) -> dict:
    """Check *flavor* against *baseline*.

    Returns ``{"valid": bool, "issues": [...]}``.  Falling short on vCPU or
    RAM is a high-severity issue; exceeding either by more than 50 % is a
    low-severity over-provisioning note.
    """
    issues: list[dict[str, str]] = []
    if flavor.vcpu < baseline.vcpu:
        issues.append(
            {
                "severity": "high",
                "field": "vcpu",
                "message": (
                    f"Flavor vCPU ({flavor.vcpu}) below configuration requirement "
                    f"({baseline.vcpu})"
                ),
            }
        )
    if flavor.ram < baseline.ram:
        issues.append(
            {
                "severity": "high",
                "field": "ram",
                "message": (
                    f"Flavor RAM ({flavor.ram}GB) below configuration requirement "
                    f"({baseline.ram}GB)"
                ),
            }
        )
    if flavor.vcpu > baseline.vcpu * 1.5:
        issues.append(
            {
                "severity": "low",
                "field": "vcpu",
                "message": (
                    f"Flavor may be over-provisioned for vCPU "
                    f"({flavor.vcpu} vs {baseline.vcpu} required)"
                ),
            }
        )
    if flavor.ram > baseline.ram * 1.5:
        issues.append(
            {
                "severity": "low",
                "field": "ram",
                "message": (
                    f"Flavor may be over-provisioned for RAM "
                    f"({flavor.ram}GB vs {baseline.ram}GB required)"
                ),
            }
        )
    return {
        "valid": not any(i["severity"] == "high" for i in issues),
        "issues": issues,
    }
