"""Baseline (application-component bundle) catalog."""

from __future__ import annotations

import functools

from roks_advisor.catalog._loader import load_data_file
from roks_advisor.models.costing import BaselineProfile


@functools.cache
def _baselines() -> tuple[BaselineProfile, ...]:
    return tuple(
        BaselineProfile.model_validate(raw) for raw in load_data_file("baselines.json", "baselines")
    )


def list_baselines() -> list[BaselineProfile]:
    return list(_baselines())


def get_baseline(baseline_id: str) -> BaselineProfile | None:
    """Return the baseline with *baseline_id* (e.g. ``config-1``), or ``None``."""
    return next((b for b in _baselines() if b.id == baseline_id), None)


def validate_sizing(
    baseline: BaselineProfile, workers: int, vcpu: int, ram: int, disk: int
) -> dict:
    """Compare a custom sizing against *baseline*'s minimums.

    Returns ``{"valid": bool, "issues": [...]}``; only high-severity issues
    (workers, vCPU, RAM) make the sizing invalid.
    """
    issues: list[dict[str, str]] = []
    if workers < baseline.workers:
        issues.append(
            {
                "severity": "high",
                "field": "workers",
                "message": f"Workers ({workers}) below baseline minimum ({baseline.workers})",
            }
        )
    if vcpu < baseline.vcpu:
        issues.append(
            {
                "severity": "high",
                "field": "vcpu",
                "message": f"vCPU ({vcpu}) below baseline requirement ({baseline.vcpu})",
            }
        )
    if ram < baseline.ram:
        issues.append(
            {
                "severity": "high",
                "field": "ram",
                "message": f"RAM ({ram}GB) below baseline requirement ({baseline.ram}GB)",
            }
        )
    if disk < baseline.disk:
        issues.append(
            {
                "severity": "medium",
                "field": "disk",
                "message": f"Disk ({disk}GB) below baseline requirement ({baseline.disk}GB)",
            }
        )
    return {
        "valid": not any(i["severity"] == "high" for i in issues),
        "issues": issues,
    }
