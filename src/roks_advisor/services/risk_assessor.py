"""Risk assessment for a costed scenario.

Four rule groups are evaluated independently and every finding that applies
is kept.  The combined list is stable-sorted high → medium → low, so the
generation order below is the order within a severity tier.

    configuration   flavor below baseline vCPU / RAM (high), disk (medium)
    availability    single zone with >= 3 workers (medium), >= 6 (high)
    cost            zone-scaled very-high (high) or high (medium) monthly cost
    provisioning    > 100 % vCPU / RAM overhead (low), slow network (low)
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable

from roks_advisor.models.costing import (
    TIER_ORDER,
    BaselineProfile,
    CostBreakdown,
    NodeFlavor,
    RiskCategory,
    RiskFinding,
    RiskSummary,
    Severity,
)

# zones → monthly USD bound; anything above is flagged.
VERY_HIGH_COST_THRESHOLDS: dict[int, float] = {1: 20000.0, 2: 40000.0, 3: 60000.0}
HIGH_COST_THRESHOLDS: dict[int, float] = {1: 10000.0, 2: 20000.0, 3: 30000.0}

OVERPROVISION_PERCENT = 100
NETWORK_MIN_GBPS = 16
LARGE_DEPLOYMENT_WORKERS = 6
PRODUCTION_WORKERS = 3

_LEADING_INT_RE = re.compile(r"^\s*(\d+)")


def _network_gbps(label: str) -> int | None:
    """Leading integer of a network label (``"16Gbps"`` → 16)."""
    match = _LEADING_INT_RE.match(label)
    return int(match.group(1)) if match else None


# ---------------------------------------------------------------------------
# Rule groups
# ---------------------------------------------------------------------------


def assess_configuration_risks(baseline: BaselineProfile, flavor: NodeFlavor) -> list[RiskFinding]:
    risks: list[RiskFinding] = []
    if flavor.vcpu < baseline.vcpu:
        risks.append(
            RiskFinding(
                id="insufficient-vcpu",
                severity=Severity.high,
                category=RiskCategory.configuration,
                title="Insufficient vCPU",
                message=(
                    f"Flavor vCPU ({flavor.vcpu}) is below baseline requirement ({baseline.vcpu})"
                ),
                impact="Performance degradation and potential application failures",
                recommendation=f"Select a flavor with at least {baseline.vcpu} vCPU",
            )
        )
    if flavor.ram < baseline.ram:
        risks.append(
            RiskFinding(
                id="insufficient-ram",
                severity=Severity.high,
                category=RiskCategory.configuration,
                title="Insufficient RAM",
                message=(
                    f"Flavor RAM ({flavor.ram}GB) is below baseline requirement ({baseline.ram}GB)"
                ),
                impact="Memory pressure, OOM errors, and application instability",
                recommendation=f"Select a flavor with at least {baseline.ram}GB RAM",
            )
        )
    if flavor.storage < baseline.disk:
        risks.append(
            RiskFinding(
                id="insufficient-disk",
                severity=Severity.medium,
                category=RiskCategory.configuration,
                title="Insufficient Disk Space",
                message=(
                    f"Flavor storage ({flavor.storage}GB) is below baseline requirement "
                    f"({baseline.disk}GB)"
                ),
                impact="Potential storage capacity issues",
                recommendation="Consider additional storage volumes or larger flavor",
            )
        )
    return risks


def assess_zone_risks(baseline: BaselineProfile, zones: int) -> list[RiskFinding]:
    risks: list[RiskFinding] = []
    if zones != 1:
        return risks
    if baseline.workers >= PRODUCTION_WORKERS:
        risks.append(
            RiskFinding(
                id="single-zone-production",
                severity=Severity.medium,
                category=RiskCategory.availability,
                title="Single Zone Deployment",
                message="Production workload deployed in single zone",
                impact="No zone-level redundancy; zone failure affects entire deployment",
                recommendation="Consider multi-zone deployment (2+ zones) for high availability",
            )
        )
    if baseline.workers >= LARGE_DEPLOYMENT_WORKERS:
        risks.append(
            RiskFinding(
                id="large-single-zone",
                severity=Severity.high,
                category=RiskCategory.availability,
                title="Large Single Zone Deployment",
                message="Large deployment without zone redundancy",
                impact="High risk of complete service disruption on zone failure",
                recommendation="Strongly recommend multi-zone deployment for this scale",
            )
        )
    return risks


def assess_cost_risks(costs: CostBreakdown, zones: int) -> list[RiskFinding]:
    monthly = costs.total.monthly
    very_high = VERY_HIGH_COST_THRESHOLDS.get(zones, VERY_HIGH_COST_THRESHOLDS[3])
    high = HIGH_COST_THRESHOLDS.get(zones, HIGH_COST_THRESHOLDS[3])

    if monthly > very_high:
        return [
            RiskFinding(
                id="very-high-cost",
                severity=Severity.high,
                category=RiskCategory.cost,
                title="Very High Monthly Cost",
                message=f"Monthly cost (${monthly:.2f}) significantly exceeds typical range",
                impact="Budget overrun and potential cost optimization opportunities missed",
                recommendation="Review configuration for right-sizing opportunities",
            )
        ]
    if monthly > high:
        return [
            RiskFinding(
                id="high-cost",
                severity=Severity.medium,
                category=RiskCategory.cost,
                title="High Monthly Cost",
                message=f"Monthly cost (${monthly:.2f}) is above typical range",
                impact="Higher than expected operational costs",
                recommendation="Consider cost optimization strategies",
            )
        ]
    return []


def assess_provisioning_risks(baseline: BaselineProfile, flavor: NodeFlavor) -> list[RiskFinding]:
    risks: list[RiskFinding] = []
    vcpu_overhead = (flavor.vcpu - baseline.vcpu) / baseline.vcpu * 100
    ram_overhead = (flavor.ram - baseline.ram) / baseline.ram * 100

    if vcpu_overhead > OVERPROVISION_PERCENT:
        risks.append(
            RiskFinding(
                id="vcpu-over-provisioned",
                severity=Severity.low,
                category=RiskCategory.optimization,
                title="vCPU Over-Provisioned",
                message=f"Flavor has {vcpu_overhead:.0f}% more vCPU than required",
                impact="Paying for unused compute capacity",
                recommendation="Consider a smaller flavor to optimize costs",
            )
        )
    if ram_overhead > OVERPROVISION_PERCENT:
        risks.append(
            RiskFinding(
                id="ram-over-provisioned",
                severity=Severity.low,
                category=RiskCategory.optimization,
                title="RAM Over-Provisioned",
                message=f"Flavor has {ram_overhead:.0f}% more RAM than required",
                impact="Paying for unused memory capacity",
                recommendation="Consider a smaller flavor to optimize costs",
            )
        )

    gbps = _network_gbps(flavor.network)
    slow_network = gbps is not None and gbps < NETWORK_MIN_GBPS
    if baseline.workers >= LARGE_DEPLOYMENT_WORKERS and slow_network:
        risks.append(
            RiskFinding(
                id="network-bandwidth",
                severity=Severity.low,
                category=RiskCategory.performance,
                title="Network Bandwidth Consideration",
                message=f"Large deployment with {flavor.network} network speed",
                impact="Potential network bottlenecks under high load",
                recommendation=(
                    "Monitor network utilization and consider higher bandwidth flavors if needed"
                ),
            )
        )
    return risks


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def assess_risks(
    baseline: BaselineProfile,
    flavor: NodeFlavor,
    zones: int,
    costs: CostBreakdown,
) -> list[RiskFinding]:
    """Return every applicable risk, ordered high → medium → low."""
    risks = [
        *assess_configuration_risks(baseline, flavor),
        *assess_zone_risks(baseline, zones),
        *assess_cost_risks(costs, zones),
        *assess_provisioning_risks(baseline, flavor),
    ]
    return sorted(risks, key=lambda r: TIER_ORDER[r.severity])


def summarize_risks(risks: Iterable[RiskFinding]) -> RiskSummary:
    risks = list(risks)
    by_severity = Counter(r.severity.value for r in risks)
    categories = Counter(r.category.value for r in risks)

    if by_severity["high"]:
        overall, message = "high", "Critical issues detected - immediate action required"
    elif by_severity["medium"]:
        overall, message = "medium", "Some concerns identified - review recommended"
    elif by_severity["low"]:
        overall, message = "low", "Minor optimization opportunities available"
    else:
        overall, message = "none", "No risks detected - configuration looks good"

    return RiskSummary(
        total=len(risks),
        high=by_severity["high"],
        medium=by_severity["medium"],
        low=by_severity["low"],
        categories=dict(categories),
        overallRisk=overall,
        overallMessage=message,
    )


def filter_risks_by_severity(
    risks: Iterable[RiskFinding], severity: Severity | str
) -> list[RiskFinding]:
    return [r for r in risks if r.severity == severity]


def filter_risks_by_category(
    risks: Iterable[RiskFinding], category: RiskCategory | str
) -> list[RiskFinding]:
    return [r for r in risks if r.category == category]
