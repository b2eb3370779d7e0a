"""Rule-based recommendations for a costed scenario.

Rule groups run in a fixed order (score, configuration, flavor, zones,
risks, best practices).  Their output is concatenated, de-duplicated by id
(first occurrence wins) and stable-sorted by priority.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from roks_advisor.catalog.flavors import DENSE_SERIES, LOWER_DENSITY_SERIES
from roks_advisor.models.costing import (
    TIER_ORDER,
    BaselineProfile,
    CostBreakdown,
    CostScore,
    NodeFlavor,
    Priority,
    RecommendationFinding,
    RecommendationSummary,
    RecommendationType,
    RiskFinding,
    ScoreLevel,
    Severity,
)

LARGE_DEPLOYMENT_WORKERS = 9
CAPACITY_PLANNING_WORKERS = 3
OVERSIZE_RATIO = 0.5
DENSE_SERIES_MIN_RAM = 32


def _rec(
    rec_id: str,
    rec_type: RecommendationType,
    priority: Priority,
    title: str,
    message: str,
    action: str,
) -> RecommendationFinding:
    return RecommendationFinding(
        id=rec_id, type=rec_type, priority=priority, title=title, message=message, action=action
    )


# ---------------------------------------------------------------------------
# Rule groups
# ---------------------------------------------------------------------------


def score_recommendations(score: CostScore) -> list[RecommendationFinding]:
    match score.score:
        case ScoreLevel.GREEN:
            return [
                _rec(
                    "cost-optimal",
                    RecommendationType.success,
                    Priority.low,
                    "Cost is Optimal",
                    "Your configuration is cost-effective and within the optimal range.",
                    "No immediate action required",
                )
            ]
        case ScoreLevel.AMBER:
            return [
                _rec(
                    "cost-moderate",
                    RecommendationType.optimization,
                    Priority.medium,
                    "Cost Optimization Opportunity",
                    "Your configuration has moderate costs. Review for potential optimizations.",
                    "Consider smaller flavors or reducing zones"
                    " if high availability is not critical",
                )
            ]
        case ScoreLevel.RED:
            return [
                _rec(
                    "cost-high",
                    RecommendationType.critical,
                    Priority.high,
                    "High Cost Detected",
                    "Your configuration has high costs that may impact budget.",
                    "Review flavor selection, number of zones, and worker count for optimization",
                )
            ]
    return []


def configuration_recommendations(baseline: BaselineProfile) -> list[RecommendationFinding]:
    recs: list[RecommendationFinding] = []
    components = baseline.components

    if "IoT" in components and len(components) == 2:
        recs.append(
            _rec(
                "iot-optimization",
                RecommendationType.optimization,
                Priority.medium,
                "IoT Configuration Optimization",
                "IoT-focused deployments can often use smaller instance types.",
                "Consider bx2.8x32 or bx3d.8x40 for cost savings if performance is adequate",
            )
        )
    if baseline.workers >= LARGE_DEPLOYMENT_WORKERS:
        recs.append(
            _rec(
                "large-deployment",
                RecommendationType.scalability,
                Priority.high,
                "Large Deployment Detected",
                "Large deployments require careful planning for scalability and management.",
                "Plan for auto-scaling, load balancing, and monitoring infrastructure",
            )
        )
    if "Predict" in components and "Monitor" in components:
        recs.append(
            _rec(
                "predictive-maintenance",
                RecommendationType.best_practice,
                Priority.medium,
                "Predictive Maintenance Suite",
                "Full predictive maintenance requires robust infrastructure.",
                "Ensure adequate resources for AI/ML workloads and data processing",
            )
        )
    if "MVI" in components:
        recs.append(
            _rec(
                "mvi-resources",
                RecommendationType.performance,
                Priority.medium,
                "Visual Inspection Workload",
                "MVI requires sufficient resources for image processing.",
                "Consider flavors with higher memory for optimal performance",
            )
        )
    return recs


def flavor_recommendations(
    baseline: BaselineProfile, flavor: NodeFlavor
) -> list[RecommendationFinding]:
    recs: list[RecommendationFinding] = []
    vcpu_gap = abs(flavor.vcpu - baseline.vcpu) / baseline.vcpu
    ram_gap = abs(flavor.ram - baseline.ram) / baseline.ram

    if vcpu_gap > OVERSIZE_RATIO or ram_gap > OVERSIZE_RATIO:
        recs.append(
            _rec(
                "flavor-oversized",
                RecommendationType.cost,
                Priority.medium,
                "Flavor May Be Oversized",
                "Selected flavor has significantly more resources than baseline requirements.",
                "Review flavor recommendations for better cost-performance match",
            )
        )
    if baseline.ram >= DENSE_SERIES_MIN_RAM and flavor.series == LOWER_DENSITY_SERIES:
        recs.append(
            _rec(
                "consider-bx3d",
                RecommendationType.optimization,
                Priority.low,
                "Consider Memory-Dense Flavors",
                f"For memory-intensive workloads, {DENSE_SERIES} series offers better "
                "memory density.",
                f"Evaluate {DENSE_SERIES} series flavors for potential cost savings",
            )
        )
    return recs


def zone_recommendations(zones: int) -> list[RecommendationFinding]:
    if zones == 1:
        return [
            _rec(
                "single-zone-warning",
                RecommendationType.availability,
                Priority.high,
                "Single Zone Deployment",
                "Single zone deployments lack zone-level redundancy.",
                "Consider multi-zone (2+ zones) for production workloads to ensure high "
                "availability",
            )
        ]
    if zones == 2:
        return [
            _rec(
                "multi-zone-good",
                RecommendationType.success,
                Priority.low,
                "Multi-Zone Deployment",
                "Two-zone deployment provides good balance of availability and cost.",
                "Recommended configuration for production workloads",
            )
        ]
    if zones == 3:
        return [
            _rec(
                "three-zone-premium",
                RecommendationType.info,
                Priority.low,
                "Maximum Redundancy",
                "Three-zone deployment provides maximum availability.",
                "Ensure the additional cost is justified by availability requirements",
            )
        ]
    return []


def risk_recommendations(risks: Iterable[RiskFinding]) -> list[RecommendationFinding]:
    high_count = sum(1 for r in risks if r.severity == Severity.high)
    if not high_count:
        return []
    return [
        _rec(
            "address-high-risks",
            RecommendationType.critical,
            Priority.high,
            "Critical Issues Detected",
            f"{high_count} high-severity risk(s) detected.",
            "Address all high-severity risks before deployment",
        )
    ]


def best_practice_recommendations(baseline: BaselineProfile) -> list[RecommendationFinding]:
    recs = [
        _rec(
            "monitoring",
            RecommendationType.best_practice,
            Priority.medium,
            "Implement Monitoring",
            "Set up comprehensive monitoring for your deployment.",
            "Configure alerts for resource utilization, performance metrics, and cost thresholds",
        ),
        _rec(
            "backup-strategy",
            RecommendationType.best_practice,
            Priority.medium,
            "Backup and Disaster Recovery",
            "Ensure proper backup and disaster recovery procedures.",
            "Implement regular backups and test recovery procedures",
        ),
    ]
    if baseline.workers >= CAPACITY_PLANNING_WORKERS:
        recs.append(
            _rec(
                "capacity-planning",
                RecommendationType.best_practice,
                Priority.low,
                "Capacity Planning",
                "Plan for future growth and scaling requirements.",
                "Review resource utilization regularly and adjust as needed",
            )
        )
    return recs


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def generate_recommendations(
    baseline: BaselineProfile,
    flavor: NodeFlavor,
    zones: int,
    costs: CostBreakdown,
    score: CostScore,
    risks: list[RiskFinding],
) -> list[RecommendationFinding]:
    """Return de-duplicated recommendations ordered high → medium → low.

    *costs* is accepted so every pipeline stage has the same inputs; the
    current rules only read the score derived from it.
    """
    combined = [
        *score_recommendations(score),
        *configuration_recommendations(baseline),
        *flavor_recommendations(baseline, flavor),
        *zone_recommendations(zones),
        *risk_recommendations(risks),
        *best_practice_recommendations(baseline),
    ]

    seen: set[str] = set()
    unique: list[RecommendationFinding] = []
    for rec in combined:
        if rec.id in seen:
            continue
        seen.add(rec.id)
        unique.append(rec)

    return sorted(unique, key=lambda r: TIER_ORDER[r.priority])


def summarize_recommendations(recs: Iterable[RecommendationFinding]) -> RecommendationSummary:
    recs = list(recs)
    by_priority = Counter(r.priority.value for r in recs)
    by_type = Counter(r.type.value for r in recs)
    return RecommendationSummary(
        total=len(recs),
        high=by_priority["high"],
        medium=by_priority["medium"],
        low=by_priority["low"],
        types={t.value: by_type[t.value] for t in RecommendationType},
    )


def filter_recommendations_by_type(
    recs: Iterable[RecommendationFinding], rec_type: RecommendationType | str
) -> list[RecommendationFinding]:
    return [r for r in recs if r.type == rec_type]
