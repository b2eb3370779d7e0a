"""Cost Score – traffic-light classification of projected spend.

Two independent scorers live here and must stay separate:

Scenario scorer (``score_cost``)
--------------------------------
Classifies the **monthly** cost of a hypothetical (baseline, flavor, zones)
scenario.  Thresholds widen with the zone count:

    zones   GREEN        AMBER          else
    1       < 2000       <= 5000        RED
    2       < 4000       <= 10000       RED
    3       < 6000       <= 15000       RED

GREEN is strict-less-than, AMBER is inclusive.  Zone counts other than 1
or 2 use the 3-zone row; callers are expected to reject them first (see
:func:`roks_advisor.services.advisor.validate_inputs`).

Cluster scorer (``score_cluster_cost``)
---------------------------------------
Classifies the **hourly** cost of one live cluster:

    zones   GREEN        AMBER
    1       <= 1.0       <= 2.0
    2       <= 2.0       <= 4.0
    other   <= 3.0       <= 6.0

Both bounds are inclusive.
"""

from __future__ import annotations

from typing import NamedTuple, assert_never

from roks_advisor.models.costing import CostScore, ScoreLevel, ScoreThresholds, Severity

# ---------------------------------------------------------------------------
# Version – bump when thresholds change
# ---------------------------------------------------------------------------
SCORING_VERSION = "v1"

# ---------------------------------------------------------------------------
# Scenario thresholds (monthly USD): zones → (green_bound, amber_bound)
# ---------------------------------------------------------------------------
MONTHLY_THRESHOLDS: dict[int, tuple[float, float]] = {
    1: (2000.0, 5000.0),
    2: (4000.0, 10000.0),
    3: (6000.0, 15000.0),
}

# ---------------------------------------------------------------------------
# Cluster thresholds (hourly USD): zones → (green_bound, amber_bound)
# ---------------------------------------------------------------------------
HOURLY_THRESHOLDS: dict[int, tuple[float, float]] = {
    1: (1.0, 2.0),
    2: (2.0, 4.0),
    3: (3.0, 6.0),
}

_FALLBACK_ZONES = 3


class ScorePresentation(NamedTuple):
    label: str
    color: str
    icon: str
    message: str
    severity: Severity


def describe_score(level: ScoreLevel) -> ScorePresentation:
    """Return the display attributes of a score level."""
    match level:
        case ScoreLevel.GREEN:
            return ScorePresentation(
                "Optimal Cost", "#24a148", "🟢", "Cost is within optimal range", Severity.low
            )
        case ScoreLevel.AMBER:
            return ScorePresentation(
                "Moderate Cost",
                "#f1c21b",
                "🟡",
                "Cost is moderate - review for optimization opportunities",
                Severity.medium,
            )
        case ScoreLevel.RED:
            return ScorePresentation(
                "High Cost",
                "#fa4d56",
                "🔴",
                "Cost is high - optimization recommended",
                Severity.high,
            )
        case _:
            assert_never(level)


def monthly_thresholds(zones: int) -> tuple[float, float]:
    return MONTHLY_THRESHOLDS.get(zones, MONTHLY_THRESHOLDS[_FALLBACK_ZONES])


def hourly_thresholds(zones: int) -> tuple[float, float]:
    return HOURLY_THRESHOLDS.get(zones, HOURLY_THRESHOLDS[_FALLBACK_ZONES])


def score_cost(monthly_cost: float, zones: int) -> CostScore:
    """Classify a scenario's monthly cost.

    >>> score_cost(1999.99, 1).score
    <ScoreLevel.GREEN: 'GREEN'>
    >>> score_cost(2000, 1).score
    <ScoreLevel.AMBER: 'AMBER'>
    """
    green, amber = monthly_thresholds(zones)
    if monthly_cost < green:
        level = ScoreLevel.GREEN
    elif monthly_cost <= amber:
        level = ScoreLevel.AMBER
    else:
        level = ScoreLevel.RED

    presentation = describe_score(level)
    return CostScore(
        score=level,
        label=presentation.label,
        severity=presentation.severity,
        message=presentation.message,
        color=presentation.color,
        icon=presentation.icon,
        monthlyCost=monthly_cost,
        zones=zones,
        thresholds=ScoreThresholds(green=green, amber=amber),
    )


def score_cluster_cost(total_hourly: float, zones: int) -> ScoreLevel:
    """Classify a live cluster's total hourly cost."""
    green, amber = hourly_thresholds(zones)
    if total_hourly <= green:
        return ScoreLevel.GREEN
    if total_hourly <= amber:
        return ScoreLevel.AMBER
    return ScoreLevel.RED
