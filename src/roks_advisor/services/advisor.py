"""Scenario pipeline: validate → cost → score → risks → recommendations.

This is the single entry point used by the web API, the MCP server and the
CLI.  Everything downstream of :func:`validate_inputs` is pure.
"""

from __future__ import annotations

import logging

from roks_advisor.catalog.baselines import get_baseline
from roks_advisor.catalog.flavors import get_flavor
from roks_advisor.models.costing import BaselineProfile, NodeFlavor, ScenarioResult
from roks_advisor.scoring.cost_score import score_cost
from roks_advisor.services.cost_calculator import (
    compute_costs,
    cost_per_resource,
    estimate_cost_periods,
)
from roks_advisor.services.recommendation_engine import (
    generate_recommendations,
    summarize_recommendations,
)
from roks_advisor.services.risk_assessor import assess_risks, summarize_risks

logger = logging.getLogger(__name__)

VALID_ZONES = (1, 2, 3)


class InputContractError(ValueError):
    """A caller passed values the costing pipeline is not defined for."""


def validate_inputs(baseline: BaselineProfile, flavor: NodeFlavor, zones: int) -> None:
    """Reject out-of-contract inputs before they reach the pure pipeline."""
    if isinstance(zones, bool) or zones not in VALID_ZONES:
        raise InputContractError(
            f"zones must be one of {', '.join(map(str, VALID_ZONES))}; got {zones!r}"
        )
    if baseline.workers <= 0:
        raise InputContractError(
            f"Baseline '{baseline.id}' must require at least one worker; got {baseline.workers}"
        )
    if flavor.hourlyRate < 0:
        raise InputContractError(f"Flavor '{flavor.id}' has a negative hourly rate")


def resolve_inputs(baseline_id: str, flavor_id: str) -> tuple[BaselineProfile, NodeFlavor]:
    """Look up catalog entries, raising ``LookupError`` for unknown ids."""
    baseline = get_baseline(baseline_id)
    if baseline is None:
        raise LookupError(f"Unknown baseline '{baseline_id}'")
    flavor = get_flavor(flavor_id)
    if flavor is None:
        raise LookupError(f"Unknown flavor '{flavor_id}'")
    return baseline, flavor


def evaluate_scenario(baseline: BaselineProfile, flavor: NodeFlavor, zones: int) -> ScenarioResult:
    """Run the full costing pipeline for one (baseline, flavor, zones) triple."""
    validate_inputs(baseline, flavor, zones)

    costs = compute_costs(baseline, flavor, zones)
    score = score_cost(costs.total.monthly, zones)
    risks = assess_risks(baseline, flavor, zones, costs)
    recommendations = generate_recommendations(baseline, flavor, zones, costs, score, risks)

    logger.debug(
        "Evaluated %s on %s x%d zones: $%.2f/month (%s, %d risks)",
        baseline.id,
        flavor.id,
        zones,
        costs.total.monthly,
        score.score,
        len(risks),
    )
    return ScenarioResult(
        costs=costs,
        costScore=score,
        risks=risks,
        riskSummary=summarize_risks(risks),
        recommendations=recommendations,
        recommendationSummary=summarize_recommendations(recommendations),
        periods=estimate_cost_periods(costs.total.hourly),
        perResource=cost_per_resource(costs, baseline, zones),
    )


def estimate(baseline_id: str, flavor_id: str, zones: int) -> ScenarioResult:
    """Resolve catalog ids and evaluate the scenario."""
    baseline, flavor = resolve_inputs(baseline_id, flavor_id)
    return evaluate_scenario(baseline, flavor, zones)
