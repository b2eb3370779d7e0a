"""Scenario cost calculation.

All functions are pure.  Costs are USD floats and are never rounded here;
rounding belongs to presentation.
"""

from __future__ import annotations

from collections.abc import Sequence

from roks_advisor.models.costing import (
    BaselineProfile,
    ComparisonSummary,
    CostBreakdown,
    CostPeriods,
    ExtendedCostPeriods,
    NodeFlavor,
    ResourceUnitCosts,
    SavingsAmounts,
    SavingsAnalysis,
    ScenarioComparison,
    ScenarioCostComparison,
)

HOURS_PER_DAY = 24
HOURS_PER_WEEK = 24 * 7
HOURS_PER_MONTH = 730
HOURS_PER_QUARTER = HOURS_PER_MONTH * 3
HOURS_PER_YEAR = 8760


def _periods(hourly: float) -> CostPeriods:
    return CostPeriods(
        hourly=hourly,
        monthly=hourly * HOURS_PER_MONTH,
        yearly=hourly * HOURS_PER_YEAR,
    )


def _format_rate(rate: float) -> str:
    # 0.74 -> "0.74", 3.0 -> "3"
    return f"{rate:g}"


def compute_costs(baseline: BaselineProfile, flavor: NodeFlavor, zones: int) -> CostBreakdown:
    """Return the cost breakdown for *baseline* on *flavor* across *zones*.

    ``total.hourly = hourlyRate × workers × zones``; monthly and yearly use
    fixed 730 / 8760 hour multipliers.  ``perNode`` is the flavor rate and
    ``perWorker`` is one worker replicated across every zone.  Zero workers
    give a zero-valued breakdown.
    """
    workers = baseline.workers
    total_nodes = workers * zones
    rate = flavor.hourlyRate
    total_hourly = rate * total_nodes

    return CostBreakdown(
        workers=workers,
        zones=zones,
        totalNodes=total_nodes,
        flavor=flavor.name,
        perNode=_periods(rate),
        perWorker=_periods(rate * zones),
        total=_periods(total_hourly),
        formula=f"{workers} workers × {zones} zones × ${_format_rate(rate)}/hr",
        calculation=(
            f"{workers} × {zones} × ${_format_rate(rate)} = ${total_hourly:.2f}/hr"
        ),
    )


def compare_scenarios(
    scenarios: Sequence[tuple[str, CostBreakdown]],
) -> ScenarioComparison | None:
    """Compare named cost breakdowns by monthly total.

    Returns ``None`` for an empty input.
    """
    if not scenarios:
        return None

    costs = [breakdown.total.monthly for _, breakdown in scenarios]
    min_cost = min(costs)
    max_cost = max(costs)
    avg_cost = sum(costs) / len(costs)

    entries = []
    for (name, _), cost in zip(scenarios, costs, strict=True):
        diff_from_min = cost - min_cost
        entries.append(
            ScenarioCostComparison(
                name=name,
                cost=cost,
                diffFromMin=diff_from_min,
                diffFromAvg=cost - avg_cost,
                percentDiffFromMin=(diff_from_min / min_cost * 100) if min_cost > 0 else 0.0,
                isCheapest=cost == min_cost,
                isMostExpensive=cost == max_cost,
            )
        )

    return ScenarioComparison(
        scenarios=entries,
        summary=ComparisonSummary(
            minCost=min_cost,
            maxCost=max_cost,
            avgCost=avg_cost,
            range=max_cost - min_cost,
            count=len(costs),
        ),
    )


def calculate_savings(current: CostBreakdown, alternative: CostBreakdown) -> SavingsAnalysis:
    """Monthly / yearly savings from switching *current* to *alternative*."""
    current_monthly = current.total.monthly
    alternative_monthly = alternative.total.monthly
    monthly_savings = current_monthly - alternative_monthly
    percent = (monthly_savings / current_monthly * 100) if current_monthly > 0 else 0.0
    is_cheaper = monthly_savings > 0

    if is_cheaper:
        recommendation = f"Switch to alternative to save ${abs(monthly_savings):.2f}/month"
    else:
        recommendation = "Current configuration is more cost-effective"

    return SavingsAnalysis(
        current=current_monthly,
        alternative=alternative_monthly,
        savings=SavingsAmounts(
            monthly=monthly_savings,
            yearly=monthly_savings * 12,
            percent=percent,
        ),
        isCheaper=is_cheaper,
        recommendation=recommendation,
    )


def estimate_cost_periods(hourly: float) -> ExtendedCostPeriods:
    return ExtendedCostPeriods(
        hourly=hourly,
        daily=hourly * HOURS_PER_DAY,
        weekly=hourly * HOURS_PER_WEEK,
        monthly=hourly * HOURS_PER_MONTH,
        quarterly=hourly * HOURS_PER_QUARTER,
        yearly=hourly * HOURS_PER_YEAR,
    )


def cost_per_resource(
    costs: CostBreakdown, baseline: BaselineProfile, zones: int
) -> ResourceUnitCosts:
    """Monthly cost per worker, node, vCPU, GB RAM and GB disk.

    A zero denominator yields ``0.0`` for that unit.
    """
    monthly = costs.total.monthly
    total_nodes = baseline.workers * zones

    def _per(units: float) -> float:
        return monthly / units if units else 0.0

    return ResourceUnitCosts(
        perWorker=_per(baseline.workers),
        perNode=_per(total_nodes),
        perVCPU=_per(baseline.vcpu * total_nodes),
        perGBRAM=_per(baseline.ram * total_nodes),
        perGBDisk=_per(baseline.disk * total_nodes),
    )


def format_currency(value: float) -> str:
    """``1234.5`` → ``"$1,234.50"``."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_large_number(value: float) -> str:
    """Abbreviate with ``K`` / ``M`` suffixes (two decimals)."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"{value / 1_000:.2f}K"
    return f"{value:.2f}"
