"""Cost analysis of live clusters (cloud mode).

Cloud mode applies its own rules, separate from the scenario pipeline:

* totals use the worker count only (``price × workers``); the worker list
  already spans every zone, so there is no zone multiplier;
* prices come from :mod:`roks_advisor.catalog.cluster_pricing`, looked up by
  raw flavor name first, then by normalised name;
* an unknown flavor costs ``0`` and the analysis is flagged ``priced=False``
  with a data-quality warning;
* the score is :func:`~roks_advisor.scoring.cost_score.score_cluster_cost`
  over total hourly cost.

Batch analysis fetches cluster details concurrently with a bounded thread
pool.  A cluster whose fetch or analysis fails is logged, reported in
``failedClusters`` and left out of every total.
"""

from __future__ import annotations

import datetime
import logging
import math
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Protocol

from roks_advisor import ibm_api
from roks_advisor.catalog.cluster_pricing import (
    UNKNOWN_FLAVOR,
    cluster_prices,
    lookup_hourly_price,
    normalize_flavor,
)
from roks_advisor.models.cluster import (
    ClusterAnalysis,
    ClusterAnalysisReport,
    ClusterCosts,
    FailedCluster,
)
from roks_advisor.models.costing import ScoreLevel
from roks_advisor.scoring.cost_score import score_cluster_cost
from roks_advisor.services.cost_calculator import HOURS_PER_MONTH, HOURS_PER_YEAR
from roks_advisor.settings import settings

logger = logging.getLogger(__name__)

HIGH_HOURLY_COST = 5.0
HIGH_WORKER_COUNT = 9
MEMORY_DENSE_FAMILIES = ("mx2", "bx3d")
DEV_NAME_MARKERS = ("dev", "test")

# Suggested swap: (current normalised flavor, cheaper alternative)
DOWNSIZE_SUGGESTION = ("bx3d.16x64", "bx2.16x32")

_CPU_RAM_RE = re.compile(r"(\d+)x(\d+)")
_DISK_RE = re.compile(r"(\d+)gb")
_TZ_NO_COLON_RE = re.compile(r"([+-]\d{2})(\d{2})$")


class ClusterSource(Protocol):
    """Anything that can list clusters and fetch their details."""

    def list_clusters(self) -> list[dict]: ...

    def get_cluster_details(self, cluster_id: str) -> dict: ...


# ---------------------------------------------------------------------------
# Field extraction helpers
# ---------------------------------------------------------------------------


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _parse_timestamp(value: Any) -> datetime.datetime | None:
    """Parse an ISO-8601 timestamp (``Z`` or ``+0000`` offsets accepted)."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _TZ_NO_COLON_RE.sub(r"\1:\2", text)
    try:
        parsed = datetime.datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed


def _format_uptime(days: int) -> str:
    if days < 30:
        return f"{days} days"
    return f"{days // 30} months"


def _zone_list(workers: list[dict]) -> list[str]:
    zones: list[str] = []
    for worker in workers:
        zone = (
            worker.get("location")
            or worker.get("zone")
            or worker.get("availabilityZone")
            or UNKNOWN_FLAVOR
        )
        if zone not in zones:
            zones.append(zone)
    return zones


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


def cluster_recommendations(
    *,
    name: str,
    workers: int,
    normalized_flavor: str,
    zones: int,
    total_hourly: float,
    priced: bool,
) -> list[str]:
    """Return the cluster recommendation strings, never empty."""
    recs: list[str] = []

    if not priced:
        recs.append("⚠️ Flavor not found in pricing table - costs are reported as $0.00")
    if total_hourly > HIGH_HOURLY_COST:
        recs.append("⚠️ High cost detected - Consider downsizing or using fewer zones")
    if zones == 3 and any(marker in name for marker in DEV_NAME_MARKERS):
        recs.append(
            "💡 Dev/test environment with 3 zones - Consider using 1-2 zones to save costs"
        )
    if any(family in normalized_flavor for family in MEMORY_DENSE_FAMILIES):
        recs.append("💡 Using memory-dense flavor - Verify if high memory is needed")
    if workers > HIGH_WORKER_COUNT:
        recs.append("⚠️ High worker count - Review if all workers are necessary")

    current, alternative = DOWNSIZE_SUGGESTION
    if normalized_flavor == current and zones > 1:
        prices = cluster_prices()
        savings = (prices[current] - prices[alternative]) * workers * HOURS_PER_MONTH
        recs.append(f"💰 Consider {alternative} instead - Save ${savings:.0f}/month")

    if not recs:
        recs.append("✅ Configuration looks optimal")
    return recs


# ---------------------------------------------------------------------------
# Single cluster
# ---------------------------------------------------------------------------


def analyze_cluster(
    cluster: dict,
    workers: list[dict],
    *,
    now: datetime.datetime | None = None,
    default_location: str = "unknown",
) -> ClusterAnalysis:
    """Analyse one cluster from its record and worker list."""
    now = now or datetime.datetime.now(datetime.UTC)
    warnings: list[str] = []

    worker_count = len(workers)
    first = workers[0] if workers else {}
    raw_flavor = (
        first.get("flavor")
        or first.get("machineType")
        or first.get("instanceType")
        or UNKNOWN_FLAVOR
    )
    zone_list = _zone_list(workers)
    zone_count = len(zone_list)
    if not workers:
        warnings.append("Cluster reports no workers")

    cpu = _as_int(first.get("cpu"))
    memory = _as_int(first.get("memory"))
    disk = _as_int(first.get("disk") or first.get("storage"))
    if not cpu and raw_flavor != UNKNOWN_FLAVOR:
        match = _CPU_RAM_RE.search(raw_flavor)
        if match:
            cpu, memory = int(match.group(1)), int(match.group(2))
    if not disk and "gb" in raw_flavor:
        match = _DISK_RE.search(raw_flavor)
        if match:
            disk = int(match.group(1))

    normalized = normalize_flavor(raw_flavor)
    price = lookup_hourly_price(raw_flavor, normalized)
    priced = price is not None
    hourly_price = price if price is not None else 0.0
    if not priced:
        warnings.append(f"No price found for flavor '{raw_flavor}'; cost reported as $0.00")

    total_hourly = hourly_price * worker_count
    total_monthly = total_hourly * HOURS_PER_MONTH
    total_yearly = total_hourly * HOURS_PER_YEAR

    created = _parse_timestamp(cluster.get("createdDate") or cluster.get("created"))
    if created is None:
        warnings.append("Creation date missing or unreadable; uptime assumed to be 0 days")
        uptime_days = 0
    else:
        uptime_days = max(math.floor((now - created).total_seconds() / 86400), 0)

    name = cluster.get("name") or cluster.get("id") or ""
    return ClusterAnalysis(
        id=str(cluster.get("id", "")),
        name=name,
        state=cluster.get("state") or "unknown",
        createdDate=created.astimezone(datetime.UTC).date().isoformat() if created else None,
        uptime=_format_uptime(uptime_days),
        uptimeDays=uptime_days,
        workers=worker_count,
        flavor=raw_flavor,
        normalizedFlavor=normalized,
        cpu=cpu,
        memory=memory,
        disk=disk,
        zones=zone_count,
        zoneList=zone_list,
        location=cluster.get("location") or cluster.get("region") or default_location,
        resourceGroup=cluster.get("resourceGroup") or "default",
        costs=ClusterCosts(
            hourly=total_hourly,
            monthly=total_monthly,
            yearly=total_yearly,
            perWorker=hourly_price,
        ),
        costScore=score_cluster_cost(total_hourly, zone_count),
        recommendations=cluster_recommendations(
            name=name,
            workers=worker_count,
            normalized_flavor=normalized,
            zones=zone_count,
            total_hourly=total_hourly,
            priced=priced,
        ),
        totalCostToDate=total_monthly * (uptime_days / 30),
        priced=priced,
        warnings=warnings,
    )


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


def aggregate(
    analyses: list[ClusterAnalysis],
    failed: list[FailedCluster] | None = None,
    *,
    now: datetime.datetime | None = None,
) -> ClusterAnalysisReport:
    """Build the aggregate report over successfully analysed clusters."""
    now = now or datetime.datetime.now(datetime.UTC)
    score_counts = {level.value: 0 for level in ScoreLevel}
    for analysis in analyses:
        score_counts[analysis.costScore.value] += 1

    return ClusterAnalysisReport(
        totalClusters=len(analyses),
        totalWorkers=sum(a.workers for a in analyses),
        totalMonthlyCost=sum(a.costs.monthly for a in analyses),
        totalYearlyCost=sum(a.costs.yearly for a in analyses),
        totalCostToDate=sum(a.totalCostToDate for a in analyses),
        scoreCounts=score_counts,
        unpricedClusters=sum(1 for a in analyses if not a.priced),
        clusters=analyses,
        failedClusters=failed or [],
        generatedAt=now.isoformat(),
    )


def analyze_all_clusters(
    source: ClusterSource | None = None,
    *,
    max_workers: int | None = None,
    now: datetime.datetime | None = None,
    default_location: str | None = None,
) -> ClusterAnalysisReport:
    """List every cluster, analyse each one and aggregate the results.

    Listing failures propagate.  Per-cluster failures do not: they are
    logged and collected in ``failedClusters``.
    """
    if source is None:
        source = ibm_api  # type: ignore[assignment]
    if default_location is None:
        default_location = settings.ibm_cloud_region
    if max_workers is None:
        max_workers = settings.cluster_fetch_workers

    now = now or datetime.datetime.now(datetime.UTC)
    clusters = source.list_clusters()
    if not clusters:
        return aggregate([], now=now)

    def _analyze_one(summary: dict) -> ClusterAnalysis | FailedCluster:
        cluster_id = str(summary.get("id", ""))
        try:
            details = source.get_cluster_details(cluster_id)
            return analyze_cluster(
                details.get("cluster") or summary,
                details.get("workers") or [],
                now=now,
                default_location=default_location,
            )
        except Exception as exc:
            logger.warning("Skipping cluster %s: %s", cluster_id, exc)
            return FailedCluster(id=cluster_id, name=summary.get("name"), error=str(exc))

    with ThreadPoolExecutor(max_workers=max(1, min(len(clusters), max_workers))) as pool:
        outcomes = list(pool.map(_analyze_one, clusters))

    analyses = [o for o in outcomes if isinstance(o, ClusterAnalysis)]
    failed = [o for o in outcomes if isinstance(o, FailedCluster)]
    if failed:
        logger.warning("%d of %d clusters could not be analysed", len(failed), len(clusters))
    return aggregate(analyses, failed, now=now)
