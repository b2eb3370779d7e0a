"""MCP server for the ROKS Advisor.

Exposes the catalog, the costing pipeline and live-cluster analysis as MCP
tools so that AI agents can size and price OpenShift deployments directly.

Run with:
    roks-advisor mcp            # stdio transport (default)
    roks-advisor mcp --sse      # SSE transport on port 8080

Or add to your MCP client config:
    {
      "mcpServers": {
        "roks-advisor": {
          "command": "roks-advisor",
          "args": ["mcp"]
        }
      }
    }
"""

import json
import logging
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from roks_advisor import ibm_api
from roks_advisor.catalog.baselines import get_baseline, list_baselines as _list_baselines
from roks_advisor.catalog.flavors import (
    list_flavors as _list_flavors,
    list_flavors_by_series,
    recommend_flavors as _recommend_flavors,
)
from roks_advisor.services.advisor import InputContractError, estimate
from roks_advisor.services.cluster_analyzer import analyze_all_clusters

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "roks-advisor",
    instructions=(
        "Cost and risk tools for Red Hat OpenShift on IBM Cloud (ROKS). "
        "Use list_baselines and list_flavors to discover sizing profiles and "
        "worker node flavors, then estimate_cost to price a deployment across "
        "1-3 availability zones.  analyze_clusters requires IBM_CLOUD_API_KEY."
    ),
)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool()
def list_baselines() -> str:
    """List the predefined baseline sizing profiles.

    Each profile gives the worker count and per-worker vCPU / RAM / disk a
    given set of components needs.  Use the ``id`` with ``estimate_cost``.
    """
    return json.dumps([b.model_dump(mode="json") for b in _list_baselines()], indent=2)


@mcp.tool()
def list_flavors(
    series: Annotated[
        str | None, Field(description="Optional series filter (e.g. 'bx2' or 'bx3d').")
    ] = None,
) -> str:
    """List worker node flavors with their capacity and hourly rate."""
    flavors = list_flavors_by_series(series) if series else _list_flavors()
    return json.dumps([f.model_dump(mode="json") for f in flavors], indent=2)


@mcp.tool()
def recommend_flavors(
    baseline_id: Annotated[str, Field(description="Baseline profile ID (e.g. 'config-1').")],
) -> str:
    """Suggest flavors that satisfy a baseline's per-worker requirements.

    Returns up to three suggestions: the closest fit, a denser option and
    the cheapest suitable flavor.
    """
    baseline = get_baseline(baseline_id)
    if baseline is None:
        return json.dumps({"error": f"Unknown baseline '{baseline_id}'"})
    suggestions = _recommend_flavors(baseline)
    return json.dumps([s.model_dump(mode="json") for s in suggestions], indent=2)


@mcp.tool()
def estimate_cost(
    baseline_id: Annotated[str, Field(description="Baseline profile ID.")],
    flavor_id: Annotated[str, Field(description="Worker node flavor ID (e.g. 'bx2-16x64').")],
    zones: Annotated[int, Field(description="Number of availability zones (1, 2 or 3).")] = 1,
) -> str:
    """Estimate the cost of a deployment and assess it.

    Returns the cost breakdown (hourly/monthly/yearly totals plus a
    daily, weekly and quarterly projection), the monthly cost per worker,
    vCPU and GB, the GREEN/AMBER/RED cost score, risks and prioritised
    recommendations.
    """
    try:
        result = estimate(baseline_id, flavor_id, zones)
    except (InputContractError, LookupError) as exc:
        return json.dumps({"error": str(exc)})
    return json.dumps(result.model_dump(mode="json"), indent=2)


@mcp.tool()
def analyze_clusters() -> str:
    """Analyse the cost of every cluster in the configured IBM Cloud account.

    Returns per-cluster costs, scores and recommendations plus account
    totals.  Clusters that fail to load are listed in ``failedClusters``.
    """
    if not ibm_api.is_configured():
        return json.dumps({"status": "not_configured", "error": ibm_api.NOT_CONFIGURED_MESSAGE})
    report = analyze_all_clusters()
    return json.dumps(report.model_dump(mode="json"), indent=2)
