"""Tests for the roks-advisor MCP server tools."""

import json
from unittest.mock import patch

import pytest

from roks_advisor.mcp_server import mcp
from roks_advisor.models.cluster import ClusterAnalysisReport


async def _call(tool: str, arguments: dict):
    content, _ = await mcp.call_tool(tool, arguments)
    return json.loads(content[0].text)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class TestMcpCatalog:
    @pytest.mark.anyio()
    async def test_list_baselines(self):
        data = await _call("list_baselines", {})
        assert len(data) == 6
        assert data[0]["id"] == "config-1"

    @pytest.mark.anyio()
    async def test_list_flavors_by_series(self):
        data = await _call("list_flavors", {"series": "bx3d"})
        assert data
        assert {f["series"] for f in data} == {"bx3d"}

    @pytest.mark.anyio()
    async def test_recommend_flavors(self):
        data = await _call("recommend_flavors", {"baseline_id": "config-1"})
        assert [s["flavor"]["id"] for s in data] == ["bx2-16x32", "bx3d-16x80"]

    @pytest.mark.anyio()
    async def test_recommend_unknown_baseline(self):
        data = await _call("recommend_flavors", {"baseline_id": "config-99"})
        assert data == {"error": "Unknown baseline 'config-99'"}


# ---------------------------------------------------------------------------
# estimate_cost
# ---------------------------------------------------------------------------


class TestMcpEstimateCost:
    @pytest.mark.anyio()
    async def test_returns_estimate(self):
        data = await _call(
            "estimate_cost", {"baseline_id": "config-1", "flavor_id": "bx2-16x32", "zones": 2}
        )
        assert data["costs"]["total"]["monthly"] == pytest.approx(3241.20)
        assert data["costScore"]["score"] == "GREEN"
        assert data["periods"]["daily"] == pytest.approx(4.44 * 24)
        assert data["perResource"]["perNode"] == pytest.approx(3241.20 / 6)

    @pytest.mark.anyio()
    async def test_zones_default_to_one(self):
        data = await _call("estimate_cost", {"baseline_id": "config-1", "flavor_id": "bx2-16x32"})
        assert data["costs"]["total"]["monthly"] == pytest.approx(1620.60)

    @pytest.mark.anyio()
    async def test_invalid_zones(self):
        data = await _call(
            "estimate_cost", {"baseline_id": "config-1", "flavor_id": "bx2-16x32", "zones": 7}
        )
        assert "zones must be one of 1, 2, 3" in data["error"]

    @pytest.mark.anyio()
    async def test_unknown_flavor(self):
        data = await _call("estimate_cost", {"baseline_id": "config-1", "flavor_id": "nope"})
        assert data == {"error": "Unknown flavor 'nope'"}


# ---------------------------------------------------------------------------
# analyze_clusters
# ---------------------------------------------------------------------------


class TestMcpAnalyzeClusters:
    @pytest.mark.anyio()
    async def test_not_configured(self):
        data = await _call("analyze_clusters", {})
        assert data["status"] == "not_configured"
        assert "IBM_CLOUD_API_KEY" in data["error"]

    @pytest.mark.anyio()
    @pytest.mark.usefixtures("cloud_configured")
    async def test_returns_report(self):
        report = ClusterAnalysisReport(totalClusters=0, generatedAt="2024-03-01T00:00:00+00:00")
        with patch("roks_advisor.mcp_server.analyze_all_clusters", return_value=report):
            data = await _call("analyze_clusters", {})
        assert data["status"] == "ok"
        assert data["totalClusters"] == 0
        assert data["scoreCounts"] == {"GREEN": 0, "AMBER": 0, "RED": 0}
