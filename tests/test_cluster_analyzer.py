"""Tests for live-cluster cost analysis."""

import datetime

import pytest

from roks_advisor.models.costing import ScoreLevel
from roks_advisor.services.cluster_analyzer import (
    aggregate,
    analyze_all_clusters,
    analyze_cluster,
    cluster_recommendations,
)

NOW = datetime.datetime(2024, 3, 1, tzinfo=datetime.UTC)


def _workers(flavor: str, count: int, zones: list[str], **extra) -> list[dict]:
    return [
        {"id": f"w{i}", "flavor": flavor, "location": zones[i % len(zones)], **extra}
        for i in range(count)
    ]


def _cluster(
    name: str = "prod-east", created: str | None = "2024-01-01T00:00:00Z", **extra
) -> dict:
    cluster = {"id": f"id-{name}", "name": name, "state": "normal", "location": "dal10"}
    if created is not None:
        cluster["createdDate"] = created
    cluster.update(extra)
    return cluster


class FakeSource:
    """In-memory stand-in for the IBM Cloud cluster API."""

    def __init__(
        self,
        clusters: dict[str, tuple[dict, list[dict]]],
        broken: set[str] | frozenset[str] = frozenset(),
    ):
        self.clusters = clusters
        self.broken = broken

    def list_clusters(self) -> list[dict]:
        return [{"id": cid, "name": c["name"]} for cid, (c, _) in self.clusters.items()]

    def get_cluster_details(self, cluster_id: str) -> dict:
        if cluster_id in self.broken:
            raise RuntimeError(f"boom {cluster_id}")
        cluster, workers = self.clusters[cluster_id]
        return {"cluster": cluster, "workers": workers}


# ---------------------------------------------------------------------------
# analyze_cluster
# ---------------------------------------------------------------------------


class TestAnalyzeCluster:
    def test_prices_by_normalized_flavor(self):
        analysis = analyze_cluster(
            _cluster(),
            _workers("b3c.16x64.encrypted", 3, ["dal10", "dal12", "dal13"]),
            now=NOW,
        )
        assert analysis.priced is True
        assert analysis.normalizedFlavor == "bx3d.16x64"
        assert analysis.workers == 3
        assert analysis.zones == 3
        assert analysis.zoneList == ["dal10", "dal12", "dal13"]
        assert analysis.costs.perWorker == pytest.approx(0.59)
        assert analysis.costs.hourly == pytest.approx(1.77)
        assert analysis.costs.monthly == pytest.approx(1.77 * 730)
        assert analysis.costs.yearly == pytest.approx(1.77 * 8760)
        assert analysis.costScore == ScoreLevel.GREEN
        assert (analysis.cpu, analysis.memory) == (16, 64)

    def test_nine_dense_workers_across_three_zones_is_amber(self):
        analysis = analyze_cluster(
            _cluster(), _workers("bx3d.16x64", 9, ["a", "b", "c"]), now=NOW
        )
        assert analysis.costs.hourly == pytest.approx(5.31)
        assert analysis.costScore == ScoreLevel.AMBER

    def test_uptime_and_cost_to_date(self):
        analysis = analyze_cluster(_cluster(), _workers("bx2.16x32", 3, ["a"]), now=NOW)
        assert analysis.uptimeDays == 60
        assert analysis.uptime == "2 months"
        assert analysis.createdDate == "2024-01-01"
        assert analysis.totalCostToDate == pytest.approx(analysis.costs.monthly * 2)

    def test_offset_without_colon(self):
        analysis = analyze_cluster(
            _cluster(created="2024-02-20T00:00:00+0000"), _workers("bx2.16x32", 1, ["a"]), now=NOW
        )
        assert analysis.uptimeDays == 10
        assert analysis.uptime == "10 days"

    def test_missing_creation_date(self):
        analysis = analyze_cluster(_cluster(created=None), _workers("bx2.16x32", 1, ["a"]), now=NOW)
        assert analysis.uptimeDays == 0
        assert analysis.totalCostToDate == 0
        assert analysis.createdDate is None
        assert any("Creation date" in w for w in analysis.warnings)

    def test_future_creation_date_clamps_to_zero(self):
        analysis = analyze_cluster(
            _cluster(created="2025-01-01T00:00:00Z"), _workers("bx2.16x32", 1, ["a"]), now=NOW
        )
        assert analysis.uptimeDays == 0

    def test_unknown_flavor_is_flagged_unpriced(self):
        analysis = analyze_cluster(_cluster(), _workers("zz9.1x1", 2, ["a"]), now=NOW)
        assert analysis.priced is False
        assert analysis.costs.hourly == 0
        assert analysis.costScore == ScoreLevel.GREEN
        assert analysis.recommendations[0].startswith("⚠️ Flavor not found in pricing table")
        assert any("zz9.1x1" in w for w in analysis.warnings)

    def test_cluster_without_workers(self):
        analysis = analyze_cluster(_cluster(), [], now=NOW)
        assert analysis.workers == 0
        assert analysis.zones == 0
        assert analysis.flavor == "unknown"
        assert analysis.priced is False
        assert analysis.costs.monthly == 0

    def test_resources_from_worker_record(self):
        workers = _workers("custom.flavor", 1, ["a"], cpu=4, memory=16, disk=100)
        analysis = analyze_cluster(_cluster(), workers, now=NOW)
        assert (analysis.cpu, analysis.memory, analysis.disk) == (4, 16, 100)

    def test_disk_from_flavor_name(self):
        analysis = analyze_cluster(
            _cluster(), _workers("bx2.16x32.300gb.encrypted", 1, ["a"]), now=NOW
        )
        assert analysis.disk == 300
        assert analysis.priced is True

    def test_location_falls_back_to_default(self):
        cluster = _cluster()
        del cluster["location"]
        analysis = analyze_cluster(
            cluster, _workers("bx2.16x32", 1, ["a"]), now=NOW, default_location="us-south"
        )
        assert analysis.location == "us-south"


class TestClusterRecommendations:
    def _recs(self, **overrides):
        params = {
            "name": "prod",
            "workers": 3,
            "normalized_flavor": "bx2.16x32",
            "zones": 2,
            "total_hourly": 0.81,
            "priced": True,
        }
        params.update(overrides)
        return cluster_recommendations(**params)

    def test_optimal(self):
        assert self._recs() == ["✅ Configuration looks optimal"]

    def test_dev_cluster_on_three_zones(self):
        recs = self._recs(name="team-dev", zones=3)
        assert recs == [
            "💡 Dev/test environment with 3 zones - Consider using 1-2 zones to save costs"
        ]

    def test_high_cost_and_worker_count(self):
        recs = self._recs(workers=12, total_hourly=12.0, normalized_flavor="mx2.16x128")
        assert recs == [
            "⚠️ High cost detected - Consider downsizing or using fewer zones",
            "💡 Using memory-dense flavor - Verify if high memory is needed",
            "⚠️ High worker count - Review if all workers are necessary",
        ]

    def test_downsize_suggestion(self):
        recs = self._recs(normalized_flavor="bx3d.16x64", workers=3, zones=3)
        assert recs[-1] == "💰 Consider bx2.16x32 instead - Save $701/month"

    def test_no_downsize_for_single_zone(self):
        recs = self._recs(normalized_flavor="bx3d.16x64", zones=1)
        assert not any(r.startswith("💰") for r in recs)


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


class TestAnalyzeAllClusters:
    def test_failed_cluster_is_excluded_from_totals(self):
        source = FakeSource(
            {
                "c1": (_cluster("alpha"), _workers("bx2.16x32", 3, ["a", "b"])),
                "c2": (_cluster("beta"), _workers("bx3d.16x64", 9, ["a", "b", "c"])),
                "c3": (_cluster("gamma"), _workers("bx2.16x32", 3, ["a"])),
            },
            broken={"c3"},
        )
        report = analyze_all_clusters(source, max_workers=2, now=NOW, default_location="x")

        assert report.totalClusters == 2
        assert [c.name for c in report.clusters] == ["alpha", "beta"]
        assert [f.id for f in report.failedClusters] == ["c3"]
        assert report.failedClusters[0].error == "boom c3"
        assert report.totalWorkers == 12
        expected = sum(c.costs.monthly for c in report.clusters)
        assert report.totalMonthlyCost == pytest.approx(expected)
        assert report.scoreCounts == {"GREEN": 1, "AMBER": 1, "RED": 0}
        assert report.generatedAt == NOW.isoformat()

    def test_listing_failure_propagates(self):
        class Broken:
            def list_clusters(self):
                raise RuntimeError("API down")

            def get_cluster_details(self, cluster_id):
                raise AssertionError("not reached")

        with pytest.raises(RuntimeError, match="API down"):
            analyze_all_clusters(Broken(), now=NOW, default_location="x")

    def test_no_clusters(self):
        report = analyze_all_clusters(FakeSource({}), now=NOW, default_location="x")
        assert report.totalClusters == 0
        assert report.clusters == []
        assert report.scoreCounts == {"GREEN": 0, "AMBER": 0, "RED": 0}

    def test_defaults_come_from_settings(self, monkeypatch):
        from roks_advisor.settings import settings

        monkeypatch.setattr(settings, "ibm_cloud_region", "eu-de")
        cluster = _cluster("nowhere")
        del cluster["location"]
        source = FakeSource({"c1": (cluster, _workers("bx2.16x32", 1, ["a"]))})
        report = analyze_all_clusters(source, now=NOW)
        assert report.clusters[0].location == "eu-de"


class TestAggregate:
    def test_counts_unpriced(self):
        priced = analyze_cluster(_cluster("a"), _workers("bx2.16x32", 1, ["a"]), now=NOW)
        unpriced = analyze_cluster(_cluster("b"), _workers("zz9.1x1", 1, ["a"]), now=NOW)
        report = aggregate([priced, unpriced], now=NOW)
        assert report.unpricedClusters == 1
        assert report.totalClusters == 2
        assert report.failedClusters == []
