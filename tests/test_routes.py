"""Tests for the roks-advisor FastAPI routes."""

import datetime
import json
from unittest.mock import patch

import pytest

from roks_advisor.services.cluster_analyzer import aggregate, analyze_cluster

NOW = datetime.datetime(2024, 3, 1, tzinfo=datetime.UTC)


def _report():
    workers = [{"flavor": "bx2.16x32", "location": z} for z in ("dal10", "dal12")]
    analysis = analyze_cluster(
        {"id": "c1", "name": "prod-east", "createdDate": "2024-01-01T00:00:00Z"},
        workers,
        now=NOW,
    )
    return aggregate([analysis], now=NOW)


def _scenario_body(**overrides) -> dict:
    body = {"name": "Pilot", "baselineId": "config-1", "flavorId": "bx2-16x32", "zones": 2}
    body.update(overrides)
    return body


# ---------------------------------------------------------------------------
# Status / catalog
# ---------------------------------------------------------------------------


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["cloudConfigured"] is False
        assert data["deployConfigured"] is False
        assert data["scoringVersion"] == "v1"

    @pytest.mark.usefixtures("cloud_configured", "github_configured")
    def test_health_reports_integrations(self, client):
        data = client.get("/health").json()
        assert data["cloudConfigured"] is True
        assert data["deployConfigured"] is True


class TestCatalog:
    def test_list_baselines(self, client):
        resp = client.get("/api/baselines")
        assert resp.status_code == 200
        assert [b["id"] for b in resp.json()][:2] == ["config-1", "config-2"]
        assert len(resp.json()) == 6

    def test_get_baseline(self, client):
        assert client.get("/api/baselines/config-3").json()["id"] == "config-3"

    def test_unknown_baseline(self, client):
        resp = client.get("/api/baselines/config-99")
        assert resp.status_code == 404
        assert "config-99" in resp.json()["error"]

    def test_list_flavors(self, client):
        assert len(client.get("/api/flavors").json()) == 42
        bx2 = client.get("/api/flavors", params={"series": "bx2"}).json()
        assert len(bx2) == 22
        assert {f["series"] for f in bx2} == {"bx2"}

    def test_get_flavor(self, client):
        assert client.get("/api/flavors/bx2-16x32").json()["vcpu"] == 16
        assert client.get("/api/flavors/zz9-1x1").status_code == 404

    def test_get_flavor_by_display_name(self, client):
        resp = client.get("/api/flavors/bx2.16x32")
        assert resp.status_code == 200
        assert resp.json()["id"] == "bx2-16x32"

    def test_validate_flavor(self, client):
        resp = client.get(
            "/api/flavors/validate", params={"baselineId": "config-1", "flavorId": "bx2-8x32"}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["valid"] is False
        assert [i["field"] for i in data["issues"]] == ["vcpu"]

    def test_validate_flavor_unknown(self, client):
        resp = client.get(
            "/api/flavors/validate", params={"baselineId": "config-1", "flavorId": "nope"}
        )
        assert resp.status_code == 404

    def test_validate_sizing(self, client):
        resp = client.post(
            "/api/baselines/config-1/validate",
            json={"workers": 3, "vcpu": 16, "ram": 32, "disk": 50},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["valid"] is True
        assert [i["field"] for i in data["issues"]] == ["disk"]

    def test_validate_sizing_unknown_baseline(self, client):
        resp = client.post(
            "/api/baselines/nope/validate", json={"workers": 1, "vcpu": 1, "ram": 1, "disk": 1}
        )
        assert resp.status_code == 404

    def test_recommend_flavors(self, client):
        resp = client.get("/api/flavors/recommend", params={"baselineId": "config-1"})
        assert resp.status_code == 200
        assert [s["flavor"]["id"] for s in resp.json()] == ["bx2-16x32", "bx3d-16x80"]

    def test_recommend_unknown_baseline(self, client):
        resp = client.get("/api/flavors/recommend", params={"baselineId": "nope"})
        assert resp.status_code == 404

    def test_recommend_requires_baseline(self, client):
        assert client.get("/api/flavors/recommend").status_code == 422


# ---------------------------------------------------------------------------
# Costing
# ---------------------------------------------------------------------------


class TestEstimate:
    def test_estimate(self, client):
        resp = client.post(
            "/api/estimate", json={"baselineId": "config-1", "flavorId": "bx2-16x32", "zones": 2}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["costs"]["total"]["monthly"] == pytest.approx(3241.20)
        assert data["costScore"]["score"] == "GREEN"
        assert [r["id"] for r in data["risks"]] == ["insufficient-disk"]
        assert data["periods"]["daily"] == pytest.approx(4.44 * 24)
        assert data["perResource"]["perNode"] == pytest.approx(3241.20 / 6)

    def test_invalid_zones(self, client):
        resp = client.post(
            "/api/estimate", json={"baselineId": "config-1", "flavorId": "bx2-16x32", "zones": 4}
        )
        assert resp.status_code == 400
        assert "zones" in resp.json()["error"]

    def test_unknown_flavor(self, client):
        resp = client.post("/api/estimate", json={"baselineId": "config-1", "flavorId": "nope"})
        assert resp.status_code == 404

    def test_missing_fields(self, client):
        assert client.post("/api/estimate", json={"baselineId": "config-1"}).status_code == 422


class TestCompare:
    def test_compare(self, client):
        resp = client.post(
            "/api/compare",
            json=[
                {"baselineId": "config-1", "flavorId": "bx2-16x32", "zones": 1},
                {"baselineId": "config-1", "flavorId": "bx2-16x32", "zones": 2, "name": "HA"},
            ],
        )
        assert resp.status_code == 200
        data = resp.json()
        names = [s["name"] for s in data["comparison"]["scenarios"]]
        assert names == ["config-1 / bx2-16x32 / 1z", "HA"]
        assert data["comparison"]["scenarios"][0]["isCheapest"] is True
        assert data["comparison"]["scenarios"][1]["diffFromMin"] == pytest.approx(1620.60)
        assert [r["name"] for r in data["results"]] == names
        assert data["savings"]["alternative"] == "config-1 / bx2-16x32 / 1z"
        assert data["savings"]["isCheaper"] is False

    def test_empty_list(self, client):
        assert client.post("/api/compare", json=[]).status_code == 400

    def test_one_bad_entry_fails_the_request(self, client):
        resp = client.post(
            "/api/compare",
            json=[
                {"baselineId": "config-1", "flavorId": "bx2-16x32"},
                {"baselineId": "config-1", "flavorId": "bx2-16x32", "zones": 0},
            ],
        )
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_create_and_get(self, client):
        resp = client.post("/api/scenarios", json=_scenario_body(notes="first pass"))
        assert resp.status_code == 200
        scenario_id = resp.json()["scenarioId"]

        scenario = client.get(f"/api/scenarios/{scenario_id}").json()
        assert scenario["name"] == "Pilot"
        assert scenario["notes"] == "first pass"
        assert scenario["baseline"]["id"] == "config-1"
        assert scenario["results"]["costs"]["total"]["monthly"] == pytest.approx(3241.20)

    def test_create_rejects_bad_inputs(self, client):
        assert client.post("/api/scenarios", json=_scenario_body(zones=5)).status_code == 400
        assert client.post("/api/scenarios", json=_scenario_body(flavorId="x")).status_code == 404

    def test_failed_save_is_500(self, client, store):
        with patch.object(type(store), "_write", side_effect=OSError("disk full")):
            resp = client.post("/api/scenarios", json=_scenario_body())
        assert resp.status_code == 500
        assert resp.json()["success"] is False

    def test_list_and_filter(self, client):
        client.post("/api/scenarios", json=_scenario_body(name="Small"))
        client.post(
            "/api/scenarios",
            json=_scenario_body(name="Huge", flavorId="bx2-128x512", zones=3),
        )

        assert len(client.get("/api/scenarios").json()) == 2
        red = client.get("/api/scenarios", params={"score": "RED"}).json()
        assert [s["name"] for s in red] == ["Huge"]
        found = client.get("/api/scenarios", params={"q": "small"}).json()
        assert [s["name"] for s in found] == ["Small"]

    def test_date_filter(self, client):
        client.post("/api/scenarios", json=_scenario_body())
        now = datetime.datetime.now(datetime.UTC)
        past = (now - datetime.timedelta(days=1)).isoformat()
        future = (now + datetime.timedelta(days=1)).isoformat()

        assert len(client.get("/api/scenarios", params={"since": past}).json()) == 1
        assert client.get("/api/scenarios", params={"since": future}).json() == []
        assert client.get("/api/scenarios", params={"until": past}).json() == []

    def test_delete_all(self, client):
        client.post("/api/scenarios", json=_scenario_body(name="A"))
        client.post("/api/scenarios", json=_scenario_body(name="B"))
        assert client.delete("/api/scenarios").status_code == 200
        assert client.get("/api/scenarios").json() == []

    def test_invalid_score_filter(self, client):
        assert client.get("/api/scenarios", params={"score": "BLUE"}).status_code == 422

    def test_update_keeps_creation_time(self, client):
        scenario_id = client.post("/api/scenarios", json=_scenario_body()).json()["scenarioId"]
        before = client.get(f"/api/scenarios/{scenario_id}").json()

        resp = client.put(f"/api/scenarios/{scenario_id}", json=_scenario_body(zones=3))
        assert resp.status_code == 200
        assert resp.json()["scenarioId"] == scenario_id

        after = client.get(f"/api/scenarios/{scenario_id}").json()
        assert after["zones"] == 3
        assert after["createdAt"] == before["createdAt"]
        assert len(client.get("/api/scenarios").json()) == 1

    def test_update_unknown(self, client):
        assert client.put("/api/scenarios/nope", json=_scenario_body()).status_code == 404

    def test_delete(self, client):
        scenario_id = client.post("/api/scenarios", json=_scenario_body()).json()["scenarioId"]
        assert client.delete(f"/api/scenarios/{scenario_id}").status_code == 200
        assert client.get(f"/api/scenarios/{scenario_id}").status_code == 404
        assert client.delete(f"/api/scenarios/{scenario_id}").status_code == 404

    def test_stats(self, client):
        client.post("/api/scenarios", json=_scenario_body())
        stats = client.get("/api/scenarios/stats").json()
        assert stats["totalScenarios"] == 1
        assert stats["maxScenarios"] == 100

    def test_export_and_import(self, client):
        first = client.post("/api/scenarios", json=_scenario_body(name="A")).json()["scenarioId"]
        client.post("/api/scenarios", json=_scenario_body(name="B"))

        resp = client.get("/api/scenarios/export", params={"ids": first})
        assert resp.status_code == 200
        assert "roks-scenarios.json" in resp.headers["content-disposition"]
        exported = resp.json()
        assert [s["name"] for s in exported["scenarios"]] == ["A"]

        resp = client.post("/api/scenarios/import", content=json.dumps(exported))
        assert resp.status_code == 200
        assert resp.json()["importedCount"] == 1
        assert len(client.get("/api/scenarios").json()) == 3

    def test_import_rejects_non_utf8_body(self, client):
        resp = client.post("/api/scenarios/import", content=b"\xff\xfe{bad")
        assert resp.status_code == 400
        assert "UTF-8" in resp.json()["error"]

    def test_import_rejects_garbage(self, client):
        resp = client.post("/api/scenarios/import", content="not json")
        assert resp.status_code == 400
        assert resp.json()["success"] is False


# ---------------------------------------------------------------------------
# Clusters
# ---------------------------------------------------------------------------


class TestClustersNotConfigured:
    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("get", "/api/clusters/list"),
            ("post", "/api/clusters/analyze"),
            ("post", "/api/clusters/analyze-and-export"),
        ],
    )
    def test_returns_503(self, client, method, path):
        resp = getattr(client, method)(path)
        assert resp.status_code == 503
        assert resp.json()["status"] == "not_configured"
        assert "IBM_CLOUD_API_KEY" in resp.json()["error"]


@pytest.mark.usefixtures("cloud_configured")
class TestClusters:
    def test_list(self, client):
        clusters = [{"id": "c1", "name": "prod-east"}]
        with patch("roks_advisor.ibm_api.list_clusters", return_value=clusters):
            resp = client.get("/api/clusters/list")
        assert resp.status_code == 200
        assert resp.json() == {"clusters": clusters, "count": 1}

    def test_analyze(self, client):
        with patch("roks_advisor.routes.clusters.analyze_all_clusters", return_value=_report()):
            resp = client.post("/api/clusters/analyze")
        assert resp.status_code == 200
        data = resp.json()
        assert data["totalClusters"] == 1
        assert data["clusters"][0]["name"] == "prod-east"

    def test_analyze_failure_is_500(self, client):
        with patch(
            "roks_advisor.routes.clusters.analyze_all_clusters",
            side_effect=RuntimeError("API down"),
        ):
            resp = client.post("/api/clusters/analyze")
        assert resp.status_code == 500
        assert resp.json()["error"] == "API down"

    def test_analyze_and_export_then_download(self, client):
        with patch("roks_advisor.routes.clusters.analyze_all_clusters", return_value=_report()):
            resp = client.post("/api/clusters/analyze-and-export")
        assert resp.status_code == 200
        data = resp.json()
        assert data["analysis"]["totalWorkers"] == 2
        url = data["report"]["url"]
        assert url.startswith("/downloads/ibm-cloud-cluster-analysis-")

        download = client.get(url)
        assert download.status_code == 200
        assert download.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert download.content[:2] == b"PK"


class TestReportExport:
    def test_export_posted_report(self, client):
        resp = client.post("/api/clusters/export", json=_report().model_dump(mode="json"))
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert client.get(resp.json()["url"]).status_code == 200

    def test_download_missing(self, client):
        resp = client.get("/downloads/ibm-cloud-cluster-analysis-1999-01-01.xlsx")
        assert resp.status_code == 404

    def test_download_rejects_other_files(self, client):
        assert client.get("/downloads/scenarios.json").status_code == 400

    def test_download_route_is_in_openapi_schema(self, client):
        resp = client.get("/openapi.json")
        assert resp.status_code == 200
        assert "/downloads/{filename}" in resp.json()["paths"]


# ---------------------------------------------------------------------------
# Deploy
# ---------------------------------------------------------------------------


class TestDeploy:
    BODY = {"clusterEnv": "A=1", "masEnv": "B=2", "branchName": "config/test"}

    def test_not_configured(self, client):
        resp = client.post("/api/deploy", json=self.BODY)
        assert resp.status_code == 503
        assert resp.json()["status"] == "not_configured"

    @pytest.mark.usefixtures("github_configured")
    def test_missing_fields(self, client):
        resp = client.post("/api/deploy", json={**self.BODY, "branchName": ""})
        assert resp.status_code == 400

    @pytest.mark.usefixtures("github_configured")
    def test_success(self, client):
        from roks_advisor.services.deploy_publisher import DeployResult

        result = DeployResult(
            success=True,
            message="Configuration deployed successfully",
            branch="config/test",
            repoUrl="https://github.com/acme/roks-config/tree/config/test",
            prUrl="https://github.com/acme/roks-config/pull/1",
        )
        with patch(
            "roks_advisor.services.deploy_publisher.publish_configuration", return_value=result
        ):
            resp = client.post("/api/deploy", json=self.BODY)
        assert resp.status_code == 200
        assert resp.json()["prUrl"].endswith("/pull/1")
