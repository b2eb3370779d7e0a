"""Tests for publishing a configuration to GitHub (HTTP mocked)."""

import base64
from unittest.mock import MagicMock, patch

import pytest
import requests

from roks_advisor.services.deploy_publisher import (
    DeployNotConfiguredError,
    DeployRequest,
    DeploySummary,
    is_configured,
    publish_configuration,
)

MODULE = "roks_advisor.services.deploy_publisher"


def _response(status_code: int = 200, payload=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    resp.json.return_value = payload or {}
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return resp


def _request(**overrides) -> DeployRequest:
    fields = {
        "clusterEnv": "WORKERS=3\n",
        "masEnv": "MAS_INSTANCE=prod\n",
        "branchName": "config/prod-east",
        "configuration": DeploySummary(
            name="Prod East",
            costScore="GREEN",
            monthlyCost=3241.2,
            workers=3,
            flavor="bx2-16x32",
            zones=2,
            components=["core", "manage"],
        ),
    }
    fields.update(overrides)
    return DeployRequest(**fields)


def _get_side_effect(url, **kwargs):
    if url.endswith("git/ref/heads/main"):
        return _response(payload={"object": {"sha": "base-sha"}})
    if url.endswith("contents/cluster.env"):
        return _response(404)
    if url.endswith("contents/mas.env"):
        return _response(payload={"sha": "old-mas-sha"})
    raise AssertionError(f"unexpected GET {url}")


class TestPublishConfiguration:
    def test_not_configured(self):
        assert is_configured() is False
        with pytest.raises(DeployNotConfiguredError, match="GITHUB_TOKEN"):
            publish_configuration(_request())

    @pytest.mark.usefixtures("github_configured")
    def test_missing_fields(self):
        with pytest.raises(ValueError, match="Missing required fields"):
            publish_configuration(_request(masEnv=""))

    @pytest.mark.usefixtures("github_configured")
    def test_commits_both_files_and_opens_pr(self, monkeypatch):
        from roks_advisor.settings import settings

        monkeypatch.setattr(settings, "tekton_pipeline_url", "https://tekton.example/run")
        pr = _response(201, {"html_url": "https://github.com/acme/roks-config/pull/7"})
        with (
            patch(f"{MODULE}.requests.get", side_effect=_get_side_effect),
            patch(f"{MODULE}.requests.post", side_effect=[_response(201), pr]) as post,
            patch(f"{MODULE}.requests.put", return_value=_response(201)) as put,
        ):
            result = publish_configuration(_request())

        assert result.success is True
        assert result.branch == "config/prod-east"
        assert result.repoUrl == "https://github.com/acme/roks-config/tree/config/prod-east"
        assert result.prUrl == "https://github.com/acme/roks-config/pull/7"
        assert result.pipelineUrl == "https://tekton.example/run"

        ref_body = post.call_args_list[0].kwargs["json"]
        assert ref_body == {"ref": "refs/heads/config/prod-east", "sha": "base-sha"}

        cluster_put, mas_put = (c.kwargs["json"] for c in put.call_args_list)
        assert base64.b64decode(cluster_put["content"]).decode() == "WORKERS=3\n"
        assert "sha" not in cluster_put
        assert mas_put["sha"] == "old-mas-sha"
        assert cluster_put["message"] == "Update configuration - Prod East"

        pr_body = post.call_args_list[1].kwargs["json"]
        assert pr_body["title"] == "Config: Prod East"
        assert pr_body["base"] == "main"
        assert "**Cost Score:** GREEN" in pr_body["body"]
        assert "core, manage" in pr_body["body"]

    @pytest.mark.usefixtures("github_configured")
    def test_existing_branch_is_reused(self):
        pr = _response(201, {"html_url": "https://github.com/acme/roks-config/pull/8"})
        with (
            patch(f"{MODULE}.requests.get", side_effect=_get_side_effect),
            patch(f"{MODULE}.requests.post", side_effect=[_response(422), pr]),
            patch(f"{MODULE}.requests.put", return_value=_response(200)) as put,
        ):
            result = publish_configuration(_request(commitMessage="Bump workers"))

        assert result.success is True
        assert put.call_count == 2
        assert put.call_args.kwargs["json"]["message"] == "Bump workers"

    @pytest.mark.usefixtures("github_configured")
    def test_pull_request_failure_is_not_fatal(self):
        with (
            patch(f"{MODULE}.requests.get", side_effect=_get_side_effect),
            patch(f"{MODULE}.requests.post", side_effect=[_response(201), _response(422)]),
            patch(f"{MODULE}.requests.put", return_value=_response(201)),
        ):
            result = publish_configuration(_request(configuration=None))

        assert result.success is True
        assert result.prUrl is None
        assert result.pipelineUrl is None

    @pytest.mark.usefixtures("github_configured")
    def test_file_write_failure_propagates(self):
        with (
            patch(f"{MODULE}.requests.get", side_effect=_get_side_effect),
            patch(f"{MODULE}.requests.post", return_value=_response(201)),
            patch(f"{MODULE}.requests.put", return_value=_response(409)),
            pytest.raises(requests.HTTPError),
        ):
            publish_configuration(_request())
