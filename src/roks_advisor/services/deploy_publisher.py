"""Publish a cluster configuration to GitHub as a branch and pull request.

The caller supplies the two environment files that drive the provisioning
pipeline (``cluster.env`` and ``mas.env``).  They are committed to a
branch of the configured repository and a pull request is opened against
the default branch.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

import requests
from pydantic import BaseModel

from roks_advisor.settings import settings

logger = logging.getLogger(__name__)

CLUSTER_ENV_PATH = "cluster.env"
MAS_ENV_PATH = "mas.env"


class DeployNotConfiguredError(RuntimeError):
    """Raised when no GitHub token / repository is configured."""


class DeploySummary(BaseModel):
    """Scenario facts quoted in the pull request body."""

    name: str | None = None
    costScore: str | None = None
    monthlyCost: float | None = None
    workers: int | None = None
    flavor: str | None = None
    zones: int | None = None
    components: list[str] | None = None


class DeployRequest(BaseModel):
    clusterEnv: str
    masEnv: str
    branchName: str
    commitMessage: str | None = None
    configuration: DeploySummary | None = None


class DeployResult(BaseModel):
    success: bool
    message: str
    branch: str
    repoUrl: str
    prUrl: str | None = None
    pipelineUrl: str | None = None


# ---------------------------------------------------------------------------
# GitHub helpers
# ---------------------------------------------------------------------------


def _headers() -> dict[str, str]:
    return {
        "Authorization": f"Bearer {settings.github_token}",
        "Accept": "application/vnd.github+json",
    }


def _repo_url(path: str) -> str:
    return f"{settings.github_api_url}/repos/{settings.github_owner}/{settings.github_repo}/{path}"


def _branch_sha(branch: str) -> str:
    resp = requests.get(_repo_url(f"git/ref/heads/{branch}"), headers=_headers(), timeout=15)
    resp.raise_for_status()
    sha: str = resp.json().get("object", {}).get("sha", "")
    if not sha:
        msg = f"Could not resolve branch '{branch}' to a commit SHA"
        raise ValueError(msg)
    return sha


def _create_branch(branch: str, sha: str) -> None:
    resp = requests.post(
        _repo_url("git/refs"),
        json={"ref": f"refs/heads/{branch}", "sha": sha},
        headers=_headers(),
        timeout=15,
    )
    if resp.status_code == 422:
        logger.info("Branch %s already exists; reusing it", branch)
        return
    resp.raise_for_status()


def _file_sha(path: str, branch: str) -> str | None:
    resp = requests.get(
        _repo_url(f"contents/{path}"), params={"ref": branch}, headers=_headers(), timeout=15
    )
    if resp.status_code == 404:
        return None
    resp.raise_for_status()
    sha: str | None = resp.json().get("sha")
    return sha


def _put_file(path: str, content: str, branch: str, message: str) -> None:
    body: dict[str, Any] = {
        "message": message,
        "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        "branch": branch,
    }
    existing = _file_sha(path, branch)
    if existing:
        body["sha"] = existing
    resp = requests.put(_repo_url(f"contents/{path}"), json=body, headers=_headers(), timeout=15)
    resp.raise_for_status()


def _pull_request_body(summary: DeploySummary) -> str:
    def _or_na(value: object) -> str:
        return "N/A" if value is None else str(value)

    components = ", ".join(summary.components) if summary.components else "N/A"
    return (
        "## Configuration Update\n\n"
        f"**Configuration:** {summary.name or 'Custom'}\n"
        f"**Cost Score:** {_or_na(summary.costScore)}\n"
        f"**Estimated Monthly Cost:** ${_or_na(summary.monthlyCost)}\n\n"
        "### Cluster Configuration\n"
        f"- **Workers:** {_or_na(summary.workers)}\n"
        f"- **Flavor:** {_or_na(summary.flavor)}\n"
        f"- **Zones:** {_or_na(summary.zones)}\n\n"
        "### Components\n"
        f"{components}\n\n"
        "---\n"
        "*Generated by roks-advisor*"
    )


def _open_pull_request(branch: str, summary: DeploySummary) -> str | None:
    """Open a PR for *branch*; return its URL, or ``None`` if GitHub refuses."""
    resp = requests.post(
        _repo_url("pulls"),
        json={
            "title": f"Config: {summary.name or 'Configuration Update'}",
            "head": branch,
            "base": settings.github_default_branch,
            "body": _pull_request_body(summary),
        },
        headers=_headers(),
        timeout=15,
    )
    if not resp.ok:
        logger.warning("Pull request for %s not created (%s)", branch, resp.status_code)
        return None
    url: str | None = resp.json().get("html_url")
    return url


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def is_configured() -> bool:
    return bool(settings.github_token and settings.github_owner and settings.github_repo)


def publish_configuration(request: DeployRequest) -> DeployResult:
    """Commit both env files to ``request.branchName`` and open a pull request."""
    if not is_configured():
        raise DeployNotConfiguredError(
            "GitHub integration not configured. Set GITHUB_TOKEN, GITHUB_OWNER and GITHUB_REPO."
        )
    if not request.clusterEnv or not request.masEnv or not request.branchName:
        raise ValueError("Missing required fields: clusterEnv, masEnv, branchName")

    summary = request.configuration or DeploySummary()
    branch = request.branchName
    message = request.commitMessage or f"Update configuration - {summary.name or 'Custom'}"

    base_sha = _branch_sha(settings.github_default_branch)
    _create_branch(branch, base_sha)
    _put_file(CLUSTER_ENV_PATH, request.clusterEnv, branch, message)
    _put_file(MAS_ENV_PATH, request.masEnv, branch, message)
    pr_url = _open_pull_request(branch, summary)

    logger.info(
        "Published configuration to %s/%s@%s",
        settings.github_owner,
        settings.github_repo,
        branch,
    )
    return DeployResult(
        success=True,
        message="Configuration deployed successfully",
        branch=branch,
        repoUrl=(
            f"{settings.github_web_url}/{settings.github_owner}/{settings.github_repo}"
            f"/tree/{branch}"
        ),
        prUrl=pr_url,
        pipelineUrl=settings.tekton_pipeline_url,
    )
