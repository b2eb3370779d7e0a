"""Shared test fixtures for roks-advisor tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from roks_advisor.app import app
from roks_advisor.routes.scenarios import get_scenario_store
from roks_advisor.services.scenario_store import ScenarioStore
from roks_advisor.settings import settings


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Point every test at a temporary data dir with no credentials."""
    monkeypatch.setattr(settings, "data_dir", tmp_path / "data")
    monkeypatch.setattr(settings, "reports_dir", None)
    monkeypatch.setattr(settings, "ibm_cloud_api_key", "")
    monkeypatch.setattr(settings, "ibm_cloud_region", "us-south")
    monkeypatch.setattr(settings, "github_token", "")
    monkeypatch.setattr(settings, "github_owner", "")
    monkeypatch.setattr(settings, "github_repo", "")
    monkeypatch.setattr(settings, "tekton_pipeline_url", None)


@pytest.fixture(autouse=True)
def _clear_ibm_caches():
    """Clear the token and cluster caches between tests."""
    from roks_advisor.ibm_api import clear_caches

    clear_caches()
    yield
    clear_caches()


@pytest.fixture()
def cloud_configured(monkeypatch):
    """Pretend an IBM Cloud API key is set."""
    monkeypatch.setattr(settings, "ibm_cloud_api_key", "test-api-key")


@pytest.fixture()
def github_configured(monkeypatch):
    """Pretend the GitHub deploy target is set."""
    monkeypatch.setattr(settings, "github_token", "ghp_test")
    monkeypatch.setattr(settings, "github_owner", "acme")
    monkeypatch.setattr(settings, "github_repo", "roks-config")


@pytest.fixture()
def store(tmp_path):
    return ScenarioStore(tmp_path / "scenarios.json")


@pytest.fixture()
def client(store):
    """FastAPI test client backed by a temporary scenario store."""
    app.dependency_overrides[get_scenario_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
