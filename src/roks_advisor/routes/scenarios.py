"""Saved-scenario API routes – thin wrappers over :class:`ScenarioStore`."""

import datetime
import functools

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, Response

from roks_advisor.models.costing import ScoreLevel
from roks_advisor.models.scenario import SaveScenarioRequest, Scenario
from roks_advisor.services.advisor import InputContractError, evaluate_scenario, resolve_inputs
from roks_advisor.services.scenario_store import ScenarioStore
from roks_advisor.settings import settings

router = APIRouter(prefix="/api/scenarios", tags=["Scenarios"])


@functools.cache
def _default_store() -> ScenarioStore:
    store = ScenarioStore(settings.scenarios_file)
    store.enforce_limit()
    return store


def get_scenario_store() -> ScenarioStore:
    """FastAPI dependency returning the process-wide scenario store."""
    return _default_store()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_scenario(body: SaveScenarioRequest, existing: Scenario | None = None) -> Scenario:
    """Recompute results for *body* and wrap them as a :class:`Scenario`."""
    baseline, flavor = resolve_inputs(body.baselineId, body.flavorId)
    results = evaluate_scenario(baseline, flavor, body.zones)
    return Scenario(
        id=existing.id if existing else body.id,
        name=body.name,
        notes=body.notes,
        createdAt=existing.createdAt if existing else None,
        baseline=baseline,
        flavor=flavor,
        zones=body.zones,
        results=results,
    )


def _save(
    store: ScenarioStore, body: SaveScenarioRequest, existing: Scenario | None
) -> JSONResponse:
    try:
        scenario = _build_scenario(body, existing)
    except InputContractError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except LookupError as exc:
        return JSONResponse({"error": str(exc)}, status_code=404)

    result = store.save(scenario)
    status = 200 if result.success else 500
    return JSONResponse(result.model_dump(mode="json"), status_code=status)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", summary="List saved scenarios")
async def list_scenarios(
    q: str | None = Query(None, description="Case-insensitive text search."),
    score: ScoreLevel | None = Query(None, description="Only scenarios with this cost score."),
    since: datetime.datetime | None = Query(None, description="Created at or after (ISO 8601)."),
    until: datetime.datetime | None = Query(None, description="Created at or before (ISO 8601)."),
    store: ScenarioStore = Depends(get_scenario_store),
) -> JSONResponse:
    """Return saved scenarios, newest first, optionally filtered."""
    scenarios = store.load_all()
    if q:
        scenarios = store.search(q, scenarios)
    if score is not None:
        scenarios = store.filter_by_score(score, scenarios)
    if since is not None or until is not None:
        scenarios = store.filter_by_date(since, until, scenarios)
    return JSONResponse([s.model_dump(mode="json") for s in scenarios])


@router.post("", summary="Save a scenario")
async def create_scenario(
    body: SaveScenarioRequest,
    store: ScenarioStore = Depends(get_scenario_store),
) -> JSONResponse:
    """Evaluate the submitted inputs and store the result."""
    return _save(store, body, store.load(body.id) if body.id else None)


@router.delete("", summary="Delete every saved scenario")
async def delete_all_scenarios(
    store: ScenarioStore = Depends(get_scenario_store),
) -> JSONResponse:
    result = store.delete_all()
    return JSONResponse(result.model_dump(mode="json"), status_code=200 if result.success else 500)


@router.get("/stats", summary="Scenario store statistics")
async def scenario_stats(store: ScenarioStore = Depends(get_scenario_store)) -> JSONResponse:
    return JSONResponse(store.stats().model_dump(mode="json"))


@router.get("/export", summary="Export scenarios as JSON")
async def export_scenarios(
    ids: str | None = Query(None, description="Comma-separated scenario IDs (default: all)."),
    store: ScenarioStore = Depends(get_scenario_store),
) -> Response:
    selected = [i.strip() for i in ids.split(",") if i.strip()] if ids else None
    return Response(
        content=store.export_all(selected),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="roks-scenarios.json"'},
    )


@router.post("/import", summary="Import scenarios from an export")
async def import_scenarios(
    request: Request,
    store: ScenarioStore = Depends(get_scenario_store),
) -> JSONResponse:
    """Import an export document; every scenario receives a fresh id."""
    try:
        payload = (await request.body()).decode("utf-8")
    except UnicodeDecodeError as exc:
        return JSONResponse({"error": f"Import file is not valid UTF-8: {exc}"}, status_code=400)
    result = store.import_all(payload)
    return JSONResponse(result.model_dump(mode="json"), status_code=200 if result.success else 400)


@router.get("/{scenario_id}", summary="Get one scenario")
async def get_scenario(
    scenario_id: str, store: ScenarioStore = Depends(get_scenario_store)
) -> JSONResponse:
    scenario = store.load(scenario_id)
    if scenario is None:
        return JSONResponse({"error": "Scenario not found"}, status_code=404)
    return JSONResponse(scenario.model_dump(mode="json"))


@router.put("/{scenario_id}", summary="Update a scenario")
async def update_scenario(
    scenario_id: str,
    body: SaveScenarioRequest,
    store: ScenarioStore = Depends(get_scenario_store),
) -> JSONResponse:
    """Re-evaluate and replace an existing scenario, keeping its creation time."""
    existing = store.load(scenario_id)
    if existing is None:
        return JSONResponse({"error": "Scenario not found"}, status_code=404)
    return _save(store, body, existing)


@router.delete("/{scenario_id}", summary="Delete a scenario")
async def delete_scenario(
    scenario_id: str, store: ScenarioStore = Depends(get_scenario_store)
) -> JSONResponse:
    result = store.delete(scenario_id)
    return JSONResponse(result.model_dump(mode="json"), status_code=200 if result.success else 404)
