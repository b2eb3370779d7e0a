"""ROKS Advisor – FastAPI web application.

Cost estimation, risk assessment and recommendations for Red Hat OpenShift
on IBM Cloud clusters, plus cost analysis of the clusters already running
in an IBM Cloud account.
"""

import logging
from pathlib import Path

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from roks_advisor import __version__, ibm_api
from roks_advisor.catalog.baselines import get_baseline, list_baselines, validate_sizing
from roks_advisor.catalog.flavors import (
    get_flavor,
    get_flavor_by_name,
    list_flavors,
    list_flavors_by_series,
    recommend_flavors,
    validate_flavor,
)
from roks_advisor.models.costing import EstimateRequest, SizingRequest
from roks_advisor.routes.clusters import router as clusters_router
from roks_advisor.routes.scenarios import router as scenarios_router
from roks_advisor.services import deploy_publisher
from roks_advisor.services.advisor import InputContractError, estimate
from roks_advisor.scoring.cost_score import SCORING_VERSION
from roks_advisor.services.cost_calculator import calculate_savings, compare_scenarios
from roks_advisor.services.deploy_publisher import DeployNotConfiguredError, DeployRequest
from roks_advisor.settings import settings

app = FastAPI(
    title="roks-advisor API",
    version=__version__,
    description=(
        "REST API for the ROKS Advisor. "
        "Provides endpoints to estimate the cost of an OpenShift deployment "
        "on IBM Cloud, assess its risks, save and compare scenarios, and "
        "analyse the cost of live clusters."
    ),
    license_info={"name": "MIT", "url": "https://opensource.org/licenses/MIT"},
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

app.include_router(scenarios_router)
app.include_router(clusters_router)


# ---------------------------------------------------------------------------
# Colored logging (reuse uvicorn's formatter)
# ---------------------------------------------------------------------------


def _setup_logging(level: int = logging.WARNING) -> None:
    """Configure the root ``roks_advisor`` logger with uvicorn-style colours."""
    from uvicorn.logging import DefaultFormatter

    handler = logging.StreamHandler()
    handler.setFormatter(
        DefaultFormatter(fmt="%(levelprefix)s %(name)s - %(message)s", use_colors=True)
    )
    app_logger = logging.getLogger("roks_advisor")
    app_logger.handlers = [handler]
    app_logger.setLevel(level)
    app_logger.propagate = False

    # Silence noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)


_setup_logging()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Status"], summary="Service health")
async def health() -> JSONResponse:
    """Report liveness and which optional integrations are configured."""
    return JSONResponse(
        {
            "status": "ok",
            "version": __version__,
            "scoringVersion": SCORING_VERSION,
            "cloudConfigured": ibm_api.is_configured(),
            "deployConfigured": deploy_publisher.is_configured(),
        }
    )


@app.get("/api/baselines", tags=["Catalog"], summary="List baseline profiles")
async def get_baselines() -> JSONResponse:
    """Return every predefined baseline sizing profile."""
    return JSONResponse([b.model_dump(mode="json") for b in list_baselines()])


@app.get("/api/baselines/{baseline_id}", tags=["Catalog"], summary="Get one baseline profile")
async def get_one_baseline(baseline_id: str) -> JSONResponse:
    baseline = get_baseline(baseline_id)
    if baseline is None:
        return JSONResponse({"error": f"Unknown baseline '{baseline_id}'"}, status_code=404)
    return JSONResponse(baseline.model_dump(mode="json"))


@app.post(
    "/api/baselines/{baseline_id}/validate",
    tags=["Catalog"],
    summary="Check a custom sizing against a baseline",
)
async def post_validate_sizing(baseline_id: str, body: SizingRequest) -> JSONResponse:
    """Report where a custom worker sizing falls short of the baseline minimums."""
    baseline = get_baseline(baseline_id)
    if baseline is None:
        return JSONResponse({"error": f"Unknown baseline '{baseline_id}'"}, status_code=404)
    return JSONResponse(validate_sizing(baseline, body.workers, body.vcpu, body.ram, body.disk))


@app.get("/api/flavors", tags=["Catalog"], summary="List worker node flavors")
async def get_flavors(
    series: str | None = Query(None, description="Optional series filter (e.g. bx2, bx3d)."),
) -> JSONResponse:
    """Return the flavor catalog, optionally restricted to one series."""
    flavors = list_flavors_by_series(series) if series else list_flavors()
    return JSONResponse([f.model_dump(mode="json") for f in flavors])


@app.get(
    "/api/flavors/recommend",
    tags=["Catalog"],
    summary="Suggest flavors for a baseline",
)
async def get_flavor_recommendations(
    baselineId: str = Query(..., description="Baseline profile ID."),  # noqa: N803
) -> JSONResponse:
    """Return up to three flavor suggestions (best fit, dense, budget)."""
    baseline = get_baseline(baselineId)
    if baseline is None:
        return JSONResponse({"error": f"Unknown baseline '{baselineId}'"}, status_code=404)
    return JSONResponse([s.model_dump(mode="json") for s in recommend_flavors(baseline)])


@app.get("/api/flavors/validate", tags=["Catalog"], summary="Check a flavor against a baseline")
async def get_flavor_validation(
    baselineId: str = Query(..., description="Baseline profile ID."),  # noqa: N803
    flavorId: str = Query(..., description="Flavor ID or name."),  # noqa: N803
) -> JSONResponse:
    """Flag missing or excessive vCPU / RAM for one flavor."""
    baseline = get_baseline(baselineId)
    if baseline is None:
        return JSONResponse({"error": f"Unknown baseline '{baselineId}'"}, status_code=404)
    flavor = get_flavor(flavorId) or get_flavor_by_name(flavorId)
    if flavor is None:
        return JSONResponse({"error": f"Unknown flavor '{flavorId}'"}, status_code=404)
    return JSONResponse(validate_flavor(flavor, baseline))


@app.get("/api/flavors/{flavor_id}", tags=["Catalog"], summary="Get one flavor")
async def get_one_flavor(flavor_id: str) -> JSONResponse:
    """Look a flavor up by ID (``bx2-16x32``) or display name (``bx2.16x32``)."""
    flavor = get_flavor(flavor_id) or get_flavor_by_name(flavor_id)
    if flavor is None:
        return JSONResponse({"error": f"Unknown flavor '{flavor_id}'"}, status_code=404)
    return JSONResponse(flavor.model_dump(mode="json"))


@app.post("/api/estimate", tags=["Costing"], summary="Estimate a deployment")
async def post_estimate(body: EstimateRequest) -> JSONResponse:
    """Run the costing pipeline: costs, score, risks and recommendations."""
    try:
        result = estimate(body.baselineId, body.flavorId, body.zones)
    except InputContractError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except LookupError as exc:
        return JSONResponse({"error": str(exc)}, status_code=404)
    except Exception as exc:
        logger.exception("Failed to estimate %s on %s", body.baselineId, body.flavorId)
        return JSONResponse({"error": str(exc)}, status_code=500)
    return JSONResponse(result.model_dump(mode="json"))


@app.post("/api/compare", tags=["Costing"], summary="Compare several deployments")
async def post_compare(body: list[EstimateRequest]) -> JSONResponse:
    """Estimate each request and compare their monthly totals.

    ``savings`` prices a switch from the first request to the cheapest one.
    Unnamed requests are labelled ``baselineId / flavorId / Nz``.
    """
    if not body:
        return JSONResponse({"error": "At least one scenario is required"}, status_code=400)

    named = []
    results = []
    try:
        for req in body:
            name = req.name or f"{req.baselineId} / {req.flavorId} / {req.zones}z"
            result = estimate(req.baselineId, req.flavorId, req.zones)
            named.append((name, result.costs))
            results.append({"name": name, **result.model_dump(mode="json")})
    except InputContractError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except LookupError as exc:
        return JSONResponse({"error": str(exc)}, status_code=404)
    except Exception as exc:
        logger.exception("Failed to compare scenarios")
        return JSONResponse({"error": str(exc)}, status_code=500)

    comparison = compare_scenarios(named)
    cheapest = min(named, key=lambda item: item[1].total.monthly)
    savings = calculate_savings(named[0][1], cheapest[1])
    return JSONResponse(
        {
            "comparison": comparison.model_dump(mode="json") if comparison else None,
            "savings": {"alternative": cheapest[0], **savings.model_dump(mode="json")},
            "results": results,
        }
    )


@app.post("/api/deploy", tags=["Deploy"], summary="Publish a configuration to GitHub")
async def post_deploy(body: DeployRequest) -> JSONResponse:
    """Commit ``cluster.env`` / ``mas.env`` to a branch and open a pull request."""
    try:
        result = deploy_publisher.publish_configuration(body)
    except DeployNotConfiguredError as exc:
        return JSONResponse(
            {"status": "not_configured", "error": str(exc)}, status_code=503
        )
    except ValueError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except Exception as exc:
        logger.exception("Failed to publish configuration to %s", body.branchName)
        return JSONResponse({"error": str(exc)}, status_code=500)
    return JSONResponse(result.model_dump(mode="json"))


@app.get(
    "/downloads/{filename}",
    tags=["Clusters"],
    summary="Download a generated report",
    response_model=None,
)
async def download_report(filename: str) -> FileResponse | JSONResponse:
    """Serve a workbook previously written by the cluster export endpoints."""
    if Path(filename).name != filename or not filename.endswith(".xlsx"):
        return JSONResponse({"error": "Invalid filename"}, status_code=400)
    filepath = settings.downloads_dir / filename
    if not filepath.is_file():
        return JSONResponse({"error": f"Report '{filename}' not found"}, status_code=404)
    return FileResponse(
        filepath,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        filename=filename,
    )
