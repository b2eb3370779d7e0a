"""Live-cluster API routes – analysis and Excel export for IBM Cloud clusters.

Handlers are plain ``def`` so that FastAPI runs the blocking IBM Cloud
calls in its worker thread pool.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from roks_advisor import ibm_api
from roks_advisor.models.cluster import ClusterAnalysisReport
from roks_advisor.reports.excel import generate_cluster_report
from roks_advisor.services.cluster_analyzer import analyze_all_clusters
from roks_advisor.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/clusters", tags=["Clusters"])


def _not_configured() -> JSONResponse:
    return JSONResponse(
        {"status": "not_configured", "error": ibm_api.NOT_CONFIGURED_MESSAGE},
        status_code=503,
    )


@router.get("/list", summary="List clusters in the configured account")
def list_clusters() -> JSONResponse:
    """Return the raw cluster summaries reported by IBM Cloud."""
    if not ibm_api.is_configured():
        return _not_configured()
    try:
        clusters = ibm_api.list_clusters()
    except Exception as exc:
        logger.exception("Failed to list clusters")
        return JSONResponse({"error": str(exc)}, status_code=500)
    return JSONResponse({"clusters": clusters, "count": len(clusters)})


@router.post("/analyze", summary="Analyse the cost of every cluster")
def analyze_clusters() -> JSONResponse:
    """Fetch every cluster, price it and aggregate the results.

    Clusters that fail to load are listed in ``failedClusters`` and excluded
    from the totals.
    """
    if not ibm_api.is_configured():
        return _not_configured()
    try:
        report = analyze_all_clusters()
    except Exception as exc:
        logger.exception("Failed to analyse clusters")
        return JSONResponse({"error": str(exc)}, status_code=500)
    return JSONResponse(report.model_dump(mode="json"))


@router.post("/export", summary="Export an analysis report to Excel")
def export_report(body: ClusterAnalysisReport) -> JSONResponse:
    """Write a previously returned analysis to an ``.xlsx`` workbook."""
    try:
        artifact = generate_cluster_report(body, settings.downloads_dir)
    except Exception as exc:
        logger.exception("Failed to write cluster report")
        return JSONResponse({"error": str(exc)}, status_code=500)
    return JSONResponse(artifact.model_dump(mode="json"))


@router.post("/analyze-and-export", summary="Analyse every cluster and export to Excel")
def analyze_and_export() -> JSONResponse:
    if not ibm_api.is_configured():
        return _not_configured()
    try:
        report = analyze_all_clusters()
        artifact = generate_cluster_report(report, settings.downloads_dir)
    except Exception as exc:
        logger.exception("Failed to analyse and export clusters")
        return JSONResponse({"error": str(exc)}, status_code=500)
    return JSONResponse(
        {
            "analysis": report.model_dump(mode="json"),
            "report": artifact.model_dump(mode="json"),
        }
    )
