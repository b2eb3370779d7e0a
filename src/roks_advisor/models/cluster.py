"""Pydantic models for cloud-mode cluster analysis."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from roks_advisor.models.costing import ScoreLevel


class ClusterCosts(BaseModel):
    hourly: float
    monthly: float
    yearly: float
    perWorker: float


class ClusterAnalysis(BaseModel):
    """Cost analysis of one live cluster."""

    id: str
    name: str
    state: str = "unknown"
    createdDate: str | None = None
    uptime: str
    uptimeDays: int
    workers: int
    flavor: str
    normalizedFlavor: str
    cpu: int = 0
    memory: int = 0
    disk: int = 0
    zones: int
    zoneList: list[str]
    location: str
    resourceGroup: str = "default"
    costs: ClusterCosts
    costScore: ScoreLevel
    recommendations: list[str]
    totalCostToDate: float
    priced: bool = True
    warnings: list[str] = Field(default_factory=list)


class FailedCluster(BaseModel):
    id: str
    name: str | None = None
    error: str


class ClusterAnalysisReport(BaseModel):
    """Aggregate over every successfully analysed cluster."""

    status: Literal["ok", "not_configured"] = "ok"
    totalClusters: int = 0
    totalWorkers: int = 0
    totalMonthlyCost: float = 0.0
    totalYearlyCost: float = 0.0
    totalCostToDate: float = 0.0
    scoreCounts: dict[str, int] = Field(
        default_factory=lambda: {level.value: 0 for level in ScoreLevel}
    )
    unpricedClusters: int = 0
    clusters: list[ClusterAnalysis] = Field(default_factory=list)
    failedClusters: list[FailedCluster] = Field(default_factory=list)
    generatedAt: str = ""


class ReportArtifact(BaseModel):
    success: bool = True
    filename: str
    filepath: str
    url: str
