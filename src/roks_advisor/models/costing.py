"""Pydantic models for the scenario costing pipeline.

Reference data (baselines, flavors) is immutable and loaded once from the
catalog files.  Everything else is derived, recomputed on every request and
only persisted as part of a saved scenario.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Closed enumerations
# ---------------------------------------------------------------------------


class ScoreLevel(StrEnum):
    """Three-tier cost classification."""

    GREEN = "GREEN"
    AMBER = "AMBER"
    RED = "RED"


class Severity(StrEnum):
    high = "high"
    medium = "medium"
    low = "low"


class Priority(StrEnum):
    high = "high"
    medium = "medium"
    low = "low"


class RiskCategory(StrEnum):
    configuration = "configuration"
    availability = "availability"
    cost = "cost"
    optimization = "optimization"
    performance = "performance"


class RecommendationType(StrEnum):
    success = "success"
    optimization = "optimization"
    critical = "critical"
    availability = "availability"
    info = "info"
    best_practice = "best-practice"
    scalability = "scalability"
    performance = "performance"
    cost = "cost"
    reliability = "reliability"


# Tier rank used for stable severity / priority sorting (lower sorts first).
TIER_ORDER: dict[str, int] = {"high": 0, "medium": 1, "low": 2}


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


class BaselineProfile(BaseModel):
    """Minimum-resource profile for a bundle of application components."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    components: tuple[str, ...]
    workers: int = Field(ge=1)
    vcpu: int = Field(ge=1)
    ram: int = Field(ge=1, description="Minimum RAM per node in GB.")
    disk: int = Field(ge=1, description="Minimum disk per node in GB.")
    description: str = ""
    useCase: str = ""
    industrySolutions: tuple[str, ...] = ()


class NodeFlavor(BaseModel):
    """A priced worker-node type."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    series: str
    vcpu: int
    ram: int
    storage: int = 100
    storageType: str = "BLOCK"
    network: str
    hourlyRate: float = Field(ge=0)
    category: str = ""
    description: str = ""


# ---------------------------------------------------------------------------
# Cost breakdown & score
# ---------------------------------------------------------------------------


class CostPeriods(BaseModel):
    hourly: float
    monthly: float
    yearly: float


class CostBreakdown(BaseModel):
    workers: int
    zones: int
    totalNodes: int
    flavor: str
    perNode: CostPeriods
    perWorker: CostPeriods
    total: CostPeriods
    formula: str
    calculation: str


class ScoreThresholds(BaseModel):
    green: float
    amber: float


class CostScore(BaseModel):
    score: ScoreLevel
    label: str
    severity: Severity
    message: str
    color: str
    icon: str
    monthlyCost: float
    zones: int
    thresholds: ScoreThresholds


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------


class RiskFinding(BaseModel):
    id: str
    severity: Severity
    category: RiskCategory
    title: str
    message: str
    impact: str
    recommendation: str


class RecommendationFinding(BaseModel):
    id: str
    type: RecommendationType
    priority: Priority
    title: str
    message: str
    action: str


class RiskSummary(BaseModel):
    total: int
    high: int
    medium: int
    low: int
    categories: dict[str, int]
    overallRisk: str  # "high" | "medium" | "low" | "none"
    overallMessage: str


class RecommendationSummary(BaseModel):
    total: int
    high: int
    medium: int
    low: int
    types: dict[str, int]


class ScenarioResult(BaseModel):
    """Everything the pipeline derives from (baseline, flavor, zones)."""

    costs: CostBreakdown
    costScore: CostScore
    risks: list[RiskFinding]
    riskSummary: RiskSummary
    recommendations: list[RecommendationFinding]
    recommendationSummary: RecommendationSummary
    periods: ExtendedCostPeriods | None = None
    perResource: ResourceUnitCosts | None = None


# ---------------------------------------------------------------------------
# Calculator helpers
# ---------------------------------------------------------------------------


class ScenarioCostComparison(BaseModel):
    name: str
    cost: float
    diffFromMin: float
    diffFromAvg: float
    percentDiffFromMin: float
    isCheapest: bool
    isMostExpensive: bool


class ComparisonSummary(BaseModel):
    minCost: float
    maxCost: float
    avgCost: float
    range: float
    count: int


class ScenarioComparison(BaseModel):
    scenarios: list[ScenarioCostComparison]
    summary: ComparisonSummary


class SavingsAmounts(BaseModel):
    monthly: float
    yearly: float
    percent: float


class SavingsAnalysis(BaseModel):
    current: float
    alternative: float
    savings: SavingsAmounts
    isCheaper: bool
    recommendation: str


class ExtendedCostPeriods(BaseModel):
    hourly: float
    daily: float
    weekly: float
    monthly: float
    quarterly: float
    yearly: float


class ResourceUnitCosts(BaseModel):
    """Monthly cost attributed to one unit of each resource."""

    perWorker: float
    perNode: float
    perVCPU: float
    perGBRAM: float
    perGBDisk: float


class FlavorSuggestion(BaseModel):
    flavor: NodeFlavor | None
    reason: str
    priority: Priority


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class EstimateRequest(BaseModel):
    """A (baseline, flavor, zones) triple as submitted by a caller.

    ``zones`` is range-checked by
    :func:`roks_advisor.services.advisor.validate_inputs`, not here.
    """

    baselineId: str
    flavorId: str
    zones: int = 1
    name: str | None = None


class SizingRequest(BaseModel):
    """A custom per-worker sizing to check against a baseline."""

    workers: int
    vcpu: int
    ram: int
    disk: int
