"""Pydantic models for saved scenarios."""

from __future__ import annotations

import datetime

from pydantic import BaseModel, Field, field_validator

from roks_advisor.models.costing import BaselineProfile, NodeFlavor, ScenarioResult

_EPOCH = datetime.datetime.min.replace(tzinfo=datetime.UTC)


def parse_timestamp(value: str | None) -> datetime.datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Naive values are taken as UTC.  ``None`` and unreadable values sort
    before everything else.
    """
    if not value:
        return _EPOCH
    try:
        parsed = datetime.datetime.fromisoformat(value)
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed


class Scenario(BaseModel):
    """A named snapshot of one costing calculation."""

    id: str | None = None
    name: str
    notes: str | None = None
    createdAt: str | None = None
    updatedAt: str | None = None
    baseline: BaselineProfile
    flavor: NodeFlavor
    zones: int
    results: ScenarioResult

    @field_validator("createdAt", "updatedAt")
    @classmethod
    def _check_timestamp(cls, value: str | None) -> str | None:
        if value is not None:
            datetime.datetime.fromisoformat(value)
        return value


class SaveResult(BaseModel):
    success: bool
    scenarioId: str | None = None
    message: str


class DeleteResult(BaseModel):
    success: bool
    message: str


class ImportResult(BaseModel):
    success: bool
    importedCount: int = 0
    totalCount: int = 0
    message: str


class StoreStats(BaseModel):
    totalScenarios: int
    maxScenarios: int
    storageUsedBytes: int
    storageUsedKB: float
    scoreCounts: dict[str, int] = Field(default_factory=dict)
    oldestScenario: str | None = None
    newestScenario: str | None = None


class SaveScenarioRequest(BaseModel):
    """Request body for saving a scenario; results are recomputed server-side."""

    id: str | None = None
    name: str
    notes: str | None = None
    baselineId: str
    flavorId: str
    zones: int = 1
