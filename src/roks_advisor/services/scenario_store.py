"""Local JSON-file store for saved scenarios.

The whole store is one JSON document::

    {"version": "1.0", "scenarios": [...], "metadata": {"lastUpdated": ...}}

Writes are atomic (temp file + rename).  The store keeps at most
``MAX_SCENARIOS`` entries, evicting the oldest-created first; when a write
fails it evicts down to ``DEGRADED_SCENARIOS`` and retries once.  Public
methods report failures through their result objects and never raise.
"""

from __future__ import annotations

import datetime
import json
import logging
import os
import tempfile
import threading
import time
import uuid
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from roks_advisor.models.costing import ScoreLevel
from roks_advisor.models.scenario import (
    DeleteResult,
    ImportResult,
    SaveResult,
    Scenario,
    StoreStats,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

STORAGE_VERSION = "1.0"
MAX_SCENARIOS = 100
DEGRADED_SCENARIOS = 50


def _utcnow() -> str:
    return datetime.datetime.now(datetime.UTC).isoformat()


def new_scenario_id() -> str:
    return f"scenario-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def _empty_document() -> dict[str, Any]:
    return {
        "version": STORAGE_VERSION,
        "scenarios": [],
        "metadata": {"created": _utcnow(), "lastUpdated": _utcnow()},
    }


class ScenarioStore:
    """Best-effort scenario persistence backed by a single JSON file."""

    def __init__(self, path: Path, max_scenarios: int = MAX_SCENARIOS) -> None:
        self.path = Path(path)
        self.max_scenarios = max_scenarios
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return _empty_document()
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to read %s", self.path)
            return _empty_document()
        if not isinstance(document, dict) or document.get("version") != STORAGE_VERSION:
            logger.warning("Ignoring scenario store %s with unsupported version", self.path)
            return _empty_document()
        document.setdefault("scenarios", [])
        document.setdefault("metadata", {})
        return document

    def _write(self, document: dict[str, Any]) -> None:
        """Atomically replace the store file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document["metadata"]["lastUpdated"] = _utcnow()
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=".scenarios-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
            Path(tmp_path).replace(self.path)
        except Exception:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def _scenarios(self) -> list[Scenario]:
        scenarios: list[Scenario] = []
        for raw in self._read()["scenarios"]:
            try:
                scenarios.append(Scenario.model_validate(raw))
            except ValidationError:
                logger.warning("Skipping malformed scenario %s", raw.get("id", "?"))
        return scenarios

    @staticmethod
    def _evict(document: dict[str, Any], limit: int) -> int:
        """Keep the *limit* newest-created scenarios; return how many were dropped."""
        scenarios = document["scenarios"]
        if len(scenarios) <= limit:
            return 0
        scenarios.sort(key=lambda s: parse_timestamp(s.get("createdAt")))
        dropped = len(scenarios) - limit
        document["scenarios"] = scenarios[dropped:]
        return dropped

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def save(self, scenario: Scenario) -> SaveResult:
        """Insert or replace *scenario* (matched by id)."""
        with self._lock:
            try:
                now = _utcnow()
                record = scenario.model_copy(
                    update={
                        "id": scenario.id or new_scenario_id(),
                        "createdAt": scenario.createdAt or now,
                        "updatedAt": now,
                    }
                )
                document = self._read()
                scenarios = document["scenarios"]
                payload = record.model_dump(mode="json")
                index = next(
                    (i for i, s in enumerate(scenarios) if s.get("id") == record.id), None
                )
                if index is None:
                    scenarios.append(payload)
                else:
                    scenarios[index] = payload

                dropped = self._evict(document, self.max_scenarios)
                if dropped:
                    logger.info("Evicted %d oldest scenario(s)", dropped)

                try:
                    self._write(document)
                except OSError as exc:
                    logger.warning(
                        "Scenario write failed (%s); evicting to %d", exc, DEGRADED_SCENARIOS
                    )
                    self._evict(document, DEGRADED_SCENARIOS)
                    self._write(document)

                if not any(s.get("id") == record.id for s in document["scenarios"]):
                    return SaveResult(
                        success=False,
                        scenarioId=record.id,
                        message="Storage is full: scenario was evicted as the oldest entry",
                    )

                return SaveResult(
                    success=True,
                    scenarioId=record.id,
                    message="Scenario saved successfully",
                )
            except Exception as exc:
                logger.exception("Failed to save scenario")
                return SaveResult(success=False, message=f"Failed to save scenario: {exc}")

    def delete(self, scenario_id: str) -> DeleteResult:
        with self._lock:
            try:
                document = self._read()
                before = len(document["scenarios"])
                document["scenarios"] = [
                    s for s in document["scenarios"] if s.get("id") != scenario_id
                ]
                if len(document["scenarios"]) == before:
                    return DeleteResult(success=False, message="Scenario not found")
                self._write(document)
                return DeleteResult(success=True, message="Scenario deleted successfully")
            except Exception as exc:
                logger.exception("Failed to delete scenario %s", scenario_id)
                return DeleteResult(success=False, message=f"Failed to delete scenario: {exc}")

    def delete_all(self) -> DeleteResult:
        with self._lock:
            try:
                self._write(_empty_document())
                return DeleteResult(success=True, message="All scenarios deleted")
            except Exception as exc:
                logger.exception("Failed to clear scenario store")
                return DeleteResult(success=False, message=f"Failed to delete scenarios: {exc}")

    def enforce_limit(self, limit: int = MAX_SCENARIOS) -> int:
        """Evict oldest scenarios beyond *limit*; return how many were removed."""
        with self._lock:
            try:
                document = self._read()
                dropped = self._evict(document, limit)
                if dropped:
                    self._write(document)
                return dropped
            except Exception:
                logger.exception("Failed to enforce scenario limit")
                return 0

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def load(self, scenario_id: str) -> Scenario | None:
        return next((s for s in self._scenarios() if s.id == scenario_id), None)

    def load_all(self) -> list[Scenario]:
        """Return every scenario, newest-created first."""
        return sorted(
            self._scenarios(), key=lambda s: parse_timestamp(s.createdAt), reverse=True
        )

    def search(self, text: str, scenarios: list[Scenario] | None = None) -> list[Scenario]:
        """Case-insensitive substring match on name, baseline name and notes.

        Searches *scenarios* when given, else the whole store.
        """
        needle = text.lower()
        return [
            s
            for s in (self.load_all() if scenarios is None else scenarios)
            if needle in s.name.lower()
            or needle in s.baseline.name.lower()
            or needle in (s.notes or "").lower()
        ]

    def filter_by_score(
        self, score: ScoreLevel | str, scenarios: list[Scenario] | None = None
    ) -> list[Scenario]:
        pool = self.load_all() if scenarios is None else scenarios
        return [s for s in pool if s.results.costScore.score == score]

    def filter_by_date(
        self,
        start: datetime.datetime | None = None,
        end: datetime.datetime | None = None,
        scenarios: list[Scenario] | None = None,
    ) -> list[Scenario]:
        """Scenarios created within ``[start, end]`` (either bound optional).

        Naive bounds are taken as UTC.
        """
        if start is not None and start.tzinfo is None:
            start = start.replace(tzinfo=datetime.UTC)
        if end is not None and end.tzinfo is None:
            end = end.replace(tzinfo=datetime.UTC)
        selected: list[Scenario] = []
        for scenario in self.load_all() if scenarios is None else scenarios:
            if not scenario.createdAt:
                continue
            created = parse_timestamp(scenario.createdAt)
            if start is not None and created < start:
                continue
            if end is not None and created > end:
                continue
            selected.append(scenario)
        return selected

    def stats(self) -> StoreStats:
        scenarios = self.load_all()
        size = self.path.stat().st_size if self.path.exists() else 0
        score_counts = {level.value: 0 for level in ScoreLevel}
        for scenario in scenarios:
            score_counts[scenario.results.costScore.score.value] += 1
        return StoreStats(
            totalScenarios=len(scenarios),
            maxScenarios=self.max_scenarios,
            storageUsedBytes=size,
            storageUsedKB=round(size / 1024, 2),
            scoreCounts=score_counts,
            oldestScenario=scenarios[-1].createdAt if scenarios else None,
            newestScenario=scenarios[0].createdAt if scenarios else None,
        )

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_all(self, scenario_ids: list[str] | None = None) -> str:
        """Serialise scenarios (all, or only *scenario_ids*) to a JSON string."""
        scenarios = self.load_all()
        if scenario_ids is not None:
            wanted = set(scenario_ids)
            scenarios = [s for s in scenarios if s.id in wanted]
        return json.dumps(
            {
                "exportDate": _utcnow(),
                "version": STORAGE_VERSION,
                "scenarioCount": len(scenarios),
                "scenarios": [s.model_dump(mode="json") for s in scenarios],
            },
            indent=2,
        )

    def import_all(self, payload: str) -> ImportResult:
        """Import scenarios from an :meth:`export_all` payload.

        Every imported scenario gets a fresh id so nothing is overwritten.
        """
        try:
            document = json.loads(payload)
        except ValueError as exc:
            return ImportResult(success=False, message=f"Import failed: {exc}")
        if not isinstance(document, dict) or not isinstance(document.get("scenarios"), list):
            return ImportResult(success=False, message="Invalid import file format")

        raw_scenarios = document["scenarios"]
        imported = 0
        for raw in raw_scenarios:
            try:
                scenario = Scenario.model_validate(raw)
            except ValidationError:
                logger.warning("Skipping invalid scenario in import")
                continue
            result = self.save(scenario.model_copy(update={"id": new_scenario_id()}))
            if result.success:
                imported += 1

        return ImportResult(
            success=True,
            importedCount=imported,
            totalCount=len(raw_scenarios),
            message=f"Imported {imported} of {len(raw_scenarios)} scenarios",
        )
