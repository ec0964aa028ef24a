"""In-process scenario store for development and tests."""

import threading
from datetime import datetime
from typing import Optional

import structlog

from miraat.exceptions import NotFoundError
from miraat.models.scenario import ScenarioRun

from .base import ScenarioMutator, ScenarioStore

logger = structlog.get_logger(__name__)


class InMemoryScenarioStore(ScenarioStore):
    """
    Stores serialized documents so callers never share mutable state with
    the store.
    """

    def __init__(self):
        self._documents: dict[str, str] = {}
        self._lock = threading.Lock()
        logger.info("memory_store_initialized")

    def get(self, scenario_id: str) -> Optional[ScenarioRun]:
        with self._lock:
            document = self._documents.get(scenario_id)
        if document is None:
            return None
        return ScenarioRun.model_validate_json(document)

    def upsert(self, run: ScenarioRun) -> str:
        with self._lock:
            self._documents[run.scenario_id] = run.model_dump_json()
        return run.scenario_id

    def delete(self, scenario_id: str) -> bool:
        with self._lock:
            return self._documents.pop(scenario_id, None) is not None

    def update(self, scenario_id: str, mutator: ScenarioMutator) -> ScenarioRun:
        with self._lock:
            document = self._documents.get(scenario_id)
            if document is None:
                raise NotFoundError("Scenario", scenario_id)
            run = ScenarioRun.model_validate_json(document)
            mutator(run)
            run.updated_at = datetime.utcnow()
            self._documents[scenario_id] = run.model_dump_json()
        return run

    def list_by_session(self, session_id: str) -> list[ScenarioRun]:
        with self._lock:
            documents = list(self._documents.values())
        runs = [ScenarioRun.model_validate_json(d) for d in documents]
        return sorted(
            (r for r in runs if r.session_id == session_id), key=lambda r: r.created_at
        )

    def clear_for_testing(self) -> None:
        with self._lock:
            self._documents.clear()
