"""
Abstract scenario store.

The engine treats persistence as a document store keyed by scenario id. Each
document is a full ScenarioRun. ``update`` is the only way the pipeline
mutates a stored run: it applies a mutator to the current document and
writes the result back atomically, so status queries interleaving with
pipeline writes never observe or cause lost updates.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from miraat.models.scenario import ScenarioRun

ScenarioMutator = Callable[[ScenarioRun], None]


class ScenarioStore(ABC):
    """
    Abstract base class for scenario persistence.

    Implementations must ensure:
    - Thread safety for concurrent access
    - Atomic read-modify-write in ``update``
    - StorageError on backend failures
    """

    @abstractmethod
    def get(self, scenario_id: str) -> Optional[ScenarioRun]:
        """
        Read a scenario run.

        Args:
            scenario_id: Scenario identifier

        Returns:
            The stored run, or None if unknown
        """
        pass

    @abstractmethod
    def upsert(self, run: ScenarioRun) -> str:
        """
        Insert or replace a scenario run.

        Returns:
            The scenario id
        """
        pass

    @abstractmethod
    def delete(self, scenario_id: str) -> bool:
        """
        Delete a scenario run.

        Returns:
            True if a run was deleted
        """
        pass

    @abstractmethod
    def update(self, scenario_id: str, mutator: ScenarioMutator) -> ScenarioRun:
        """
        Atomically apply ``mutator`` to the stored run and persist the result.

        The mutator edits the run in place. ``updated_at`` is refreshed.

        Returns:
            The updated run

        Raises:
            NotFoundError: If the scenario does not exist
        """
        pass

    @abstractmethod
    def list_by_session(self, session_id: str) -> list[ScenarioRun]:
        """All runs owned by a session, oldest first."""
        pass
