"""
Scenario persistence layer.

Scenario runs are stored as whole documents keyed by scenario id, either in
DuckDB or in process memory depending on configuration.
"""

from functools import lru_cache

from miraat.config import get_settings

from .base import ScenarioMutator, ScenarioStore
from .duckdb_storage import DuckDBScenarioStore
from .memory_storage import InMemoryScenarioStore


@lru_cache
def get_store() -> ScenarioStore:
    """
    Get cached scenario store instance (singleton).

    Returns:
        ScenarioStore implementation selected by ``store_type``
    """
    settings = get_settings()
    if settings.store_type == "memory":
        return InMemoryScenarioStore()
    return DuckDBScenarioStore(db_path=settings.db_path)


__all__ = [
    "ScenarioMutator",
    "ScenarioStore",
    "DuckDBScenarioStore",
    "InMemoryScenarioStore",
    "get_store",
]
