"""
DuckDB scenario store.

Each scenario run is stored as one JSON document alongside the columns
needed for lookups (session and status). Worker threads get their own
cursor on a shared root connection, so the same database is visible from
every thread, including ``:memory:`` databases. Writes are serialized by a
store-wide lock and ``update`` runs its read-modify-write in a transaction.
"""

import os
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

import duckdb
import structlog

from miraat.exceptions import MiraatError, NotFoundError, StorageError
from miraat.models.scenario import ScenarioRun

from .base import ScenarioMutator, ScenarioStore

logger = structlog.get_logger(__name__)

MEMORY_DATABASE = ":memory:"


class DuckDBScenarioStore(ScenarioStore):
    """
    DuckDB implementation of the scenario store.

    Attributes:
        db_path: Path to the DuckDB database file, or ``:memory:``
        _root: Root connection every thread-local cursor derives from
        _local: Thread-local storage for per-thread cursors
        _lock: Serializes writes and schema operations
    """

    def __init__(self, db_path: str = "./data/miraat.duckdb"):
        self.db_path = db_path
        if db_path != MEMORY_DATABASE:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self._root = duckdb.connect(db_path)
        except Exception as e:
            logger.error("duckdb_connection_failed", db_path=db_path, error=str(e))
            raise StorageError(f"Failed to connect to DuckDB: {e}") from e

        self._local = threading.local()
        self._lock = threading.Lock()

        logger.info("duckdb_store_initialized", db_path=db_path)
        self._initialize_schema()

    @contextmanager
    def _get_connection(self):
        """
        Get a thread-local DuckDB cursor.

        Yields:
            DuckDB connection instance
        """
        if not hasattr(self._local, "connection"):
            self._local.connection = self._root.cursor()
            logger.debug("duckdb_cursor_created", thread_id=threading.get_ident())
        yield self._local.connection

    def _initialize_schema(self) -> None:
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS scenario_runs (
                            scenario_id VARCHAR PRIMARY KEY,
                            session_id VARCHAR NOT NULL,
                            status VARCHAR NOT NULL,
                            document JSON NOT NULL,
                            created_at TIMESTAMP NOT NULL,
                            updated_at TIMESTAMP NOT NULL
                        )
                    """)
                logger.info("duckdb_schema_initialized", table_count=1)
            except Exception as e:
                logger.error("duckdb_schema_initialization_failed", error=str(e))
                raise StorageError(f"Failed to initialize schema: {e}") from e

    @staticmethod
    def _write(conn, run: ScenarioRun) -> None:
        conn.execute(
            """
            INSERT OR REPLACE INTO scenario_runs (
                scenario_id, session_id, status, document, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                run.scenario_id,
                run.session_id,
                run.status.value,
                run.model_dump_json(),
                run.created_at,
                run.updated_at,
            ],
        )

    @staticmethod
    def _read(conn, scenario_id: str) -> Optional[ScenarioRun]:
        row = conn.execute(
            "SELECT document FROM scenario_runs WHERE scenario_id = ? LIMIT 1",
            [scenario_id],
        ).fetchone()
        if not row:
            return None
        return ScenarioRun.model_validate_json(row[0])

    def get(self, scenario_id: str) -> Optional[ScenarioRun]:
        try:
            with self._get_connection() as conn:
                run = self._read(conn, scenario_id)
            logger.debug("scenario_read", scenario_id=scenario_id, found=run is not None)
            return run
        except Exception as e:
            logger.error("read_scenario_failed", scenario_id=scenario_id, error=str(e))
            raise StorageError(f"Failed to read scenario: {e}") from e

    def upsert(self, run: ScenarioRun) -> str:
        try:
            with self._lock, self._get_connection() as conn:
                self._write(conn, run)
            logger.debug("scenario_written", scenario_id=run.scenario_id, status=run.status.value)
            return run.scenario_id
        except Exception as e:
            logger.error("write_scenario_failed", scenario_id=run.scenario_id, error=str(e))
            raise StorageError(f"Failed to write scenario: {e}") from e

    def delete(self, scenario_id: str) -> bool:
        try:
            with self._lock, self._get_connection() as conn:
                existed = self._read(conn, scenario_id) is not None
                conn.execute("DELETE FROM scenario_runs WHERE scenario_id = ?", [scenario_id])
            logger.info("scenario_deleted", scenario_id=scenario_id, existed=existed)
            return existed
        except Exception as e:
            logger.error("delete_scenario_failed", scenario_id=scenario_id, error=str(e))
            raise StorageError(f"Failed to delete scenario: {e}") from e

    def update(self, scenario_id: str, mutator: ScenarioMutator) -> ScenarioRun:
        with self._lock, self._get_connection() as conn:
            try:
                conn.begin()
                run = self._read(conn, scenario_id)
                if run is None:
                    raise NotFoundError("Scenario", scenario_id)
                mutator(run)
                run.updated_at = datetime.utcnow()
                self._write(conn, run)
                conn.commit()
            except MiraatError:
                conn.rollback()
                raise
            except Exception as e:
                conn.rollback()
                logger.error("update_scenario_failed", scenario_id=scenario_id, error=str(e))
                raise StorageError(f"Failed to update scenario: {e}") from e
        return run

    def list_by_session(self, session_id: str) -> list[ScenarioRun]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT document FROM scenario_runs
                    WHERE session_id = ?
                    ORDER BY created_at ASC
                    """,
                    [session_id],
                ).fetchall()
            return [ScenarioRun.model_validate_json(row[0]) for row in rows]
        except Exception as e:
            logger.error("list_scenarios_failed", session_id=session_id, error=str(e))
            raise StorageError(f"Failed to list scenarios: {e}") from e

    def clear_for_testing(self) -> None:
        """
        Truncate all tables. For testing only, when TESTING is set.
        """
        if not os.environ.get("TESTING"):
            return
        with self._lock, self._get_connection() as conn:
            conn.execute("DELETE FROM scenario_runs")
