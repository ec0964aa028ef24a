"""
Cooperative cancellation for scenario runs.

A token is set from any thread and polled by the pipeline between stages;
a stage that is already executing always runs to completion.
"""

import threading
from typing import Optional

import structlog

logger = structlog.get_logger()


class CancellationToken:
    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class CancellationRegistry:
    """
    One token per started scenario.

    Tokens are registered when a run starts and cleared when it ends;
    lookups and cancel requests for unknown ids never create one.
    """

    def __init__(self):
        self._tokens: dict[str, CancellationToken] = {}
        self._lock = threading.Lock()

    def register(self, scenario_id: str) -> CancellationToken:
        """Token of ``scenario_id``, created if the run has none yet."""
        with self._lock:
            return self._tokens.setdefault(scenario_id, CancellationToken())

    def token(self, scenario_id: str) -> Optional[CancellationToken]:
        with self._lock:
            return self._tokens.get(scenario_id)

    def cancel(self, scenario_id: str) -> bool:
        """Set the token of a started run; False when none is registered."""
        token = self.token(scenario_id)
        if token is None:
            logger.info("scenario_cancellation_unregistered", scenario_id=scenario_id)
            return False
        token.cancel()
        logger.info("scenario_cancellation_requested", scenario_id=scenario_id)
        return True

    def is_cancelled(self, scenario_id: str) -> bool:
        token = self.token(scenario_id)
        return token is not None and token.cancelled

    def clear(self, scenario_id: str) -> None:
        with self._lock:
            self._tokens.pop(scenario_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
