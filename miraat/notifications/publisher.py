"""
Notification sinks for scenario progress.

The pipeline pushes progress, completion, error and comparison events to a
sink addressed by session id. Delivery is best-effort: a sink never raises
into the pipeline, and a failed publish is logged and dropped.
"""

import threading
from abc import ABC, abstractmethod
from collections import deque

import structlog

from miraat.models.events import NotificationEvent

logger = structlog.get_logger()

DEFAULT_BUFFER_SIZE = 256


class NotificationSink(ABC):
    """
    Abstract destination for scenario notifications.

    Subclasses implement ``_deliver``; ``publish`` wraps it so that delivery
    failures are logged instead of propagated.
    """

    def publish(self, session_id: str, event: NotificationEvent) -> bool:
        """
        Publish an event to a session.

        Args:
            session_id: Session that receives the event
            event: Notification payload

        Returns:
            True if the event was delivered
        """
        try:
            self._deliver(session_id, event)
            return True
        except Exception as e:
            logger.warning(
                "notification_publish_failed",
                session_id=session_id,
                kind=event.kind.value,
                scenario_id=event.scenario_id,
                error=str(e),
            )
            return False

    @abstractmethod
    def _deliver(self, session_id: str, event: NotificationEvent) -> None:
        pass


class NullNotificationSink(NotificationSink):
    """Discards every event."""

    def _deliver(self, session_id: str, event: NotificationEvent) -> None:
        logger.debug("notification_discarded", session_id=session_id, kind=event.kind.value)


class BufferedNotificationSink(NotificationSink):
    """
    Keeps the most recent events per session in memory until drained.

    Each session buffer holds at most ``max_events``; once full, the oldest
    event is dropped to make room.

    Attributes:
        max_events: Per-session buffer capacity
    """

    def __init__(self, max_events: int = DEFAULT_BUFFER_SIZE):
        if max_events <= 0:
            raise ValueError("max_events must be positive")
        self.max_events = max_events
        self._buffers: dict[str, deque] = {}
        self._lock = threading.Lock()

    def _deliver(self, session_id: str, event: NotificationEvent) -> None:
        with self._lock:
            buffer = self._buffers.setdefault(session_id, deque(maxlen=self.max_events))
            if len(buffer) == self.max_events:
                logger.debug(
                    "notification_buffer_full",
                    session_id=session_id,
                    dropped_kind=buffer[0].kind.value,
                )
            buffer.append(event)

    def drain(self, session_id: str) -> list[NotificationEvent]:
        """
        Remove and return all buffered events for a session, oldest first.
        """
        with self._lock:
            buffer = self._buffers.pop(session_id, None)
        return list(buffer) if buffer else []

    def peek(self, session_id: str) -> list[NotificationEvent]:
        with self._lock:
            return list(self._buffers.get(session_id, ()))
