"""
FastAPI dependencies shared by the routers.
"""

from fastapi import HTTPException, Request, status

from miraat.notifications import BufferedNotificationSink
from miraat.services import ScenarioService
from miraat.utils.logging import get_logger

logger = get_logger(__name__)


def get_service(request: Request) -> ScenarioService:
    """
    Scenario service created by the application lifespan.

    Raises:
        HTTPException: 503 while the dataset has not been loaded
    """
    service = getattr(request.app.state, "service", None)
    if service is None:
        logger.warning("service_unavailable", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Impact engine is not ready",
        )
    return service


def get_notification_buffer(request: Request) -> BufferedNotificationSink:
    """The buffered sink, when the application publishes into one."""
    sink = get_service(request).sink
    if not isinstance(sink, BufferedNotificationSink):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notifications are not buffered",
        )
    return sink
