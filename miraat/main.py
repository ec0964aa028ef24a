"""
FastAPI application factory with middleware, CORS, and request tracing.
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from miraat.adapters import load_index
from miraat.config import get_settings
from miraat.exceptions import StorageError
from miraat.notifications import BufferedNotificationSink
from miraat.routers import buildings, hospitals, scenarios, system
from miraat.services import ScenarioService
from miraat.storage import get_store
from miraat.utils.logging import configure_logging, get_logger


configure_logging()
logger = get_logger(__name__)


def build_service() -> ScenarioService:
    """
    Load the dataset and wire the scenario service.

    Raises:
        DatasetLoadError: If the building or hospital dataset is unusable
    """
    settings = get_settings()
    index = load_index(settings)
    return ScenarioService(
        index=index,
        store=get_store(),
        sink=BufferedNotificationSink(max_events=settings.notification_buffer_size),
        settings=settings,
    )


def create_app(service: Optional[ScenarioService] = None) -> FastAPI:
    """
    Application factory.
    Creates and configures FastAPI application instance.

    Args:
        service: Pre-built scenario service; the dataset named by the
            settings is loaded at start-up when omitted
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Application lifespan manager.
        Loads the dataset on startup and drains running scenarios on shutdown.
        """
        logger.info(
            "application_startup",
            version=app.version,
            store_type=settings.store_type,
            dev_mode=settings.dev_mode,
        )

        app.state.service = service or build_service()
        logger.info(
            "dataset_ready",
            buildings=len(app.state.service.index.buildings),
            hospitals=len(app.state.service.index.hospitals),
        )

        yield

        await app.state.service.shutdown()
        logger.info("application_shutdown")

    app = FastAPI(
        title="MIR'AAT Impact Engine API",
        description="Disaster impact assessment, scenario analysis and mitigation planning",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        """Scenario store failures surface as 503 with the standard envelope."""
        logger.error("scenario_store_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=503,
            content={"success": False, "error": "Scenario store unavailable"},
        )

    @app.middleware("http")
    async def request_tracing_middleware(request: Request, call_next):
        """Bind a request id to the log context and time every request."""
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": "Internal server error",
                    "request_id": request_id,
                },
                headers={"X-Request-ID": request_id},
            )

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    @app.get("/health", tags=["System"])
    async def health_check():
        """Liveness check; readiness is reported by /api/v1/system/health."""
        return {
            "status": "healthy",
            "version": app.version,
            "store_type": settings.store_type,
        }

    # Include routers
    app.include_router(buildings.router, prefix="/api/v1/buildings", tags=["Buildings"])
    app.include_router(hospitals.router, prefix="/api/v1/hospitals", tags=["Hospitals"])
    app.include_router(scenarios.router, prefix="/api/v1/scenarios", tags=["Scenarios"])
    app.include_router(system.router, prefix="/api/v1/system", tags=["System"])

    logger.info("application_configured", routers_count=4)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "miraat.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
