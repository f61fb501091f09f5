"""
Whistle Service - Main Application

FastAPI application for anonymous incident reports and live admin alerts.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from whistle_service.config.settings import Settings, settings as default_settings
from whistle_service.api.routes.admin import router as admin_router
from whistle_service.api.routes.notifications import router as notifications_router
from whistle_service.api.routes.reports import router as reports_router
from whistle_service.core.auth import AdminAuthenticator
from whistle_service.core.email_alerts import EmailAlerter
from whistle_service.core.notification_hub import NotificationHub
from whistle_service.core.report_manager import ReportManager
from whistle_service.infrastructure.store import ReportStore, create_report_store
from whistle_service.models import HealthResponse

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    settings: Settings = app.state.settings

    # Startup
    logger.info(f"Starting {settings.service_name} ({settings.environment})")

    # Raises ConfigurationError when admin secrets are missing
    authenticator = AdminAuthenticator.from_settings(settings)

    store = app.state.store or create_report_store(settings)
    await store.initialize()

    hub = NotificationHub(
        token_verifier=authenticator.verify_token,
        heartbeat_interval=settings.heartbeat_interval_seconds,
        queue_size=settings.notification_queue_size,
        email_alerter=EmailAlerter(settings)
    )

    app.state.authenticator = authenticator
    app.state.store = store
    app.state.hub = hub
    app.state.report_manager = ReportManager(store, hub)

    yield

    # Shutdown
    logger.info("Shutting down Whistle Service")
    await hub.shutdown()
    await store.close()


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as {"error": reason}"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request body/query validation failures as 400 {"error": reason}"""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        reason = f"{location}: {first.get('msg')}" if location else first.get("msg")
    else:
        reason = "Invalid request"
    return JSONResponse(status_code=400, content={"error": reason})


def create_app(settings: Optional[Settings] = None, store: Optional[ReportStore] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        settings: Configuration (defaults to environment-derived settings)
        store: Report store to use instead of the configured one

    Returns:
        Configured application; process-scoped state is created on startup
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Whistle Service",
        description="Anonymous incident reporting with encrypted submissions and live admin alerts",
        version="0.1.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.store = store

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Include routers
    app.include_router(reports_router, prefix=settings.api_prefix)
    app.include_router(admin_router, prefix=settings.api_prefix)
    app.include_router(notifications_router, prefix=settings.api_prefix)

    @app.get(
        "/",
        summary="Service Information",
        description="Returns service identification, version and environment. **Authorization**: None",
        responses={200: {"description": "Service information returned successfully"}}
    )
    async def root():
        """Root endpoint"""
        return {
            "service": settings.service_name,
            "version": "0.1.0",
            "status": "running",
            "environment": settings.environment
        }

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="""
Returns the health status of the Whistle Service.

**Checks**: report store reachability and the number of live admin viewers.

**Use Cases**:
- Container liveness/readiness probes
- Load balancer health checks

**Authorization**: None required (public endpoint)
        """,
        responses={200: {"description": "Health check completed (status may be healthy or degraded)"}}
    )
    async def health(request: Request) -> HealthResponse:
        """Health check"""
        store_ok = await request.app.state.store.health_check()
        return HealthResponse(
            status="healthy" if store_ok else "degraded",
            service=settings.service_name,
            store_available=store_ok,
            active_viewers=request.app.state.hub.connection_count
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "whistle_service.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=True if default_settings.environment == "development" else False
    )
