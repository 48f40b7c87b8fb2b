import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Response, WebSocket, status
from fastapi.middleware.cors import CORSMiddleware

from chatboard import message_controller, user_controller
from chatboard.config import settings
from chatboard.logging_utils import setup_logging, RequestLoggingMiddleware
from chatboard.metrics import get_metrics, get_metrics_content_type
from chatboard.notifier import Notifier
from chatboard.schemas import HealthResponse
from chatboard.storage import init_db, check_db_health


# Setup structured JSON logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    - Startup: Initialize database and create tables
    """
    init_db()
    yield


def create_app(notifier: Optional[Notifier] = None) -> FastAPI:
    """
    Build the application.

    Args:
        notifier: Real-time channel that receives messageUpdate events.
            A fresh Notifier is created when none is given.
    """
    notifier = notifier or Notifier()

    app = FastAPI(
        title="Chatboard API",
        description="Chat backend with user accounts, a global message board and real-time updates",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.notifier = notifier

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(message_controller.create_router(notifier), prefix=settings.MESSAGE_PREFIX)
    app.include_router(user_controller.create_router(), prefix=settings.USER_PREFIX)

    # =========================================================================
    # Health Check Routes
    # =========================================================================

    @app.get("/health/live", response_model=HealthResponse)
    async def health_live() -> HealthResponse:
        """Liveness probe - always returns 200 once the app is running."""
        return HealthResponse(status="ok")

    @app.get("/health/ready", response_model=HealthResponse)
    async def health_ready(response: Response) -> HealthResponse:
        """
        Readiness probe - returns 200 only if the DB is reachable and
        the users and messages tables exist. Otherwise returns 503.
        """
        if not check_db_health():
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return HealthResponse(
                status="not_ready",
                reason="Database not reachable or schema not applied"
            )
        return HealthResponse(status="ready")

    # =========================================================================
    # Metrics Route
    # =========================================================================

    @app.get("/metrics")
    async def metrics() -> Response:
        """Expose Prometheus-style metrics."""
        return Response(
            content=get_metrics(),
            media_type=get_metrics_content_type()
        )

    # =========================================================================
    # Realtime Route
    # =========================================================================

    @app.websocket("/ws")
    async def realtime(websocket: WebSocket) -> None:
        """Subscribe to messageUpdate events."""
        await notifier.serve(websocket)

    return app


app = create_app()
