"""
FastAPI Application Factory

Assembles the HTTP/WebSocket surface of the pipeline:
- WebSocket ingestion endpoint at /
- Health check at /api/health
- Telemetry routes under /api/v1

The factory takes the pipeline objects explicitly, so main_asyncio.py and the
tests build the same app around different registries, mailboxes and strips.
"""

from fastapi import Depends, FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from typing import List, Optional

from api.dependencies import PipelineContext, get_pipeline
from api.routes import telemetry
from api.schemas.telemetry import HealthResponse
from api.websocket import websocket_frames_endpoint
from utils.logger import get_logger
from models.enums import LogCategory

log = get_logger().for_category(LogCategory.API)

SERVICE_NAME = "ledwire"


def create_app(
    pipeline: PipelineContext,
    title: str = "ledwire",
    description: str = "Streams LED frames from websocket clients to an addressable strip",
    version: str = "1.0.0",
    docs_enabled: bool = False,
    cors_origins: Optional[List[str]] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        pipeline: Registry, mailbox, codec and supervisor shared by all connections
        title: API title (shown in docs)
        description: API description
        version: API version
        docs_enabled: Enable /docs and /openapi.json
        cors_origins: CORS allowed origins for the HTTP endpoints (default: all)

    Returns:
        Configured FastAPI application ready to run
    """
    app = FastAPI(
        title=title,
        description=description,
        version=version,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.state.pipeline = pipeline

    log.info(f"Creating FastAPI app: {title} v{version}", framing=pipeline.codec.mode.value)

    # =========================================================================
    # CORS Configuration
    # =========================================================================
    # Telemetry is read by browser dashboards served from other origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Routes
    # =========================================================================

    app.include_router(telemetry.router, prefix="/api/v1")

    @app.get(
        "/api/health",
        tags=["System"],
        summary="Health check",
        response_model=HealthResponse,
    )
    async def health_check() -> HealthResponse:
        """Simple health check endpoint for monitoring"""
        return HealthResponse(status="healthy", service=SERVICE_NAME, version=version)

    # =========================================================================
    # WebSocket Endpoints
    # =========================================================================

    @app.websocket("/")
    async def websocket_frames(websocket: WebSocket, pipeline: PipelineContext = Depends(get_pipeline)):
        """Frame ingestion: one binary message = one payload"""
        await websocket_frames_endpoint(websocket, pipeline)

    log.debug("Routes registered: ws (/), health (/api/health), telemetry (/api/v1/telemetry)")

    return app
