"""
API Dependencies - pipeline access for FastAPI endpoints

The pipeline objects (registry, mailbox, codec...) are created by
main_asyncio.py and handed to create_app(), which stores them on app.state.
Endpoints get them through the get_pipeline() dependency instead of module
globals, so tests can build isolated apps.

Example:
    @app.get("/api/v1/telemetry")
    async def telemetry(pipeline: PipelineContext = Depends(get_pipeline)):
        return pipeline.registry.as_dict()
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, status
from starlette.requests import HTTPConnection

from engine.connection_registry import ConnectionRegistry
from engine.frame_mailbox import FrameMailbox
from engine.ingestion_worker import FatalCallback, IngestionSupervisor
from engine.render_loop import RenderLoop
from protocol.frame_codec import FrameCodec


@dataclass
class PipelineContext:
    """Everything a transport needs to spawn ingestion workers."""
    registry: ConnectionRegistry
    mailbox: FrameMailbox
    codec: FrameCodec
    supervisor: IngestionSupervisor
    render_loop: Optional[RenderLoop] = None
    on_fatal: Optional[FatalCallback] = None


def get_pipeline(connection: HTTPConnection) -> PipelineContext:
    """
    FastAPI dependency for HTTP and websocket endpoints.

    Raises:
        HTTPException: 503 if the app was created without a pipeline
    """
    pipeline = getattr(connection.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pipeline not initialized",
        )
    return pipeline
