"""
WebSocket ingestion endpoint.

Each accepted websocket gets its own IngestionWorker; Starlette already runs
every websocket session in its own task. Binary messages are frame payloads,
text messages are only logged. Ping/pong control frames never reach this
layer: uvicorn answers them inside its websocket protocol implementation.
"""

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from api.dependencies import PipelineContext
from engine.ingestion_worker import CLOSE_NORMAL, InboundMessage, IngestionWorker
from models.enums import MessageKind
from utils.logger import get_category_logger, LogCategory

log = get_category_logger(LogCategory.WEBSOCKET)


class WebSocketSource:
    """Adapts a Starlette WebSocket to the MessageSource interface."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def peer(self) -> str:
        client = self.websocket.client
        return f"{client.host}:{client.port}" if client else "unknown"

    async def receive(self) -> InboundMessage:
        message = await self.websocket.receive()

        if message["type"] == "websocket.disconnect":
            return InboundMessage(MessageKind.CLOSE)

        if message.get("bytes") is not None:
            return InboundMessage(MessageKind.BINARY, message["bytes"])
        return InboundMessage(MessageKind.TEXT, message.get("text"))

    async def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return
        await self.websocket.close(code=code, reason=reason)


async def websocket_frames_endpoint(websocket: WebSocket, pipeline: PipelineContext) -> None:
    """
    Accept the websocket and run an IngestionWorker until the peer leaves,
    sends a malformed payload or the pipeline breaks.
    """
    await websocket.accept()

    worker = IngestionWorker(
        WebSocketSource(websocket),
        pipeline.registry,
        pipeline.mailbox,
        pipeline.codec,
        on_fatal=pipeline.on_fatal,
    )
    exit_reason = await pipeline.supervisor.run(worker)
    log.debug(f"client {worker.client_id}: worker finished", reason=exit_reason.name)
