"""
Raw TCP stream transport.

A lighter alternative to the websocket for embedded senders: each message is
a 2-byte big-endian LED count followed by that many RGB triplets, repeated
until the peer closes the connection.

    [led_count: u16 BE][led_count * 3 bytes][led_count: u16 BE][...]...

Payloads always use canonical framing, whatever protocol.mode says.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Set

from api.dependencies import PipelineContext
from engine.ingestion_worker import CLOSE_NORMAL, InboundMessage, IngestionWorker
from models.enums import FramingMode, MessageKind
from models.errors import BindError
from protocol.frame_codec import BYTES_PER_LED, STREAM_PREFIX_SIZE, FrameCodec, parse_led_count
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.INGEST)


class StreamSource:
    """Adapts an asyncio stream pair to the MessageSource interface."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self._reader = reader
        self._writer = writer

    @property
    def peer(self) -> str:
        peername = self._writer.get_extra_info("peername")
        if not peername:
            return "unknown"
        return f"{peername[0]}:{peername[1]}"

    async def receive(self) -> InboundMessage:
        try:
            prefix = await self._reader.readexactly(STREAM_PREFIX_SIZE)
        except asyncio.IncompleteReadError as e:
            if e.partial:
                log.warn("Stream ended inside a length prefix", peer=self.peer)
            return InboundMessage(MessageKind.CLOSE)

        led_count = parse_led_count(prefix)
        try:
            body = await self._reader.readexactly(led_count * BYTES_PER_LED)
        except asyncio.IncompleteReadError as e:
            log.warn(
                "Stream ended mid-frame",
                peer=self.peer,
                expected=led_count * BYTES_PER_LED,
                received=len(e.partial),
            )
            return InboundMessage(MessageKind.CLOSE)

        return InboundMessage(MessageKind.BINARY, body)

    async def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        # Plain TCP has no close code; the reason only goes to the log
        if self._writer.is_closing():
            return
        log.debug(f"Closing stream connection ({reason or code})", peer=self.peer)
        self._writer.close()
        await self._writer.wait_closed()


class StreamListener:
    """
    asyncio TCP server spawning one IngestionWorker per client.

    Example:
        listener = StreamListener(pipeline, "0.0.0.0", 7201)
        await listener.start()      # raises BindError
        ...
        await listener.stop()
    """

    def __init__(self, pipeline: PipelineContext, host: str, port: int):
        self.pipeline = pipeline
        self.host = host
        self.port = port
        self._codec = FrameCodec(FramingMode.CANONICAL)
        self._server: Optional[asyncio.AbstractServer] = None
        self._workers: Set[IngestionWorker] = set()

    async def start(self) -> None:
        """
        Bind and start accepting connections.

        Port 0 binds an ephemeral port; self.port is updated to the real one.

        Raises:
            BindError: the address could not be bound
        """
        try:
            self._server = await asyncio.start_server(
                self._handle_client, self.host, self.port, reuse_address=True
            )
        except OSError as e:
            raise BindError(self.host, self.port, str(e)) from e

        self.port = self._server.sockets[0].getsockname()[1]
        log.info(f"Stream listener on tcp://{self.host}:{self.port}")

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        worker = IngestionWorker(
            StreamSource(reader, writer),
            self.pipeline.registry,
            self.pipeline.mailbox,
            self._codec,
            on_fatal=self.pipeline.on_fatal,
        )
        self._workers.add(worker)
        try:
            await self.pipeline.supervisor.run(worker)
        finally:
            self._workers.discard(worker)
            if not writer.is_closing():
                writer.close()

    async def stop(self) -> None:
        """Stop accepting, close live stream connections and wait for the server to wind down."""
        if self._server is None:
            return

        self._server.close()
        for worker in list(self._workers):
            await worker.close()
        await self._server.wait_closed()
        self._server = None

        log.info("Stream listener stopped")

    @property
    def is_serving(self) -> bool:
        return self._server is not None and self._server.is_serving()
