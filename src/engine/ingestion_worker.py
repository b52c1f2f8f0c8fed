"""
IngestionWorker - one per accepted connection.

Reads application messages from a transport (websocket or raw TCP stream),
decodes binary payloads, tags each decoded payload with a ConnectionInfo
snapshot and drops it into the FrameMailbox.

Failure scopes:
  - ProtocolError  → only this connection is closed
  - PipelineError  → fatal for the process (on_fatal callback)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Set, Union

from engine.connection_registry import ConnectionRegistry
from engine.frame_mailbox import FrameMailbox
from models.enums import MessageKind, WorkerExit
from models.errors import PipelineError, ProtocolError
from protocol.frame_codec import FrameCodec
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.INGEST)

# Close codes (RFC 6455)
CLOSE_NORMAL = 1000
CLOSE_GOING_AWAY = 1001
CLOSE_UNSUPPORTED_DATA = 1003
CLOSE_INTERNAL_ERROR = 1011


@dataclass(frozen=True)
class InboundMessage:
    """One application message as delivered by a transport."""
    kind: MessageKind
    data: Union[bytes, str, None] = None


class MessageSource(Protocol):
    """
    Transport seam for IngestionWorker.

    receive() must turn a peer disconnect / end of stream into a CLOSE
    message instead of raising.
    """

    @property
    def peer(self) -> str:
        ...

    async def receive(self) -> InboundMessage:
        ...

    async def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        ...


FatalCallback = Callable[[BaseException], None]


class IngestionWorker:
    """
    Per-connection reader.

    Example:
        worker = IngestionWorker(source, registry, mailbox, codec, on_fatal=coordinator.fail)
        exit_reason = await worker.run()
    """

    def __init__(
        self,
        source: MessageSource,
        registry: ConnectionRegistry,
        mailbox: FrameMailbox,
        codec: FrameCodec,
        on_fatal: Optional[FatalCallback] = None,
    ):
        self.source = source
        self.registry = registry
        self.mailbox = mailbox
        self.codec = codec
        self.on_fatal = on_fatal

        self.client_id: Optional[int] = None
        self.frames_forwarded = 0
        self._closing = False

    async def run(self) -> WorkerExit:
        """Read until the peer closes, the payload is malformed or the pipeline breaks."""
        self.client_id = self.registry.accept()
        log.info(
            f"({self.registry.open_connections}) client {self.client_id:>2}: New connection",
            peer=self.source.peer,
        )

        try:
            return await self._receive_loop()
        finally:
            self.registry.close(self.client_id)
            log.info(
                f"({self.registry.open_connections}) client {self.client_id:>2}: Connection closed",
                frames=self.frames_forwarded,
            )

    async def _receive_loop(self) -> WorkerExit:
        client_id = self.client_id
        while True:
            try:
                message = await self.source.receive()
            except Exception as e:
                if self._closing:
                    return WorkerExit.SHUTDOWN
                log.error(f"client {client_id:>2}: receive failed: {type(e).__name__}: {e}")
                return WorkerExit.TRANSPORT_ERROR

            if message.kind is MessageKind.BINARY:
                exit_reason = await self._forward(message.data or b"")
                if exit_reason is not None:
                    return exit_reason
            elif message.kind is MessageKind.TEXT:
                log.info(f"client {client_id:>2}: text: {message.data}")
            elif message.kind is MessageKind.PING:
                log.debug(f"client {client_id:>2}: ping")
            elif message.kind is MessageKind.PONG:
                log.debug(f"client {client_id:>2}: pong")
            elif message.kind is MessageKind.CLOSE:
                return WorkerExit.SHUTDOWN if self._closing else WorkerExit.CLOSED

    async def _forward(self, data: bytes) -> Optional[WorkerExit]:
        """Decode and hand one payload to the mailbox; returns an exit reason to stop."""
        client_id = self.client_id
        try:
            payload = self.codec.decode_payload(data)
        except ProtocolError as e:
            log.warn(f"client {client_id:>2}: malformed frame, closing connection", error=e.message)
            await self._close_source(CLOSE_UNSUPPORTED_DATA, e.code)
            return WorkerExit.PROTOCOL_ERROR

        message = self.codec.to_message(payload, self.registry.snapshot(client_id))
        try:
            self.mailbox.put(message)
        except PipelineError as e:
            if self._closing:
                # Render loop closed the mailbox as part of shutdown
                log.debug(f"client {client_id:>2}: frame dropped during shutdown")
                return WorkerExit.SHUTDOWN
            log.error(f"client {client_id:>2}: {e.message}")
            if self.on_fatal is not None:
                self.on_fatal(e)
            await self._close_source(CLOSE_INTERNAL_ERROR, e.code)
            return WorkerExit.PIPELINE_BROKEN

        self.frames_forwarded += 1
        log.debug(f"client {client_id:>2}: frame", leds=message.frame.led_count)
        return None

    async def close(self) -> None:
        """Ask the peer to go away (server shutdown)."""
        self._closing = True
        await self._close_source(CLOSE_GOING_AWAY, "server shutting down")

    async def _close_source(self, code: int, reason: str) -> None:
        try:
            await self.source.close(code, reason)
        except Exception as e:
            # Peer already gone; the connection is finished either way
            log.debug(f"client {self.client_id}: close failed: {e}")


class IngestionSupervisor:
    """Tracks live workers so shutdown can close their sockets."""

    def __init__(self) -> None:
        self._workers: Set[IngestionWorker] = set()

    async def run(self, worker: IngestionWorker) -> WorkerExit:
        self._workers.add(worker)
        try:
            return await worker.run()
        finally:
            self._workers.discard(worker)

    async def close_all(self) -> None:
        for worker in list(self._workers):
            await worker.close()

    @property
    def active(self) -> int:
        return len(self._workers)
