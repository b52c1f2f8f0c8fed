import asyncio

import pytest

from engine.ingestion_worker import (
    CLOSE_GOING_AWAY,
    CLOSE_INTERNAL_ERROR,
    CLOSE_UNSUPPORTED_DATA,
    InboundMessage,
    IngestionSupervisor,
    IngestionWorker,
)
from models.color import Color
from models.enums import FramingMode, MessageKind, WorkerExit
from models.errors import PipelineError
from protocol.frame_codec import FrameCodec


def binary(*values):
    return InboundMessage(MessageKind.BINARY, bytes(values))


@pytest.fixture
def codec():
    return FrameCodec(FramingMode.CANONICAL)


@pytest.mark.asyncio
async def test_forwards_frames_with_connection_snapshot(fake_source, registry, mailbox, codec):
    worker = IngestionWorker(fake_source(binary(255, 0, 0)), registry, mailbox, codec)

    exit_reason = await worker.run()

    assert exit_reason is WorkerExit.CLOSED
    message = mailbox.try_take()
    assert message.connection.client_id == 0
    assert message.connection.open_connections == 1
    assert message.frame.led(0) == Color(255, 0, 0)
    assert worker.frames_forwarded == 1


@pytest.mark.asyncio
async def test_registry_closed_exactly_once(fake_source, registry, mailbox, codec):
    worker = IngestionWorker(fake_source(binary(1, 2, 3), binary(4, 5, 6)), registry, mailbox, codec)

    await worker.run()

    assert registry.open_connections == 0
    assert registry.total_accepted == 1


@pytest.mark.asyncio
async def test_text_ping_pong_are_ignored(fake_source, registry, mailbox, codec):
    source = fake_source(
        InboundMessage(MessageKind.TEXT, "hello"),
        InboundMessage(MessageKind.PING, b""),
        InboundMessage(MessageKind.PONG, b""),
        binary(0, 0, 9),
    )
    worker = IngestionWorker(source, registry, mailbox, codec)

    assert await worker.run() is WorkerExit.CLOSED
    assert worker.frames_forwarded == 1
    assert mailbox.try_take().frame.led(0) == Color(0, 0, 9)


@pytest.mark.asyncio
async def test_malformed_payload_closes_only_this_connection(fake_source, registry, mailbox, codec):
    bad = fake_source(binary(1, 2, 3, 4), binary(9, 9, 9))
    good = fake_source(binary(7, 7, 7))

    bad_exit, good_exit = await asyncio.gather(
        IngestionWorker(bad, registry, mailbox, codec).run(),
        IngestionWorker(good, registry, mailbox, codec).run(),
    )

    assert bad_exit is WorkerExit.PROTOCOL_ERROR
    assert bad.closed_with[0] == CLOSE_UNSUPPORTED_DATA
    assert good_exit is WorkerExit.CLOSED
    assert good.closed_with is None
    # Nothing after the malformed payload was read from the bad connection
    assert mailbox.try_take().frame.led(0) == Color(7, 7, 7)
    assert registry.open_connections == 0


@pytest.mark.asyncio
async def test_closed_mailbox_is_fatal(fake_source, registry, mailbox, codec):
    failures = []
    mailbox.close()
    source = fake_source(binary(1, 1, 1), binary(2, 2, 2))
    worker = IngestionWorker(source, registry, mailbox, codec, on_fatal=failures.append)

    assert await worker.run() is WorkerExit.PIPELINE_BROKEN
    assert len(failures) == 1
    assert isinstance(failures[0], PipelineError)
    assert source.closed_with[0] == CLOSE_INTERNAL_ERROR
    assert registry.open_connections == 0


@pytest.mark.asyncio
async def test_closed_mailbox_during_shutdown_is_not_fatal(fake_source, registry, mailbox, codec):
    # Render loop already stopped; a frame still in flight from a closing client
    failures = []
    mailbox.close()
    source = fake_source(binary(1, 1, 1))
    worker = IngestionWorker(source, registry, mailbox, codec, on_fatal=failures.append)
    await worker.close()

    assert await worker.run() is WorkerExit.SHUTDOWN
    assert failures == []
    assert source.closed_with[0] == CLOSE_GOING_AWAY
    assert registry.open_connections == 0


@pytest.mark.asyncio
async def test_transport_error_ends_worker(fake_source, registry, mailbox, codec):
    worker = IngestionWorker(fake_source(ConnectionResetError("peer reset")), registry, mailbox, codec)

    assert await worker.run() is WorkerExit.TRANSPORT_ERROR
    assert registry.open_connections == 0


@pytest.mark.asyncio
async def test_legacy_clip_forwarded_as_one_message(fake_source, registry, mailbox):
    codec = FrameCodec(FramingMode.LEGACY)
    worker = IngestionWorker(fake_source(binary(2, 1, 30, 1, 1, 1, 2, 2, 2)), registry, mailbox, codec)

    await worker.run()

    message = mailbox.try_take()
    assert message.is_clip
    assert message.frame_rate == 30.0
    assert len(message.frames) == 2


class BlockingSource:
    """Source that waits until close() is called."""

    def __init__(self):
        self._closed = asyncio.Event()
        self.closed_with = None

    @property
    def peer(self):
        return "10.0.0.2:4000"

    async def receive(self):
        await self._closed.wait()
        return InboundMessage(MessageKind.CLOSE)

    async def close(self, code=1000, reason=""):
        self.closed_with = (code, reason)
        self._closed.set()


@pytest.mark.asyncio
async def test_supervisor_closes_live_workers(registry, mailbox, codec):
    supervisor = IngestionSupervisor()
    sources = [BlockingSource(), BlockingSource()]
    tasks = [
        asyncio.create_task(supervisor.run(IngestionWorker(s, registry, mailbox, codec)))
        for s in sources
    ]
    await asyncio.sleep(0)
    assert supervisor.active == 2
    assert registry.open_connections == 2

    await supervisor.close_all()
    exits = await asyncio.wait_for(asyncio.gather(*tasks), timeout=1.0)

    assert exits == [WorkerExit.SHUTDOWN, WorkerExit.SHUTDOWN]
    assert all(s.closed_with[0] == CLOSE_GOING_AWAY for s in sources)
    assert supervisor.active == 0
    assert registry.open_connections == 0
