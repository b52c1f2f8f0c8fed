"""
Raw TCP stream transport over a real loopback socket.
"""

import asyncio
import socket

import pytest
import pytest_asyncio

from api.dependencies import PipelineContext
from api.stream_listener import StreamListener
from engine.ingestion_worker import IngestionSupervisor
from models.color import Color
from models.errors import BindError
from models.frame import Frame
from protocol.frame_codec import FrameCodec, encode_stream_message


@pytest.fixture
def pipeline(registry, mailbox):
    return PipelineContext(
        registry=registry,
        mailbox=mailbox,
        codec=FrameCodec(),
        supervisor=IngestionSupervisor(),
    )


@pytest_asyncio.fixture
async def listener(pipeline):
    listener = StreamListener(pipeline, "127.0.0.1", 0)
    await listener.start()
    yield listener
    await listener.stop()


async def _wait_for(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_frames_reach_mailbox(listener, pipeline):
    reader, writer = await asyncio.open_connection("127.0.0.1", listener.port)
    writer.write(encode_stream_message(Frame.from_colors([Color(255, 0, 0)])))
    writer.write(encode_stream_message(Frame.from_colors([Color(0, 255, 0), Color(0, 0, 255)])))
    await writer.drain()

    await _wait_for(lambda: pipeline.registry.total_accepted == 1)
    writer.close()
    await writer.wait_closed()
    await _wait_for(lambda: pipeline.registry.open_connections == 0)

    message = pipeline.mailbox.try_take()
    assert list(message.frame) == [Color(0, 255, 0), Color(0, 0, 255)]
    assert pipeline.mailbox.dropped == 1


@pytest.mark.asyncio
async def test_truncated_frame_closes_connection(listener, pipeline):
    reader, writer = await asyncio.open_connection("127.0.0.1", listener.port)
    # prefix announces 2 LEDs, only one follows
    writer.write(b"\x00\x02" + bytes([1, 2, 3]))
    await writer.drain()
    writer.close()
    await writer.wait_closed()

    await _wait_for(lambda: pipeline.registry.total_accepted == 1)
    await _wait_for(lambda: pipeline.registry.open_connections == 0)

    assert pipeline.mailbox.try_take() is None


@pytest.mark.asyncio
async def test_port_in_use_raises_bind_error(pipeline):
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind(("127.0.0.1", 0))
    blocker.listen(1)
    port = blocker.getsockname()[1]

    listener = StreamListener(pipeline, "127.0.0.1", port)
    try:
        with pytest.raises(BindError) as exc_info:
            await listener.start()
    finally:
        blocker.close()

    assert exc_info.value.details["port"] == port
    assert not listener.is_serving


@pytest.mark.asyncio
async def test_stop_closes_live_connections(pipeline):
    listener = StreamListener(pipeline, "127.0.0.1", 0)
    await listener.start()
    assert listener.is_serving

    reader, writer = await asyncio.open_connection("127.0.0.1", listener.port)
    await _wait_for(lambda: pipeline.registry.open_connections == 1)

    await asyncio.wait_for(listener.stop(), timeout=2.0)

    # Server side closed the socket: the client reads EOF
    assert await asyncio.wait_for(reader.read(), timeout=2.0) == b""
    await _wait_for(lambda: pipeline.registry.open_connections == 0)
    assert not listener.is_serving

    writer.close()


@pytest.mark.asyncio
async def test_stop_without_start_is_noop(pipeline):
    listener = StreamListener(pipeline, "127.0.0.1", 0)
    await listener.stop()
    assert not listener.is_serving
