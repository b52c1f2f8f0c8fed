import asyncio
import socket

import pytest
import pytest_asyncio
from fastapi import FastAPI

from lifecycle.api_server_wrapper import APIServerWrapper
from models.errors import BindError


@pytest_asyncio.fixture
async def api_wrapper():
    app = FastAPI()
    wrapper = APIServerWrapper(app, host="127.0.0.1", port=0)
    yield wrapper
    await wrapper.stop()


async def _wait_started(wrapper, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not (wrapper.server is not None and getattr(wrapper.server, "started", False)):
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("uvicorn did not start")
        await asyncio.sleep(0.02)


@pytest.mark.asyncio
async def test_start_and_stop(api_wrapper):
    task = asyncio.create_task(api_wrapper.start())
    await _wait_started(api_wrapper)

    assert api_wrapper.is_running
    assert api_wrapper.port != 0

    await api_wrapper.stop()
    await asyncio.wait_for(task, timeout=2.0)

    assert not api_wrapper.is_running


@pytest.mark.asyncio
async def test_stop_without_start(api_wrapper):
    # Should not crash
    await api_wrapper.stop()


@pytest.mark.asyncio
async def test_bind_conflict_is_bind_error():
    occupied = socket.socket()
    occupied.bind(("127.0.0.1", 0))
    occupied.listen()
    port = occupied.getsockname()[1]
    try:
        wrapper = APIServerWrapper(FastAPI(), host="127.0.0.1", port=port)
        with pytest.raises(BindError) as exc:
            wrapper.bind()
        assert exc.value.details["port"] == port
    finally:
        occupied.close()


@pytest.mark.asyncio
async def test_stop_releases_port():
    wrapper = APIServerWrapper(FastAPI(), host="127.0.0.1", port=0)
    task = asyncio.create_task(wrapper.start())
    await _wait_started(wrapper)
    port = wrapper.port

    await wrapper.stop()
    await asyncio.wait_for(task, timeout=2.0)

    # port must be free now
    s = socket.socket()
    s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    s.bind(("127.0.0.1", port))
    s.close()


@pytest.mark.asyncio
async def test_start_cancelled_externally(api_wrapper):
    t = asyncio.create_task(api_wrapper.start())
    await _wait_started(api_wrapper)

    t.cancel()
    with pytest.raises(asyncio.CancelledError):
        await t

    assert not api_wrapper.is_running


@pytest.mark.asyncio
async def test_cancel_during_startup_wait_releases_port():
    wrapper = APIServerWrapper(FastAPI(), host="127.0.0.1", port=0)
    task = asyncio.create_task(wrapper.start())
    # start() is bound and polling for uvicorn's started flag
    while wrapper.task is None:
        await asyncio.sleep(0)
    port = wrapper.port

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(task, timeout=5.0)

    assert not wrapper.is_running
    assert wrapper.server is None

    s = socket.socket()
    s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    s.bind(("127.0.0.1", port))
    s.close()
