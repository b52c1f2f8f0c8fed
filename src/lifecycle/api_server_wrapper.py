from __future__ import annotations
import asyncio
import socket
import uvicorn
from fastapi import FastAPI
from typing import Optional

from models.errors import BindError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)


class APIServerWrapper:
    """
    Wrapper for running Uvicorn inside an asyncio task without Uvicorn's
    signal handlers interfering with the shutdown pipeline.

    Behaviour:
      - bind() opens the listening socket up front, so an occupied port is a
        BindError at startup instead of a log line inside the serve task.
      - start() launches uvicorn.Server.serve() on that socket as a background
        task and awaits an internal stop event.
      - stop() triggers the stop event, attempts graceful shutdown, and forces
        exit if necessary.
    """

    def __init__(
        self,
        app: FastAPI,
        host: str = "0.0.0.0",
        port: int = 80,
    ):
        self.app = app
        self.host = host
        self.port = port
        self._socket: Optional[socket.socket] = None
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None
        self._stop_event: asyncio.Event = asyncio.Event()

    # ----------------------------------------------------------------------
    # INTERNAL
    # ----------------------------------------------------------------------
    def _create_server(self) -> uvicorn.Server:
        """Create a uvicorn.Server instance with disabled signal handlers."""
        config = uvicorn.Config(
            app=self.app,
            loop="asyncio",
            log_level="warning",
            access_log=False,
            server_header=False,
        )

        server = uvicorn.Server(config)

        # Signals belong to the ShutdownCoordinator
        server.install_signal_handlers = lambda: None  # type: ignore

        return server

    # ----------------------------------------------------------------------
    # PUBLIC API
    # ----------------------------------------------------------------------
    def bind(self) -> socket.socket:
        """
        Open the listening socket.

        Port 0 binds an ephemeral port; self.port is updated to the real one.

        Raises:
            BindError: address in use, permission denied, unknown host...
        """
        if self._socket is not None:
            return self._socket

        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            # Rebinding a port in TIME_WAIT after a quick restart
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
        except OSError as e:
            sock.close()
            raise BindError(self.host, self.port, str(e)) from e

        self.port = sock.getsockname()[1]
        self._socket = sock
        log.info(f"🌐 Bound http://{self.host}:{self.port}")
        return sock

    async def start(self, *, wait_started_timeout: float = 5.0) -> None:
        """
        Start uvicorn server in background and wait until stop() is called.

        Schedule start() with create_tracked_task() for a non-blocking start.
        """
        if self._serve_task is not None and not self._serve_task.done():
            raise RuntimeError("API server already started")

        sock = self.bind()
        self._server = self._create_server()
        self._stop_event.clear()

        log.info(f"🌐 Launching API server on ws://{self.host}:{self.port}/")

        self._serve_task = asyncio.create_task(
            self._server.serve(sockets=[sock]), name="UvicornServeInternal"
        )

        stop_waiter: Optional[asyncio.Future] = None
        try:
            deadline = asyncio.get_running_loop().time() + wait_started_timeout
            while asyncio.get_running_loop().time() < deadline:
                if getattr(self._server, "started", False):
                    log.info("🌐 API server reported started")
                    break
                if self._serve_task.done():
                    break
                await asyncio.sleep(0.05)

            stop_waiter = asyncio.ensure_future(self._stop_event.wait())
            await asyncio.wait({stop_waiter, self._serve_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # Covers the startup wait too: uvicorn must not outlive start()
            log.debug("start() cancelled externally, invoking stop()")
            await self.stop()
            raise
        finally:
            if stop_waiter is not None:
                stop_waiter.cancel()

        if not self._stop_event.is_set():
            # uvicorn returned on its own: startup failure or crash
            serve_task = self._serve_task
            self._server = None
            self._serve_task = None
            self._close_socket()
            serve_task.result()
            raise RuntimeError("Uvicorn server exited unexpectedly")

        log.debug("APIServerWrapper.start() exiting (stop_event set)")

    async def stop(self, *, shutdown_timeout: float = 2.0) -> None:
        """
        Stop the API server and release the port.

        Steps:
          1. set stop_event so start() unblocks
          2. set should_exit / force_exit so uvicorn's main loop runs its own
             shutdown without waiting on open connections
          3. cancel the serve task if it does not finish within shutdown_timeout
          4. close the listening socket
        """
        self._stop_event.set()

        if self._server is None:
            log.debug("API server stop() called but server was not running")
            self._close_socket()
            return

        log.info("🌐 Stopping API server...")

        self._server.should_exit = True
        self._server.force_exit = True

        serve_task = self._serve_task
        if serve_task is not None and not serve_task.done():
            done, _ = await asyncio.wait({serve_task}, timeout=shutdown_timeout)
            if done:
                log.info("🌐 API server shutdown completed")
            else:
                log.warn("🌐 API server shutdown timeout; cancelling serve task")
                serve_task.cancel()
                await asyncio.gather(serve_task, return_exceptions=True)

        self._close_socket()
        self._server = None
        self._serve_task = None

        log.info("🌐 API server stopped and port released")

    def _close_socket(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    # ----------------------------------------------------------------------
    # PROPERTIES
    # ----------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        """Return whether a uvicorn serve task is active."""
        return self._serve_task is not None and not self._serve_task.done()

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._serve_task

    @property
    def server(self) -> Optional[uvicorn.Server]:
        return self._server
