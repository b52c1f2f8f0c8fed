"""
main_asyncio.py - Application entry point for ledwire
-----------------------------------------------------

Responsible for:
- loading configuration and opening the strip
- wiring the ingestion pipeline (registry, mailbox, codec, render loop)
- binding the websocket server (and the optional raw TCP stream listener)
- graceful shutdown on Ctrl+C or fatal errors

Exit code 0 after a signal, 1 when a fatal error (bind failure, device
failure, broken pipeline) stopped the process.
"""

import sys

# ---------------------------------------------------------------------------
# UTF-8 ENCODING FIX (important for Raspberry Pi)
# ---------------------------------------------------------------------------

# Log symbols and telemetry cells are not ASCII
if hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding != 'UTF-8':
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore
if hasattr(sys.stderr, 'reconfigure') and sys.stderr.encoding != 'UTF-8':
    sys.stderr.reconfigure(encoding='utf-8')  # type: ignore

import asyncio
from typing import Optional

from api.dependencies import PipelineContext
from api.main import create_app
from api.stream_listener import StreamListener
from engine.connection_registry import ConnectionRegistry
from engine.frame_mailbox import FrameMailbox
from engine.ingestion_worker import IngestionSupervisor
from engine.render_loop import RenderLoop
from hardware.led import IPhysicalStrip, create_strip, resolve_backend
from lifecycle import ShutdownCoordinator, TaskCategory, create_tracked_task
from lifecycle.api_server_wrapper import APIServerWrapper
from lifecycle.handlers import (
    APIServerShutdownHandler,
    IngestionShutdownHandler,
    LEDShutdownHandler,
    RenderLoopShutdownHandler,
    StreamListenerShutdownHandler,
    TaskCancellationHandler,
)
from managers import ConfigManager
from models.errors import LedwireError
from protocol.frame_codec import FrameCodec
from utils.logger import get_logger, configure_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)


# ---------------------------------------------------------------------------
# Application Entry
# ---------------------------------------------------------------------------

async def main(config_path: Optional[str] = None) -> int:
    """Main async entry point (dependency injection and event loop startup)."""
    log.info("Starting ledwire...")

    strip: Optional[IPhysicalStrip] = None
    stream_listener: Optional[StreamListener] = None

    try:
        # ====================================================================
        # 1. CONFIGURATION
        # ====================================================================
        log.info("Loading configuration...")
        config = ConfigManager(config_path).load()
        configure_logger(config.logging.level, config.logging.colors)

        # ====================================================================
        # 2. HARDWARE
        # ====================================================================
        log.info("Initializing LED strip...")
        strip = create_strip(config.strip)
        api_port = config.server.resolve_port(resolve_backend(config.strip.backend))

        # ====================================================================
        # 3. PIPELINE
        # ====================================================================
        coordinator = ShutdownCoordinator()

        mailbox = FrameMailbox()
        render_loop = RenderLoop(
            strip,
            mailbox,
            fps=config.render.target_fps,
            latency_window=config.render.latency_window,
            telemetry_interval=config.render.telemetry_interval,
        )
        pipeline = PipelineContext(
            registry=ConnectionRegistry(),
            mailbox=mailbox,
            codec=FrameCodec(config.protocol.mode),
            supervisor=IngestionSupervisor(),
            render_loop=render_loop,
            on_fatal=coordinator.fail,
        )

        # ====================================================================
        # 4. TRANSPORTS (bind before anything runs)
        # ====================================================================
        api_wrapper = APIServerWrapper(create_app(pipeline), config.server.host, api_port)
        api_wrapper.bind()

        if config.server.stream_port is not None:
            stream_listener = StreamListener(pipeline, config.server.host, config.server.stream_port)
            await stream_listener.start()

    except LedwireError as e:
        log.error(f"Startup failed: {e.message}", code=e.code, details=[f"{k}: {v}" for k, v in e.details.items()])
        if stream_listener is not None:
            await stream_listener.stop()
        if strip is not None:
            strip.shutdown()
        return 1

    # ========================================================================
    # 5. TASKS
    # ========================================================================
    await render_loop.start()
    create_tracked_task(
        api_wrapper.start(),
        category=TaskCategory.API,
        description="FastAPI/Uvicorn Server",
    )

    # ========================================================================
    # 6. SHUTDOWN COORDINATOR
    # ========================================================================
    log.info("Initializing shutdown system...")
    coordinator.register(APIServerShutdownHandler(api_wrapper))
    if stream_listener is not None:
        coordinator.register(StreamListenerShutdownHandler(stream_listener))
    coordinator.register(IngestionShutdownHandler(pipeline.supervisor))
    coordinator.register(RenderLoopShutdownHandler(render_loop))
    coordinator.register(LEDShutdownHandler(strip))
    coordinator.register(TaskCancellationHandler())

    loop = asyncio.get_running_loop()
    coordinator.setup_signal_handlers(loop)

    log.info("🏁 ledwire initialized. Waiting for frames...")

    await coordinator.wait_for_shutdown()
    await coordinator.shutdown_all()

    if coordinator.exit_code:
        log.error(f"ledwire stopped on failure: {coordinator.reason}")
    else:
        log.info("👋 ledwire shut down cleanly.")
    return coordinator.exit_code


def run() -> int:
    """Console script entry point."""
    try:
        return asyncio.run(main())
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received")
        return 0


# ---------------------------------------------------------------------------
# ENTRY POINT
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(run())
