from .api_server_shutdown_handler import APIServerShutdownHandler
from .stream_listener_shutdown_handler import StreamListenerShutdownHandler
from .ingestion_shutdown_handler import IngestionShutdownHandler
from .render_loop_shutdown_handler import RenderLoopShutdownHandler
from .led_shutdown_handler import LEDShutdownHandler
from .task_cancellation_handler import TaskCancellationHandler

__all__ = [
    "APIServerShutdownHandler",
    "StreamListenerShutdownHandler",
    "IngestionShutdownHandler",
    "RenderLoopShutdownHandler",
    "LEDShutdownHandler",
    "TaskCancellationHandler",
]
