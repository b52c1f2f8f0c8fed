"""
Enums for the ledwire pipeline
"""

from enum import Enum, auto


class FramingMode(Enum):
    """
    Payload framing accepted on binary messages.

    CANONICAL: flat RGB triplets, one frame per message, no header
    LEGACY: 3-byte header (frame_count, led_count, frame_rate) + clip body
    """
    CANONICAL = "canonical"
    LEGACY = "legacy"


class StripBackend(Enum):
    """Which strip driver renders frames"""
    AUTO = "auto"            # WS281x on a Raspberry Pi, terminal elsewhere
    WS281X = "ws281x"        # rpi_ws281x hardware driver
    TERMINAL = "terminal"    # truecolor escape cells on a text stream
    VIRTUAL = "virtual"      # in-memory buffer (tests, headless dev)


class MessageKind(Enum):
    """Application-level message kinds delivered by a transport"""
    BINARY = auto()
    TEXT = auto()
    PING = auto()
    PONG = auto()
    CLOSE = auto()


class WorkerExit(Enum):
    """Why an ingestion worker stopped"""
    CLOSED = auto()           # peer closed / end of stream
    PROTOCOL_ERROR = auto()   # malformed payload, connection dropped
    TRANSPORT_ERROR = auto()  # read failed underneath the protocol
    PIPELINE_BROKEN = auto()  # render loop gone (fatal for the process)
    SHUTDOWN = auto()         # closed by the server during shutdown


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()         # Configuration loading, validation
    HARDWARE = auto()       # Strip drivers
    SYSTEM = auto()         # Startup, shutdown, fatal errors
    RENDER_ENGINE = auto()  # Render loop
    INGEST = auto()         # Ingestion workers, mailbox
    TELEMETRY = auto()      # Periodic latency/connection reports

    API = auto()
    WEBSOCKET = auto()

    SHUTDOWN = auto()
    LIFECYCLE = auto()
    TASK = auto()

    GENERAL = auto()    # Default general category
