import sys
import traceback
from datetime import datetime
from typing import List, Optional, TextIO
from models.enums import LogLevel, LogCategory

# === ANSI COLORS ===
class Colors:
    """ANSI escape codes for colored terminal output"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    # Foreground colors
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'

    # Bright foreground colors
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_MAGENTA = '\033[95m'
    BRIGHT_CYAN = '\033[96m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_WHITE = '\033[97m'


CATEGORY_COLORS = {
    LogCategory.CONFIG: Colors.CYAN,
    LogCategory.HARDWARE: Colors.BRIGHT_BLUE,
    LogCategory.SYSTEM: Colors.BRIGHT_WHITE,
    LogCategory.RENDER_ENGINE: Colors.MAGENTA,
    LogCategory.INGEST: Colors.BRIGHT_GREEN,
    LogCategory.TELEMETRY: Colors.BRIGHT_YELLOW,
    LogCategory.API: Colors.BRIGHT_CYAN,
    LogCategory.WEBSOCKET: Colors.BRIGHT_CYAN,
    LogCategory.SHUTDOWN: Colors.BRIGHT_MAGENTA,
}

LEVEL_SYMBOLS = {
    LogLevel.DEBUG: '·',
    LogLevel.INFO: '✓',
    LogLevel.WARN: '⚠',
    LogLevel.ERROR: '✗',
}

LEVEL_COLORS = {
    LogLevel.DEBUG: Colors.DIM,
    LogLevel.INFO: Colors.GREEN,
    LogLevel.WARN: Colors.YELLOW,
    LogLevel.ERROR: Colors.RED,
}


# === CORE LOGGER ===
class Logger:
    """
    Structured logger with compact output format

    Format:
    [HH:MM:SS] CATEGORY  ✓ Message
               ├─ key: value
               └─ key: value

    Example:
    [14:23:45] INGEST    ✓ (2) client  3: New connection
               └─ peer: 192.168.1.20:51544

    Lines go to `stream` (stdout when None, looked up on every write so
    redirection and capture keep working).
    """

    def __init__(self, min_level: LogLevel = LogLevel.INFO, use_colors: bool = True,
                 stream: Optional[TextIO] = None):
        self.min_level = min_level
        self.use_colors = use_colors
        self.stream = stream
        self._level_priority = {
            LogLevel.DEBUG: 0,
            LogLevel.INFO: 1,
            LogLevel.WARN: 2,
            LogLevel.ERROR: 3,
        }

    def _should_log(self, level: LogLevel) -> bool:
        return self._level_priority[level] >= self._level_priority[self.min_level]

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    # === Formatting ===

    def _format_header(self, category: LogCategory, level: LogLevel, message: str) -> str:
        timestamp = datetime.now().strftime('[%H:%M:%S]')
        cat = self._colorize(category.name.ljust(9), CATEGORY_COLORS.get(category, Colors.WHITE))
        sym = self._colorize(LEVEL_SYMBOLS.get(level, '·'), LEVEL_COLORS.get(level, Colors.WHITE))
        msg = self._colorize(message, LEVEL_COLORS.get(level, Colors.WHITE))
        return f"{timestamp} {cat} {sym} {msg}"

    def _format_details(self, details: List[str]) -> List[str]:
        """Tree-indent detail lines under the header (└─ marks the last one)."""
        indent = " " * 11
        lines = []
        for i, detail in enumerate(details):
            branch = "└─" if i == len(details) - 1 else "├─"
            lines.append(f"{indent}{self._colorize(branch, Colors.DIM)} {detail}")
        return lines

    def _emit(self, lines: List[str]) -> None:
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write("\n".join(lines) + "\n")
        stream.flush()

    def log(
        self,
        category: LogCategory,
        message: str,
        level: LogLevel = LogLevel.INFO,
        details: Optional[list] = None,
        exc_info: bool = False,
        **kwargs
    ):
        """
        Log a structured message

        Args:
            category: Log category (HARDWARE, INGEST, etc.)
            message: Main message text
            level: Log level (DEBUG, INFO, WARN, ERROR)
            details: Detail strings shown below the message
            exc_info: Append the traceback of the exception being handled
            **kwargs: Shown as "key: value" details after `details`
        """
        if not self._should_log(level):
            return

        all_details = list(details or [])
        all_details.extend(f"{k}: {v}" for k, v in kwargs.items())

        lines = [self._format_header(category, level, message)]
        lines.extend(self._format_details(all_details))

        if exc_info:
            trace = traceback.format_exc()
            if trace.strip() != "NoneType: None":
                lines.append(self._colorize(trace.rstrip(), Colors.DIM))

        self._emit(lines)

    # === Level helpers ===
    def debug(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.DEBUG, **kw)
    def info(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.INFO, **kw)
    def warn(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.WARN, **kw)
    def error(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.ERROR, **kw)

    def for_category(self, category: LogCategory) -> 'BoundLogger':
        """Return a logger bound to a specific category."""
        return BoundLogger(self, category)


class BoundLogger:
    """
    Logger bound to a default category.

    Module-level pattern:
        log = get_logger().for_category(LogCategory.INGEST)
        log.info("Frame forwarded", leds=208)
    """

    def __init__(self, base: Logger, category: LogCategory):
        self._base = base
        self._category = category

    @property
    def category(self) -> LogCategory:
        return self._category

    def log(self, message: str, level: LogLevel = LogLevel.INFO, category: Optional[LogCategory] = None, **kw):
        self._base.log(category or self._category, message, level, **kw)

    def debug(self, message: str, **kw): self.log(message, LogLevel.DEBUG, **kw)
    def info(self, message: str, **kw): self.log(message, LogLevel.INFO, **kw)
    def warn(self, message: str, **kw): self.log(message, LogLevel.WARN, **kw)
    def error(self, message: str, **kw): self.log(message, LogLevel.ERROR, **kw)

    def with_category(self, category: LogCategory) -> 'BoundLogger':
        """Same base logger, different category (e.g. RENDER_ENGINE → TELEMETRY)."""
        return BoundLogger(self._base, category)


# === Global instance helpers ===
_logger = Logger()

def get_logger() -> Logger:
    return _logger

def get_category_logger(category: LogCategory) -> BoundLogger:
    return _logger.for_category(category)

def configure_logger(min_level: LogLevel = LogLevel.INFO, use_colors: bool = True,
                     stream: Optional[TextIO] = None):
    """
    Configure the logger singleton in place.

    Bound loggers created at import time keep a reference to the singleton,
    so replacing it would silently detach them.
    """
    _logger.min_level = min_level
    _logger.use_colors = use_colors
    _logger.stream = stream
