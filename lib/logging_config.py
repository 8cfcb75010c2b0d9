"""
Logging setup for subkeeper.

Interactive terminals get short colored lines with a status symbol, everything
else (service managers, pipes, log files) gets timestamped lines with the
emitting module so update cycles can be traced after the fact.
"""

import logging
import os
import re
import sys
from datetime import datetime
from typing import Optional

# Add TRACE level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Third-party loggers that are too chatty at DEBUG
QUIET_LOGGERS = ("urllib3", "apscheduler")

# Leading `[subscription]` tag of a log line
TAG_RE = re.compile(r"^\[([^\]]*)\]")


class TTYAwareFormatter(logging.Formatter):
    """Formatter that switches layout on TTY detection.

    TTY:
        ✓ [mysub] Update complete
        ✗ [mysub] Download failed: 503 Service Unavailable
        (the leading subscription tag is highlighted)

    Non-TTY:
        2026-10-19 08:00:00.012 INFO > subscriptions/manager.py:88: [mysub] Update complete
    """

    GREY = "\033[90m"
    WHITE = "\033[97m"
    CYAN = "\033[96m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    RESET = "\033[0m"

    SYMBOLS = {
        "TRACE": "›",
        "DEBUG": "•",
        "INFO": "✓",
        "WARNING": "⚠",
        "ERROR": "✗",
        "CRITICAL": "✗",
    }

    COLORS = {
        "TRACE": GREY,
        "DEBUG": CYAN,
        "INFO": GREEN,
        "WARNING": YELLOW,
        "ERROR": RED,
        "CRITICAL": RED,
    }

    def __init__(self, is_tty: bool):
        self.is_tty = is_tty
        if is_tty:
            super().__init__("%(message)s")
        else:
            super().__init__("%(asctime)s %(levelname)s > %(custom_pathname)s:%(lineno)d: %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        if not self.is_tty:
            ct = datetime.fromtimestamp(record.created)
            return ct.strftime("%Y-%m-%d %H:%M:%S") + f".{int(record.msecs):03d}"
        return super().formatTime(record, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        if not self.is_tty:
            if record.name != "__main__":
                record.custom_pathname = record.name.replace(".", "/") + ".py"
            else:
                record.custom_pathname = os.path.relpath(record.pathname)

        message = super().format(record)

        if self.is_tty:
            symbol = self.SYMBOLS.get(record.levelname, "›")
            color = self.COLORS.get(record.levelname, self.WHITE)
            message = TAG_RE.sub(lambda m: f"{self.CYAN}[{m.group(1)}]{self.RESET}", message, count=1)
            return f"{color}{symbol}{self.RESET} {message}"

        return message


def resolve_level(level: Optional[str] = None) -> int:
    """Turn a level name (or LOG_LEVEL) into a logging level number, INFO when unknown."""
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if name == "TRACE":
        return TRACE
    return getattr(logging, name, logging.INFO)


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Args:
        level: Level name (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to the LOG_LEVEL env var, then INFO.
        log_file: Optional file that receives the structured format as well
    """
    level_const = resolve_level(level)
    is_tty = sys.stdout.isatty()

    handlers: list[logging.Handler] = []

    console = logging.StreamHandler()
    console.setFormatter(TTYAwareFormatter(is_tty))
    handlers.append(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(TTYAwareFormatter(is_tty=False))
        handlers.append(file_handler)

    logging.root.setLevel(level_const)
    logging.root.handlers = handlers

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level_const, logging.WARNING))
