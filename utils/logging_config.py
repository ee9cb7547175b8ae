"""
Logging configuration for the brrctl command line.

Handles:
- Unified formatter with ANSI colors and a 4-letter source tag
- Console handler on stderr that tolerates closed streams
- Log level selection from CLI flag or LOG_LEVEL / VERBOSE_LOGGING

stdout is reserved for command output (success messages, version info).
"""

import os
import re
import sys
import logging
from typing import Literal, Optional

from config.settings import config

SOURCE_TAGS = (
    ('utils.migration.reset', 'RSET'),
    ('utils.migration.seed', 'SEED'),
    ('utils.migration', 'MIGR'),
    ('utils.release_check', 'RELS'),
    ('config', 'CONF'),
    ('sqlalchemy', 'SQLA'),
    ('httpx', 'HTTP'),
    ('httpcore', 'HTTP'),
)


def _is_stream_usable(stream) -> bool:
    """
    Check if a stream is usable for logging without triggering errors.

    Returns True if stream can be written to, False otherwise.
    This function is safe to call even if the stream is closed.
    """
    if stream is None:
        return False

    try:
        if hasattr(stream, 'closed') and stream.closed:
            return False
        return hasattr(stream, 'write')
    except (AttributeError, ValueError, OSError):
        return False


class SafeStreamHandler(logging.StreamHandler):
    """StreamHandler that gracefully handles closed streams."""

    def emit(self, record):
        """Emit a record, handling closed streams gracefully."""
        if not _is_stream_usable(self.stream):
            return

        try:
            super().emit(record)
        except (ValueError, OSError) as error:
            # Handle "I/O operation on closed file" errors gracefully
            error_str = str(error).lower()
            if any(phrase in error_str for phrase in [
                "closed file", "i/o operation", "bad file descriptor",
                "operation on closed", "stream is closed"
            ]):
                return
            raise


class UnifiedFormatter(logging.Formatter):
    """Unified logging formatter with ANSI color support."""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARN': '\033[33m',     # Yellow
        'ERROR': '\033[31m',    # Red
        'CRIT': '\033[35m',     # Magenta
        'RESET': '\033[0m',     # Reset
        'BOLD': '\033[1m',      # Bold
    }

    LEVEL_MAP = {
        'DEBUG': 'DEBUG',
        'INFO': 'INFO',
        'WARNING': 'WARN',
        'ERROR': 'ERROR',
        'CRITICAL': 'CRIT'
    }

    def __init__(self, fmt=None, datefmt=None, style: Literal['%', '{', '$'] = '%', use_colors: bool = True):
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self.use_colors = use_colors

    @staticmethod
    def source_tag(logger_name: str) -> str:
        """Abbreviate a logger name to a 4-letter tag."""
        if logger_name in ('__main__', 'main'):
            return 'MAIN'
        for prefix, tag in SOURCE_TAGS:
            if logger_name == prefix or logger_name.startswith(prefix + '.'):
                return tag
        return logger_name[:4].upper()

    def format(self, record):
        timestamp = self.formatTime(record, '%H:%M:%S')
        level_name = self.LEVEL_MAP.get(record.levelname, record.levelname)

        if self.use_colors:
            color = self.COLORS.get(level_name, '')
            reset = self.COLORS['RESET']
            if level_name == 'CRIT':
                colored_level = f"{self.COLORS['BOLD']}{color}{level_name.ljust(5)}{reset}"
            else:
                colored_level = f"{color}{level_name.ljust(5)}{reset}"
        else:
            colored_level = level_name.ljust(5)

        source = self.source_tag(record.name).ljust(4)

        # Normalize message spacing
        message = record.getMessage().lstrip()
        message = re.sub(r' +', ' ', message)
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        return f"[{timestamp}] {colored_level} | {source} | {message}"


def resolve_log_level(level: Optional[str] = None) -> int:
    """
    Determine the effective log level.

    An explicit level wins; otherwise VERBOSE_LOGGING forces DEBUG and
    LOG_LEVEL is used.
    """
    if level:
        return getattr(logging, level.upper(), logging.INFO)
    if config.verbose_logging:
        return logging.DEBUG
    return getattr(logging, config.log_level, logging.INFO)


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure all logging for the command line.

    Args:
        level: Explicit level name from --log-level (overrides configuration)

    Returns:
        Logger for this module
    """
    log_level = resolve_log_level(level)
    handlers = []

    if _is_stream_usable(sys.stderr):
        console_handler = SafeStreamHandler(sys.stderr)
        console_handler.setFormatter(UnifiedFormatter(use_colors=sys.stderr.isatty()))
        handlers.append(console_handler)
    else:
        handlers.append(logging.NullHandler())

    # Use force=True to replace any existing configuration
    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    # SQL echo is only useful when explicitly asked for
    sql_debug_enabled = os.getenv('SQL_DEBUG', '').lower() in ('1', 'true', 'yes')
    logging.getLogger('sqlalchemy.engine').setLevel(logging.INFO if sql_debug_enabled else logging.WARNING)

    http_debug_enabled = os.getenv('HTTP_DEBUG', '').lower() in ('1', 'true', 'yes')
    http_level = logging.DEBUG if http_debug_enabled else logging.WARNING
    logging.getLogger('httpx').setLevel(http_level)
    logging.getLogger('httpcore').setLevel(http_level)

    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized: %s", logging.getLevelName(log_level))
    return logger
