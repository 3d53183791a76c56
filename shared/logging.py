"""
Shared logging configuration for the content relay gateway.
"""

import sys
import structlog
import logging
import threading
import uuid
from collections import deque
from typing import Any, Deque, Dict, List, Optional
from contextvars import ContextVar

DEFAULT_LOG_BUFFER_SIZE = 2000

# Context variables for correlation IDs
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)


class LogBuffer:
    """Bounded, thread-safe ring of recent log lines."""

    def __init__(self, max_lines: int = DEFAULT_LOG_BUFFER_SIZE):
        if max_lines < 1:
            raise ValueError("max_lines must be positive")
        self.max_lines = max_lines
        self._lines: Deque[str] = deque(maxlen=max_lines)
        self._lock = threading.Lock()

    def append(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)

    def lines(self) -> List[str]:
        """Snapshot of buffered lines, oldest first."""
        with self._lock:
            return list(self._lines)

    def render(self) -> str:
        return "\n".join(self.lines())

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)


class LogBufferSink:
    """structlog processor copying each event into a LogBuffer."""

    _skipped_keys = {"event", "timestamp", "level", "logger", "service"}

    def __init__(self, buffer: LogBuffer):
        self.buffer = buffer

    def __call__(self, logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        level = str(event_dict.get("level", method_name)).upper()
        parts = [f"[{event_dict.get('timestamp', '')}]"]
        if level in ("ERROR", "CRITICAL", "EXCEPTION"):
            parts.append("[ERROR]")
        parts.append(str(event_dict.get("event", "")))
        parts.extend(
            f"{key}={value}"
            for key, value in event_dict.items()
            if key not in self._skipped_keys
        )
        self.buffer.append(" ".join(parts))
        return event_dict


def configure_logging(
    service_name: str,
    log_level: str = "info",
    log_buffer: Optional[LogBuffer] = None,
) -> None:
    """Configure structured logging for a service."""

    processors: List[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_service_context,
        add_correlation_context,
    ]
    if log_buffer is not None:
        processors.append(LogBufferSink(log_buffer))
    processors.append(structlog.processors.JSONRenderer())

    # Loggers are re-resolved on every call so a later configure_logging
    # (new service instance, new buffer) takes effect everywhere.
    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    # Configure standard library logging
    level = getattr(logging, log_level.upper())
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    logging.getLogger().setLevel(level)


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to log events."""
    # Extract service name from logger name
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        service_name = logger_name.split(".")[0]
        event_dict["service"] = service_name

    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add correlation context to log events."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set request ID in context."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def clear_context():
    """Clear all context variables."""
    request_id_var.set(None)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
