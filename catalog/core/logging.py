"""Structured logging built on Loguru.

Two output modes are supported:

- **console**: colored, human-readable lines with request context inline
  (development)
- **json**: one JSON object per line, suitable for log collectors

Standard library logging (uvicorn, httpx, opentelemetry) is routed into
Loguru through ``InterceptHandler`` so every record shares one format and
carries the same request-scoped fields.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, Final, cast

import orjson
from loguru import logger

if TYPE_CHECKING:
    from catalog.core.config import Settings


class _LoggingState:
    """Simple state holder to track if logging has been configured."""

    def __init__(self) -> None:
        self.configured = False


_state = _LoggingState()

CORRELATION_ID_DISPLAY_LENGTH: Final[int] = 8
MAX_FIELD_VALUE_LENGTH: Final[int] = 100

# Rendered first, in this order, when present in a record's extra fields
PRIORITY_FIELDS: Final[tuple[str, ...]] = (
    "correlation_id",
    "request_id",
    "op",
    "method",
    "path",
    "status_code",
    "duration_ms",
)


def _escape(value: object) -> str:
    """Escape braces and color tags so Loguru renders values verbatim."""
    return str(value).replace("{", "{{").replace("}", "}}").replace("<", r"\<")


def _format_field(key: str, value: object, sensitive: set[str]) -> str:
    if key in sensitive:
        text = "[REDACTED]"
    elif key == "correlation_id":
        text = str(value)[:CORRELATION_ID_DISPLAY_LENGTH]
    elif key == "duration_ms":
        text = f"{value}ms"
    else:
        text = str(value)
        if len(text) > MAX_FIELD_VALUE_LENGTH:
            text = text[: MAX_FIELD_VALUE_LENGTH - 3] + "..."
    return f"{_escape(key)}={_escape(text)}"


def make_console_formatter(sensitive_fields: list[str]) -> Any:  # noqa: ANN401 - Loguru formatter callable
    """Build a console formatter that renders every extra field inline.

    Args:
        sensitive_fields: Field names whose values are redacted.

    Returns:
        Callable taking a Loguru record and returning its format string.
    """
    sensitive = {field.lower() for field in sensitive_fields}

    def format_record(record: dict[str, Any]) -> str:
        extra = record.get("extra", {})
        keys = [key for key in PRIORITY_FIELDS if extra.get(key) is not None]
        keys += [
            key
            for key in extra
            if key not in PRIORITY_FIELDS
            and not key.startswith("_")
            and extra[key] is not None
        ]
        context = " ".join(
            f"[<yellow>{_format_field(key, extra[key], sensitive)}</yellow>]"
            for key in keys
        )

        parts = [
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green>",
            "<level>{level: <8}</level>",
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>",
        ]
        if context:
            parts.append(context)
        parts.append("{message}")
        return " | ".join(parts) + "\n{exception}"

    return format_record


def serialize_for_json(record: dict[str, Any]) -> str:
    """Format a Loguru record as a single JSON line.

    Args:
        record: Loguru record to format.

    Returns:
        str: JSON-formatted log entry with newline.
    """
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    if extra := record.get("extra", {}):
        log_entry.update({k: v for k, v in extra.items() if not k.startswith("_")})

    if exc := record.get("exception"):
        log_entry["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value) if exc.value else None,
        }

    return orjson.dumps(log_entry, default=str).decode() + "\n"


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        """Forward log record to Loguru.

        Args:
            record: Standard library LogRecord to forward.
        """
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so Loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(settings: Settings) -> None:
    """Configure Loguru once for the process.

    Args:
        settings: Application settings containing log configuration.
    """
    if _state.configured:
        return

    logger.remove()
    log_config = settings.log_config

    if log_config.log_formatter_type == "json":

        def structured_sink(message: object) -> None:
            """Write each record as one JSON line to stdout."""
            record = cast("Any", message).record
            sys.stdout.write(serialize_for_json(record))
            sys.stdout.flush()

        logger.add(
            structured_sink,
            level=log_config.log_level,
            enqueue=True,
            diagnose=False,
            backtrace=False,
        )
    else:
        logger.add(
            sys.stdout,
            format=make_console_formatter(log_config.sensitive_fields),
            level=log_config.log_level,
            enqueue=True,
            colorize=True,
            diagnose=settings.debug,
            backtrace=settings.debug,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        std_logger = logging.getLogger(logger_name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    logger.info(
        "Logging configured with {} formatter",
        log_config.log_formatter_type,
        log_level=log_config.log_level,
    )
    _state.configured = True
