"""structlog setup for the tube-insight CLI.

Log lines go to stderr so command output on stdout stays pipeable. Every
entry carries the CLI session ID and, inside a command, the operation name
and its arguments. API keys are redacted before rendering: the YouTube key
travels as a ``key=`` query parameter and would otherwise show up in logged
URLs and upstream error messages.
"""

from __future__ import annotations

import logging
import re
import sys
import time
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator, MutableMapping
    from pathlib import Path

# ---------------------------------------------------------------------------
# Session ID
# ---------------------------------------------------------------------------


def generate_session_id() -> str:
    """Return a fresh UUID4 identifying one CLI invocation."""
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Secret redaction
# ---------------------------------------------------------------------------

REDACTED = "***"

_SECRET_FIELDS = frozenset({"api_key", "youtube_api_key", "llm_api_key", "authorization"})
_KEY_PARAM_RE = re.compile(r"([?&]key=)[^&\s\"']+")


def redact_secrets(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask credential fields and ``key=`` query parameters in an entry."""
    for field, value in event_dict.items():
        if field in _SECRET_FIELDS and value:
            event_dict[field] = REDACTED
        elif isinstance(value, str) and "key=" in value:
            event_dict[field] = _KEY_PARAM_RE.sub(rf"\g<1>{REDACTED}", value)
    return event_dict


# ---------------------------------------------------------------------------
# structlog configuration
# ---------------------------------------------------------------------------


_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def configure_logging(
    level: str = "INFO",
    fmt: str = "console",
    log_file: str | Path | None = None,
    session_id: str | None = None,
) -> None:
    """Route structlog through stdlib handlers on stderr and an optional file.

    Safe to call once per command: existing root handlers are replaced.
    httpx request logging is held at WARNING or above so a ``--verbose`` run
    shows collector progress rather than one line per API page.

    Args:
        level: Log level name, case-insensitive.
        fmt: ``"console"`` (colored when stderr is a terminal) or ``"json"``
            (one object per line, non-ASCII kept as-is for channel titles).
        log_file: Extra destination that receives the same entries.
        session_id: Bound to every entry of this invocation.

    Raises:
        ValueError: If ``level`` is not a recognized log level.
    """
    level_upper = level.upper()
    if level_upper not in _VALID_LEVELS:
        msg = f"Invalid log level: {level!r}. Must be one of {sorted(_VALID_LEVELS)}"
        raise ValueError(msg)

    numeric_level = getattr(logging, level_upper)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: structlog.types.Processor
    render_processors: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if fmt == "json":
        render_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    render_processors.append(renderer)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(str(log_file), encoding="utf-8"))

    formatter = structlog.stdlib.ProcessorFormatter(processors=render_processors)
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
    logging.getLogger("LiteLLM").setLevel(max(numeric_level, logging.WARNING))

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    if session_id:
        structlog.contextvars.bind_contextvars(session_id=session_id)


# ---------------------------------------------------------------------------
# Per-command context
# ---------------------------------------------------------------------------


@contextmanager
def operation_logging_context(
    operation: str,
    **extra: Any,
) -> Iterator[structlog.stdlib.BoundLogger]:
    """Bind a CLI command's name and arguments for the length of the block.

    Emits ``operation_start`` and ``operation_end`` (with ``elapsed_ms``);
    an exception escaping the block is logged as ``operation_error`` and
    re-raised for the command's error handler.

    Example::

        with operation_logging_context("battle", channel_a="UC1"):
            result = asyncio.run(compare_channels(...))
    """
    structlog.contextvars.bind_contextvars(operation=operation, **extra)
    log: structlog.stdlib.BoundLogger = structlog.get_logger(f"tube_insight.{operation}")
    log.info("operation_start")
    started = time.perf_counter()

    try:
        yield log
    except Exception as exc:
        log.warning("operation_error", error_type=type(exc).__name__, error=str(exc))
        raise
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000)
        log.info("operation_end", elapsed_ms=elapsed_ms)
        structlog.contextvars.unbind_contextvars("operation", *extra.keys())
