"""
Structured logging for the contract lifecycle.

Lifecycle modules log through stdlib ``logging``; structlog renders those
records (JSON lines, or a console view for local debugging) and merges the
per-attempt context bound by the orchestrator (history id, contract, method)
into every line emitted while an attempt is running.
"""

import logging
import sys
from typing import List, Optional

import structlog

from .config import settings


NOISY_LOGGERS = ("httpcore", "httpx")

LOG_FORMATS = ("auto", "json", "console")


def _pre_chain() -> List[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _use_console(level: int, log_format: str) -> bool:
    if log_format == "console":
        return True
    if log_format == "json":
        return False
    # auto: console when debugging, JSON otherwise
    return level <= logging.DEBUG


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Route stdlib logging through structlog.

    Args:
        log_level: Override settings.log_level
        log_format: "json", "console" or "auto" (default: settings.log_format)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    fmt = (log_format or settings.log_format).lower()
    if fmt not in LOG_FORMATS:
        raise ValueError(f"Unknown log format {fmt!r}, expected one of {', '.join(LOG_FORMATS)}")

    pre_chain = _pre_chain()
    if _use_console(level, fmt):
        final: List[structlog.types.Processor] = [structlog.dev.ConsoleRenderer()]
    else:
        final = [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *final],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_transaction_context(**values: object) -> None:
    """Attach lifecycle identifiers (history id, contract, method) to every log line."""
    structlog.contextvars.bind_contextvars(**{key: value for key, value in values.items() if value is not None})


def clear_transaction_context() -> None:
    structlog.contextvars.clear_contextvars()
