"""
Logging setup with per-request context.

Every record gets a ``request_id`` attribute so log lines emitted while a
request is in flight can be correlated with the ``X-Request-ID`` header.
"""

import logging
import sys
from contextvars import ContextVar

from autocard.shared.types import RequestContext

_request_context: ContextVar[RequestContext | None] = ContextVar(
    "autocard_request_context", default=None
)

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"


class RequestContextFilter(logging.Filter):
    """Inject the current request id into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = _request_context.get()
        record.request_id = ctx.request_id if ctx else "-"
        return True


def setup_logging(level: str = "INFO") -> None:
    """Configure the root ``autocard`` logger. Safe to call more than once."""
    logger = logging.getLogger("autocard")
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        if getattr(handler, "_autocard", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestContextFilter())
    handler._autocard = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``autocard`` namespace."""
    if not name.startswith("autocard"):
        name = f"autocard.{name}"
    return logging.getLogger(name)


def set_request_context(ctx: RequestContext) -> None:
    _request_context.set(ctx)


def get_request_context() -> RequestContext | None:
    return _request_context.get()


def clear_request_context() -> None:
    _request_context.set(None)
