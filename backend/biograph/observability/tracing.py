"""
Logging setup + lightweight span tracing.

configure_logging(settings)
  One-shot logging.basicConfig for processes embedding the pipeline
  (workers, scripts, the HTTP layer). DEBUG when settings.debug is on.

@traced(name)
  Instruments an async function with timing and error logging. Uses plain
  Python logging, so it is always active regardless of any external tracing
  backend:

    @traced("llm.chat_completion")
    async def complete(...): ...

Never pass credentials as positional/keyword values that end up in a log
line. @traced logs only the span name, the timing and the exception.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Coroutine, TypeVar

if TYPE_CHECKING:
    from biograph.core.config import Settings

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Coroutine[Any, Any, Any]])

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(settings: "Settings | None" = None) -> None:
    """Install the root handler once; later calls are no-ops (basicConfig semantics)."""
    if settings is None:
        from biograph.core.config import settings as _settings
        settings = _settings

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=LOG_FORMAT,
    )
    # httpx logs every request URL at INFO; one line per chunk call is noise
    logging.getLogger("httpx").setLevel(logging.WARNING)


def traced(name: str | None = None) -> Callable[[F], F]:
    """
    Decorator that instruments an async function with timing and error logging.

    Cancellation is not an error: it is logged at DEBUG and re-raised.
    """
    def decorator(func: F) -> F:
        span_name = name or func.__qualname__

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            t0 = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                elapsed_ms = (time.perf_counter() - t0) * 1000
                logger.error(
                    "trace | span=%s elapsed_ms=%.1f error=%s: %s",
                    span_name, elapsed_ms, type(exc).__name__, exc,
                )
                raise
            except BaseException:
                elapsed_ms = (time.perf_counter() - t0) * 1000
                logger.debug("trace | span=%s elapsed_ms=%.1f cancelled", span_name, elapsed_ms)
                raise
            elapsed_ms = (time.perf_counter() - t0) * 1000
            logger.debug("trace | span=%s elapsed_ms=%.1f ok", span_name, elapsed_ms)
            return result

        return wrapper  # type: ignore[return-value]
    return decorator
