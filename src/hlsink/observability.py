"""Logging and tracing setup for the sink.

Structured logging goes through structlog on top of the standard library
``logging`` module; spans around sink operations go through Logfire.
"""

import functools
import inspect
import logging
import sys
from typing import Any, Callable, Optional, TypeVar

import logfire
import structlog

from hlsink.config import SinkSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def configure_logging(settings: SinkSettings) -> None:
    """Configure stdlib logging and structlog from settings."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logfire(settings: SinkSettings) -> None:
    """Configure Logfire when it is enabled in settings."""
    if not settings.logfire_enabled:
        logger.info("Logfire is disabled in configuration")
        return

    config = {
        "service_name": settings.logfire_service_name,
        "console": None if settings.logfire_console_enabled else False,
        "send_to_logfire": "if-token-present",
    }
    if settings.logfire_token:
        config["token"] = settings.logfire_token.get_secret_value()

    logfire.configure(**config)
    logger.info(f"Logfire configured for {settings.logfire_service_name}")


def traced(
    name: Optional[str] = None, **extra_attributes: Any
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator wrapping a coroutine in a Logfire span.

    Arguments of the call that are plain scalars (track ids, durations)
    are recorded as span attributes; payload bytes are not.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        span_name = name or f"{func.__module__}.{func.__name__}"
        signature = inspect.signature(func)

        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"traced() expects a coroutine function, got {func!r}")

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> T:
            bound = signature.bind_partial(*args, **kwargs)
            attributes = {
                key: value
                for key, value in bound.arguments.items()
                if key != "self" and isinstance(value, (str, int, float, bool))
            }
            with logfire.span(span_name, **extra_attributes, **attributes) as span:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error_type", type(e).__name__)
                    raise

        return async_wrapper

    return decorator
