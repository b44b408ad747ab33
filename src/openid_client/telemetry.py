"""Tracing and structured logging for openid-client.

Every endpoint call and token validation runs inside an OpenTelemetry span,
and log events go through structlog. Token and secret values are masked
before any event is rendered.
"""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Awaitable, Callable, ParamSpec, TypeVar

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Generator, MutableMapping

    from .config import TelemetryConfig

P = ParamSpec("P")
T = TypeVar("T")

LIBRARY_NAME = "openid-client"
LIBRARY_VERSION = "0.1.0"
SPAN_PREFIX = "openid_client."

# Event keys whose values are credentials.
SENSITIVE_KEYS = frozenset(
    {
        "access_token",
        "refresh_token",
        "id_token",
        "code",
        "code_verifier",
        "client_secret",
        "client_assertion",
        "registration_access_token",
        "initial_access_token",
        "authorization",
    }
)
REDACTED = "[redacted]"

_tracer: trace.Tracer | None = None
_logger: structlog.stdlib.BoundLogger | None = None


def get_tracer() -> trace.Tracer:
    """Return the library tracer."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(LIBRARY_NAME, LIBRARY_VERSION)
    return _tracer


def get_logger() -> structlog.stdlib.BoundLogger:
    """Return the library logger."""
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(LIBRARY_NAME)
    return _logger


def redact_credentials(
    logger: Any,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """structlog processor masking credential values in an event."""
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS and event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def configure_telemetry(config: TelemetryConfig) -> None:
    """Apply a telemetry configuration process-wide.

    With telemetry disabled spans go to a no-op tracer; logging keeps the
    configured level so warnings still surface.

    Args:
        config: Telemetry configuration.
    """
    global _tracer, _logger

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if config.json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            redact_credentials,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping()[config.log_level]
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if config.enabled:
        _tracer = trace.get_tracer(config.service_name, LIBRARY_VERSION)
    else:
        _tracer = trace.NoOpTracer()
    _logger = structlog.get_logger(config.service_name)


@contextmanager
def trace_operation(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """Run a block inside a span named ``openid_client.<name>``.

    ``None`` attribute values are skipped. A library error escaping the block
    marks the span failed and records its code.

    Args:
        name: Operation name.
        attributes: Span attributes.

    Yields:
        The active span.
    """
    with get_tracer().start_as_current_span(f"{SPAN_PREFIX}{name}") as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            code = getattr(e, "code", None)
            if isinstance(code, str):
                span.set_attribute("openid.error_code", code)
            span.set_status(Status(StatusCode.ERROR, type(e).__name__))
            span.record_exception(e)
            raise


def traced_async(
    name: str | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Trace a coroutine function.

    Arguments are never recorded since they carry tokens and secrets.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        span_name = name or func.__name__

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with trace_operation(span_name):
                return await func(*args, **kwargs)

        return wrapper

    return decorator
