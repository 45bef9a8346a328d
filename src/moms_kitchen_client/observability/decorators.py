"""OpenTelemetry tracing decorator."""

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span

F = TypeVar("F", bound=Callable[..., Any])


def _mark_failure(span: Span, error: Exception) -> None:
    span.set_attribute("success", False)
    span.set_attribute("error.type", type(error).__name__)
    span.set_attribute("error.message", str(error))
    # ApiError carries the backend status; transport failures have none
    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        span.set_attribute("http.response.status_code", status_code)
    span.record_exception(error)


def traced(span_name: str | None = None, service_name: str = "moms-kitchen-client") -> Callable[[F], F]:
    """Decorator adding an OpenTelemetry span around a function.

    Works for both sync and async functions. Exceptions are recorded on the
    span and re-raised.

    Args:
        span_name: Name for the span (defaults to the function name)
        service_name: Tracer name and ``service.name`` span attribute

    Returns:
        Decorated function with tracing

    Example:
        @traced("checkout")
        async def checkout(self, payment_method: PaymentMethod) -> CheckoutResult:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)

        def _start(span: Span) -> None:
            span.set_attribute("service.name", service_name)
            if span_name:
                span.set_attribute("function.name", func.__name__)

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(name, record_exception=False) as span:
                _start(span)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _mark_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(name, record_exception=False) as span:
                _start(span)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _mark_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator
