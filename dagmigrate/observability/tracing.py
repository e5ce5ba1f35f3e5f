"""
dagmigrate Distributed Tracing.

Thin helpers over the OpenTelemetry API. Without an SDK tracer provider
installed (see configure_observability) the API hands out non-recording
spans, so tracing costs nothing when it is not configured.
"""

import functools
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

F = TypeVar("F", bound=Callable[..., Any])

_TRACER_NAME = "dagmigrate"


def get_tracer(name: str = _TRACER_NAME) -> trace.Tracer:
    """Get a tracer from the globally configured provider."""
    return trace.get_tracer(name)


def _safe_attribute_value(value: Any) -> Optional[Any]:
    """Convert a value to something OpenTelemetry accepts as an attribute."""
    if value is None:
        return None
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)) and all(
        isinstance(v, (bool, int, float, str)) for v in value
    ):
        return list(value)
    return str(value)


@contextmanager
def traced_span(
    name: str,
    attributes: Optional[Dict[str, Any]] = None,
    tracer_name: str = _TRACER_NAME,
) -> Iterator[Span]:
    """
    Run a block inside a span, recording any exception that escapes it.

    Args:
        name: Span name
        attributes: Initial span attributes (values are coerced)
        tracer_name: Tracer to create the span with
    """
    clean = {}
    for key, value in (attributes or {}).items():
        safe = _safe_attribute_value(value)
        if safe is not None:
            clean[key] = safe

    with get_tracer(tracer_name).start_as_current_span(
        name,
        attributes=clean,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise


def trace_method(
    name: Optional[str] = None,
    record_args: bool = True,
) -> Callable[[F], F]:
    """
    Decorator running a synchronous function inside a span.

    Positional and keyword arguments (except self/cls) are recorded as
    `arg.<name>` attributes when record_args is set.

    Usage:
        @trace_method(name="dagmigrate.up")
        def up(self, target=None):
            ...
    """

    def decorator(func: F) -> F:
        span_name = name or func.__qualname__
        arg_names = func.__code__.co_varnames[: func.__code__.co_argcount]
        skip_first = bool(arg_names) and arg_names[0] in ("self", "cls")

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attributes: Dict[str, Any] = {
                "code.function": func.__name__,
                "code.namespace": func.__module__,
            }

            if record_args:
                start = 1 if skip_first else 0
                for index, value in enumerate(args[start:], start=start):
                    if index < len(arg_names):
                        attributes[f"arg.{arg_names[index]}"] = value
                for key, value in kwargs.items():
                    attributes[f"arg.{key}"] = value

            with traced_span(span_name, attributes):
                return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator
