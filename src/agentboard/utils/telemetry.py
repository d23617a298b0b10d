"""OpenTelemetry tracing helpers for agentboard.

Provides a thin wrapper around the OpenTelemetry API so the coordination
core can call ``get_tracer()`` without caring whether the SDK is
installed.  When the SDK is *not* configured the API returns no-op
implementations.

Usage::

    from agentboard.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("task.claim") as span:
        span.set_attribute(ATTR_TASK_ID, task_id)

To activate real tracing, call :func:`configure_telemetry` once at startup
(requires the ``otel`` extra: ``pip install agentboard[otel]``).
"""

from __future__ import annotations

from typing import Any

from opentelemetry import trace

# ---------------------------------------------------------------------------
# Semantic attribute keys used throughout agentboard instrumentation
# ---------------------------------------------------------------------------

ATTR_INSTANCE_ID = "agentboard.instance.id"
ATTR_SESSION = "agentboard.session"
ATTR_AGENT_ID = "agentboard.agent.id"
ATTR_TASK_ID = "agentboard.task.id"
ATTR_TASK_CLAIMED = "agentboard.task.claimed"
ATTR_READY_COUNT = "agentboard.task.ready_count"
ATTR_PENDING_COUNT = "agentboard.task.pending_count"
ATTR_EVENT_TYPE = "agentboard.event.type"
ATTR_SOURCE_ID = "agentboard.event.source_id"
ATTR_NOTIFICATIONS = "agentboard.event.notifications"
ATTR_CONTEXT_ID = "agentboard.context.id"
ATTR_FINDING_COUNT = "agentboard.context.findings"
ATTR_TASK_COUNT = "agentboard.context.tasks"

_INSTRUMENTATION_NAME = "agentboard"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*.

    If the OpenTelemetry SDK has not been configured the returned tracer
    is a no-op.
    """
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def set_scope_attributes(span: trace.Span, instance_id: str, session: str | None = None) -> None:
    """Tag *span* with the writing instance and its open session, if any."""
    span.set_attribute(ATTR_INSTANCE_ID, instance_id)
    if session:
        span.set_attribute(ATTR_SESSION, session)


def configure_telemetry(
    *,
    service_name: str = "agentboard",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Configure OpenTelemetry tracing (requires ``agentboard[otel]``).

    Parameters
    ----------
    service_name:
        The ``service.name`` resource attribute.
    export_to_console:
        If ``True``, export spans as JSON to stdout.
    otlp_endpoint:
        If set, export spans via OTLP/gRPC to this endpoint.

    Raises
    ------
    ImportError
        If the ``opentelemetry-sdk`` package is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk is required for configure_telemetry(). "
            "Install it with: pip install agentboard[otel]"
        )
        raise ImportError(msg) from exc

    resource = Resource.create({"service.name": service_name})  # pyright: ignore[reportUnknownVariableType,reportUnknownMemberType]
    provider = TracerProvider(resource=resource)  # pyright: ignore[reportUnknownVariableType]

    if export_to_console:
        _add_console_exporter(provider, SimpleSpanProcessor)

    if otlp_endpoint:
        _add_otlp_exporter(provider, BatchSpanProcessor, otlp_endpoint)

    trace.set_tracer_provider(provider)  # pyright: ignore[reportUnknownArgumentType]


def _add_console_exporter(provider: Any, processor_cls: Any) -> None:
    from opentelemetry.sdk.trace.export import ConsoleSpanExporter  # pyright: ignore[reportMissingImports,reportUnknownVariableType]

    provider.add_span_processor(processor_cls(ConsoleSpanExporter()))


def _add_otlp_exporter(provider: Any, processor_cls: Any, endpoint: str) -> None:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
    except ImportError as exc:
        msg = (
            "opentelemetry-exporter-otlp is required for OTLP export. "
            "Install it with: pip install agentboard[otel]"
        )
        raise ImportError(msg) from exc

    provider.add_span_processor(processor_cls(OTLPSpanExporter(endpoint=endpoint)))
