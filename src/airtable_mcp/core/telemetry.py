"""OpenTelemetry initialization and tool span wrappers."""

from __future__ import annotations

import functools
import logging
import os

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider

logger = logging.getLogger(__name__)

_TRACER_NAME = "airtable_mcp"

# True once the global TracerProvider has been installed.
_tracer_provider_installed: bool = False


def init_telemetry(service_name: str) -> trace.Tracer:
    """Initialize OpenTelemetry tracing.

    When ``OTEL_EXPORTER_OTLP_ENDPOINT`` is set, installs a TracerProvider with
    an OTLP gRPC exporter on the first call. Otherwise the no-op tracer from
    the API is returned.
    """
    global _tracer_provider_installed

    endpoint = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not endpoint:
        logger.info("OTEL_EXPORTER_OTLP_ENDPOINT not set, using no-op tracer")
        return trace.get_tracer(service_name)

    if _tracer_provider_installed:
        return trace.get_tracer(service_name)

    # Exporter is an optional extra
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    trace.set_tracer_provider(provider)
    _tracer_provider_installed = True
    logger.info("Telemetry initialized: endpoint=%s", endpoint)

    return trace.get_tracer(service_name)


class tool_span:
    """Create an OpenTelemetry span for an MCP tool invocation.

    Usable as a **context manager**::

        with tool_span("airtable_list", service_name="airtable-mcp"):
            ...

    or as a **decorator** on async functions::

        @tool_span("airtable_list", service_name="airtable-mcp")
        async def airtable_list(...): ...

    The span is named ``airtable.tool.<tool_name>``. Exceptions are recorded
    on the span and its status set to ERROR before re-raising.
    """

    def __init__(self, tool_name: str, *, service_name: str) -> None:
        self._tool_name = tool_name
        self._service_name = service_name
        self._span_name = f"airtable.tool.{tool_name}"
        self._span: trace.Span | None = None
        self._token: object | None = None

    def __enter__(self) -> trace.Span:
        tracer = trace.get_tracer(_TRACER_NAME)
        self._span = tracer.start_span(self._span_name)
        self._span.set_attribute("service.name", self._service_name)
        self._span.set_attribute("tool.name", self._tool_name)
        self._token = trace.context_api.attach(trace.set_span_in_context(self._span))
        return self._span

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._span is None:
            return
        if exc_val is not None:
            self._span.set_status(trace.StatusCode.ERROR, str(exc_val))
            self._span.record_exception(exc_val)
        self._span.end()
        if self._token is not None:
            trace.context_api.detach(self._token)

    def __call__(self, func):  # noqa: ANN001, ANN204
        # A fresh instance per invocation keeps concurrent calls from sharing
        # one _span/_token pair.
        tool_name = self._tool_name
        service_name = self._service_name

        @functools.wraps(func)
        async def _wrapper(*args, **kwargs):  # noqa: ANN002, ANN003, ANN202
            with tool_span(tool_name, service_name=service_name):
                return await func(*args, **kwargs)

        return _wrapper
