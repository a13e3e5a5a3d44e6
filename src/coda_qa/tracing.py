"""OpenTelemetry tracing helpers for Coda plugin actions.

Each action run produces one trace:

- ``coda-action``  : parent span opened by the action handler
- ``coda-read``    : reading tables from the Coda document into a transcript
- ``generation``   : the chat-completion call (question-answering actions only)

Usage with an OTLP backend:

    from coda_qa.tracing import configure_tracing

    configure_tracing(endpoint="http://localhost:6006/v1/traces", service_name="coda-plugin")

Without :func:`configure_tracing`, spans go to the no-op global provider.
"""
from __future__ import annotations

from typing import Callable

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)

from .schema import DocumentRef

ATTR_INPUT_VALUE = "input.value"
ATTR_OUTPUT_VALUE = "output.value"
ATTR_LLM_MODEL_NAME = "llm.model_name"
ATTR_ACTION_KEY = "coda.action"
ATTR_DOCUMENT_ID = "coda.document_id"
ATTR_PAGE_NAME = "coda.page_name"
ATTR_TRANSCRIPT_LENGTH = "coda.transcript_length"

_provider: TracerProvider | None = None


def configure_tracing(
    endpoint: str | None = None,
    service_name: str = "coda-plugin",
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """Create and register a global TracerProvider.

    Args:
        endpoint: OTLP HTTP endpoint URL.  When *None* and no *exporter* is
            given, spans are printed to stdout.
        service_name: Service label shown in the observability backend.
        exporter: Pre-built exporter (e.g. ``InMemorySpanExporter`` in tests);
            *endpoint* is ignored when given.

    Returns:
        The configured provider, also installed as the global OTel provider.
    """
    global _provider

    resource = Resource(attributes={SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)

    if exporter is not None:
        chosen_exporter: SpanExporter = exporter
    elif endpoint is not None:
        try:
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
                OTLPSpanExporter,
            )
        except ImportError as exc:  # pragma: no cover
            raise ImportError(
                "opentelemetry-exporter-otlp-proto-http is required to export "
                "traces to an OTLP endpoint.  Install it with:\n"
                "  pip install 'coda-qa[otlp]'"
            ) from exc
        chosen_exporter = OTLPSpanExporter(endpoint=endpoint)
    else:
        chosen_exporter = ConsoleSpanExporter()

    provider.add_span_processor(SimpleSpanProcessor(chosen_exporter))
    trace.set_tracer_provider(provider)
    _provider = provider
    return provider


def get_tracer(name: str) -> trace.Tracer:
    """Return a tracer from the configured provider, or the global no-op one."""
    if _provider is not None:
        return _provider.get_tracer(name)
    return trace.get_tracer(name)


def traced_read(
    read_fn: Callable[..., str],
    tracer: trace.Tracer,
) -> Callable[..., str]:
    """Wrap a transcript reader so every call is recorded as a ``coda-read`` span.

    The span records the document id, the page name and the transcript length,
    and is marked ERROR when the reader raises.
    """

    def _wrapped(ref: DocumentRef, *args, **kwargs) -> str:
        with tracer.start_as_current_span("coda-read") as span:
            span.set_attribute(ATTR_DOCUMENT_ID, ref.document_id)
            span.set_attribute(ATTR_PAGE_NAME, ref.page_name)
            try:
                transcript = read_fn(ref, *args, **kwargs)
                span.set_attribute(ATTR_TRANSCRIPT_LENGTH, len(transcript))
                span.set_status(trace.StatusCode.OK)
                return transcript
            except Exception as exc:
                span.set_status(trace.StatusCode.ERROR, str(exc))
                span.record_exception(exc)
                raise

    return _wrapped


def traced_synthesis(
    answer_fn: Callable[..., str],
    tracer: trace.Tracer,
    model_name: str = "",
) -> Callable[..., str]:
    """Wrap an answer function ``(content, question, ...) -> str`` in a ``generation`` span."""

    def _wrapped(content: str, question: str, *args, **kwargs) -> str:
        with tracer.start_as_current_span("generation") as span:
            span.set_attribute(ATTR_INPUT_VALUE, question)
            if model_name:
                span.set_attribute(ATTR_LLM_MODEL_NAME, model_name)
            try:
                answer = answer_fn(content, question, *args, **kwargs)
                span.set_attribute(ATTR_OUTPUT_VALUE, answer[:500])
                span.set_status(trace.StatusCode.OK)
                return answer
            except Exception as exc:
                span.set_status(trace.StatusCode.ERROR, str(exc))
                span.record_exception(exc)
                raise

    return _wrapped
