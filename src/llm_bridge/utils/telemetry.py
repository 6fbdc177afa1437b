"""OpenTelemetry tracing helpers for llm-bridge.

Modules call ``get_tracer()`` without caring whether the SDK is installed.
Without a configured SDK the API hands back no-op tracers.

Usage::

    from llm_bridge.utils.telemetry import ATTR_MODEL, get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("model.generate") as span:
        span.set_attribute(ATTR_MODEL, "openai/gpt-4o")
"""

from __future__ import annotations

from opentelemetry import trace

# ---------------------------------------------------------------------------
# Semantic attribute keys
# ---------------------------------------------------------------------------

ATTR_MODEL = "llm_bridge.model"
ATTR_PROVIDER = "llm_bridge.provider"
ATTR_WIRE_FORMAT = "llm_bridge.wire_format"
ATTR_STREAM = "llm_bridge.stream"
ATTR_TOKENS_PROMPT = "llm_bridge.tokens.prompt"
ATTR_TOKENS_COMPLETION = "llm_bridge.tokens.completion"
ATTR_TOKENS_TOTAL = "llm_bridge.tokens.total"
ATTR_FINISH_REASON = "llm_bridge.finish_reason"
ATTR_ERROR_CODE = "llm_bridge.error_code"

_INSTRUMENTATION_NAME = "llm_bridge"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(*, service_name: str = "llm-bridge") -> None:
    """Export spans as JSON to stdout (requires ``llm-bridge[otel]``).

    Used by the CLI's ``--trace`` flag.

    Raises
    ------
    ImportError
        If the ``opentelemetry-sdk`` package is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk is required for configure_telemetry(). "
            "Install it with: pip install llm-bridge[otel]"
        )
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))  # pyright: ignore[reportUnknownVariableType,reportUnknownMemberType]
    provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))  # pyright: ignore[reportUnknownMemberType]
    trace.set_tracer_provider(provider)  # pyright: ignore[reportUnknownArgumentType]
