"""Tests for OpenTelemetry tracing helpers."""

from __future__ import annotations

from typing import Any
from unittest.mock import patch

import pytest
from opentelemetry import trace

from llm_bridge.core.interface.client import ModelClient
from llm_bridge.core.interface.config import ModelConfig
from llm_bridge.core.interface.models import Content, LlmRequest, Part
from llm_bridge.utils.telemetry import (
    ATTR_FINISH_REASON,
    ATTR_MODEL,
    ATTR_TOKENS_TOTAL,
    ATTR_WIRE_FORMAT,
    _INSTRUMENTATION_NAME,
    configure_telemetry,
    get_tracer,
)


class TestGetTracer:
    def test_returns_tracer(self) -> None:
        assert isinstance(get_tracer("test.module"), trace.Tracer)

    def test_default_name(self) -> None:
        assert isinstance(get_tracer(), trace.Tracer)

    def test_noop_span(self) -> None:
        """Without SDK configured, spans should be no-ops."""
        with get_tracer("test.noop").start_as_current_span("test") as span:
            span.set_attribute("key", "value")


class TestConfigureTelemetry:
    def test_raises_without_sdk(self) -> None:
        with patch.dict("sys.modules", {"opentelemetry.sdk.resources": None}):
            with pytest.raises(ImportError, match="opentelemetry-sdk"):
                configure_telemetry()

    def test_installs_sdk_provider(self) -> None:
        try:
            from opentelemetry.sdk.trace import TracerProvider
        except ImportError:
            pytest.skip("opentelemetry-sdk not installed")

        with patch("llm_bridge.utils.telemetry.trace.set_tracer_provider") as mock_set:
            configure_telemetry(service_name="test-svc")

        provider = mock_set.call_args.args[0]
        assert isinstance(provider, TracerProvider)
        assert provider.resource.attributes["service.name"] == "test-svc"


class _FakeChatClient:
    async def create(self, **params: Any) -> Any:
        return {
            "choices": [{"message": {"content": "ok"}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 4, "completion_tokens": 1},
        }

    async def create_stream(self, **params: Any) -> Any:
        yield {"choices": [{"delta": {"content": "partial"}}]}
        yield {"choices": [{"delta": {}, "finish_reason": "stop"}]}

    async def aclose(self) -> None:
        pass


class TestModelClientSpans:
    async def test_generate_records_span(self) -> None:
        try:
            from opentelemetry.sdk.trace import TracerProvider
            from opentelemetry.sdk.trace.export import SimpleSpanProcessor
            from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
        except ImportError:
            pytest.skip("opentelemetry-sdk not installed")

        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))

        client = ModelClient(ModelConfig(model="openai/gpt-4o"), chat_client=_FakeChatClient())
        request = LlmRequest(contents=[Content(parts=[Part.from_text("hi")])])
        with patch("llm_bridge.core.interface.client._tracer", provider.get_tracer("test")):
            [response] = [r async for r in client.generate_content_async(request)]

        assert response.text == "ok"
        [span] = exporter.get_finished_spans()
        assert span.name == "model.generate"
        assert span.attributes is not None
        assert span.attributes[ATTR_MODEL] == "openai/gpt-4o"
        assert span.attributes[ATTR_WIRE_FORMAT] == "openai"
        assert span.attributes[ATTR_TOKENS_TOTAL] == 5
        assert span.attributes[ATTR_FINISH_REASON] == "stop"


    async def test_abandoned_stream_still_ends_span(self) -> None:
        try:
            from opentelemetry.sdk.trace import TracerProvider
            from opentelemetry.sdk.trace.export import SimpleSpanProcessor
            from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
        except ImportError:
            pytest.skip("opentelemetry-sdk not installed")

        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))

        client = ModelClient(ModelConfig(model="openai/gpt-4o"), chat_client=_FakeChatClient())
        request = LlmRequest(contents=[Content(parts=[Part.from_text("hi")])])
        with patch("llm_bridge.core.interface.client._tracer", provider.get_tracer("test")):
            responses = client.generate_content_async(request, stream=True)
            first = await responses.__anext__()
            await responses.aclose()  # pyright: ignore[reportAttributeAccessIssue]

        assert first.partial
        [span] = exporter.get_finished_spans()
        assert span.name == "model.generate"
        assert trace.get_current_span() is not span


class TestAttributeConstants:
    def test_constants_are_namespaced(self) -> None:
        assert ATTR_MODEL.startswith("llm_bridge.")

    def test_instrumentation_name(self) -> None:
        assert _INSTRUMENTATION_NAME == "llm_bridge"
