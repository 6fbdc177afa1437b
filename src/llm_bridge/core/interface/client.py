"""ModelClient — canonical async interface over OpenAI-style and Anthropic APIs.

The rest of an agent framework only ever sees ``LlmRequest`` and
``LlmResponse``. The client picks a transpiler for the configured wire format,
issues the call through a ``ChatClient`` and turns the result (or a stream of
events) back into canonical responses.
"""

import inspect
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any, Protocol

import litellm
from anthropic import AsyncAnthropic
from opentelemetry import trace

from llm_bridge.core.interface.config import DEFAULT_ANTHROPIC_MAX_TOKENS, ModelConfig
from llm_bridge.core.interface.models import LlmRequest, LlmResponse
from llm_bridge.core.interface.transpiler import Transpiler
from llm_bridge.core.interface.transpilers.anthropic import AnthropicTranspiler
from llm_bridge.core.interface.transpilers.openai import OpenAITranspiler
from llm_bridge.errors import UnsupportedFormatError
from llm_bridge.utils.telemetry import (
    ATTR_ERROR_CODE,
    ATTR_FINISH_REASON,
    ATTR_MODEL,
    ATTR_PROVIDER,
    ATTR_STREAM,
    ATTR_TOKENS_COMPLETION,
    ATTR_TOKENS_PROMPT,
    ATTR_TOKENS_TOTAL,
    ATTR_WIRE_FORMAT,
    get_tracer,
)

logger = logging.getLogger(__name__)

_tracer = get_tracer(__name__)


def get_transpiler(wire_format: str) -> Transpiler:
    """Return the transpiler for a wire format (``openai`` or ``anthropic``)."""
    mapping: dict[str, type[Transpiler]] = {
        "openai": OpenAITranspiler,
        "anthropic": AnthropicTranspiler,
    }
    transpiler_cls = mapping.get(wire_format)
    if transpiler_cls is None:
        raise UnsupportedFormatError(wire_format)
    return transpiler_cls()


def error_response(error: BaseException, prefix: str) -> LlmResponse:
    """Turn a failed call into a canonical error response.

    API errors carrying an integer HTTP status map to ``API_ERROR_<status>``;
    anything else to ``<prefix>_ERROR``.
    """
    status = getattr(error, "status_code", None)
    if not isinstance(status, int):
        status = getattr(error, "status", None)
    if isinstance(status, int) and not isinstance(status, bool):
        code = f"API_ERROR_{status}"
    else:
        code = f"{prefix}_ERROR"
    return LlmResponse.from_error(code, str(error))


# ---------------------------------------------------------------------------
# Chat clients — the HTTP side of a call
# ---------------------------------------------------------------------------


class ChatClient(Protocol):
    """Issues chat calls with an already-converted wire payload."""

    async def create(self, **params: Any) -> Any:
        """Make a non-streamed call and return the complete wire response."""
        ...

    def create_stream(self, **params: Any) -> AsyncIterator[Any]:
        """Make a streamed call and iterate over its wire events.

        The transport stream is closed once iteration stops, including when
        the consumer closes the iterator early.
        """
        ...

    async def aclose(self) -> None:
        """Release transport resources."""
        ...


async def _close_stream(stream: Any) -> None:
    """Close an SDK stream, whichever of ``aclose``/``close`` it offers."""
    close = getattr(stream, "aclose", None) or getattr(stream, "close", None)
    if close is None:
        return
    result = close()
    if inspect.isawaitable(result):
        await result


class LiteLLMChatClient:
    """OpenAI-format chat client backed by ``litellm.acompletion``."""

    def __init__(self, config: ModelConfig) -> None:
        self.config = config

    def _call_kwargs(self, params: dict[str, Any]) -> dict[str, Any]:
        call_kwargs: dict[str, Any] = {
            "model": self.config.model,
            "timeout": self.config.timeout,
            "num_retries": self.config.max_retries,
            **self.config.extra,
            **params,
        }
        if self.config.api_key:
            call_kwargs["api_key"] = self.config.api_key
        if self.config.api_base:
            call_kwargs["api_base"] = self.config.api_base
        if self.config.max_tokens is not None:
            call_kwargs.setdefault("max_tokens", self.config.max_tokens)
        return call_kwargs

    async def create(self, **params: Any) -> Any:
        # LiteLLM type stubs are incomplete
        return await litellm.acompletion(**self._call_kwargs(params))  # pyright: ignore[reportUnknownMemberType]

    async def create_stream(self, **params: Any) -> AsyncIterator[Any]:
        stream = await litellm.acompletion(**self._call_kwargs(params), stream=True)  # pyright: ignore[reportUnknownMemberType]
        try:
            async for chunk in stream:  # pyright: ignore[reportUnknownVariableType]
                yield chunk
        finally:
            await _close_stream(stream)

    async def aclose(self) -> None:
        """LiteLLM manages its own HTTP clients; nothing to release."""


class AnthropicChatClient:
    """Anthropic Messages API chat client backed by the official SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self.config = config
        self._client: AsyncAnthropic | None = None

    def _get_client(self) -> AsyncAnthropic:
        """Lazily build the SDK client; unset credentials come from the environment."""
        if self._client is None:
            client_kwargs: dict[str, Any] = {
                "timeout": self.config.timeout,
                "max_retries": self.config.max_retries,
            }
            if self.config.api_key:
                client_kwargs["api_key"] = self.config.api_key
            if self.config.api_base:
                client_kwargs["base_url"] = self.config.api_base
            self._client = AsyncAnthropic(**client_kwargs)
        return self._client

    def _call_kwargs(self, params: dict[str, Any]) -> dict[str, Any]:
        return {
            "model": self.config.model_name,
            "max_tokens": self.config.max_tokens or DEFAULT_ANTHROPIC_MAX_TOKENS,
            **self.config.extra,
            **params,
        }

    async def create(self, **params: Any) -> Any:
        return await self._get_client().messages.create(**self._call_kwargs(params))

    async def create_stream(self, **params: Any) -> AsyncIterator[Any]:
        stream = await self._get_client().messages.create(**self._call_kwargs(params), stream=True)
        try:
            async for event in stream:
                yield event
        finally:
            await _close_stream(stream)

    async def aclose(self) -> None:
        """Close the SDK client if one was built."""
        client = self._client
        if client is None:
            return
        self._client = None
        await client.close()


def get_chat_client(config: ModelConfig) -> ChatClient:
    """Return the chat client for the configured wire format."""
    if config.wire_format == "anthropic":
        return AnthropicChatClient(config)
    return LiteLLMChatClient(config)


# ---------------------------------------------------------------------------
# ModelClient
# ---------------------------------------------------------------------------


class ModelClient:
    """Async client producing canonical responses.

    Usage::

        client = ModelClient(ModelConfig(model="anthropic/claude-sonnet-4-5"))
        async for response in client.generate_content_async(request, stream=True):
            ...
    """

    def __init__(
        self,
        config: ModelConfig,
        transpiler: Transpiler | None = None,
        chat_client: ChatClient | None = None,
    ) -> None:
        self.config = config
        self.transpiler = transpiler or get_transpiler(config.wire_format)
        self.chat_client = chat_client or get_chat_client(config)

    async def generate_content_async(
        self, request: LlmRequest, stream: bool = False, **kwargs: Any
    ) -> AsyncIterator[LlmResponse]:
        """Generate canonical responses for ``request``.

        Non-streamed calls yield exactly one response. Streamed calls yield
        partial responses followed by one final response. Failures are
        yielded as a single error response, never raised.

        Args:
            request: The canonical request.
            stream: Whether to stream the response.
            **kwargs: Extra parameters passed to the chat client
                (e.g. ``temperature``).
        """
        # The span is never made current across a yield: an abandoned
        # generator is finalized in another context, where detaching fails.
        span = _tracer.start_span("model.generate")
        span.set_attribute(ATTR_MODEL, self.config.model)
        span.set_attribute(ATTR_PROVIDER, self.config.provider)
        span.set_attribute(ATTR_WIRE_FORMAT, self.config.wire_format)
        span.set_attribute(ATTR_STREAM, stream)

        final: LlmResponse | None = None
        try:
            try:
                payload = {**self.transpiler.to_provider(request), **kwargs}
                if stream:
                    async for response in self._stream_response(payload):
                        final = response
                        yield response
                else:
                    with trace.use_span(span, end_on_exit=False):
                        final = await self._single_response(payload)
                    yield final
            except Exception as exc:
                logger.warning("Model call to %s failed: %s", self.config.model, exc)
                final = error_response(exc, self.transpiler.error_prefix)
                span.set_attribute(ATTR_ERROR_CODE, final.error_code or "")
                yield final

            if final is not None:
                _record_response(span, final)
        finally:
            span.end()

    async def connect(self, request: LlmRequest) -> Any:
        raise NotImplementedError(f"{self.__class__.__name__} does not support bidirectional streaming")

    async def aclose(self) -> None:
        """Release the chat client's transport resources."""
        await self.chat_client.aclose()

    async def _single_response(self, payload: dict[str, Any]) -> LlmResponse:
        raw = await self.chat_client.create(**payload)
        return self.transpiler.from_provider(raw)

    async def _stream_response(self, payload: dict[str, Any]) -> AsyncIterator[LlmResponse]:
        acc = self.transpiler.new_accumulator()
        async with aclosing(self.chat_client.create_stream(**payload)) as events:  # pyright: ignore[reportArgumentType]
            async for event in events:
                result = self.transpiler.convert_stream_event(event, acc)
                if result.response is not None:
                    yield result.response
                if result.is_complete:
                    return

        # Transport ended without a terminal event
        result = self.transpiler.finish_stream(acc)
        if result.response is not None:
            yield result.response


def _record_response(span: Any, response: LlmResponse) -> None:
    """Record token usage and finish reason on the span."""
    usage = response.usage_metadata
    if usage is not None:
        span.set_attribute(ATTR_TOKENS_PROMPT, usage.prompt_token_count)
        span.set_attribute(ATTR_TOKENS_COMPLETION, usage.candidates_token_count)
        span.set_attribute(ATTR_TOKENS_TOTAL, usage.total_token_count)
    if response.finish_reason is not None:
        span.set_attribute(ATTR_FINISH_REASON, response.finish_reason)
