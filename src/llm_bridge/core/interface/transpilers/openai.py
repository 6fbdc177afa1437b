"""OpenAI transpiler — chat completions format (also spoken by LiteLLM).

Key differences from the canonical schema:
- The system instruction is a leading ``system`` message.
- Function calls hang off an ``assistant`` message as ``tool_calls`` with
  JSON-string arguments.
- Every function response is its own ``tool`` message.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from llm_bridge.core.interface.models import (
    Content,
    LlmRequest,
    LlmResponse,
    Part,
    StreamResult,
    UsageMetadata,
)
from llm_bridge.core.interface.transpilers._common import (
    IdFactory,
    as_dict,
    default_id_factory,
    dump_json,
    iter_function_declarations,
    join_text,
    safe_json_loads,
    system_instruction_text,
    wire_role,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Stream events — what one chunk can mean
# ---------------------------------------------------------------------------


class ToolCallFragment(BaseModel):
    index: int
    id: str | None = None
    name: str | None = None
    arguments: str = ""


class TextDelta(BaseModel):
    text: str


class ToolCallDelta(BaseModel):
    fragments: list[ToolCallFragment]


class UsageUpdate(BaseModel):
    usage: UsageMetadata


class StreamEnd(BaseModel):
    finish_reason: str
    usage: UsageMetadata | None = None


OpenAIStreamEvent = TextDelta | ToolCallDelta | UsageUpdate | StreamEnd


def decode_chunk(chunk: Any) -> list[OpenAIStreamEvent]:
    """Decode one streamed chunk into its events, in processing order."""
    data = as_dict(chunk)
    usage = _usage(data.get("usage"))
    choices: list[dict[str, Any]] = data.get("choices") or []
    if not choices:
        return [UsageUpdate(usage=usage)] if usage else []

    choice = choices[0]
    delta: dict[str, Any] = choice.get("delta") or {}
    events: list[OpenAIStreamEvent] = []

    if delta.get("content"):
        events.append(TextDelta(text=delta["content"]))

    raw_fragments: list[dict[str, Any]] = delta.get("tool_calls") or []
    if raw_fragments:
        fragments: list[ToolCallFragment] = []
        for position, raw in enumerate(raw_fragments):
            function: dict[str, Any] = raw.get("function") or {}
            index = raw.get("index")
            fragments.append(
                ToolCallFragment(
                    index=position if index is None else index,
                    id=raw.get("id"),
                    name=function.get("name"),
                    arguments=function.get("arguments") or "",
                )
            )
        events.append(ToolCallDelta(fragments=fragments))

    if choice.get("finish_reason"):
        events.append(StreamEnd(finish_reason=choice["finish_reason"], usage=usage))

    return events


# ---------------------------------------------------------------------------
# Stream accumulator
# ---------------------------------------------------------------------------


@dataclass
class PendingToolCall:
    id: str
    name: str
    arguments: str = ""


@dataclass
class OpenAIStreamAccumulator:
    """Per-stream state. Owned by exactly one in-flight stream."""

    text: str = ""
    tool_calls: dict[int, PendingToolCall] = field(default_factory=lambda: dict[int, PendingToolCall]())
    usage: UsageMetadata | None = None

    def reset(self) -> None:
        self.text = ""
        self.tool_calls.clear()
        self.usage = None


# ---------------------------------------------------------------------------
# Transpiler
# ---------------------------------------------------------------------------


class OpenAITranspiler:
    """Converts between the canonical schema and OpenAI's chat completion format."""

    error_prefix = "OPENAI"

    def __init__(self, id_factory: IdFactory | None = None) -> None:
        self._new_id = id_factory or default_id_factory

    def to_provider(self, request: LlmRequest) -> dict[str, Any]:
        """Convert a canonical request to ``{"messages": [...], "tools": [...]}``.

        ``tools`` is only present when at least one function is declared.
        """
        messages: list[dict[str, Any]] = []

        system = system_instruction_text(request)
        if system:
            messages.append({"role": "system", "content": system})

        for content in request.contents:
            messages.extend(self._content_to_openai(content))

        payload: dict[str, Any] = {"messages": messages}
        tools = self.convert_tools(request)
        if tools is not None:
            payload["tools"] = tools
        return payload

    def convert_tools(self, request: LlmRequest) -> list[dict[str, Any]] | None:
        """Flatten declarations into OpenAI function tools; ``None`` when empty."""
        tools = [
            {
                "type": "function",
                "function": _function_schema(
                    declaration.name or "", declaration.description, declaration.parameters
                ),
            }
            for declaration in iter_function_declarations(request)
        ]
        return tools or None

    def from_provider(self, response: Any) -> LlmResponse:
        """Convert a complete chat completion response to an ``LlmResponse``."""
        data = as_dict(response)
        choices: list[dict[str, Any]] = data.get("choices") or []
        choice: dict[str, Any] = choices[0] if choices else {}
        message: dict[str, Any] = choice.get("message") or {}

        parts: list[Part] = []
        if message.get("content"):
            parts.append(Part.from_text(message["content"]))
        for tc in message.get("tool_calls") or []:
            function: dict[str, Any] = tc.get("function") or {}
            parts.append(
                Part.from_function_call(
                    id=tc.get("id"),
                    name=function.get("name") or "",
                    args=safe_json_loads(function.get("arguments")),
                )
            )

        return LlmResponse.from_parts(
            parts,
            turn_complete=True,
            finish_reason=choice.get("finish_reason"),
            usage_metadata=_usage(data.get("usage")),
        )

    def new_accumulator(self) -> OpenAIStreamAccumulator:
        return OpenAIStreamAccumulator()

    def convert_stream_event(self, chunk: Any, acc: OpenAIStreamAccumulator) -> StreamResult:
        """Feed one streamed chunk through the accumulator.

        Text deltas yield a partial response; tool-call fragments only
        accumulate. A finish reason flushes the accumulator into the final
        response.
        """
        response: LlmResponse | None = None
        for event in decode_chunk(chunk):
            match event:
                case TextDelta(text=text):
                    acc.text += text
                    response = LlmResponse.from_parts([Part.from_text(text)], partial=True)
                case ToolCallDelta(fragments=fragments):
                    for fragment in fragments:
                        self._add_fragment(acc, fragment)
                case UsageUpdate(usage=usage):
                    acc.usage = usage
                case StreamEnd(finish_reason=finish_reason, usage=usage):
                    if usage is not None:
                        acc.usage = usage
                    return self._flush(acc, finish_reason)
        return StreamResult(response=response, is_complete=False)

    def finish_stream(self, acc: OpenAIStreamAccumulator) -> StreamResult:
        """Flush the accumulator when the stream ended without a finish reason."""
        return self._flush(acc, None)

    def _add_fragment(self, acc: OpenAIStreamAccumulator, fragment: ToolCallFragment) -> None:
        pending = acc.tool_calls.get(fragment.index)
        if pending is None:
            pending = PendingToolCall(id=fragment.id or "", name=fragment.name or "")
            acc.tool_calls[fragment.index] = pending
        else:
            # Some providers only send id/name on a later fragment.
            pending.id = pending.id or fragment.id or ""
            pending.name = pending.name or fragment.name or ""
        pending.arguments += fragment.arguments

    def _flush(self, acc: OpenAIStreamAccumulator, finish_reason: str | None) -> StreamResult:
        parts: list[Part] = []
        if acc.text:
            parts.append(Part.from_text(acc.text))
        for pending in acc.tool_calls.values():
            parts.append(
                Part.from_function_call(
                    id=pending.id or self._new_id(),
                    name=pending.name,
                    args=safe_json_loads(pending.arguments),
                )
            )
        response = LlmResponse.from_parts(
            parts,
            turn_complete=True,
            finish_reason=finish_reason,
            usage_metadata=acc.usage,
        )
        acc.reset()
        return StreamResult(response=response, is_complete=True)

    def _content_to_openai(self, content: Content) -> list[dict[str, Any]]:
        """Convert one canonical turn to zero or more OpenAI messages.

        Function calls become one assistant message carrying the turn's text.
        Function responses always follow as ``tool`` messages, even in a turn
        that also holds calls.
        """
        role = wire_role(content.role)
        text = join_text([part.text for part in content.parts])
        calls = content.function_calls

        messages: list[dict[str, Any]] = []
        if calls:
            messages.append(
                {
                    "role": "assistant",
                    "content": text or None,
                    "tool_calls": [
                        {
                            "id": call.id or self._new_id(),
                            "type": "function",
                            "function": {
                                "name": call.name or "",
                                "arguments": dump_json(call.args),
                            },
                        }
                        for call in calls
                    ],
                }
            )
            # Text already went out as the assistant content.
            text = ""

        for result in content.function_responses:
            if not result.id:
                logger.warning("Function response missing id, using generated ID")
            messages.append(
                {
                    "role": "tool",
                    "tool_call_id": result.id or self._new_id(),
                    "content": dump_json(result.response),
                }
            )
        if text:
            messages.append({"role": role, "content": text})
        return messages


def _function_schema(
    name: str, description: str | None, parameters: dict[str, Any] | None
) -> dict[str, Any]:
    function: dict[str, Any] = {"name": name, "description": description or ""}
    if parameters is not None:
        function["parameters"] = parameters
    return function


def _usage(raw: Any) -> UsageMetadata | None:
    if not raw:
        return None
    usage = as_dict(raw)
    return UsageMetadata.from_counts(
        int(usage.get("prompt_tokens") or 0),
        int(usage.get("completion_tokens") or 0),
    )
