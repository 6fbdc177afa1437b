"""Anthropic transpiler — handles system extraction and the user-first rule.

Key differences from the canonical schema:
- The system instruction is a separate top-level parameter, not a message.
- Roles are only ``user`` and ``assistant``; the first message must be ``user``.
- Function calls and responses are ``tool_use``/``tool_result`` content blocks.
- Tool input schemas use lowercase JSON-Schema type names.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

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
    safe_json_loads,
    system_instruction_text,
    wire_role,
)

logger = logging.getLogger(__name__)

CONTINUE_PLACEHOLDER = "[System: Continue conversation]"

_EMPTY_INPUT_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}

# ---------------------------------------------------------------------------
# Stream events
# ---------------------------------------------------------------------------


class MessageStart(BaseModel):
    type: Literal["message_start"] = "message_start"
    input_tokens: int | None = None


class ContentBlockStart(BaseModel):
    type: Literal["content_block_start"] = "content_block_start"
    index: int
    block_type: str
    id: str | None = None
    name: str | None = None


class TextDelta(BaseModel):
    type: Literal["text_delta"] = "text_delta"
    text: str


class InputJsonDelta(BaseModel):
    type: Literal["input_json_delta"] = "input_json_delta"
    partial_json: str


class OtherDelta(BaseModel):
    type: str


class ContentBlockDelta(BaseModel):
    type: Literal["content_block_delta"] = "content_block_delta"
    index: int
    delta: TextDelta | InputJsonDelta | OtherDelta


class MessageDelta(BaseModel):
    type: Literal["message_delta"] = "message_delta"
    output_tokens: int | None = None
    stop_reason: str | None = None


class MessageStop(BaseModel):
    type: Literal["message_stop"] = "message_stop"


class OtherEvent(BaseModel):
    """``ping``, ``content_block_stop`` and anything not yet known."""

    type: str


AnthropicStreamEvent = (
    MessageStart | ContentBlockStart | ContentBlockDelta | MessageDelta | MessageStop | OtherEvent
)


def decode_event(event: Any) -> AnthropicStreamEvent:
    """Decode a raw stream event (dict or SDK model) into its variant."""
    data = as_dict(event)
    event_type = str(data.get("type", ""))

    if event_type == "message_start":
        usage: dict[str, Any] = (data.get("message") or {}).get("usage") or {}
        return MessageStart(input_tokens=usage.get("input_tokens"))
    if event_type == "content_block_start":
        block: dict[str, Any] = data.get("content_block") or {}
        return ContentBlockStart(
            index=data.get("index", 0),
            block_type=str(block.get("type", "")),
            id=block.get("id"),
            name=block.get("name"),
        )
    if event_type == "content_block_delta":
        return ContentBlockDelta(index=data.get("index", 0), delta=_decode_delta(data.get("delta") or {}))
    if event_type == "message_delta":
        usage = data.get("usage") or {}
        stop_reason = (data.get("delta") or {}).get("stop_reason")
        return MessageDelta(output_tokens=usage.get("output_tokens"), stop_reason=stop_reason)
    if event_type == "message_stop":
        return MessageStop()
    return OtherEvent(type=event_type)


def _decode_delta(delta: dict[str, Any]) -> TextDelta | InputJsonDelta | OtherDelta:
    delta_type = str(delta.get("type", ""))
    if delta_type == "text_delta":
        return TextDelta(text=delta.get("text") or "")
    if delta_type == "input_json_delta":
        return InputJsonDelta(partial_json=delta.get("partial_json") or "")
    return OtherDelta(type=delta_type)


# ---------------------------------------------------------------------------
# Stream accumulator
# ---------------------------------------------------------------------------


@dataclass
class PendingToolUse:
    id: str
    name: str
    input: str = ""


@dataclass
class AnthropicStreamAccumulator:
    """Per-stream state. Owned by exactly one in-flight stream."""

    text: str = ""
    tool_uses: dict[int, PendingToolUse] = field(default_factory=lambda: dict[int, PendingToolUse]())
    current_block_index: int = -1
    input_tokens: int | None = None
    output_tokens: int | None = None
    stop_reason: str | None = None

    def reset(self) -> None:
        self.text = ""
        self.tool_uses.clear()
        self.current_block_index = -1
        self.input_tokens = None
        self.output_tokens = None
        self.stop_reason = None

    def usage(self) -> UsageMetadata | None:
        """Usage metadata, or ``None`` when no token count was ever seen."""
        if self.input_tokens is None and self.output_tokens is None:
            return None
        return UsageMetadata.from_counts(self.input_tokens or 0, self.output_tokens or 0)


# ---------------------------------------------------------------------------
# Transpiler
# ---------------------------------------------------------------------------


class AnthropicTranspiler:
    """Converts between the canonical schema and Anthropic's messages API format."""

    error_prefix = "ANTHROPIC"

    def __init__(self, id_factory: IdFactory | None = None) -> None:
        self._new_id = id_factory or default_id_factory

    def to_provider(self, request: LlmRequest) -> dict[str, Any]:
        """Convert a canonical request to ``{"messages", "system", "tools"}``.

        ``system`` and ``tools`` are only present when non-empty.
        """
        messages: list[dict[str, Any]] = []
        for content in request.contents:
            message = self._content_to_anthropic(content)
            if message is not None:
                messages.append(message)

        if messages and messages[0]["role"] != "user":
            messages.insert(0, {"role": "user", "content": CONTINUE_PLACEHOLDER})

        payload: dict[str, Any] = {"messages": messages}
        system = system_instruction_text(request)
        if system:
            payload["system"] = system
        tools = self.convert_tools(request)
        if tools is not None:
            payload["tools"] = tools
        return payload

    def convert_tools(self, request: LlmRequest) -> list[dict[str, Any]] | None:
        tools = [
            {
                "name": declaration.name,
                "description": declaration.description or "",
                "input_schema": normalize_schema(declaration.parameters) or dict(_EMPTY_INPUT_SCHEMA),
            }
            for declaration in iter_function_declarations(request)
        ]
        return tools or None

    def from_provider(self, response: Any) -> LlmResponse:
        """Convert a complete Anthropic message to an ``LlmResponse``."""
        data = as_dict(response)

        parts: list[Part] = []
        for block in data.get("content") or []:
            if block.get("type") == "text":
                parts.append(Part.from_text(block.get("text") or ""))
            elif block.get("type") == "tool_use":
                parts.append(
                    Part.from_function_call(
                        id=block.get("id"),
                        name=block.get("name") or "",
                        args=block.get("input") or {},
                    )
                )

        usage: dict[str, Any] | None = data.get("usage")
        usage_metadata = None
        if usage:
            usage_metadata = UsageMetadata.from_counts(
                int(usage.get("input_tokens") or 0), int(usage.get("output_tokens") or 0)
            )

        return LlmResponse.from_parts(
            parts,
            turn_complete=True,
            finish_reason=data.get("stop_reason"),
            usage_metadata=usage_metadata,
        )

    def new_accumulator(self) -> AnthropicStreamAccumulator:
        return AnthropicStreamAccumulator()

    def convert_stream_event(self, event: Any, acc: AnthropicStreamAccumulator) -> StreamResult:
        """Feed one stream event through the accumulator."""
        match decode_event(event):
            case MessageStart(input_tokens=input_tokens):
                if input_tokens is not None:
                    acc.input_tokens = input_tokens
            case ContentBlockStart(index=index, block_type=block_type, id=block_id, name=name):
                acc.current_block_index = index
                if block_type == "tool_use":
                    acc.tool_uses[index] = PendingToolUse(id=block_id or self._new_id(), name=name or "")
            case ContentBlockDelta(delta=TextDelta(text=text)):
                acc.text += text
                return StreamResult(
                    response=LlmResponse.from_parts([Part.from_text(text)], partial=True),
                    is_complete=False,
                )
            case ContentBlockDelta(index=index, delta=InputJsonDelta(partial_json=partial_json)):
                pending = acc.tool_uses.get(index)
                if pending is not None:
                    pending.input += partial_json
            case ContentBlockDelta():
                pass
            case MessageDelta(output_tokens=output_tokens, stop_reason=stop_reason):
                if output_tokens is not None:
                    acc.output_tokens = output_tokens
                if stop_reason:
                    acc.stop_reason = stop_reason
            case MessageStop():
                return self.finish_stream(acc)
            case OtherEvent(type=event_type):
                logger.debug("Ignoring Anthropic stream event: %s", event_type)
        return StreamResult(is_complete=False)

    def finish_stream(self, acc: AnthropicStreamAccumulator) -> StreamResult:
        """Build the final response from the accumulator and reset it."""
        parts: list[Part] = []
        if acc.text:
            parts.append(Part.from_text(acc.text))
        for pending in acc.tool_uses.values():
            if pending.name:
                parts.append(
                    Part.from_function_call(
                        id=pending.id, name=pending.name, args=safe_json_loads(pending.input)
                    )
                )

        response = LlmResponse.from_parts(
            parts,
            turn_complete=True,
            finish_reason=acc.stop_reason,
            usage_metadata=acc.usage(),
        )
        acc.reset()
        return StreamResult(response=response, is_complete=True)

    def _content_to_anthropic(self, content: Content) -> dict[str, Any] | None:
        """Convert one canonical turn to an Anthropic message, or ``None`` if empty."""
        blocks: list[dict[str, Any]] = []
        for part in content.parts:
            if part.text:
                blocks.append({"type": "text", "text": part.text})
            if part.function_call is not None:
                call = part.function_call
                blocks.append(
                    {
                        "type": "tool_use",
                        "id": call.id or self._new_id(),
                        "name": call.name or "",
                        "input": call.args,
                    }
                )
            if part.function_response is not None:
                result = part.function_response
                if not result.id:
                    logger.warning("Function response missing id, using generated ID")
                blocks.append(
                    {
                        "type": "tool_result",
                        "tool_use_id": result.id or self._new_id(),
                        "content": dump_json(result.response),
                    }
                )

        if not blocks:
            return None
        return {"role": wire_role(content.role), "content": blocks}


def normalize_schema(schema: Any) -> dict[str, Any] | None:
    """Lowercase every string ``type`` value, recursing into nested objects.

    Lists are passed through unchanged. Returns ``None`` for a missing or
    non-dict schema.
    """
    if not schema or not isinstance(schema, dict):
        return None

    result: dict[str, Any] = {}
    for key, value in schema.items():  # pyright: ignore[reportUnknownVariableType]
        if key == "type" and isinstance(value, str):
            result[key] = value.lower()
        elif isinstance(value, dict):
            result[key] = normalize_schema(value) or {}
        else:
            result[key] = value
    return result
