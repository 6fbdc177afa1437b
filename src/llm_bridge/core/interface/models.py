"""Canonical request/response schema — the provider-agnostic format of llm-bridge.

An agent framework talks to models in terms of turns (``Content``) made of
parts (``Part``): text, function calls emitted by the model, and function
responses returned by tools. Transpilers convert these to and from the
OpenAI-style and Anthropic-style wire formats.
"""

from typing import Any

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Parts — the smallest content units within a turn
# ---------------------------------------------------------------------------


class FunctionCall(BaseModel):
    """A tool invocation emitted by the model."""

    id: str | None = None
    name: str | None = None
    args: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())


class FunctionResponse(BaseModel):
    """The result of executing a tool, keyed by the originating call id."""

    id: str | None = None
    name: str | None = None
    response: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())


class Part(BaseModel):
    """One content part. Exactly one of the fields is normally set."""

    text: str | None = None
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)

    @classmethod
    def from_function_call(
        cls, name: str, args: dict[str, Any] | None = None, id: str | None = None
    ) -> "Part":
        return cls(function_call=FunctionCall(id=id, name=name, args=args or {}))

    @classmethod
    def from_function_response(
        cls,
        response: dict[str, Any],
        id: str | None = None,
        name: str | None = None,
    ) -> "Part":
        return cls(function_response=FunctionResponse(id=id, name=name, response=response))


# ---------------------------------------------------------------------------
# Content — one turn of the conversation
# ---------------------------------------------------------------------------


class Content(BaseModel):
    """A single turn.

    Roles:
    - user: human input and tool results
    - model: model-generated turns (may include function calls)
    """

    role: str = "user"
    parts: list[Part] = []

    @property
    def text(self) -> str:
        """Text parts joined with newlines, matching the OpenAI wire content."""
        return "\n".join(part.text for part in self.parts if part.text)

    @property
    def function_calls(self) -> list[FunctionCall]:
        return [part.function_call for part in self.parts if part.function_call]

    @property
    def function_responses(self) -> list[FunctionResponse]:
        return [part.function_response for part in self.parts if part.function_response]


# ---------------------------------------------------------------------------
# Tool declarations
# ---------------------------------------------------------------------------


class FunctionDeclaration(BaseModel):
    """A function the model may call.

    ``parameters`` is a JSON-Schema-like dict; primitive type names may be
    upper case (``"STRING"``) or lower case (``"string"``).
    """

    name: str | None = None
    description: str | None = None
    parameters: dict[str, Any] | None = None


class Tool(BaseModel):
    """A group of function declarations."""

    function_declarations: list[FunctionDeclaration] | None = None


# ---------------------------------------------------------------------------
# Request / Response
# ---------------------------------------------------------------------------


class GenerateContentConfig(BaseModel):
    system_instruction: str | Content | None = None
    tools: list[Tool] | None = None


class LlmRequest(BaseModel):
    """A canonical generation request: ordered turns plus optional config."""

    model: str | None = None
    contents: list[Content] = []
    config: GenerateContentConfig | None = None


class UsageMetadata(BaseModel):
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0

    @classmethod
    def from_counts(cls, prompt: int, candidates: int) -> "UsageMetadata":
        """Build usage metadata with ``total = prompt + candidates``."""
        return cls(
            prompt_token_count=prompt,
            candidates_token_count=candidates,
            total_token_count=prompt + candidates,
        )


class LlmResponse(BaseModel):
    """A canonical model reply, a partial streaming update, or an error.

    ``content`` is ``None`` (never an empty turn) when the reply carried no
    parts. Error responses set ``error_code``/``error_message`` instead of
    content and are always ``turn_complete``.
    """

    content: Content | None = None
    partial: bool | None = None
    turn_complete: bool | None = None
    finish_reason: str | None = None
    usage_metadata: UsageMetadata | None = None
    error_code: str | None = None
    error_message: str | None = None

    @property
    def text(self) -> str:
        return self.content.text if self.content else ""

    @property
    def function_calls(self) -> list[FunctionCall]:
        return self.content.function_calls if self.content else []

    @classmethod
    def from_parts(cls, parts: list[Part], **fields: Any) -> "LlmResponse":
        """Build a response from model parts, mapping zero parts to no content."""
        content = Content(role="model", parts=parts) if parts else None
        return cls(content=content, **fields)

    @classmethod
    def from_error(cls, code: str, message: str) -> "LlmResponse":
        return cls(error_code=code, error_message=message, turn_complete=True)


class StreamResult(BaseModel):
    """Outcome of feeding one stream event through an accumulator."""

    response: LlmResponse | None = None
    is_complete: bool = False
