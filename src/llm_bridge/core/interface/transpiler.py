"""Transpiler protocol — converts between the canonical schema and a wire format.

Each wire format (OpenAI, Anthropic) has a concrete transpiler covering
request conversion, non-streamed response conversion and streamed event
accumulation.
"""

from typing import Any, Protocol

from llm_bridge.core.interface.models import LlmRequest, LlmResponse, StreamResult


class Transpiler(Protocol):
    """Protocol for wire-format transpilers."""

    error_prefix: str

    def to_provider(self, request: LlmRequest) -> dict[str, Any]:
        """Convert a canonical request to the wire payload fields.

        Returns a dict with ``messages`` and, where applicable, ``system`` and
        ``tools``. Optional fields are omitted rather than left empty.
        """
        ...

    def from_provider(self, response: Any) -> LlmResponse:
        """Convert one complete wire response into an ``LlmResponse``."""
        ...

    def new_accumulator(self) -> Any:
        """Return fresh accumulation state for a single stream.

        The accumulator must never be shared between two streams.
        """
        ...

    def convert_stream_event(self, event: Any, acc: Any) -> StreamResult:
        """Feed one stream event through ``acc``.

        Returns a partial response (or none) with ``is_complete=False``, or the
        fully reconstructed response with ``is_complete=True`` on the terminal
        event, after which ``acc`` is reset.
        """
        ...

    def finish_stream(self, acc: Any) -> StreamResult:
        """Flush ``acc`` into a final response when the stream ended early."""
        ...
