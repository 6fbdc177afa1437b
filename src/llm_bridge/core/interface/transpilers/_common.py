"""Helpers shared by the OpenAI and Anthropic transpilers."""

import json
import logging
from collections.abc import Callable, Iterator
from typing import Any
from uuid import uuid4

from llm_bridge.core.interface.models import FunctionDeclaration, LlmRequest

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def default_id_factory() -> str:
    """Return a fresh random identifier for a call or result missing one."""
    return str(uuid4())


def safe_json_loads(raw: str | None) -> dict[str, Any]:
    """Parse a JSON object, falling back to ``{}``.

    Tool arguments arrive as JSON text in some wire contexts. A malformed or
    non-object payload yields an empty dict instead of raising.
    """
    if not raw:
        return {}
    try:
        result = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Malformed tool arguments, using empty object: %.200s", raw)
        return {}
    if not isinstance(result, dict):
        return {}
    return result  # pyright: ignore[reportUnknownVariableType]


def dump_json(value: Any) -> str:
    """Serialize tool arguments or results to JSON text."""
    return json.dumps(value if value is not None else {})


def wire_role(role: str | None) -> str:
    """Map a canonical role to a wire role: ``model`` is ``assistant``, all else ``user``."""
    return "assistant" if role == "model" else "user"


def join_text(texts: list[str | None]) -> str:
    return "\n".join(t for t in texts if t)


def system_instruction_text(request: LlmRequest) -> str | None:
    """Extract the system instruction as a single string, if any."""
    if request.config is None or not request.config.system_instruction:
        return None
    instruction = request.config.system_instruction
    if isinstance(instruction, str):
        return instruction
    return join_text([part.text for part in instruction.parts]) or None


def iter_function_declarations(request: LlmRequest) -> Iterator[FunctionDeclaration]:
    """Flatten function declarations across tool groups, skipping unnamed ones."""
    if request.config is None or not request.config.tools:
        return
    for group in request.config.tools:
        for declaration in group.function_declarations or []:
            if not declaration.name:
                logger.warning("Tool function missing name, skipping")
                continue
            yield declaration


def as_dict(obj: Any) -> dict[str, Any]:
    """Normalise a wire value (plain dict or SDK model) to a dict."""
    if isinstance(obj, dict):
        return obj  # pyright: ignore[reportUnknownVariableType]
    if hasattr(obj, "model_dump"):
        dumped: dict[str, Any] = obj.model_dump()
        return dumped
    msg = f"Unsupported wire value: {type(obj).__name__}"
    raise TypeError(msg)
