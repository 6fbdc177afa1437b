"""Canonical model interface and wire-format transpilation."""

from llm_bridge.core.interface.client import ModelClient
from llm_bridge.core.interface.config import ModelConfig
from llm_bridge.core.interface.models import (
    Content,
    FunctionCall,
    FunctionDeclaration,
    FunctionResponse,
    GenerateContentConfig,
    LlmRequest,
    LlmResponse,
    Part,
    StreamResult,
    Tool,
    UsageMetadata,
)
from llm_bridge.core.interface.transpiler import Transpiler
from llm_bridge.core.interface.transpilers import AnthropicTranspiler, OpenAITranspiler

__all__ = [
    "AnthropicTranspiler",
    "Content",
    "FunctionCall",
    "FunctionDeclaration",
    "FunctionResponse",
    "GenerateContentConfig",
    "LlmRequest",
    "LlmResponse",
    "ModelClient",
    "ModelConfig",
    "OpenAITranspiler",
    "Part",
    "StreamResult",
    "Tool",
    "Transpiler",
    "UsageMetadata",
]
