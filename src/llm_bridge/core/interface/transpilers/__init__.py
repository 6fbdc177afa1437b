"""Wire-format transpiler implementations."""

from llm_bridge.core.interface.transpilers.anthropic import AnthropicTranspiler
from llm_bridge.core.interface.transpilers.openai import OpenAITranspiler

__all__ = ["AnthropicTranspiler", "OpenAITranspiler"]
