"""llm-bridge — canonical request/response conversion for OpenAI-style and Anthropic chat APIs."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from llm_bridge.core.interface.client import ModelClient as ModelClient
    from llm_bridge.core.interface.config import ModelConfig as ModelConfig

_LAZY_EXPORTS = {
    "ModelClient": "llm_bridge.core.interface.client",
    "ModelConfig": "llm_bridge.core.interface.config",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'llm_bridge' has no attribute {name!r}")
