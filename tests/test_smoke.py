"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import llm_bridge

    assert llm_bridge.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from llm_bridge.cli import main

    assert callable(main)


def test_interface_imports() -> None:
    from llm_bridge.core.interface import (
        AnthropicTranspiler,
        LlmRequest,
        LlmResponse,
        ModelClient,
        OpenAITranspiler,
    )

    assert ModelClient is not None
    assert LlmRequest is not None
    assert LlmResponse is not None
    assert AnthropicTranspiler is not None
    assert OpenAITranspiler is not None


def test_lazy_import_from_package() -> None:
    import llm_bridge

    assert llm_bridge.ModelClient is not None
    assert llm_bridge.ModelConfig is not None
