"""Tests for ``llm-bridge generate``."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

from click.testing import CliRunner

from llm_bridge.cli import main
from llm_bridge.core.interface.models import LlmResponse, Part


def _write_request(tmp_path: Path) -> Path:
    f = tmp_path / "request.json"
    f.write_text(json.dumps({"contents": [{"role": "user", "parts": [{"text": "Hi"}]}]}))
    return f


def _fake_generate(responses: list[LlmResponse]) -> Any:
    async def _generate(self: Any, request: Any, stream: bool = False, **kwargs: Any) -> Any:
        for response in responses:
            yield response

    return _generate


class TestGenerateCommand:
    def test_generate_prints_final(self, tmp_path: Path) -> None:
        f = _write_request(tmp_path)
        responses = [
            LlmResponse.from_parts([Part.from_text("Hel")], partial=True),
            LlmResponse.from_parts([Part.from_text("Hello there")], turn_complete=True),
        ]

        with patch(
            "llm_bridge.core.interface.client.ModelClient.generate_content_async",
            _fake_generate(responses),
        ):
            result = CliRunner().invoke(main, ["generate", str(f), "-m", "openai/gpt-4o", "--stream", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["content"]["parts"][0]["text"] == "Hello there"

    def test_generate_error_exits_nonzero(self, tmp_path: Path) -> None:
        f = _write_request(tmp_path)
        responses = [LlmResponse.from_error("API_ERROR_401", "unauthorized")]

        with patch(
            "llm_bridge.core.interface.client.ModelClient.generate_content_async",
            _fake_generate(responses),
        ):
            result = CliRunner().invoke(main, ["generate", str(f), "-m", "anthropic/claude-x"])

        assert result.exit_code == 1
        assert "API_ERROR_401" in result.output
