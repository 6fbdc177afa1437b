"""Tests for ``llm-bridge convert``."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from llm_bridge.cli import main

if TYPE_CHECKING:
    from pathlib import Path


def _write_request(tmp_path: Path) -> Path:
    request = {
        "contents": [
            {"role": "model", "parts": [{"text": "Earlier reply"}]},
            {"role": "user", "parts": [{"text": "Hello, Claude!"}]},
        ],
        "config": {
            "system_instruction": "Be brief.",
            "tools": [
                {
                    "function_declarations": [
                        {"name": "lookup", "parameters": {"type": "OBJECT", "properties": {}}}
                    ]
                }
            ],
        },
    }
    f = tmp_path / "request.json"
    f.write_text(json.dumps(request))
    return f


class TestConvertCommand:
    def test_convert_anthropic(self, tmp_path: Path) -> None:
        f = _write_request(tmp_path)

        result = CliRunner().invoke(main, ["convert", str(f), "--format", "anthropic"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["system"] == "Be brief."
        assert payload["messages"][0]["content"] == "[System: Continue conversation]"
        assert payload["tools"][0]["input_schema"]["type"] == "object"

    def test_convert_openai(self, tmp_path: Path) -> None:
        f = _write_request(tmp_path)

        result = CliRunner().invoke(main, ["convert", str(f)])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["messages"][0] == {"role": "system", "content": "Be brief."}
        assert payload["tools"][0]["function"]["parameters"]["type"] == "OBJECT"

    def test_invalid_request(self, tmp_path: Path) -> None:
        f = tmp_path / "bad.json"
        f.write_text('{"contents": "nope"}')

        result = CliRunner().invoke(main, ["convert", str(f)])

        assert result.exit_code == 1
        assert "Error loading request" in result.output

    def test_missing_file(self) -> None:
        result = CliRunner().invoke(main, ["convert", "/nonexistent/request.json"])
        assert result.exit_code != 0
