"""Shared CLI output formatters."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from llm_bridge.core.interface.models import LlmRequest, LlmResponse

console = Console()

FORMAT_CHOICE = ["openai", "anthropic"]


def load_request(path: str) -> LlmRequest:
    """Read a canonical request JSON file, exiting with an error if invalid."""
    try:
        return LlmRequest.model_validate_json(Path(path).read_text())
    except (OSError, ValidationError) as exc:
        console.print(f"[red]Error loading request:[/red] {exc}")
        sys.exit(1)


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


def print_response(response: LlmResponse, *, as_json: bool = False) -> None:
    """Pretty-print a canonical response."""
    if as_json:
        console.print_json(response.model_dump_json(exclude_none=True))
        return

    if response.error_code:
        console.print(f"[red]{response.error_code}:[/red] {response.error_message}")
        return

    table = Table(title="Response")
    table.add_column("Kind", style="cyan")
    table.add_column("Value")
    for part in response.content.parts if response.content else []:
        if part.text is not None:
            table.add_row("text", escape(part.text))
        if part.function_call is not None:
            call = part.function_call
            table.add_row("function_call", escape(f"{call.name}({json.dumps(call.args)}) id={call.id}"))
    console.print(table)

    if response.finish_reason:
        console.print(f"  Finish reason: {response.finish_reason}")
    usage = response.usage_metadata
    if usage is not None:
        console.print(
            f"  Tokens: prompt={usage.prompt_token_count} "
            f"candidates={usage.candidates_token_count} total={usage.total_token_count}"
        )
