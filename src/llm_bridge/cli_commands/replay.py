"""``llm-bridge replay`` — feed a recorded stream through an accumulator."""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import click

from llm_bridge.cli_commands._output import FORMAT_CHOICE, console, print_response
from llm_bridge.core.interface.client import get_transpiler
from llm_bridge.core.interface.models import LlmResponse
from llm_bridge.errors import ReplayError


def read_events(path: Path) -> Iterator[dict[str, Any]]:
    """Yield stream events from a JSONL recording, skipping blank lines.

    Lines may be bare JSON or SSE ``data:`` lines; ``data: [DONE]`` is ignored.
    """
    with path.open() as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if line.startswith("data:"):
                line = line[len("data:") :].strip()
            if not line or line == "[DONE]" or line.startswith("event:"):
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ReplayError(lineno, str(exc)) from exc
            if not isinstance(event, dict):
                raise ReplayError(lineno, "expected a JSON object")
            yield event


def replay_stream(events: Iterator[dict[str, Any]], wire_format: str) -> Iterator[LlmResponse]:
    """Convert recorded events, ending with exactly one final response."""
    transpiler = get_transpiler(wire_format)
    acc = transpiler.new_accumulator()
    for event in events:
        result = transpiler.convert_stream_event(event, acc)
        if result.response is not None:
            yield result.response
        if result.is_complete:
            return
    final = transpiler.finish_stream(acc).response
    if final is not None:
        yield final


@click.command("replay")
@click.argument("events_file", type=click.Path(exists=True))
@click.option(
    "--format",
    "wire_format",
    type=click.Choice(FORMAT_CHOICE),
    default="openai",
    help="Wire format of the recorded events.",
)
@click.option("--json", "as_json", is_flag=True, help="Output the final response as JSON.")
def replay(events_file: str, wire_format: str, as_json: bool) -> None:
    """Replay a recorded stream and print the reconstructed response.

    EVENTS_FILE holds one stream event (chunk) per line.
    """
    try:
        for response in replay_stream(read_events(Path(events_file)), wire_format):
            if response.partial:
                if not as_json:
                    console.print(response.text, end="", markup=False, highlight=False)
                continue
            if not as_json:
                console.print()
            print_response(response, as_json=as_json)
    except ReplayError as exc:
        console.print(f"[red]Error reading events:[/red] {exc}")
        sys.exit(1)
