"""``llm-bridge convert`` — show the wire payload for a canonical request."""

from __future__ import annotations

import click

from llm_bridge.cli_commands._output import FORMAT_CHOICE, load_request, print_json
from llm_bridge.core.interface.client import get_transpiler


@click.command("convert")
@click.argument("request_file", type=click.Path(exists=True))
@click.option(
    "--format",
    "wire_format",
    type=click.Choice(FORMAT_CHOICE),
    default="openai",
    help="Target wire format.",
)
def convert(request_file: str, wire_format: str) -> None:
    """Convert a canonical request to a wire payload.

    REQUEST_FILE is a JSON-encoded LlmRequest.
    """
    request = load_request(request_file)
    print_json(get_transpiler(wire_format).to_provider(request))
