"""``llm-bridge generate`` — send a canonical request to a model."""

from __future__ import annotations

import asyncio
import sys

import click

from llm_bridge.cli_commands._output import console, load_request, print_response
from llm_bridge.core.interface.client import ModelClient
from llm_bridge.core.interface.config import ModelConfig
from llm_bridge.core.interface.models import LlmResponse


@click.command("generate")
@click.argument("request_file", type=click.Path(exists=True))
@click.option("--model", "-m", required=True, help="Model, e.g. openai/gpt-4o or anthropic/claude-sonnet-4-5.")
@click.option("--api-base", default=None, help="Override the API base URL.")
@click.option("--max-tokens", type=int, default=None, help="Maximum tokens to generate.")
@click.option("--stream", is_flag=True, help="Stream the response.")
@click.option("--json", "as_json", is_flag=True, help="Output the final response as JSON.")
def generate(
    request_file: str,
    model: str,
    api_base: str | None,
    max_tokens: int | None,
    stream: bool,
    as_json: bool,
) -> None:
    """Generate a response for REQUEST_FILE (a JSON-encoded LlmRequest)."""
    request = load_request(request_file)
    client = ModelClient(ModelConfig(model=model, api_base=api_base, max_tokens=max_tokens))

    async def _generate() -> LlmResponse | None:
        final: LlmResponse | None = None
        try:
            async for response in client.generate_content_async(request, stream=stream):
                if response.partial:
                    if not as_json:
                        console.print(response.text, end="", markup=False, highlight=False)
                    continue
                final = response
        finally:
            await client.aclose()
        return final

    final = asyncio.run(_generate())
    if final is None:
        return
    if stream and not as_json:
        console.print()
    print_response(final, as_json=as_json)
    if final.error_code:
        sys.exit(1)
