"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from llm_bridge.cli_commands.convert import convert
    from llm_bridge.cli_commands.generate import generate
    from llm_bridge.cli_commands.replay import replay

    cli.add_command(convert)
    cli.add_command(replay)
    cli.add_command(generate)
