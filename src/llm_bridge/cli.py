"""llm-bridge CLI entrypoint."""

from __future__ import annotations

import click

from llm_bridge import __version__


@click.group()
@click.version_option(version=__version__, prog_name="llm-bridge")
@click.option("--trace", is_flag=True, help="Export OpenTelemetry spans to stdout.")
def main(trace: bool) -> None:
    """llm-bridge — convert canonical requests to and from chat wire formats."""
    if trace:
        from llm_bridge.utils.telemetry import configure_telemetry

        configure_telemetry()


# Register subcommands
from llm_bridge.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
