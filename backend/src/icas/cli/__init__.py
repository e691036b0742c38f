"""CLI entry points for ICAS.

Provides command-line tools for:
- Document and text analysis
- Crime classification
- Serving the REST API
"""

import sys

import click

from .. import __version__
from ..config import get_settings
from ..logging import setup_logging
from .analyze import cli as analyze_cli


@click.group()
@click.version_option(version=__version__, prog_name="icas")
def main():
    """ICAS - Investigative Case Analysis System.

    Command-line tools for running the analysis flows.
    """
    # Logs go to stderr so stdout stays valid JSON
    setup_logging(stream=sys.stderr)


@main.command()
@click.option("--host", default=None, help="Bind address (defaults to API_HOST)")
@click.option("--port", default=None, type=int, help="Bind port (defaults to API_PORT)")
def serve(host: str | None, port: int | None):
    """Run the REST API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=settings.api_debug,
        log_config=None,
    )


main.add_command(analyze_cli, name="analyze")


if __name__ == "__main__":
    main()
