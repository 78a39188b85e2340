"""Main CLI entry point for ngurra-search."""

import click

from .. import __version__
from ..utils.logger import setup_logger
from .commands.index import index_commands
from .commands.query import query_commands


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ...)")
def cli(log_level):
    """Search index maintenance and query tools."""
    setup_logger(level=log_level)


# Register commands
for command in (*index_commands, *query_commands):
    cli.add_command(command)


if __name__ == "__main__":
    cli()
