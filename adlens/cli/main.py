"""
Main CLI entry point for AdLens
"""

import click

from .. import __version__
from .creatives import creatives


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    AdLens - Creative performance analytics

    Group ad performance records into creative clusters, derive metrics
    and compare them against account benchmarks.
    """
    pass


# Register command groups
cli.add_command(creatives)


if __name__ == '__main__':
    cli()
