"""refract CLI: main entry point.

Usage::

    refract discover myservice:Calculator --convention ethereum --out openrpc.json
    refract methods calc=myservice:Calculator
    refract validate openrpc.json --strict
"""

from __future__ import annotations

import logging

import click
from rich.logging import RichHandler

from refract.cli.commands_discover import discover, methods
from refract.cli.commands_validate import validate


@click.group()
@click.version_option(package_name="refract")
@click.option("--verbose", "-v", count=True, help="Log progress (-vv for debug output).")
def cli(verbose: int) -> None:
    """refract: reflect Python services into OpenRPC documents."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(show_path=False)],
        )


cli.add_command(discover)
cli.add_command(methods)
cli.add_command(validate)

if __name__ == "__main__":
    cli()
