#!/usr/bin/env python3
"""Main CLI entry point for stackflow."""

import logging

import click

from .stack import main as stack_commands


@click.group()
@click.version_option(package_name="stackflow")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Create, update, watch and clean up CloudFormation stacks."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # botocore is noisy at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)


for name, command in stack_commands.commands.items():
    cli.add_command(command, name=name)


if __name__ == "__main__":
    cli()
