"""runonce CLI: inspect and clean up VMs behind run-once agents."""

from __future__ import annotations

import logging

import click

from runonce.cli.commands.connect_info import connect_info
from runonce.cli.commands.instance import instance
from runonce.cli.commands.login import login


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output")
def cli(verbose: bool) -> None:
    """runonce: lifecycle control for VM-backed build agents."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s %(levelname)s %(message)s",
    )


# Register subcommands
cli.add_command(login)
cli.add_command(instance)
cli.add_command(connect_info)
