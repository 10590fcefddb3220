"""runonce connect-info: show how an agent on an instance would be reached."""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict

import click

from runonce.cli.commands.instance import fetch_instance
from runonce.connection import PENDING, ConnectionStrategySelector
from runonce.errors import ConfigurationError, ManagementError
from runonce.templates import load_templates


@click.command("connect-info")
@click.argument("instance_id")
@click.option(
    "--template",
    "template_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="TOML file with [[template]] entries",
)
@click.option("--name", default=None, help="Template name (defaults to the only one in the file)")
def connect_info(instance_id: str, template_path: str, name: str | None) -> None:
    """Print the connection descriptor for INSTANCE_ID, or 'pending'."""
    try:
        templates = load_templates(template_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    if name is None:
        if len(templates) != 1:
            raise click.ClickException(
                f"{template_path} has {len(templates)} templates; pick one with --name"
            )
        template = next(iter(templates.values()))
    elif name in templates:
        template = templates[name]
    else:
        raise click.ClickException(f"No template named {name!r} in {template_path}")

    try:
        inst = asyncio.run(fetch_instance(instance_id))
    except ManagementError as e:
        raise click.ClickException(str(e))

    if inst is None:
        raise click.ClickException(f"Instance {instance_id} not found")
    if not inst.started:
        click.echo(f"Instance {instance_id} is in state {inst.session_state.value}")
        return

    descriptor = ConnectionStrategySelector().select(template, inst)
    if descriptor is PENDING:
        click.echo("pending: instance has no network info yet")
        return
    click.echo(json.dumps({"kind": descriptor.kind.value, **asdict(descriptor)}, indent=2))
