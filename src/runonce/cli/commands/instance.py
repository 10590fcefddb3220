"""runonce instance: look up or terminate a VM instance."""

from __future__ import annotations

import asyncio
import json

import click

from runonce.cli.config import CLI_CLOUD_NAME, get_token, get_url
from runonce.config import RunOnceConfig
from runonce.cloud.client import CloudClient
from runonce.cloud.models import Instance
from runonce.errors import ManagementError


def make_client() -> CloudClient:
    return CloudClient(
        CLI_CLOUD_NAME,
        get_url(),
        token=get_token(),
        timeout=RunOnceConfig.from_env().cloud_timeout_seconds,
    )


async def fetch_instance(instance_id: str) -> Instance | None:
    async with make_client() as client:
        return await client.show_instance(instance_id)


async def _terminate(instance_id: str) -> None:
    async with make_client() as client:
        await client.terminate_vm_instance(instance_id)


def instance_summary(inst: Instance) -> dict:
    summary: dict = {"id": inst.id, "state": inst.session_state.value, "started": inst.started}
    if inst.vm_info is not None:
        summary["vm"] = {
            "name": inst.vm_info.name,
            "host_ip": inst.vm_info.host_ip,
            "forwarded_ports": inst.vm_info.forwarded_ports,
        }
    return summary


@click.group()
def instance() -> None:
    """Inspect VM instances."""


@instance.command()
@click.argument("instance_id")
def show(instance_id: str) -> None:
    """Show an instance's state and network info."""
    try:
        inst = asyncio.run(fetch_instance(instance_id))
    except ManagementError as e:
        raise click.ClickException(str(e))

    if inst is None:
        raise click.ClickException(f"Instance {instance_id} not found")
    click.echo(json.dumps(instance_summary(inst), indent=2))


@instance.command()
@click.argument("instance_id")
@click.confirmation_option(prompt="Terminate this instance?")
def terminate(instance_id: str) -> None:
    """Terminate an instance directly (e.g. one left behind without a node)."""
    try:
        asyncio.run(_terminate(instance_id))
    except ManagementError as e:
        raise click.ClickException(str(e))
    click.echo(f"Terminated instance: {instance_id}")
