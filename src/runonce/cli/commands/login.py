"""runonce login: store VM-management connection settings."""

from __future__ import annotations

import click
import httpx

from runonce.cli.config import save_config


@click.command()
@click.option("--url", required=True, help="VM-management URL (e.g. http://vms.local:8090)")
@click.option("--token", default="", help="Bearer token, if the service requires one")
def login(url: str, token: str) -> None:
    """Save the VM-management service to talk to."""
    url = url.rstrip("/")

    headers = {"Authorization": f"Bearer {token}"} if token else {}
    try:
        r = httpx.get(f"{url}/api/v1/status", headers=headers, timeout=10)
        r.raise_for_status()
    except httpx.HTTPError as e:
        raise click.ClickException(f"Cannot reach VM-management service at {url}: {e}")

    data = {"url": url}
    if token:
        data["token"] = token
    save_config(data)
    click.echo(f"Using {url}")
