"""Tests for the VM-management HTTP client."""

import json

import httpx
import pytest

from runonce.cloud.client import CloudClient, CloudCollaborator
from runonce.cloud.models import SessionState
from runonce.errors import ManagementError

INSTANCE_BODY = {
    "instance_id": "i-1",
    "instance_state": "Started",
    "vminfo": {
        "name": "vm-builder-7",
        "host_ip": "10.0.0.5",
        "port_forwarding": [
            {"name": "ssh", "guest_port": 22, "host_port": 52222},
            {"name": "vnc", "guest_port": 5900, "host_port": 55900},
        ],
    },
}


def _client(handler) -> CloudClient:
    return CloudClient(
        "vms", "http://vms.test", token="tok", transport=httpx.MockTransport(handler)
    )


@pytest.mark.asyncio
async def test_show_instance_parses_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["id"] = request.url.params["id"]
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"status": "OK", "body": INSTANCE_BODY})

    async with _client(handler) as client:
        instance = await client.show_instance("i-1")

    assert seen == {"path": "/api/v1/vm", "id": "i-1", "auth": "Bearer tok"}
    assert instance.id == "i-1"
    assert instance.session_state is SessionState.STARTED
    assert instance.started
    assert instance.vm_info.name == "vm-builder-7"
    assert instance.vm_info.host_ip == "10.0.0.5"
    assert instance.vm_info.forwarded_ports == {"ssh": 52222, "vnc": 55900}


@pytest.mark.asyncio
async def test_show_instance_without_vminfo():
    body = {"instance_id": "i-1", "instance_state": "Scheduling"}

    async with _client(lambda r: httpx.Response(200, json={"status": "OK", "body": body})) as client:
        instance = await client.show_instance("i-1")

    assert instance.session_state is SessionState.SCHEDULING
    assert not instance.started
    assert instance.vm_info is None


@pytest.mark.asyncio
async def test_show_instance_not_found():
    async with _client(lambda r: httpx.Response(404, text="no such vm")) as client:
        assert await client.show_instance("i-gone") is None

    fail = {"status": "FAIL", "message": "Instance not found"}
    async with _client(lambda r: httpx.Response(200, json=fail)) as client:
        assert await client.show_instance("i-gone") is None


@pytest.mark.asyncio
async def test_show_instance_failure_raises():
    fail = {"status": "FAIL", "message": "unauthorized"}
    async with _client(lambda r: httpx.Response(200, json=fail)) as client:
        with pytest.raises(ManagementError, match="unauthorized"):
            await client.show_instance("i-1")

    async with _client(lambda r: httpx.Response(500, text="boom")) as client:
        with pytest.raises(ManagementError, match="500"):
            await client.show_instance("i-1")


@pytest.mark.asyncio
async def test_transport_error_raises_management_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    async with _client(handler) as client:
        with pytest.raises(ManagementError, match="connection refused"):
            await client.show_instance("i-1")


@pytest.mark.asyncio
async def test_terminate_vm_instance():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": "OK"})

    async with _client(handler) as client:
        await client.terminate_vm_instance("i-1")

    assert seen == {"method": "DELETE", "body": {"id": "i-1"}}


@pytest.mark.asyncio
async def test_terminate_failure_raises():
    fail = {"status": "FAIL", "message": "instance locked"}
    async with _client(lambda r: httpx.Response(200, json=fail)) as client:
        with pytest.raises(ManagementError, match="instance locked"):
            await client.terminate_vm_instance("i-1")


def test_client_satisfies_collaborator_protocol():
    client = CloudClient("vms", "http://vms.test")
    assert isinstance(client, CloudCollaborator)
