"""HTTP client for the VM-management service.

The service exposes a small REST API. Every response is a JSON envelope:

    {"status": "OK", "body": {...}}
    {"status": "FAIL", "message": "..."}

Only the two calls the lifecycle controller needs are wrapped here:
looking up an instance and terminating one.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from runonce.cloud.models import Instance
from runonce.errors import ManagementError

logger = logging.getLogger(__name__)

VM_PATH = "/api/v1/vm"


@runtime_checkable
class CloudCollaborator(Protocol):
    """What the lifecycle code needs from a VM-management backend."""

    name: str

    async def show_instance(self, instance_id: str) -> Instance | None: ...

    async def terminate_vm_instance(self, instance_id: str) -> None: ...


class CloudClient:
    """Async client for one VM-management service.

    Args:
        name:      Cloud name agents refer to (``computer.cloud_name``).
        base_url:  Root URL of the service, e.g. ``https://vms.internal:8090``.
        token:     Optional bearer token.
        timeout:   Per-request timeout in seconds.
        transport: Optional httpx transport (tests inject a MockTransport).
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.name = name
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> CloudClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def show_instance(self, instance_id: str) -> Instance | None:
        """Return the instance, or None if the service doesn't know it."""
        try:
            r = await self._client.get(VM_PATH, params={"id": instance_id})
        except httpx.HTTPError as e:
            raise ManagementError(f"show instance {instance_id}: {e}") from e

        if r.status_code == 404:
            return None
        body = self._unwrap(r, f"show instance {instance_id}", allow_missing=True)
        if body is None:
            return None
        return Instance.from_api(body)

    async def terminate_vm_instance(self, instance_id: str) -> None:
        logger.info("Terminating VM instance %s on cloud %s", instance_id, self.name)
        try:
            r = await self._client.request("DELETE", VM_PATH, json={"id": instance_id})
        except httpx.HTTPError as e:
            raise ManagementError(f"terminate instance {instance_id}: {e}") from e
        self._unwrap(r, f"terminate instance {instance_id}")

    def _unwrap(
        self,
        r: httpx.Response,
        what: str,
        allow_missing: bool = False,
    ) -> dict[str, Any] | None:
        """Check the HTTP status and the JSON envelope, return the body.

        With ``allow_missing`` a FAIL envelope whose message says the
        instance was not found maps to None instead of an error.
        """
        if r.status_code >= 400:
            raise ManagementError(f"{what}: {r.status_code} {r.text}")
        try:
            data = r.json()
        except ValueError as e:
            raise ManagementError(f"{what}: invalid JSON response") from e

        if data.get("status") != "OK":
            message = str(data.get("message", ""))
            if allow_missing and "not found" in message.lower():
                return None
            raise ManagementError(f"{what}: {message or 'request failed'}")
        return data.get("body") or {}
