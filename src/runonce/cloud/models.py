"""Snapshots of VM instances as reported by the VM-management service.

These are read-only views. The service owns instance state; runonce only
looks at whatever the last ``show_instance`` call returned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SessionState(str, Enum):
    SCHEDULING = "scheduling"
    PULLING = "pulling"
    STARTED = "started"
    STOPPING = "stopping"
    STOPPED = "stopped"
    TERMINATING = "terminating"
    TERMINATED = "terminated"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str | None) -> SessionState:
        if not raw:
            return cls.UNKNOWN
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class VmInfo:
    """Network identity of a running VM."""

    name: str
    host_ip: str | None = None
    # Logical port name (e.g. "ssh") -> port on the host that forwards to the guest.
    forwarded_ports: dict[str, int] = field(default_factory=dict)

    def forwarded_port(self, logical_port: str) -> int | None:
        return self.forwarded_ports.get(logical_port)

    @staticmethod
    def from_api(data: dict[str, Any]) -> VmInfo:
        ports: dict[str, int] = {}
        for rule in data.get("port_forwarding") or []:
            name = rule.get("name")
            host_port = rule.get("host_port")
            if name and host_port is not None:
                ports[name] = int(host_port)
        return VmInfo(
            name=data.get("name", ""),
            host_ip=data.get("host_ip") or None,
            forwarded_ports=ports,
        )


@dataclass(frozen=True)
class Instance:
    id: str
    session_state: SessionState = SessionState.UNKNOWN
    vm_info: VmInfo | None = None

    @property
    def started(self) -> bool:
        return self.session_state is SessionState.STARTED

    @staticmethod
    def from_api(data: dict[str, Any]) -> Instance:
        vminfo = data.get("vminfo")
        return Instance(
            id=data.get("instance_id", ""),
            session_state=SessionState.parse(data.get("instance_state")),
            vm_info=VmInfo.from_api(vminfo) if vminfo else None,
        )
