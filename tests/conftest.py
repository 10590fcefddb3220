"""Fake host objects shared by the lifecycle tests."""

from __future__ import annotations

import pytest

from runonce.cloud.models import Instance, SessionState, VmInfo
from runonce.cloud.registry import CloudRegistry
from runonce.errors import ManagementError
from runonce.events import AgentEventLog
from runonce.retention import RunOnceRetentionStrategy


class FakeNode:
    def __init__(self, name: str = "node-1", can_terminate: bool = True) -> None:
        self.node_name = name
        self.display_name = name
        self._can_terminate = can_terminate
        self.terminate_calls = 0
        self.fail_with: OSError | None = None
        self.computer: FakeComputer | None = None
        self.on_terminate = None

    def can_terminate(self) -> bool:
        return self._can_terminate

    async def terminate(self) -> None:
        self.terminate_calls += 1
        if self.on_terminate is not None:
            await self.on_terminate()
        if self.fail_with is not None:
            raise self.fail_with
        if self.computer is not None:
            self.computer.node = None


class FakeComputer:
    def __init__(
        self,
        name: str = "agent-1",
        node: FakeNode | None = None,
        busy: int = 0,
        online: bool = True,
        idle: bool = True,
        idle_since: float = 0.0,
        cloud_name: str = "vms",
        vm_id: str = "i-1",
    ) -> None:
        self.name = name
        self.cloud_name = cloud_name
        self.vm_id = vm_id
        self.accepting_tasks = True
        self.node = node
        if node is not None:
            node.computer = self
        self.busy = busy
        self.online = online
        self.idle = idle
        self.idle_since = idle_since
        self.connecting = False
        self.scheduling_or_pulling = False
        self.connect_calls: list[bool] = []

    def count_busy(self) -> int:
        return self.busy

    def is_connecting(self) -> bool:
        return self.connecting

    def is_scheduling_or_pulling(self) -> bool:
        return self.scheduling_or_pulling

    def is_online(self) -> bool:
        return self.online

    def is_idle(self) -> bool:
        return self.idle

    def idle_start_time(self) -> float:
        return self.idle_since

    async def connect(self, force: bool) -> None:
        self.connect_calls.append(force)


class FakeExecutor:
    def __init__(self, owner) -> None:
        self.owner = owner


class FakeCloud:
    def __init__(self, name: str = "vms", instances: dict[str, Instance] | None = None) -> None:
        self.name = name
        self.instances = instances or {}
        self.terminated: list[str] = []
        self.fail = False

    async def show_instance(self, instance_id: str) -> Instance | None:
        if self.fail:
            raise ManagementError("service unavailable")
        return self.instances.get(instance_id)

    async def terminate_vm_instance(self, instance_id: str) -> None:
        if self.fail:
            raise ManagementError("service unavailable")
        self.terminated.append(instance_id)


def started_instance(
    instance_id: str = "i-1",
    host_ip: str | None = "10.0.0.5",
    ports: dict[str, int] | None = None,
    name: str = "vm-builder-7",
) -> Instance:
    return Instance(
        id=instance_id,
        session_state=SessionState.STARTED,
        vm_info=VmInfo(
            name=name,
            host_ip=host_ip,
            forwarded_ports={"ssh": 52222} if ports is None else ports,
        ),
    )


class Clock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def cloud():
    return FakeCloud()


@pytest.fixture
def strategy(cloud, clock):
    return RunOnceRetentionStrategy(
        CloudRegistry([cloud]),
        host_started=lambda: True,
        idle_minutes=1,
        events=AgentEventLog(),
        clock=clock,
    )
