"""Tests for startup reconciliation."""

import pytest

from conftest import FakeCloud, FakeComputer, FakeNode, started_instance
from runonce.cloud.models import Instance, SessionState
from runonce.cloud.registry import CloudRegistry
from runonce.lifecycle.startup import StartupReconciler


def _reconciler(cloud: FakeCloud, started: bool = False) -> StartupReconciler:
    return StartupReconciler(CloudRegistry([cloud]), host_started=lambda: started)


@pytest.mark.asyncio
async def test_missing_instance_terminates_node():
    cloud = FakeCloud()
    node = FakeNode()
    computer = FakeComputer(node=node, vm_id="i-gone")

    await _reconciler(cloud).start(computer)

    assert node.terminate_calls == 1
    assert cloud.terminated == []
    assert computer.connect_calls == []


@pytest.mark.asyncio
async def test_missing_instance_without_node_terminates_vm():
    cloud = FakeCloud()
    computer = FakeComputer(node=None, vm_id="i-gone")

    await _reconciler(cloud).start(computer)

    assert cloud.terminated == ["i-gone"]
    assert computer.connect_calls == []


@pytest.mark.asyncio
async def test_stopped_instance_is_torn_down():
    cloud = FakeCloud(instances={"i-1": Instance(id="i-1", session_state=SessionState.STOPPED)})
    node = FakeNode()
    computer = FakeComputer(node=node)

    await _reconciler(cloud).start(computer)

    assert node.terminate_calls == 1
    assert computer.connect_calls == []


@pytest.mark.asyncio
async def test_started_instance_forces_reconnect():
    cloud = FakeCloud(instances={"i-1": started_instance()})
    node = FakeNode()
    computer = FakeComputer(node=node)

    await _reconciler(cloud).start(computer)

    assert computer.connect_calls == [True]
    assert node.terminate_calls == 0


@pytest.mark.asyncio
async def test_management_error_leaves_agent_untouched():
    cloud = FakeCloud()
    cloud.fail = True
    node = FakeNode()
    computer = FakeComputer(node=node)

    await _reconciler(cloud).start(computer)

    assert computer.connect_calls == []
    assert node.terminate_calls == 0


@pytest.mark.asyncio
async def test_terminate_failure_is_contained():
    cloud = FakeCloud()
    node = FakeNode()
    node.fail_with = OSError("disk busy")
    computer = FakeComputer(node=node)

    await _reconciler(cloud).start(computer)

    assert computer.connect_calls == []


@pytest.mark.asyncio
async def test_after_startup_connects_normally():
    cloud = FakeCloud()
    computer = FakeComputer(node=FakeNode(), vm_id="i-gone")

    await _reconciler(cloud, started=True).start(computer)

    assert computer.connect_calls == [False]
    assert cloud.terminated == []


@pytest.mark.asyncio
async def test_unknown_cloud_falls_back_to_connect():
    computer = FakeComputer(node=FakeNode(), cloud_name="elsewhere")

    await _reconciler(FakeCloud()).start(computer)

    assert computer.connect_calls == [False]
