"""Startup reconciliation.

Agents restored while the host process is still booting carry whatever
connection state they had before the restart, which can't be trusted. Before
normal polling takes over, each one is checked against the VM-management
service: agents whose VM is gone are torn down, the rest get a forced
reconnect.
"""

from __future__ import annotations

import logging
from typing import Callable

from runonce.cloud.client import CloudCollaborator
from runonce.cloud.registry import CloudRegistry
from runonce.errors import ManagementError
from runonce.host import ManagedComputer

logger = logging.getLogger(__name__)


class StartupReconciler:
    """
    Args:
        clouds:       Registry used to resolve ``computer.cloud_name``.
        host_started: Returns True once the host is past its startup milestone.
    """

    def __init__(self, clouds: CloudRegistry, host_started: Callable[[], bool]) -> None:
        self._clouds = clouds
        self._host_started = host_started

    async def start(self, computer: ManagedComputer) -> None:
        if not self._host_started():
            cloud = self._clouds.get(computer.cloud_name)
            if cloud is not None:
                await self._reconcile(cloud, computer)
                return
            logger.warning(
                "Cloud %s for computer %s is not registered, skipping reconciliation",
                computer.cloud_name, computer.name,
            )

        logger.info("Start requested for %s", computer.name)
        await computer.connect(False)

    async def _reconcile(self, cloud: CloudCollaborator, computer: ManagedComputer) -> None:
        vm_id = computer.vm_id
        try:
            instance = await cloud.show_instance(vm_id)
            if instance is None or not instance.started:
                node = computer.node
                if node is not None:
                    logger.info(
                        "Instance %s of %s is gone, terminating node %s",
                        vm_id, computer.name, node.node_name,
                    )
                    await node.terminate()
                else:
                    # No node owns the VM, so nobody else will clean it up.
                    logger.info("Instance %s has no node, terminating it directly", vm_id)
                    await cloud.terminate_vm_instance(vm_id)
                return

            logger.info("Instance %s is started, forcing reconnect of %s", vm_id, computer.name)
            await computer.connect(True)
        except (ManagementError, OSError):
            logger.exception("Failed to reconcile %s during host startup", computer.name)
