"""Connection strategy selection and the delegating agent launcher.

Once a VM is started the agent process inside it still has to be reached.
The template says how (SSH or JNLP); the live instance says where. SSH needs
the VM's host IP and forwarded port, which the VM-management service only
reports some time after the instance starts, so selection may come back
PENDING and the launcher simply tries again on a later connect.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Union

from runonce.cloud.client import CloudCollaborator
from runonce.cloud.models import Instance
from runonce.errors import ConfigurationError, LaunchError, ManagementError
from runonce.events import AgentLog, InstanceNotReadyEvent
from runonce.host import ManagedComputer, Transport
from runonce.templates import LaunchMethod, Template

logger = logging.getLogger(__name__)

# Resilience knobs for a single transport-level connection attempt.
# Unrelated to the lifecycle controller's reconnection counter.
LAUNCH_TIMEOUT_SECONDS = 2000
MAX_NUM_RETRIES = 5
RETRY_WAIT_MS = 100


@dataclass(frozen=True)
class SSHDescriptor:
    host: str
    port: int
    credentials_id: str = ""
    java_args: str = ""
    launch_timeout_seconds: int = LAUNCH_TIMEOUT_SECONDS
    max_num_retries: int = MAX_NUM_RETRIES
    retry_wait_ms: int = RETRY_WAIT_MS

    kind = LaunchMethod.SSH


@dataclass(frozen=True)
class JNLPDescriptor:
    tunnel: str = ""
    extra_args: str = ""

    kind = LaunchMethod.JNLP


class _Pending:
    """Sentinel: the VM has no usable network identity yet."""

    _instance: _Pending | None = None

    def __new__(cls) -> _Pending:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PENDING"

    def __bool__(self) -> bool:
        return False


PENDING = _Pending()

ConnectionDescriptor = Union[SSHDescriptor, JNLPDescriptor]

TransportFactory = Callable[[ConnectionDescriptor], Transport]


class ConnectionStrategySelector:
    """Maps (template, live instance) to a connection descriptor."""

    def __init__(self) -> None:
        self._jnlp: dict[Template, JNLPDescriptor] = {}

    def check_template(self, template: Template) -> None:
        """Raise ConfigurationError unless the template's launch method is supported."""
        if template.launch_method not in (LaunchMethod.SSH, LaunchMethod.JNLP):
            raise ConfigurationError(
                f"Unknown launch method {template.launch_method!r} in template {template.name}"
            )

    def select(
        self, template: Template, instance: Instance | None
    ) -> ConnectionDescriptor | _Pending:
        self.check_template(template)
        if instance is None or not instance.started:
            return PENDING

        if template.launch_method == LaunchMethod.JNLP:
            return self.jnlp_descriptor(template)

        vm_info = instance.vm_info
        if vm_info is None or not vm_info.host_ip:
            return PENDING
        port = vm_info.forwarded_port(template.ssh_port)
        if port is None:
            logger.warning(
                "Instance %s has no forwarded port %r yet", instance.id, template.ssh_port
            )
            return PENDING
        return SSHDescriptor(
            host=vm_info.host_ip,
            port=port,
            credentials_id=template.credentials_id,
            java_args=template.java_args,
        )

    def jnlp_descriptor(self, template: Template) -> JNLPDescriptor:
        # Built once per template; JNLP doesn't depend on the VM's network identity.
        descriptor = self._jnlp.get(template)
        if descriptor is None:
            descriptor = JNLPDescriptor(tunnel=template.jnlp_tunnel, extra_args=template.extra_args)
            self._jnlp[template] = descriptor
        return descriptor


class AgentLauncher:
    """Launches the connection to one agent, choosing the transport from live VM state.

    Args:
        cloud:             VM-management collaborator that owns the instance.
        template:          The agent's template.
        instance_id:       Backing VM instance id.
        transport_factory: Builds a Transport for a descriptor (host-provided).
        selector:          Shared selector; a private one is created if omitted.

    Raises:
        ConfigurationError: The template's launch method is unsupported.
    """

    def __init__(
        self,
        cloud: CloudCollaborator,
        template: Template,
        instance_id: str,
        transport_factory: TransportFactory,
        selector: ConnectionStrategySelector | None = None,
    ) -> None:
        self.cloud = cloud
        self.template = template
        self.instance_id = instance_id
        self._transport_factory = transport_factory
        self._selector = selector or ConnectionStrategySelector()
        self._selector.check_template(template)
        self.descriptor: ConnectionDescriptor | None = None

    async def launch(self, computer: ManagedComputer, log: AgentLog) -> None:
        try:
            instance = await self.cloud.show_instance(self.instance_id)
        except ManagementError as e:
            raise LaunchError(f"Could not look up instance {self.instance_id}: {e}") from e

        if instance is None:
            logger.info("Instance %s is unknown to cloud %s", self.instance_id, self.cloud.name)
            return
        if not instance.started:
            await log.println(
                f"Instance {self.instance_id} is in state {instance.session_state.value}"
            )
            await log.publish(
                InstanceNotReadyEvent(
                    instance_id=self.instance_id, state=instance.session_state.value
                )
            )
            return

        await log.println(f"Instance {self.instance_id} is Started")
        descriptor = self._selector.select(self.template, instance)
        if descriptor is PENDING:
            logger.info("Instance %s has no network info yet", self.instance_id)
            return

        await log.println(
            f"Launching {descriptor.kind.value.upper()} connection for {self.instance_id}"
        )
        self.descriptor = descriptor
        transport = self._transport_factory(descriptor)
        await transport.launch(computer, log)

        node = computer.node
        if node is not None and instance.vm_info is not None:
            node.display_name = instance.vm_info.name
