"""Capabilities runonce expects from the host scheduler.

The host owns agents, nodes and executors. runonce never subclasses host
types; the host hands over objects that satisfy these protocols and calls
back into :class:`runonce.retention.RunOnceRetentionStrategy`.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from runonce.events import AgentLog


@runtime_checkable
class Node(Protocol):
    """The host's record of one agent slot and the VM that backs it."""

    node_name: str
    display_name: str

    def can_terminate(self) -> bool:
        """False when the termination policy wants the VM kept (e.g. keep on failure)."""
        ...

    async def terminate(self) -> None:
        """Tear down the node and its VM. May raise OSError."""
        ...


@runtime_checkable
class ManagedComputer(Protocol):
    """Live view of one VM-backed execution slot."""

    name: str
    cloud_name: str
    vm_id: str
    accepting_tasks: bool

    @property
    def node(self) -> Node | None: ...

    def count_busy(self) -> int: ...

    def is_connecting(self) -> bool: ...

    def is_scheduling_or_pulling(self) -> bool: ...

    def is_online(self) -> bool: ...

    def is_idle(self) -> bool: ...

    def idle_start_time(self) -> float:
        """Epoch seconds at which the computer last became idle."""
        ...

    async def connect(self, force: bool) -> None:
        """Ask the host to (re)launch the agent connection.

        ``force`` discards any half-open connection before retrying.
        """
        ...


@runtime_checkable
class Executor(Protocol):
    owner: Any


@runtime_checkable
class Transport(Protocol):
    """One connection attempt to the agent process (SSH, JNLP, ...)."""

    async def launch(self, computer: ManagedComputer, log: AgentLog) -> None: ...
