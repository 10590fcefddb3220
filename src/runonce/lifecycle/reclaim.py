"""Reclamation: free an agent's slot and terminate its VM when it is safe.

Reclamation is advisory. It can be triggered by an idle timeout, by an
exhausted reconnection budget, or by a task completing, and those triggers
are not ordered with respect to each other. Each run re-reads the live busy
count and node at the moment it executes, so a run that loses a race is a
no-op rather than a second terminate.
"""

from __future__ import annotations

import logging

from runonce.events import (
    AgentEventLog,
    ReclaimEvent,
    ReclaimSkippedEvent,
    TerminatedEvent,
    TerminateFailedEvent,
)
from runonce.host import ManagedComputer
from runonce.lifecycle.state import LifecycleStateStore

logger = logging.getLogger(__name__)


class Reclaimer:
    def __init__(self, states: LifecycleStateStore, events: AgentEventLog) -> None:
        self._states = states
        self._events = events

    async def reclaim(self, computer: ManagedComputer, reason: str) -> bool:
        """Terminate the computer's node if nothing forbids it.

        Returns True only when terminate() was called and succeeded.
        """
        name = computer.name
        node = computer.node
        if node is None:
            logger.debug("Reclaim %s (%s): no node, nothing to do", name, reason)
            return False

        logger.info("Computer %s is done (%s), node %s", name, reason, node.node_name)
        await self._events.publish(name, ReclaimEvent(reason=reason))

        busy = computer.count_busy()
        if busy > 1:
            logger.info("Computer %s has %d busy executors, not terminating", name, busy)
            await self._events.publish(name, ReclaimSkippedEvent(reason="busy"))
            return False

        if not node.can_terminate():
            logger.info(
                "Not terminating computer %s node %s due to termination configuration",
                name, node.node_name,
            )
            await self._events.publish(name, ReclaimSkippedEvent(reason="termination policy"))
            return False

        state = self._states.state_for(name)
        if state.terminating:
            logger.info("Termination of %s already in progress", name)
            return False

        state.terminating = True
        try:
            logger.info("Terminating computer %s node %s", name, node.node_name)
            await node.terminate()
        except OSError as e:
            logger.warning("Failed to terminate %s: %s", name, e)
            await self._events.publish(
                name, TerminateFailedEvent(node=node.node_name, error=str(e))
            )
            return False
        finally:
            state.terminating = False

        state.reclaimed = True
        await self._events.publish(name, TerminatedEvent(node=node.node_name))
        await self._events.close(name)
        return True
