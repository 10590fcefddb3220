"""Agent lifecycle controller: the periodic reconnect / reclaim decision.

The host calls check() for each agent on its own cadence; the return value
is the number of minutes until the next call. Rules are evaluated in order
and the first one that applies wins:

    1. more than one busy executor      -> wait
    2. connecting                       -> wait
    3. scheduling or pulling            -> wait
    4. reconnection budget exhausted    -> reclaim
    5. offline                          -> reconnect (forced after 5 soft tries)
    6. idle longer than idle_minutes    -> reclaim
    7. anything else                    -> wait

A single busy executor is not a reason to wait: a one-shot agent running its
only task is about to finish, and reclamation re-checks the busy count
itself before terminating anything.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from runonce.events import AgentEventLog, ReconnectEvent
from runonce.host import ManagedComputer
from runonce.lifecycle.reclaim import Reclaimer
from runonce.lifecycle.state import LifecycleStateStore

logger = logging.getLogger(__name__)

MAX_RECONNECTION_RETRIES = 7
# Reconnects numbered above this one discard any half-open connection first.
SOFT_RECONNECTION_RETRIES = 4

CHECK_AGAIN_MINUTES = 1
RECONNECT_CHECK_MINUTES = 2


class AgentLifecycleController:
    """Decides, for one poll, what to do with an agent.

    Args:
        states:                  Per-agent controller state.
        reclaimer:               Shared reclamation procedure.
        events:                  Per-agent event log.
        idle_minutes:            Idle time after which an agent is reclaimed.
        reset_retries_on_online: Zero the reconnection counter whenever the
                                 agent is seen online.
        clock:                   Returns epoch seconds; injectable for tests.
    """

    def __init__(
        self,
        states: LifecycleStateStore,
        reclaimer: Reclaimer,
        events: AgentEventLog,
        idle_minutes: int = 1,
        reset_retries_on_online: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._states = states
        self._reclaimer = reclaimer
        self._events = events
        self.idle_minutes = idle_minutes
        self.reset_retries_on_online = reset_retries_on_online
        self._clock = clock

    async def check(self, computer: object) -> int:
        if not isinstance(computer, ManagedComputer):
            logger.debug("Skipping %r: not a managed computer", computer)
            return CHECK_AGAIN_MINUTES

        name = computer.name
        logger.info("Checking computer %s", name)

        busy = computer.count_busy()
        if busy > 1:
            logger.info("Computer %s has %d busy executors", name, busy)
            return CHECK_AGAIN_MINUTES

        if computer.is_connecting():
            return CHECK_AGAIN_MINUTES

        if computer.is_scheduling_or_pulling():
            return CHECK_AGAIN_MINUTES

        state = self._states.state_for(name)
        if state.reconnection_retries >= MAX_RECONNECTION_RETRIES:
            logger.info("Computer %s has reached its max reconnection retries", name)
            await self._reclaimer.reclaim(computer, "reconnection retries exhausted")
            return CHECK_AGAIN_MINUTES

        if state.reclaimed:
            logger.debug("Computer %s was already reclaimed", name)
            return CHECK_AGAIN_MINUTES

        if not computer.is_online():
            force = state.reconnection_retries > SOFT_RECONNECTION_RETRIES
            state.reconnection_retries += 1
            logger.info(
                "Computer %s is offline, reconnecting (attempt %d, force=%s)",
                name, state.reconnection_retries, force,
            )
            await self._events.publish(
                name, ReconnectEvent(force=force, attempt=state.reconnection_retries)
            )
            await computer.connect(force)
            return RECONNECT_CHECK_MINUTES

        if self.reset_retries_on_online and state.reconnection_retries:
            logger.info("Computer %s is back online, resetting reconnection retries", name)
            state.reconnection_retries = 0

        if computer.is_idle():
            idle_seconds = self._clock() - computer.idle_start_time()
            if idle_seconds > self.idle_minutes * 60:
                logger.info("Disconnecting %s due to idle timeout", name)
                await self._reclaimer.reclaim(computer, "idle timeout")

        return CHECK_AGAIN_MINUTES
