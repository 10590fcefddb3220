"""Fleet poller: drives check() for every agent at the cadence it asks for.

Hosts that already run their own periodic check can ignore this module. For
the rest, FleetPoller keeps a due time per agent and calls the strategy when
it comes up. Agents that don't look like managed computers are skipped, and
an exception from one agent's check is logged and contained to that agent.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Iterable

from runonce.config import RunOnceConfig
from runonce.host import ManagedComputer
from runonce.retention import RunOnceRetentionStrategy

logger = logging.getLogger(__name__)

FAILED_CHECK_MINUTES = 1


class FleetPoller:
    """
    Args:
        strategy:      Retention strategy whose check() is called.
        agents:        Returns the host's current agents on each sweep.
        interval:      Seconds between sweeps.
        clock:         Returns epoch seconds; injectable for tests.
    """

    def __init__(
        self,
        strategy: RunOnceRetentionStrategy,
        agents: Callable[[], Iterable[Any]],
        interval: float = 10.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._strategy = strategy
        self._agents = agents
        self._interval = interval
        self._clock = clock
        self._due: dict[str, float] = {}
        self._task: asyncio.Task | None = None

    @staticmethod
    def from_config(
        config: RunOnceConfig,
        strategy: RunOnceRetentionStrategy,
        agents: Callable[[], Iterable[Any]],
    ) -> FleetPoller:
        return FleetPoller(strategy, agents, interval=config.poll_interval_seconds)

    @property
    def interval(self) -> float:
        return self._interval

    def next_check_at(self, agent: str) -> float | None:
        return self._due.get(agent)

    async def sweep(self) -> int:
        """Check every agent that is due. Returns the number of checks run."""
        now = self._clock()
        seen: set[str] = set()
        checked = 0

        for computer in list(self._agents()):
            if not isinstance(computer, ManagedComputer):
                logger.debug("Skipping %r: not a managed computer", computer)
                continue
            name = computer.name
            seen.add(name)
            if self._due.get(name, 0.0) > now:
                continue

            try:
                minutes = await self._strategy.check(computer)
            except Exception:
                logger.exception("Check failed for computer %s", name)
                minutes = FAILED_CHECK_MINUTES
            self._due[name] = now + minutes * 60
            checked += 1

        # Forget agents the host no longer reports.
        for name in list(self._due):
            if name not in seen:
                del self._due[name]
                await self._strategy.forget(name)
        return checked

    async def run_forever(self) -> None:
        logger.info("Fleet poller started (interval=%ss)", self._interval)
        while True:
            await self.sweep()
            await asyncio.sleep(self._interval)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
