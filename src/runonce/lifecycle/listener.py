"""Task events from the host scheduler.

A run-once agent takes exactly one task. As soon as that task finishes the
agent should stop accepting work and give its VM back, instead of waiting
for the next idle-timeout poll.
"""

from __future__ import annotations

import logging
from typing import Any

from runonce.host import Executor, ManagedComputer
from runonce.lifecycle.reclaim import Reclaimer

logger = logging.getLogger(__name__)


class TaskLifecycleListener:
    def __init__(self, reclaimer: Reclaimer) -> None:
        self._reclaimer = reclaimer

    async def task_accepted(self, executor: Executor, task: Any) -> None:
        computer = _owner(executor)
        if computer is not None:
            logger.info("Computer %s accepted task %s", computer.name, task)

    async def task_completed(self, executor: Executor, task: Any, duration_ms: int) -> None:
        computer = _owner(executor)
        if computer is None:
            return
        logger.info("Computer %s completed task %s in %dms", computer.name, task, duration_ms)
        computer.accepting_tasks = False
        await self._reclaimer.reclaim(computer, "task completed")

    async def task_completed_with_problems(
        self,
        executor: Executor,
        task: Any,
        duration_ms: int,
        problems: BaseException | None,
    ) -> None:
        computer = _owner(executor)
        if computer is None:
            return
        logger.info(
            "Computer %s completed task %s with problems: %s", computer.name, task, problems
        )
        await self._reclaimer.reclaim(computer, "task completed with problems")


def _owner(executor: Executor) -> ManagedComputer | None:
    owner = getattr(executor, "owner", None)
    if isinstance(owner, ManagedComputer):
        return owner
    logger.debug("Ignoring task event from executor owned by %r", owner)
    return None
