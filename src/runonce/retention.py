"""Run-once retention strategy: the object the host registers for VM-backed agents.

Wires the lifecycle controller, task listener and startup reconciler around
one shared state store, reclaimer and event log.

Usage:
    strategy = RunOnceRetentionStrategy.from_config(config, clouds, host_started)
    minutes = await strategy.check(computer)
    await strategy.task_completed(executor, task, duration_ms)
"""

from __future__ import annotations

import time
from typing import Any, Callable

from runonce.cloud.registry import CloudRegistry
from runonce.config import RunOnceConfig
from runonce.events import AgentEventLog
from runonce.host import Executor, ManagedComputer
from runonce.lifecycle.controller import AgentLifecycleController
from runonce.lifecycle.listener import TaskLifecycleListener
from runonce.lifecycle.reclaim import Reclaimer
from runonce.lifecycle.startup import StartupReconciler
from runonce.lifecycle.state import ControllerState, LifecycleStateStore


class RunOnceRetentionStrategy:
    display_name = "Run Once Cloud Retention Strategy"

    def __init__(
        self,
        clouds: CloudRegistry,
        host_started: Callable[[], bool],
        idle_minutes: int = 1,
        reset_retries_on_online: bool = False,
        events: AgentEventLog | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.events = events or AgentEventLog()
        self.states = LifecycleStateStore()
        self.reclaimer = Reclaimer(self.states, self.events)
        self.controller = AgentLifecycleController(
            self.states,
            self.reclaimer,
            self.events,
            idle_minutes=idle_minutes,
            reset_retries_on_online=reset_retries_on_online,
            clock=clock,
        )
        self.listener = TaskLifecycleListener(self.reclaimer)
        self.reconciler = StartupReconciler(clouds, host_started)

    @staticmethod
    def from_config(
        config: RunOnceConfig,
        clouds: CloudRegistry,
        host_started: Callable[[], bool],
        events: AgentEventLog | None = None,
    ) -> RunOnceRetentionStrategy:
        return RunOnceRetentionStrategy(
            clouds,
            host_started,
            idle_minutes=config.idle_minutes,
            reset_retries_on_online=config.reset_retries_on_online,
            events=events,
        )

    @property
    def idle_minutes(self) -> int:
        return self.controller.idle_minutes

    def state_of(self, agent: str) -> ControllerState | None:
        return self.states.get(agent)

    async def forget(self, agent: str) -> None:
        """Drop everything held for an agent the host no longer reports."""
        self.states.discard(agent)
        await self.events.close(agent)
        self.events.reap(agent)

    async def check(self, computer: Any) -> int:
        """Run one poll for ``computer``; returns minutes until the next one."""
        return await self.controller.check(computer)

    async def start(self, computer: ManagedComputer) -> None:
        await self.reconciler.start(computer)

    async def task_accepted(self, executor: Executor, task: Any) -> None:
        await self.listener.task_accepted(executor, task)

    async def task_completed(self, executor: Executor, task: Any, duration_ms: int) -> None:
        await self.listener.task_completed(executor, task, duration_ms)

    async def task_completed_with_problems(
        self,
        executor: Executor,
        task: Any,
        duration_ms: int,
        problems: BaseException | None = None,
    ) -> None:
        await self.listener.task_completed_with_problems(executor, task, duration_ms, problems)
