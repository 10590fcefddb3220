"""Per-agent event types and in-memory event log.

Every decision the lifecycle code makes about an agent (reconnect, reclaim,
skip, terminate) is published here as well as to the module loggers, so a
host UI can show an agent's history or live-tail it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import AsyncIterator, Literal, Union

logger = logging.getLogger(__name__)


@dataclass
class BaseEvent:
    timestamp: float = field(default_factory=time.time)
    agent: str | None = None


@dataclass
class LaunchEvent(BaseEvent):
    type: Literal["agent.launch"] = "agent.launch"
    message: str = ""


@dataclass
class InstanceNotReadyEvent(BaseEvent):
    type: Literal["agent.instance_not_ready"] = "agent.instance_not_ready"
    instance_id: str = ""
    state: str = ""


@dataclass
class ReconnectEvent(BaseEvent):
    type: Literal["agent.reconnect"] = "agent.reconnect"
    force: bool = False
    attempt: int = 0


@dataclass
class ReclaimEvent(BaseEvent):
    type: Literal["agent.reclaim"] = "agent.reclaim"
    reason: str = ""


@dataclass
class ReclaimSkippedEvent(BaseEvent):
    type: Literal["agent.reclaim_skipped"] = "agent.reclaim_skipped"
    reason: str = ""


@dataclass
class TerminatedEvent(BaseEvent):
    type: Literal["agent.terminated"] = "agent.terminated"
    node: str = ""


@dataclass
class TerminateFailedEvent(BaseEvent):
    type: Literal["agent.terminate_failed"] = "agent.terminate_failed"
    node: str = ""
    error: str = ""


AgentEvent = Union[
    LaunchEvent,
    InstanceNotReadyEvent,
    ReconnectEvent,
    ReclaimEvent,
    ReclaimSkippedEvent,
    TerminatedEvent,
    TerminateFailedEvent,
]


class AgentEventLog:
    """In-memory event buffer keyed by agent name, with async streaming.

    Events are kept per agent up to ``max_events`` (oldest dropped first).
    Consumers can replay from a cursor and then live-tail via an
    asyncio.Condition.
    """

    def __init__(self, max_events: int = 500) -> None:
        self._agents: dict[str, list[tuple[str, dict]]] = {}
        self._dropped: dict[str, int] = {}
        self._cond: asyncio.Condition = asyncio.Condition()
        self._closed: set[str] = set()
        self._max_events = max_events

    async def append(self, agent: str, event_type: str, payload: dict) -> None:
        """Append an event to an agent's buffer and notify waiters."""
        events = self._agents.setdefault(agent, [])
        events.append((event_type, payload))
        if len(events) > self._max_events:
            del events[0]
            self._dropped[agent] = self._dropped.get(agent, 0) + 1
        async with self._cond:
            self._cond.notify_all()

    async def publish(self, agent: str, event: AgentEvent) -> None:
        """Publish a typed AgentEvent."""
        event.agent = agent
        payload = asdict(event)
        event_type = payload.pop("type")
        await self.append(agent, event_type, payload)

    def history(self, agent: str) -> list[tuple[str, dict]]:
        return list(self._agents.get(agent, []))

    def event_types(self, agent: str) -> list[str]:
        return [event_type for event_type, _ in self._agents.get(agent, [])]

    async def stream(self, agent: str, cursor: int = 0) -> AsyncIterator[tuple[str, dict]]:
        """Yield events for an agent, replaying from cursor then live-tailing.

        ``cursor`` counts every event ever appended for the agent, including
        ones since dropped. Terminates when the agent is closed via close().
        """
        while True:
            dropped = self._dropped.get(agent, 0)
            events = self._agents.get(agent, [])
            cursor = max(cursor, dropped)
            while cursor - dropped < len(events):
                yield events[cursor - dropped]
                cursor += 1
            if agent in self._closed:
                return
            async with self._cond:
                await self._cond.wait()

    async def close(self, agent: str) -> None:
        """Mark an agent as gone so streaming consumers can finish."""
        self._closed.add(agent)
        async with self._cond:
            self._cond.notify_all()

    def reap(self, agent: str) -> None:
        """Free memory for a closed agent."""
        self._agents.pop(agent, None)
        self._dropped.pop(agent, None)
        self._closed.discard(agent)

    def bind(self, agent: str) -> AgentLog:
        return AgentLog(self, agent)


class AgentLog:
    """An AgentEventLog view bound to one agent; handed to launchers and transports."""

    def __init__(self, events: AgentEventLog, agent: str) -> None:
        self.events = events
        self.agent = agent

    async def publish(self, event: AgentEvent) -> None:
        await self.events.publish(self.agent, event)

    async def println(self, message: str) -> None:
        logger.info("[%s] %s", self.agent, message)
        await self.events.publish(self.agent, LaunchEvent(message=message))
