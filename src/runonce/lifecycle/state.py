"""Per-agent controller state, kept apart from the (shareable) retention policy."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ControllerState:
    # Poll cycles that observed this agent offline. Not reset by the agent
    # coming back online unless the strategy is configured to.
    reconnection_retries: int = 0
    # Set while a terminate() call for this agent is in flight.
    terminating: bool = False
    # Set once the node was terminated; the agent is only waiting to be
    # dropped by the host.
    reclaimed: bool = False


class LifecycleStateStore:
    """One ControllerState per agent name."""

    def __init__(self) -> None:
        self._states: dict[str, ControllerState] = {}

    def state_for(self, agent: str) -> ControllerState:
        state = self._states.get(agent)
        if state is None:
            state = ControllerState()
            self._states[agent] = state
        return state

    def get(self, agent: str) -> ControllerState | None:
        return self._states.get(agent)

    def discard(self, agent: str) -> None:
        self._states.pop(agent, None)
