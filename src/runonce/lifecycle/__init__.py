from runonce.lifecycle.controller import (
    MAX_RECONNECTION_RETRIES,
    AgentLifecycleController,
)
from runonce.lifecycle.listener import TaskLifecycleListener
from runonce.lifecycle.reclaim import Reclaimer
from runonce.lifecycle.startup import StartupReconciler
from runonce.lifecycle.state import ControllerState, LifecycleStateStore

__all__ = [
    "AgentLifecycleController",
    "ControllerState",
    "LifecycleStateStore",
    "MAX_RECONNECTION_RETRIES",
    "Reclaimer",
    "StartupReconciler",
    "TaskLifecycleListener",
]
