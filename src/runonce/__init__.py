"""Run-once lifecycle management for VM-backed build agents."""

from runonce.config import RunOnceConfig
from runonce.connection import (
    PENDING,
    AgentLauncher,
    ConnectionStrategySelector,
    JNLPDescriptor,
    SSHDescriptor,
)
from runonce.events import AgentEventLog
from runonce.poller import FleetPoller
from runonce.retention import RunOnceRetentionStrategy
from runonce.templates import LaunchMethod, Template

__all__ = [
    "PENDING",
    "AgentEventLog",
    "AgentLauncher",
    "ConnectionStrategySelector",
    "FleetPoller",
    "JNLPDescriptor",
    "LaunchMethod",
    "RunOnceConfig",
    "RunOnceRetentionStrategy",
    "SSHDescriptor",
    "Template",
]
