from runonce.cloud.client import CloudClient, CloudCollaborator
from runonce.cloud.models import Instance, SessionState, VmInfo
from runonce.cloud.registry import CloudRegistry

__all__ = [
    "CloudClient",
    "CloudCollaborator",
    "CloudRegistry",
    "Instance",
    "SessionState",
    "VmInfo",
]
