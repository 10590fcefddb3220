"""Name -> VM-management collaborator lookup."""

from __future__ import annotations

import logging

from runonce.cloud.client import CloudCollaborator

logger = logging.getLogger(__name__)


class CloudRegistry:
    """Holds the collaborators known to this process, keyed by cloud name."""

    def __init__(self, clouds: list[CloudCollaborator] | None = None) -> None:
        self._clouds: dict[str, CloudCollaborator] = {}
        for cloud in clouds or []:
            self.register(cloud)

    def register(self, cloud: CloudCollaborator) -> None:
        if cloud.name in self._clouds:
            logger.warning("Replacing registered cloud %s", cloud.name)
        self._clouds[cloud.name] = cloud

    def get(self, name: str) -> CloudCollaborator | None:
        return self._clouds.get(name)
