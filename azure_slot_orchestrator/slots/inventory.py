"""Enumerates the network resources of a resource group."""

from __future__ import annotations

import logging

from ..gateway.gateway import CloudGateway
from ..gateway.operations import FindResources
from .models import NETWORK_RESOURCE_TYPES, ResourceDescriptor

logger = logging.getLogger(__name__)


class ResourceInventory:
    """Lists load balancers, public IPs and Traffic Manager profiles through the gateway."""

    def __init__(self, gateway: CloudGateway):
        self._gateway = gateway

    def list_network_resources(self, resource_group: str, max_retries: int | None = None) -> list[ResourceDescriptor]:
        """Return every network resource in the group; empty when nothing is provisioned yet."""
        resources: list[ResourceDescriptor] = []
        for resource_type in NETWORK_RESOURCE_TYPES:
            found = self._gateway.execute(FindResources(resource_group, resource_type), max_retries=max_retries)
            if not found:
                logger.debug("No %s resources in %s", resource_type.value, resource_group)
                continue
            logger.debug("Found %d %s resources in %s", len(found), resource_type.value, resource_group)
            resources.extend(found)

        if not resources:
            logger.info("No network resources provisioned in %s", resource_group, extra={"resource_group": resource_group})
        else:
            logger.info(
                "Inventory found %d network resources in %s", len(resources), resource_group,
                extra={"resource_group": resource_group},
            )
        return resources
