"""Data models for slot orchestration: resource descriptors, slots, deployment types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ResourceType(str, Enum):
    """Network and compute resources a deployment slot is made of."""

    LOAD_BALANCER = "LoadBalancer"
    PUBLIC_IP_ADDRESS = "PublicIPAddress"
    TRAFFIC_MANAGER_PROFILE = "TrafficManagerProfile"
    SCALE_SET = "ScaleSet"

    @property
    def arm_type(self) -> str:
        """The ARM resource type string used in resource queries."""
        return _ARM_TYPES[self]


_ARM_TYPES = {
    ResourceType.LOAD_BALANCER: "Microsoft.Network/loadBalancers",
    ResourceType.PUBLIC_IP_ADDRESS: "Microsoft.Network/publicIPAddresses",
    ResourceType.TRAFFIC_MANAGER_PROFILE: "Microsoft.Network/trafficManagerProfiles",
    ResourceType.SCALE_SET: "Microsoft.Compute/virtualMachineScaleSets",
}

# Resource types enumerated by the inventory, in query order.
NETWORK_RESOURCE_TYPES = (
    ResourceType.LOAD_BALANCER,
    ResourceType.PUBLIC_IP_ADDRESS,
    ResourceType.TRAFFIC_MANAGER_PROFILE,
)


class DeploymentSlot(str, Enum):
    """One of the two blue/green deployment targets."""

    SLOT1 = "slot1"
    SLOT2 = "slot2"

    @property
    def other(self) -> DeploymentSlot:
        return DeploymentSlot.SLOT2 if self is DeploymentSlot.SLOT1 else DeploymentSlot.SLOT1

    @property
    def endpoint_name(self) -> str:
        """Traffic Manager endpoint naming convention: slot1 -> endpoint1."""
        return self.value.replace("slot", "endpoint")


class DeploymentType(str, Enum):
    BOOTSTRAP = "bootstrap"
    UPGRADE = "upgrade"
    SWAP = "swap"
    CLEANUP = "cleanup"

    @property
    def submits_deployment(self) -> bool:
        return self is not DeploymentType.CLEANUP


class ProfileSite(str, Enum):
    LMS = "lms"
    CMS = "cms"
    PREVIEW = "preview"


@dataclass(frozen=True)
class ResourceDescriptor:
    """Snapshot of one resource found in the resource group."""

    name: str
    resource_type: ResourceType
    resource_group: str

    def belongs_to(self, slot: DeploymentSlot) -> bool:
        """Slot membership is a naming convention: the slot id appears in the resource name."""
        return slot.value in self.name.lower()
