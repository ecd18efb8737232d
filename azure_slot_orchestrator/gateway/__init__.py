"""Cloud resource gateway: typed provider operations behind one retrying entry point."""

from __future__ import annotations

from .gateway import CloudGateway
from .operations import (
    FindResources,
    GetLoadBalancer,
    GetTrafficManagerProfile,
    ListScaleSets,
    Operation,
    RemoveLoadBalancer,
    RemovePublicIp,
    RemoveScaleSet,
    SetLoadBalancer,
    SubmitDeployment,
)

__all__ = [
    "CloudGateway",
    "FindResources",
    "GetLoadBalancer",
    "GetTrafficManagerProfile",
    "ListScaleSets",
    "Operation",
    "RemoveLoadBalancer",
    "RemovePublicIp",
    "RemoveScaleSet",
    "SetLoadBalancer",
    "SubmitDeployment",
]
