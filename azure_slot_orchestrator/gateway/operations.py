"""Typed provider operations executed through the cloud gateway.

Each operation is a frozen dataclass carrying its own parameters. ``invoke``
performs exactly one provider call against an :class:`AzureClients` bundle;
retrying and logging are the gateway's job.

Load balancer sub-resources (rules, backend pools, frontend IP configurations)
have no delete API of their own: they are removed from the fetched
``LoadBalancer`` model with the ``remove_*`` helpers below and committed with
:class:`SetLoadBalancer`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from azure.mgmt.resource.resources.models import Deployment, DeploymentMode, DeploymentProperties

from ..slots.models import ResourceDescriptor, ResourceType

if TYPE_CHECKING:
    from azure.mgmt.network.models import LoadBalancer

    from .clients import AzureClients

_SCALE_SET_SEGMENT = "virtualmachinescalesets"


@dataclass(frozen=True)
class Operation:
    """Base class for every gateway operation."""

    name: ClassVar[str] = "Operation"

    @property
    def activity(self) -> str:
        """Human description used in logs and error messages."""
        raise NotImplementedError

    def invoke(self, clients: AzureClients) -> Any:
        raise NotImplementedError


# ── Resource queries ────────────────────────────────────────────────


@dataclass(frozen=True)
class FindResources(Operation):
    name: ClassVar[str] = "FindResources"

    resource_group: str
    resource_type: ResourceType

    @property
    def activity(self) -> str:
        return f"listing {self.resource_type.value} resources in {self.resource_group}"

    def invoke(self, clients: AzureClients) -> list[ResourceDescriptor]:
        found = clients.resources.resources.list_by_resource_group(
            self.resource_group,
            filter=f"resourceType eq '{self.resource_type.arm_type}'",
        )
        return [
            ResourceDescriptor(name=r.name, resource_type=self.resource_type, resource_group=self.resource_group)
            for r in found
        ]


# ── Load balancers ──────────────────────────────────────────────────


@dataclass(frozen=True)
class GetLoadBalancer(Operation):
    name: ClassVar[str] = "GetLoadBalancer"

    resource_group: str
    load_balancer_name: str

    @property
    def activity(self) -> str:
        return f"fetching load balancer {self.load_balancer_name}"

    def invoke(self, clients: AzureClients) -> LoadBalancer:
        return clients.network.load_balancers.get(self.resource_group, self.load_balancer_name)


@dataclass(frozen=True)
class SetLoadBalancer(Operation):
    """Persist an in-memory load balancer model."""

    name: ClassVar[str] = "SetLoadBalancer"

    resource_group: str
    load_balancer: Any = field(compare=False)

    @property
    def activity(self) -> str:
        return f"saving load balancer {self.load_balancer.name}"

    def invoke(self, clients: AzureClients) -> LoadBalancer:
        poller = clients.network.load_balancers.begin_create_or_update(
            self.resource_group, self.load_balancer.name, self.load_balancer,
        )
        return poller.result()


@dataclass(frozen=True)
class RemoveLoadBalancer(Operation):
    name: ClassVar[str] = "RemoveLoadBalancer"

    resource_group: str
    load_balancer_name: str

    @property
    def activity(self) -> str:
        return f"removing load balancer {self.load_balancer_name}"

    def invoke(self, clients: AzureClients) -> None:
        clients.network.load_balancers.begin_delete(self.resource_group, self.load_balancer_name).result()


# ── Scale sets ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class ListScaleSets(Operation):
    name: ClassVar[str] = "ListScaleSets"

    resource_group: str

    @property
    def activity(self) -> str:
        return f"listing scale sets in {self.resource_group}"

    def invoke(self, clients: AzureClients) -> list[str]:
        return [vmss.name for vmss in clients.compute.virtual_machine_scale_sets.list(self.resource_group)]


@dataclass(frozen=True)
class RemoveScaleSet(Operation):
    name: ClassVar[str] = "RemoveScaleSet"

    resource_group: str
    scale_set_name: str

    @property
    def activity(self) -> str:
        return f"removing scale set {self.scale_set_name}"

    def invoke(self, clients: AzureClients) -> None:
        clients.compute.virtual_machine_scale_sets.begin_delete(self.resource_group, self.scale_set_name).result()


# ── Public IPs ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class RemovePublicIp(Operation):
    name: ClassVar[str] = "RemovePublicIp"

    resource_group: str
    public_ip_name: str

    @property
    def activity(self) -> str:
        return f"removing public IP {self.public_ip_name}"

    def invoke(self, clients: AzureClients) -> None:
        clients.network.public_ip_addresses.begin_delete(self.resource_group, self.public_ip_name).result()


# ── Traffic Manager ─────────────────────────────────────────────────


@dataclass(frozen=True)
class GetTrafficManagerProfile(Operation):
    name: ClassVar[str] = "GetTrafficManagerProfile"

    resource_group: str
    profile_name: str

    @property
    def activity(self) -> str:
        return f"fetching traffic manager profile {self.profile_name}"

    def invoke(self, clients: AzureClients) -> Any:
        return clients.traffic_manager.profiles.get(self.resource_group, self.profile_name)


# ── Deployments ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class SubmitDeployment(Operation):
    """Incremental ARM deployment into the resource group."""

    name: ClassVar[str] = "SubmitDeployment"

    resource_group: str
    deployment_name: str
    template: dict[str, Any] = field(default_factory=dict, compare=False)
    parameters: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def activity(self) -> str:
        return f"submitting deployment {self.deployment_name} to {self.resource_group}"

    def invoke(self, clients: AzureClients) -> Any:
        deployment = Deployment(
            properties=DeploymentProperties(
                mode=DeploymentMode.INCREMENTAL,
                template=self.template,
                parameters=arm_parameters(self.parameters),
            )
        )
        poller = clients.resources.deployments.begin_create_or_update(
            resource_group_name=self.resource_group,
            deployment_name=self.deployment_name,
            parameters=deployment,
        )
        return poller.result()


def arm_parameters(values: dict[str, Any]) -> dict[str, Any]:
    """Wrap plain values in the ``{"value": ...}`` envelope ARM expects."""
    wrapped: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, dict) and ("value" in value or "reference" in value):
            wrapped[key] = value
        else:
            wrapped[key] = {"value": value}
    return wrapped


# ── Load balancer model edits ───────────────────────────────────────


def remove_load_balancer_rules(load_balancer: LoadBalancer) -> list[str]:
    """Detach every load-balancing rule; return the removed rule names."""
    removed = [rule.name for rule in (load_balancer.load_balancing_rules or [])]
    load_balancer.load_balancing_rules = []
    return removed


def remove_backend_address_pools(load_balancer: LoadBalancer) -> list[str]:
    """Detach every backend address pool; return the removed pool names."""
    removed = [pool.name for pool in (load_balancer.backend_address_pools or [])]
    load_balancer.backend_address_pools = []
    return removed


def remove_frontend_ip_configurations(load_balancer: LoadBalancer, exclusion_pattern: str = "") -> list[str]:
    """Detach frontend IP configurations not matching ``exclusion_pattern``.

    Returns the removed configuration names. An empty pattern excludes nothing.
    """
    exclusion = re.compile(exclusion_pattern, re.IGNORECASE) if exclusion_pattern else None
    kept = []
    removed = []
    for config in load_balancer.frontend_ip_configurations or []:
        if exclusion is not None and exclusion.search(config.name or ""):
            kept.append(config)
        else:
            removed.append(config.name)
    load_balancer.frontend_ip_configurations = kept
    return removed


def scale_set_names_from_backend_pools(load_balancer: LoadBalancer) -> list[str]:
    """Scale sets whose instances sit in the load balancer's backend pools.

    Names are taken from the ``virtualMachineScaleSets/{name}`` segment of each
    backend IP configuration id, deduplicated in first-seen order.
    """
    names: list[str] = []
    for pool in load_balancer.backend_address_pools or []:
        for ip_config in pool.backend_ip_configurations or []:
            name = scale_set_name_from_id(ip_config.id or "")
            if name and name not in names:
                names.append(name)
    return names


def scale_set_name_from_id(resource_id: str) -> str:
    """Extract the scale set name from an ARM resource id, or '' if absent."""
    parts = resource_id.split("/")
    for i, part in enumerate(parts):
        if part.lower() == _SCALE_SET_SEGMENT and i + 1 < len(parts):
            return parts[i + 1]
    return ""
