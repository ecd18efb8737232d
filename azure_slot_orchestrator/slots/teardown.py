"""Removes the network resources of an idle deployment slot in dependency order."""

from __future__ import annotations

import logging
from enum import Enum

from ..exceptions import GatewayError, TeardownError
from ..gateway.gateway import CloudGateway
from ..gateway.operations import (
    GetLoadBalancer,
    RemoveLoadBalancer,
    RemovePublicIp,
    RemoveScaleSet,
    SetLoadBalancer,
    remove_backend_address_pools,
    remove_frontend_ip_configurations,
    remove_load_balancer_rules,
    scale_set_names_from_backend_pools,
)
from .models import DeploymentSlot, ResourceDescriptor, ResourceType

logger = logging.getLogger(__name__)

# Load balancers (and the scale sets behind them) go before the public IPs their
# frontends reference.
TEARDOWN_ORDER = (ResourceType.LOAD_BALANCER, ResourceType.PUBLIC_IP_ADDRESS)


def _teardown_rank(resource: ResourceDescriptor) -> int:
    try:
        return TEARDOWN_ORDER.index(resource.resource_type)
    except ValueError:
        return len(TEARDOWN_ORDER)


class LoadBalancerState(str, Enum):
    """Progress of a single load balancer removal."""

    FETCHED = "Fetched"
    RULES_REMOVED = "RulesRemoved"
    BACKEND_POOLS_REMOVED = "BackendPoolsRemoved"
    FRONTEND_CONFIGS_REMOVED = "FrontendConfigsRemoved"
    REMOVED = "Removed"
    FAILED = "Failed"


class SlotTeardown:
    """Tears down load balancers, their scale sets and public IPs belonging to one slot.

    Dependent load balancer objects must be detached before the parent can be
    deleted, so everything runs strictly one step at a time and the first
    failure aborts the whole teardown.
    """

    def __init__(self, gateway: CloudGateway, preview_exclusion_pattern: str = "preview"):
        self._gateway = gateway
        self._preview_exclusion = preview_exclusion_pattern

    def teardown_slot(
        self,
        resource_group: str,
        slot: DeploymentSlot,
        resources: list[ResourceDescriptor],
        max_retries: int | None = None,
    ) -> bool:
        targets = sorted((r for r in resources if r.belongs_to(slot)), key=_teardown_rank)
        if not targets:
            logger.info(
                "Nothing to tear down for %s in %s", slot.value, resource_group,
                extra={"resource_group": resource_group, "slot": slot.value},
            )
            return True

        logger.info(
            "Tearing down %d resources of %s in %s", len(targets), slot.value, resource_group,
            extra={"resource_group": resource_group, "slot": slot.value},
        )
        for resource in targets:
            if resource.resource_type is ResourceType.LOAD_BALANCER:
                self._teardown_load_balancer(resource, max_retries)
            elif resource.resource_type is ResourceType.PUBLIC_IP_ADDRESS:
                self._remove(resource, RemovePublicIp(resource.resource_group, resource.name), max_retries)
            else:
                logger.debug("Skipping %s %s, not part of slot teardown", resource.resource_type.value, resource.name)
                continue
            logger.info(
                "Removed %s %s", resource.resource_type.value, resource.name,
                extra={"resource": resource.name, "resource_type": resource.resource_type.value, "slot": slot.value},
            )
        return True

    # ── Load balancer ───────────────────────────────────────────────

    def _teardown_load_balancer(self, resource: ResourceDescriptor, max_retries: int | None) -> None:
        rg = resource.resource_group
        state = LoadBalancerState.FETCHED
        try:
            lb = self._gateway.execute(GetLoadBalancer(rg, resource.name), max_retries=max_retries)
            self._transition(resource, state)

            removed_rules = remove_load_balancer_rules(lb)
            lb = self._persist(resource, lb, "rules", removed_rules, max_retries)
            state = LoadBalancerState.RULES_REMOVED
            self._transition(resource, state)

            for scale_set in scale_set_names_from_backend_pools(lb):
                self._remove_scale_set(resource, scale_set, max_retries)

            removed_pools = remove_backend_address_pools(lb)
            lb = self._persist(resource, lb, "backend pools", removed_pools, max_retries)
            state = LoadBalancerState.BACKEND_POOLS_REMOVED
            self._transition(resource, state)

            removed_configs = remove_frontend_ip_configurations(lb, self._preview_exclusion)
            lb = self._persist(resource, lb, "frontend IP configurations", removed_configs, max_retries)
            state = LoadBalancerState.FRONTEND_CONFIGS_REMOVED
            self._transition(resource, state)

            self._gateway.execute(RemoveLoadBalancer(rg, resource.name), max_retries=max_retries)
            self._transition(resource, LoadBalancerState.REMOVED)
        except TeardownError:
            self._transition(resource, LoadBalancerState.FAILED)
            raise
        except GatewayError as exc:
            self._transition(resource, LoadBalancerState.FAILED)
            raise TeardownError(
                f"Failed to remove {resource.resource_type.value} {resource.name} after {state.value}: {exc}",
                resource=resource.name,
                resource_type=resource.resource_type.value,
                step=state.value,
            ) from exc

    def _remove_scale_set(self, resource: ResourceDescriptor, scale_set: str, max_retries: int | None) -> None:
        logger.info(
            "Removing scale set %s referenced by %s", scale_set, resource.name,
            extra={"resource": scale_set, "resource_type": ResourceType.SCALE_SET.value},
        )
        try:
            self._gateway.execute(RemoveScaleSet(resource.resource_group, scale_set), max_retries=max_retries)
        except GatewayError as exc:
            raise TeardownError(
                f"Failed to remove {ResourceType.SCALE_SET.value} {scale_set} behind {resource.name}: {exc}",
                resource=scale_set,
                resource_type=ResourceType.SCALE_SET.value,
                step=LoadBalancerState.RULES_REMOVED.value,
            ) from exc

    def _persist(self, resource: ResourceDescriptor, lb, category: str, removed: list[str], max_retries: int | None):
        saved = self._gateway.execute(SetLoadBalancer(resource.resource_group, lb), max_retries=max_retries)
        if saved is None:
            raise TeardownError(
                f"Saving {resource.name} after removing {category} {', '.join(removed) or '(none)'} returned nothing",
                resource=resource.name,
                resource_type=resource.resource_type.value,
                step=category,
            )
        logger.debug("Persisted %s after removing %s: %s", resource.name, category, removed)
        return saved

    # ── Generic removal ─────────────────────────────────────────────

    def _remove(self, resource: ResourceDescriptor, operation, max_retries: int | None) -> None:
        try:
            self._gateway.execute(operation, max_retries=max_retries)
        except GatewayError as exc:
            raise TeardownError(
                f"Failed to remove {resource.resource_type.value} {resource.name}: {exc}",
                resource=resource.name,
                resource_type=resource.resource_type.value,
            ) from exc

    @staticmethod
    def _transition(resource: ResourceDescriptor, state: LoadBalancerState) -> None:
        logger.debug("Load balancer %s -> %s", resource.name, state.value, extra={"resource": resource.name})
