"""Determines which deployment slot is idle from a Traffic Manager profile."""

from __future__ import annotations

import logging
import re

from ..exceptions import SlotDetectionError
from ..gateway.gateway import CloudGateway
from ..gateway.operations import GetTrafficManagerProfile
from .models import DeploymentSlot, ProfileSite, ResourceDescriptor, ResourceType

logger = logging.getLogger(__name__)

DISABLED = "disabled"
EXPECTED_ENDPOINTS = 2

# Both endpoints enabled happens between the first deploy of slot2 and the
# first swap. slot1 is the configured target in that state.
DEFAULT_SLOT_WHEN_ALL_ENABLED = DeploymentSlot.SLOT1

_NAME_TOKEN_SPLIT = re.compile(r"[-_.]")


class SlotDetector:
    """Reads the two Traffic Manager endpoints and reports the disabled one as idle."""

    def __init__(self, gateway: CloudGateway):
        self._gateway = gateway

    def detect_idle_slot(
        self,
        resource_group: str,
        resources: list[ResourceDescriptor],
        profile_site: ProfileSite | str,
        max_retries: int | None = None,
    ) -> DeploymentSlot:
        site = ProfileSite(profile_site)

        if not resources:
            logger.info(
                "No resources provisioned in %s, bootstrapping into %s",
                resource_group, DeploymentSlot.SLOT1.value,
                extra={"resource_group": resource_group, "slot": DeploymentSlot.SLOT1.value},
            )
            return DeploymentSlot.SLOT1

        profile_resource = self._find_profile(resources, site)
        if profile_resource is None:
            raise SlotDetectionError(
                f"No traffic manager profile for site '{site.value}' in resource group {resource_group}"
            )

        profile = self._gateway.execute(
            GetTrafficManagerProfile(resource_group, profile_resource.name), max_retries=max_retries,
        )
        endpoints = list(profile.endpoints or [])
        if len(endpoints) != EXPECTED_ENDPOINTS:
            raise SlotDetectionError(
                f"Traffic manager profile {profile_resource.name} has {len(endpoints)} endpoints, "
                f"expected {EXPECTED_ENDPOINTS}"
            )

        disabled = [ep for ep in endpoints if (ep.endpoint_status or "").lower() == DISABLED]
        if len(disabled) == len(endpoints):
            raise SlotDetectionError(
                f"All endpoints of traffic manager profile {profile_resource.name} are disabled"
            )

        if not disabled:
            logger.warning(
                "All endpoints of %s are enabled, defaulting idle slot to %s",
                profile_resource.name, DEFAULT_SLOT_WHEN_ALL_ENABLED.value,
                extra={"resource_group": resource_group, "slot": DEFAULT_SLOT_WHEN_ALL_ENABLED.value},
            )
            return DEFAULT_SLOT_WHEN_ALL_ENABLED

        slot = self._slot_for_endpoint(disabled[0].name or "")
        if slot is None:
            raise SlotDetectionError(
                f"Disabled endpoint '{disabled[0].name}' of {profile_resource.name} matches no deployment slot"
            )

        logger.info(
            "Detected idle slot %s from disabled endpoint %s", slot.value, disabled[0].name,
            extra={"resource_group": resource_group, "slot": slot.value},
        )
        return slot

    @staticmethod
    def _find_profile(resources: list[ResourceDescriptor], site: ProfileSite) -> ResourceDescriptor | None:
        """The site must be a whole delimited token of the profile name ('lms' does not match 'lmspreview')."""
        for resource in resources:
            if resource.resource_type is not ResourceType.TRAFFIC_MANAGER_PROFILE:
                continue
            if site.value in _NAME_TOKEN_SPLIT.split(resource.name.lower()):
                return resource
        return None

    @staticmethod
    def _slot_for_endpoint(endpoint_name: str) -> DeploymentSlot | None:
        name = endpoint_name.lower()
        for slot in DeploymentSlot:
            if slot.endpoint_name in name:
                return slot
        return None
