"""Deployment version ids: generation, validation and derivation from scale-set names."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable

from ..exceptions import VersionResolutionError
from ..gateway.gateway import CloudGateway
from ..gateway.operations import ListScaleSets
from ..slots.models import DeploymentType

logger = logging.getLogger(__name__)

VERSION_FORMAT = "%Y%m%d%H%M%S"

_VERSION_DIGITS = re.compile(r"^\d{14}$")
_SCALE_SET_NAME = re.compile(r"^(?P<cluster>.+)-vmss-(?P<version>\d{14})$", re.IGNORECASE)


def generate_version_id(now: datetime | None = None) -> str:
    """Format ``now`` (default: current UTC time) as a version id."""
    now = now or datetime.now(timezone.utc)
    return now.strftime(VERSION_FORMAT)


def parse_version_id(value: str) -> datetime:
    """Parse a version id, raising VersionResolutionError when malformed."""
    if not _VERSION_DIGITS.match(value or ""):
        raise VersionResolutionError(f"Version id '{value}' is not in {VERSION_FORMAT} format")
    try:
        return datetime.strptime(value, VERSION_FORMAT)
    except ValueError as exc:
        raise VersionResolutionError(f"Version id '{value}' is not a valid timestamp: {exc}") from exc


def scale_set_name(cluster_name: str, version_id: str) -> str:
    return f"{cluster_name}-vmss-{version_id}"


class VersionResolver:
    """Picks the version id tagging the next scale-set generation."""

    def __init__(
        self,
        gateway: CloudGateway,
        cluster_name: str = "",
        clock: Callable[[], datetime] | None = None,
    ):
        self._gateway = gateway
        self._cluster_name = cluster_name
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def resolve_version_id(
        self,
        deployment_type: DeploymentType | str,
        resource_group: str,
        supplied_version_id: str = "",
        max_retries: int | None = None,
    ) -> str:
        deployment_type = DeploymentType(deployment_type)

        if deployment_type is not DeploymentType.SWAP:
            if supplied_version_id:
                logger.info(
                    "Ignoring supplied version id %s for %s, generating a new one",
                    supplied_version_id, deployment_type.value,
                )
            version_id = generate_version_id(self._clock())
            logger.info(
                "Generated version id %s for %s", version_id, deployment_type.value,
                extra={"version_id": version_id, "resource_group": resource_group},
            )
            return version_id

        if supplied_version_id:
            parse_version_id(supplied_version_id)
            logger.info("Using supplied version id %s", supplied_version_id, extra={"version_id": supplied_version_id})
            return supplied_version_id

        return self._latest_scale_set_version(resource_group, max_retries)

    def _latest_scale_set_version(self, resource_group: str, max_retries: int | None) -> str:
        names = self._gateway.execute(ListScaleSets(resource_group), max_retries=max_retries)
        candidates: list[tuple[str, str]] = []
        for name in names or []:
            match = _SCALE_SET_NAME.match(name)
            if match is None:
                logger.debug("Scale set %s does not carry a version suffix", name)
                continue
            if self._cluster_name and match.group("cluster").lower() != self._cluster_name.lower():
                continue
            candidates.append((match.group("version"), name))

        if not candidates:
            raise VersionResolutionError(f"No versioned scale sets found in resource group {resource_group}")

        candidates.sort(reverse=True)
        version_id, name = candidates[0]
        parse_version_id(version_id)
        logger.info(
            "Resolved version id %s from latest scale set %s", version_id, name,
            extra={"version_id": version_id, "resource_group": resource_group},
        )
        return version_id
