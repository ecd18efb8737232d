"""One blue/green orchestration run: inventory, detect, teardown, version, deploy, listen."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from .config import AppConfig
from .deployment.status_listener import StatusListener
from .deployment.templating import load_parameters, load_template
from .deployment.versioning import VersionResolver, scale_set_name
from .gateway.gateway import CloudGateway
from .gateway.operations import SubmitDeployment
from .slots.detector import SlotDetector
from .slots.inventory import ResourceInventory
from .slots.models import DeploymentSlot, DeploymentType, ResourceDescriptor
from .slots.teardown import SlotTeardown

logger = logging.getLogger(__name__)


@dataclass
class OrchestrationResult:
    """Outcome of a single orchestration run."""

    deployment_type: DeploymentType
    idle_slot: DeploymentSlot
    version_id: str
    torn_down: bool
    deployment_name: str | None = None
    messages: list[str] = field(default_factory=list)


class Orchestrator:
    """Runs the slot cycle: inventory -> detect idle slot -> teardown -> resolve version -> deploy."""

    def __init__(
        self,
        config: AppConfig,
        gateway: CloudGateway | None = None,
        listener: StatusListener | None = None,
    ):
        self._config = config
        self._gateway = gateway if gateway is not None else CloudGateway(config.azure, config.gateway)
        self._inventory = ResourceInventory(self._gateway)
        self._detector = SlotDetector(self._gateway)
        self._teardown = SlotTeardown(self._gateway, config.teardown.preview_exclusion_pattern)
        self._resolver = VersionResolver(self._gateway, config.deployment.cluster_name)
        self._listener = listener
        if self._listener is None and config.service_bus.enabled:
            self._listener = StatusListener(config.service_bus)

    @property
    def resource_group(self) -> str:
        return self._config.azure.resource_group

    def detect(self) -> tuple[DeploymentSlot, list[ResourceDescriptor]]:
        """Inventory the resource group and return the idle slot with the resources seen."""
        resources = self._inventory.list_network_resources(self.resource_group)
        slot = self._detector.detect_idle_slot(
            self.resource_group, resources, self._config.deployment.profile_site,
        )
        return slot, resources

    def run(self, deployment_type: DeploymentType | str | None = None, version_id: str | None = None) -> OrchestrationResult:
        start = time.monotonic()
        deployment_type = DeploymentType(deployment_type or self._config.deployment.deployment_type)
        supplied_version = version_id if version_id is not None else self._config.deployment.version_id
        logger.info(
            "Starting %s run for %s", deployment_type.value, self.resource_group,
            extra={"resource_group": self.resource_group},
        )

        slot, resources = self.detect()
        logger.info(
            "Idle slot is %s, %s stays live", slot.value, slot.other.value,
            extra={"resource_group": self.resource_group, "slot": slot.value},
        )

        # The idle slot is fully removed before anything is deployed to it.
        torn_down = self._teardown.teardown_slot(self.resource_group, slot, resources)

        resolved_version = self._resolver.resolve_version_id(
            deployment_type, self.resource_group, supplied_version,
        )
        result = OrchestrationResult(
            deployment_type=deployment_type,
            idle_slot=slot,
            version_id=resolved_version,
            torn_down=torn_down,
        )

        if deployment_type.submits_deployment:
            result.deployment_name = self._submit(deployment_type, slot, resolved_version)
            if self._listener is not None:
                result.messages = list(self._listener.poll_completion_messages())
                logger.info("Received %d completion messages", len(result.messages))

        logger.info(
            "Run complete", extra={
                "resource_group": self.resource_group,
                "slot": slot.value,
                "version_id": resolved_version,
                "elapsed_seconds": round(time.monotonic() - start, 2),
            },
        )
        return result

    def _submit(self, deployment_type: DeploymentType, slot: DeploymentSlot, version_id: str) -> str:
        deployment_cfg = self._config.deployment
        deployment_name = f"{deployment_cfg.cluster_name}-{slot.value}-{version_id}"

        values: dict[str, Any] = {
            **deployment_cfg.parameters,
            "CLUSTER_NAME": deployment_cfg.cluster_name,
            "DEPLOYMENT_SLOT": slot.value,
            "LIVE_SLOT": slot.other.value,
            "DEPLOYMENT_VERSION_ID": version_id,
            "DEPLOYMENT_TYPE": deployment_type.value,
            "SCALE_SET_NAME": scale_set_name(deployment_cfg.cluster_name, version_id),
        }
        template = load_template(deployment_cfg.template_path) if deployment_cfg.template_path else {}
        if deployment_cfg.parameters_path:
            parameters = load_parameters(deployment_cfg.parameters_path, values)
        else:
            parameters = dict(deployment_cfg.parameters)

        logger.info(
            "Submitting deployment %s", deployment_name,
            extra={"resource_group": self.resource_group, "slot": slot.value, "version_id": version_id},
        )
        self._gateway.execute(SubmitDeployment(self.resource_group, deployment_name, template, parameters))
        return deployment_name
