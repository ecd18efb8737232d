"""Azure management SDK clients shared by all gateway operations."""

from __future__ import annotations

import logging

from azure.identity import DefaultAzureCredential
from azure.mgmt.compute import ComputeManagementClient
from azure.mgmt.network import NetworkManagementClient
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.trafficmanager import TrafficManagerManagementClient

from ..config import AzureConfig

logger = logging.getLogger(__name__)


class AzureClients:
    """Builds each management client on first use from a single credential."""

    def __init__(self, azure_config: AzureConfig):
        self._config = azure_config
        self._credential = None
        self._resources: ResourceManagementClient | None = None
        self._network: NetworkManagementClient | None = None
        self._compute: ComputeManagementClient | None = None
        self._traffic_manager: TrafficManagerManagementClient | None = None

    @property
    def credential(self) -> DefaultAzureCredential:
        if self._credential is None:
            logger.debug("Creating DefaultAzureCredential")
            self._credential = DefaultAzureCredential()
        return self._credential

    @property
    def resources(self) -> ResourceManagementClient:
        if self._resources is None:
            self._resources = ResourceManagementClient(self.credential, self._config.subscription_id)
        return self._resources

    @property
    def network(self) -> NetworkManagementClient:
        if self._network is None:
            self._network = NetworkManagementClient(self.credential, self._config.subscription_id)
        return self._network

    @property
    def compute(self) -> ComputeManagementClient:
        if self._compute is None:
            self._compute = ComputeManagementClient(self.credential, self._config.subscription_id)
        return self._compute

    @property
    def traffic_manager(self) -> TrafficManagerManagementClient:
        if self._traffic_manager is None:
            self._traffic_manager = TrafficManagerManagementClient(self.credential, self._config.subscription_id)
        return self._traffic_manager
