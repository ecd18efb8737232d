"""Tests for typed gateway operations and load balancer model edits."""

from types import SimpleNamespace
from unittest.mock import MagicMock

from azure_slot_orchestrator.gateway.operations import (
    FindResources,
    GetLoadBalancer,
    GetTrafficManagerProfile,
    ListScaleSets,
    RemoveLoadBalancer,
    RemovePublicIp,
    RemoveScaleSet,
    SetLoadBalancer,
    SubmitDeployment,
    arm_parameters,
    remove_backend_address_pools,
    remove_frontend_ip_configurations,
    remove_load_balancer_rules,
    scale_set_name_from_id,
    scale_set_names_from_backend_pools,
)
from azure_slot_orchestrator.slots.models import ResourceDescriptor, ResourceType

VMSS_IPCONFIG_ID = (
    "/subscriptions/sub/resourceGroups/rg1/providers/Microsoft.Compute/virtualMachineScaleSets/"
    "{name}/virtualMachines/{index}/networkInterfaces/nic/ipConfigurations/ipconfig"
)


def _named(*names):
    return [SimpleNamespace(name=n) for n in names]


def _pool(name, *scale_sets):
    configs = [
        SimpleNamespace(id=VMSS_IPCONFIG_ID.format(name=vmss, index=i))
        for i, vmss in enumerate(scale_sets)
    ]
    return SimpleNamespace(name=name, backend_ip_configurations=configs)


def _lb(rules=(), pools=(), frontends=()):
    return SimpleNamespace(
        name="lb-slot1-01",
        load_balancing_rules=_named(*rules),
        backend_address_pools=list(pools),
        frontend_ip_configurations=_named(*frontends),
    )


class TestFindResources:
    def test_filters_by_arm_type(self):
        clients = MagicMock()
        clients.resources.resources.list_by_resource_group.return_value = [
            SimpleNamespace(name="lb-slot1-01"), SimpleNamespace(name="lb-slot2-01"),
        ]
        result = FindResources("rg1", ResourceType.LOAD_BALANCER).invoke(clients)

        clients.resources.resources.list_by_resource_group.assert_called_once_with(
            "rg1", filter="resourceType eq 'Microsoft.Network/loadBalancers'",
        )
        assert result == [
            ResourceDescriptor("lb-slot1-01", ResourceType.LOAD_BALANCER, "rg1"),
            ResourceDescriptor("lb-slot2-01", ResourceType.LOAD_BALANCER, "rg1"),
        ]

    def test_activity_mentions_type_and_group(self):
        op = FindResources("rg1", ResourceType.PUBLIC_IP_ADDRESS)
        assert "PublicIPAddress" in op.activity
        assert "rg1" in op.activity


class TestLoadBalancerOperations:
    def test_get(self):
        clients = MagicMock()
        GetLoadBalancer("rg1", "lb1").invoke(clients)
        clients.network.load_balancers.get.assert_called_once_with("rg1", "lb1")

    def test_set_waits_for_poller(self):
        clients = MagicMock()
        lb = SimpleNamespace(name="lb1")
        poller = clients.network.load_balancers.begin_create_or_update.return_value
        poller.result.return_value = lb

        assert SetLoadBalancer("rg1", lb).invoke(clients) is lb
        clients.network.load_balancers.begin_create_or_update.assert_called_once_with("rg1", "lb1", lb)

    def test_remove(self):
        clients = MagicMock()
        RemoveLoadBalancer("rg1", "lb1").invoke(clients)
        clients.network.load_balancers.begin_delete.assert_called_once_with("rg1", "lb1")
        clients.network.load_balancers.begin_delete.return_value.result.assert_called_once()


class TestScaleSetAndIpOperations:
    def test_list_scale_sets_returns_names(self):
        clients = MagicMock()
        clients.compute.virtual_machine_scale_sets.list.return_value = _named("a-vmss-1", "a-vmss-2")
        assert ListScaleSets("rg1").invoke(clients) == ["a-vmss-1", "a-vmss-2"]

    def test_remove_scale_set(self):
        clients = MagicMock()
        RemoveScaleSet("rg1", "a-vmss-1").invoke(clients)
        clients.compute.virtual_machine_scale_sets.begin_delete.assert_called_once_with("rg1", "a-vmss-1")

    def test_remove_public_ip(self):
        clients = MagicMock()
        RemovePublicIp("rg1", "pip-slot1").invoke(clients)
        clients.network.public_ip_addresses.begin_delete.assert_called_once_with("rg1", "pip-slot1")

    def test_get_traffic_manager_profile(self):
        clients = MagicMock()
        GetTrafficManagerProfile("rg1", "oxa-lms-tm").invoke(clients)
        clients.traffic_manager.profiles.get.assert_called_once_with("rg1", "oxa-lms-tm")


class TestSubmitDeployment:
    def test_incremental_deployment_with_wrapped_parameters(self):
        clients = MagicMock()
        op = SubmitDeployment("rg1", "oxa-slot1-20230101120000", {"resources": []}, {"clusterName": "oxa"})
        op.invoke(clients)

        kwargs = clients.resources.deployments.begin_create_or_update.call_args.kwargs
        assert kwargs["resource_group_name"] == "rg1"
        assert kwargs["deployment_name"] == "oxa-slot1-20230101120000"
        properties = kwargs["parameters"].properties
        assert properties.template == {"resources": []}
        assert properties.parameters == {"clusterName": {"value": "oxa"}}

    def test_arm_parameters_keeps_existing_envelopes(self):
        result = arm_parameters({"a": {"value": 1}, "b": 2, "c": {"nested": True}})
        assert result == {"a": {"value": 1}, "b": {"value": 2}, "c": {"value": {"nested": True}}}


class TestLoadBalancerEdits:
    def test_remove_rules(self):
        lb = _lb(rules=("http", "https"))
        assert remove_load_balancer_rules(lb) == ["http", "https"]
        assert lb.load_balancing_rules == []

    def test_remove_backend_pools(self):
        lb = _lb(pools=[_pool("pool1", "oxa-vmss-1")])
        assert remove_backend_address_pools(lb) == ["pool1"]
        assert lb.backend_address_pools == []

    def test_remove_frontends_keeps_preview(self):
        lb = _lb(frontends=("preview-fe", "lb-fe"))
        assert remove_frontend_ip_configurations(lb, "preview") == ["lb-fe"]
        assert [f.name for f in lb.frontend_ip_configurations] == ["preview-fe"]

    def test_remove_frontends_without_exclusion(self):
        lb = _lb(frontends=("preview-fe", "lb-fe"))
        assert remove_frontend_ip_configurations(lb, "") == ["preview-fe", "lb-fe"]
        assert lb.frontend_ip_configurations == []

    def test_handles_missing_collections(self):
        lb = SimpleNamespace(
            name="lb", load_balancing_rules=None, backend_address_pools=None, frontend_ip_configurations=None,
        )
        assert remove_load_balancer_rules(lb) == []
        assert remove_backend_address_pools(lb) == []
        assert remove_frontend_ip_configurations(lb, "preview") == []
        assert scale_set_names_from_backend_pools(lb) == []

    def test_scale_set_names_deduplicated_in_order(self):
        lb = _lb(pools=[_pool("p1", "oxa-vmss-2", "oxa-vmss-2"), _pool("p2", "oxa-vmss-1", "oxa-vmss-2")])
        assert scale_set_names_from_backend_pools(lb) == ["oxa-vmss-2", "oxa-vmss-1"]

    def test_scale_set_name_from_id(self):
        assert scale_set_name_from_id(VMSS_IPCONFIG_ID.format(name="oxa-vmss-1", index=0)) == "oxa-vmss-1"
        assert scale_set_name_from_id("/subscriptions/sub/resourceGroups/rg1/providers/Microsoft.Network/nic") == ""
