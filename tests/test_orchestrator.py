"""Tests for a full orchestration run."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from azure_slot_orchestrator.config import AppConfig, AzureConfig, DeploymentConfig
from azure_slot_orchestrator.exceptions import SlotDetectionError
from azure_slot_orchestrator.gateway.operations import (
    FindResources,
    GetLoadBalancer,
    GetTrafficManagerProfile,
    ListScaleSets,
    RemoveLoadBalancer,
    SetLoadBalancer,
    SubmitDeployment,
)
from azure_slot_orchestrator.orchestrator import Orchestrator
from azure_slot_orchestrator.slots.models import DeploymentSlot, DeploymentType, ResourceDescriptor, ResourceType


def _config(**deployment):
    deployment.setdefault("cluster_name", "oxa")
    return AppConfig(
        azure=AzureConfig(subscription_id="sub-123", resource_group="rg1"),
        deployment=DeploymentConfig(**deployment),
    )


class FakeGateway:
    """In-memory resource group with a live slot1 and an idle slot2."""

    def __init__(self, endpoints=(("endpoint1", "Enabled"), ("endpoint2", "Disabled")), resources=None):
        self.calls = []
        self.endpoints = [SimpleNamespace(name=n, endpoint_status=s) for n, s in endpoints]
        self.resources = resources if resources is not None else {
            ResourceType.LOAD_BALANCER: ["lb-slot1-01", "lb-slot2-01"],
            ResourceType.TRAFFIC_MANAGER_PROFILE: ["oxa-lms-tm"],
        }

    def execute(self, op, max_retries=None, expected_exception_pattern=""):
        self.calls.append(op)
        if isinstance(op, FindResources):
            return [
                ResourceDescriptor(name, op.resource_type, op.resource_group)
                for name in self.resources.get(op.resource_type, [])
            ]
        if isinstance(op, GetTrafficManagerProfile):
            return SimpleNamespace(endpoints=self.endpoints)
        if isinstance(op, GetLoadBalancer):
            return SimpleNamespace(
                name=op.load_balancer_name,
                load_balancing_rules=[SimpleNamespace(name="http")],
                backend_address_pools=[],
                frontend_ip_configurations=[SimpleNamespace(name="fe")],
            )
        if isinstance(op, SetLoadBalancer):
            return op.load_balancer
        if isinstance(op, ListScaleSets):
            return ["oxa-vmss-20230101120000", "oxa-vmss-20230202120000"]
        return None

    def ops(self, kind):
        return [op for op in self.calls if isinstance(op, kind)]


class TestRun:
    def test_swap_tears_down_idle_slot_then_deploys(self):
        gateway = FakeGateway()
        result = Orchestrator(_config(), gateway=gateway).run("swap")

        assert result.deployment_type is DeploymentType.SWAP
        assert result.idle_slot is DeploymentSlot.SLOT2
        assert result.version_id == "20230202120000"
        assert result.torn_down is True
        assert result.deployment_name == "oxa-slot2-20230202120000"

        assert gateway.ops(RemoveLoadBalancer) == [RemoveLoadBalancer("rg1", "lb-slot2-01")]
        submitted = gateway.ops(SubmitDeployment)
        assert len(submitted) == 1
        # Teardown finished before the deployment was submitted
        assert gateway.calls.index(gateway.ops(RemoveLoadBalancer)[0]) < gateway.calls.index(submitted[0])

    def test_bootstrap_into_empty_group(self):
        gateway = FakeGateway(resources={})
        result = Orchestrator(_config(deployment_type="bootstrap"), gateway=gateway).run()

        assert result.idle_slot is DeploymentSlot.SLOT1
        assert len(result.version_id) == 14
        assert result.deployment_name == f"oxa-slot1-{result.version_id}"
        assert not gateway.ops(GetTrafficManagerProfile)

    def test_cleanup_does_not_deploy(self):
        gateway = FakeGateway()
        listener = MagicMock()
        result = Orchestrator(_config(), gateway=gateway, listener=listener).run("cleanup")

        assert result.deployment_name is None
        assert gateway.ops(RemoveLoadBalancer) == [RemoveLoadBalancer("rg1", "lb-slot2-01")]
        assert not gateway.ops(SubmitDeployment)
        listener.poll_completion_messages.assert_not_called()

    def test_supplied_version_for_swap(self):
        gateway = FakeGateway()
        result = Orchestrator(_config(version_id="20221111000000"), gateway=gateway).run("swap")
        assert result.version_id == "20221111000000"
        assert not gateway.ops(ListScaleSets)

    def test_cli_version_overrides_config(self):
        gateway = FakeGateway()
        result = Orchestrator(_config(version_id="20221111000000"), gateway=gateway).run("swap", "20230303000000")
        assert result.version_id == "20230303000000"

    def test_parameters_rendered_from_file(self, tmp_path):
        template = tmp_path / "template.json"
        template.write_text('{"resources": []}')
        params = tmp_path / "params.json"
        params.write_text(
            '{"parameters": {"slot": {"value": "{DEPLOYMENT_SLOT}"}, '
            '"version": {"value": "{deployment_version_id}"}, "domain": {"value": "{BASE_DOMAIN}"}}}'
        )
        config = _config(
            template_path=str(template), parameters_path=str(params), parameters={"BASE_DOMAIN": "oxa.example"},
        )
        gateway = FakeGateway()
        Orchestrator(config, gateway=gateway).run("swap")

        op = gateway.ops(SubmitDeployment)[0]
        assert op.template == {"resources": []}
        assert op.parameters == {
            "slot": {"value": "slot2"},
            "version": {"value": "20230202120000"},
            "domain": {"value": "oxa.example"},
        }

    def test_scale_set_and_live_slot_parameters(self, tmp_path):
        params = tmp_path / "params.json"
        params.write_text(
            '{"vmssName": {"value": "{SCALE_SET_NAME}"}, "liveSlot": {"value": "{LIVE_SLOT}"}}'
        )
        gateway = FakeGateway()
        Orchestrator(_config(parameters_path=str(params)), gateway=gateway).run("swap")

        # The new scale set carries the version the next swap will derive
        assert gateway.ops(SubmitDeployment)[0].parameters == {
            "vmssName": {"value": "oxa-vmss-20230202120000"},
            "liveSlot": {"value": "slot1"},
        }

    def test_collects_completion_messages(self):
        listener = MagicMock()
        listener.poll_completion_messages.return_value = iter(["vm0 ok", "vm1 ok"])
        result = Orchestrator(_config(), gateway=FakeGateway(), listener=listener).run("upgrade")
        assert result.messages == ["vm0 ok", "vm1 ok"]

    def test_detection_failure_aborts_before_teardown(self):
        gateway = FakeGateway(endpoints=(("endpoint1", "Disabled"), ("endpoint2", "Disabled")))
        with pytest.raises(SlotDetectionError):
            Orchestrator(_config(), gateway=gateway).run("swap")
        assert not gateway.ops(GetLoadBalancer)
        assert not gateway.ops(SubmitDeployment)


class TestDetect:
    def test_detect_only(self):
        gateway = FakeGateway(endpoints=(("endpoint1", "Disabled"), ("endpoint2", "Enabled")))
        slot, resources = Orchestrator(_config(), gateway=gateway).detect()
        assert slot is DeploymentSlot.SLOT1
        assert len(resources) == 3
        assert not gateway.ops(GetLoadBalancer)
