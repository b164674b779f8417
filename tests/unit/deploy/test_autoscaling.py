"""Unit tests for AutoScalingProbe."""

from __future__ import annotations

import pytest

from ecsdeploy.deploy.autoscaling import AutoScalingProbe
from ecsdeploy.deploy.clients import AWSClients


@pytest.mark.unit
class TestAutoScalingProbe:
    """Tests for the Application Auto Scaling probe."""

    def test_not_registered(self, aws_clients: AWSClients) -> None:
        """Test an empty target list reports not registered."""
        client = aws_clients.application_autoscaling
        probe = AutoScalingProbe(aws_clients)

        assert probe.is_registered("default", "test-service") is False
        client.describe_scalable_targets.assert_called_once_with(
            ServiceNamespace="ecs",
            ResourceIds=["service/default/test-service"],
            ScalableDimension="ecs:service:DesiredCount",
        )

    def test_registered(self, aws_clients: AWSClients) -> None:
        """Test a matching target reports registered."""
        client = aws_clients.application_autoscaling
        client.describe_scalable_targets.return_value = {
            "ScalableTargets": [
                {
                    "ResourceId": "service/default/test-service",
                    "MinCapacity": 1,
                    "MaxCapacity": 4,
                }
            ]
        }
        probe = AutoScalingProbe(aws_clients)

        assert probe.is_registered("default", "test-service") is True
        target = probe.describe_target("default", "test-service")
        assert target is not None
        assert target["MaxCapacity"] == 4

    def test_other_resource_ignored(self, aws_clients: AWSClients) -> None:
        """Test targets for other resources do not count."""
        client = aws_clients.application_autoscaling
        client.describe_scalable_targets.return_value = {
            "ScalableTargets": [{"ResourceId": "service/default/other"}]
        }
        probe = AutoScalingProbe(aws_clients)

        assert probe.is_registered("default", "test-service") is False

    @pytest.mark.parametrize("suspended", [True, False])
    def test_set_suspended(self, aws_clients: AWSClients, suspended: bool) -> None:
        """Test suspend and resume register the target's suspended state."""
        client = aws_clients.application_autoscaling

        AutoScalingProbe(aws_clients).set_suspended(
            "default", "test-service", suspended
        )

        client.register_scalable_target.assert_called_once_with(
            ServiceNamespace="ecs",
            ResourceId="service/default/test-service",
            ScalableDimension="ecs:service:DesiredCount",
            SuspendedState={
                "DynamicScalingInSuspended": suspended,
                "DynamicScalingOutSuspended": suspended,
                "ScheduledScalingSuspended": suspended,
            },
        )
