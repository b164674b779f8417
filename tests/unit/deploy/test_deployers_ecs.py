"""Unit tests for the native ECS update driver."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from botocore.exceptions import ClientError

from ecsdeploy.deploy.clients import AWSClients
from ecsdeploy.deploy.deployers.ecs import EcsServiceDeployer, build_update_request
from ecsdeploy.lib.errors import (
    DeployCancelledError,
    StabilityTimeoutError,
    TransportError,
    UpdateRejectedError,
)
from ecsdeploy.models.config import DeployConfig
from ecsdeploy.models.deployment import (
    DeploymentMechanism,
    DeployOptions,
    DeployOutcome,
    DeployPlan,
    DeployStatus,
    ServiceSnapshot,
    TaskDefinitionRef,
)

TD_PREFIX = "arn:aws:ecs:ap-northeast-1:123456789012:task-definition"
SUBMITTED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _plan(desired_count: int | None = 3, **options: Any) -> DeployPlan:
    snapshot = ServiceSnapshot(
        service_name="test-service",
        cluster="default",
        desired_count=2,
        task_definition=TaskDefinitionRef.from_arn(f"{TD_PREFIX}/td1:1"),
        deployment_controller="ECS",
    )
    return DeployPlan(
        snapshot=snapshot,
        options=DeployOptions(**options),
        task_definition=TaskDefinitionRef.from_arn(f"{TD_PREFIX}/td1:2"),
        desired_count=desired_count,
        mechanism=DeploymentMechanism.NATIVE,
    )


def _described(
    deployments: list[dict[str, Any]],
    running: int = 3,
    desired: int = 3,
    events: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    return {
        "services": [
            {
                "serviceName": "test-service",
                "runningCount": running,
                "desiredCount": desired,
                "deployments": deployments,
                "events": events or [],
            }
        ]
    }


@pytest.mark.unit
class TestBuildUpdateRequest:
    """Tests for build_update_request."""

    def test_with_count(self) -> None:
        """Test a decided count is sent."""
        request = build_update_request(_plan(desired_count=3))

        assert request == {
            "cluster": "default",
            "service": "test-service",
            "taskDefinition": f"{TD_PREFIX}/td1:2",
            "forceNewDeployment": False,
            "desiredCount": 3,
        }

    def test_absent_count_is_omitted(self) -> None:
        """Test an absent decision leaves desiredCount out entirely."""
        request = build_update_request(_plan(desired_count=None))

        assert "desiredCount" not in request

    def test_zero_count_is_sent(self) -> None:
        """Test zero is submitted, not treated as absent."""
        assert build_update_request(_plan(desired_count=0))["desiredCount"] == 0

    def test_force_new_deployment(self) -> None:
        """Test the force flag is carried through."""
        request = build_update_request(_plan(force_new_deployment=True))

        assert request["forceNewDeployment"] is True


@pytest.mark.unit
class TestEcsServiceDeployerApply:
    """Tests for EcsServiceDeployer.apply."""

    def test_apply_updates_once(
        self, aws_clients: AWSClients, deploy_config: DeployConfig
    ) -> None:
        """Test a single update_service call carrying the plan."""
        aws_clients.ecs.update_service.return_value = {
            "service": {
                "deployments": [
                    {"id": "ecs-svc/2", "status": "PRIMARY"},
                    {"id": "ecs-svc/1", "status": "ACTIVE"},
                ]
            }
        }
        deployer = EcsServiceDeployer(aws_clients, deploy_config)

        outcome = deployer.apply(_plan())

        aws_clients.ecs.update_service.assert_called_once_with(
            cluster="default",
            service="test-service",
            taskDefinition=f"{TD_PREFIX}/td1:2",
            forceNewDeployment=False,
            desiredCount=3,
        )
        assert outcome.status == DeployStatus.SUBMITTED
        assert outcome.deployment_id == "ecs-svc/2"
        assert outcome.submitted_at is not None
        assert outcome.submitted_at <= datetime.now(timezone.utc)

    def test_cancelled_before_update(
        self, aws_clients: AWSClients, deploy_config: DeployConfig
    ) -> None:
        """Test a set cancel event stops before update_service."""
        event = threading.Event()
        event.set()
        deployer = EcsServiceDeployer(aws_clients, deploy_config)

        with pytest.raises(DeployCancelledError) as exc_info:
            deployer.apply(_plan(), event)

        assert exc_info.value.submitted is False
        assert exc_info.value.operation == "update"
        aws_clients.ecs.update_service.assert_not_called()

    def test_dry_run_makes_no_call(
        self, aws_clients: AWSClients, deploy_config: DeployConfig
    ) -> None:
        """Test dry run describes the update without issuing it."""
        deployer = EcsServiceDeployer(aws_clients, deploy_config)

        outcome = deployer.apply(_plan(desired_count=None, dry_run=True))

        aws_clients.ecs.update_service.assert_not_called()
        assert outcome.status == DeployStatus.DRY_RUN
        assert any("(omitted)" in line for line in outcome.detail)

    def test_rejected(
        self, aws_clients: AWSClients, deploy_config: DeployConfig
    ) -> None:
        """Test a platform rejection raises UpdateRejectedError with payload."""
        aws_clients.ecs.update_service.side_effect = ClientError(
            {
                "Error": {
                    "Code": "PlatformTaskDefinitionIncompatibilityException",
                    "Message": "incompatible",
                }
            },
            "UpdateService",
        )
        deployer = EcsServiceDeployer(aws_clients, deploy_config)

        with pytest.raises(UpdateRejectedError) as exc_info:
            deployer.apply(_plan())

        assert exc_info.value.payload["Message"] == "incompatible"

    def test_throttled_is_transport(
        self, aws_clients: AWSClients, deploy_config: DeployConfig
    ) -> None:
        """Test non-rejection failures are transport errors."""
        aws_clients.ecs.update_service.side_effect = ClientError(
            {"Error": {"Code": "ThrottlingException", "Message": "Rate exceeded"}},
            "UpdateService",
        )
        deployer = EcsServiceDeployer(aws_clients, deploy_config)

        with pytest.raises(TransportError):
            deployer.apply(_plan())


@pytest.mark.unit
class TestEcsServiceDeployerWait:
    """Tests for EcsServiceDeployer.wait."""

    def test_waits_until_stable(
        self,
        aws_clients: AWSClients,
        deploy_config: DeployConfig,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test polling continues until a single completed deployment."""
        old_event = {
            "id": "e1",
            "createdAt": SUBMITTED_AT - timedelta(minutes=5),
            "message": "(service test-service) old news",
        }
        first_event = {
            "id": "e2",
            "createdAt": SUBMITTED_AT + timedelta(seconds=1),
            "message": "(service test-service) has started 1 tasks",
        }
        steady_event = {
            "id": "e3",
            "createdAt": SUBMITTED_AT + timedelta(seconds=30),
            "message": "(service test-service) has reached a steady state",
        }
        aws_clients.ecs.describe_services.side_effect = [
            _described(
                [
                    {"status": "PRIMARY", "rolloutState": "IN_PROGRESS"},
                    {"status": "ACTIVE"},
                ],
                running=1,
                events=[first_event, old_event],
            ),
            _described(
                [{"status": "PRIMARY", "rolloutState": "COMPLETED"}],
                events=[steady_event, first_event, old_event],
            ),
        ]
        deployer = EcsServiceDeployer(aws_clients, deploy_config)
        submitted = DeployOutcome(
            status=DeployStatus.SUBMITTED, deployment_id="d", submitted_at=SUBMITTED_AT
        )

        with caplog.at_level(logging.INFO, logger="ecsdeploy"):
            outcome = deployer.wait(_plan(), submitted)

        assert outcome.status == DeployStatus.STABLE
        assert outcome.deployment_id == "d"
        assert aws_clients.ecs.describe_services.call_count == 2
        assert caplog.text.count("has started 1 tasks") == 1
        assert "has reached a steady state" in caplog.text
        assert "old news" not in caplog.text

    def test_running_count_must_match(
        self, aws_clients: AWSClients, deploy_config: DeployConfig
    ) -> None:
        """Test a single deployment is not stable until counts match."""
        aws_clients.ecs.describe_services.side_effect = [
            _described([{"status": "PRIMARY"}], running=2, desired=3),
            _described([{"status": "PRIMARY"}], running=3, desired=3),
        ]
        deployer = EcsServiceDeployer(aws_clients, deploy_config)
        submitted = DeployOutcome(status=DeployStatus.SUBMITTED)

        outcome = deployer.wait(_plan(), submitted)

        assert outcome.status == DeployStatus.STABLE
        assert aws_clients.ecs.describe_services.call_count == 2

    def test_failed_rollout(
        self, aws_clients: AWSClients, deploy_config: DeployConfig
    ) -> None:
        """Test a FAILED rollout state is a platform rejection."""
        aws_clients.ecs.describe_services.return_value = _described(
            [
                {
                    "status": "PRIMARY",
                    "rolloutState": "FAILED",
                    "rolloutStateReason": "circuit breaker triggered",
                }
            ]
        )
        deployer = EcsServiceDeployer(aws_clients, deploy_config)

        with pytest.raises(UpdateRejectedError, match="circuit breaker"):
            deployer.wait(_plan(), DeployOutcome(status=DeployStatus.SUBMITTED))

    def test_timeout(self, aws_clients: AWSClients) -> None:
        """Test a service that never settles times out."""
        config = DeployConfig(service="test-service", timeout=0.05, poll_interval=0.01)
        aws_clients.ecs.describe_services.return_value = _described(
            [{"status": "PRIMARY"}, {"status": "ACTIVE"}]
        )
        deployer = EcsServiceDeployer(aws_clients, config)

        with pytest.raises(StabilityTimeoutError):
            deployer.wait(_plan(), DeployOutcome(status=DeployStatus.SUBMITTED))

    def test_cancelled(
        self, aws_clients: AWSClients, deploy_config: DeployConfig
    ) -> None:
        """Test a set cancel event aborts the wait without a poll."""
        event = threading.Event()
        event.set()
        deployer = EcsServiceDeployer(aws_clients, deploy_config)

        with pytest.raises(DeployCancelledError):
            deployer.wait(
                _plan(), DeployOutcome(status=DeployStatus.SUBMITTED), event
            )

        aws_clients.ecs.describe_services.assert_not_called()
