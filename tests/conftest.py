"""Pytest configuration and shared fixtures for ecsdeploy tests."""

import json
import logging
import os
import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from ecsdeploy.deploy.clients import AWSClients
from ecsdeploy.models.config import DeployConfig

SERVICE_ARN = "arn:aws:ecs:ap-northeast-1:123456789012:service/default/test-service"
CLUSTER_ARN = "arn:aws:ecs:ap-northeast-1:123456789012:cluster/default"
TD_ARN_PREFIX = "arn:aws:ecs:ap-northeast-1:123456789012:task-definition"


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for test file operations.

    Yields:
        Path to temporary directory

    Cleanup:
        Automatically removes directory after test
    """
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def isolated_env() -> Generator[dict[str, str]]:
    """Provide isolated environment variables for testing.

    Saves current environment and restores after test.
    """
    original_env = os.environ.copy()
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def fixture_dir() -> Path:
    """Get path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def reset_ecsdeploy_logger() -> Generator[None]:
    """Undo setup_logging so caplog sees ecsdeploy records in every test."""
    yield
    package_logger = logging.getLogger("ecsdeploy")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


@pytest.fixture
def aws_clients() -> AWSClients:
    """AWS clients with every boto3 client replaced by a MagicMock.

    The autoscaling probe reports no scalable target unless a test
    overrides describe_scalable_targets.
    """
    clients = AWSClients(
        ecs=MagicMock(name="ecs"),
        application_autoscaling=MagicMock(name="application_autoscaling"),
        codedeploy=MagicMock(name="codedeploy"),
    )
    clients.application_autoscaling.describe_scalable_targets.return_value = {
        "ScalableTargets": []
    }
    return clients


@pytest.fixture
def task_definition_file(temp_dir: Path) -> Path:
    """Write a minimal registerable task definition file."""
    path = temp_dir / "td.json"
    path.write_text(
        json.dumps(
            {
                "family": "td1",
                "containerDefinitions": [
                    {"name": "web", "image": "nginx:latest", "essential": True}
                ],
            }
        )
    )
    return path


@pytest.fixture
def deploy_config(task_definition_file: Path) -> DeployConfig:
    """Deploy configuration for the test-service in the default cluster."""
    return DeployConfig(
        cluster="default",
        service="test-service",
        task_definition=task_definition_file,
        timeout=30,
        poll_interval=0.01,
    )


@pytest.fixture
def service_description() -> Callable[..., dict[str, Any]]:
    """Factory for a describe_services entry with overridable fields."""

    def _make(**overrides: Any) -> dict[str, Any]:
        service: dict[str, Any] = {
            "serviceArn": SERVICE_ARN,
            "serviceName": "test-service",
            "clusterArn": CLUSTER_ARN,
            "status": "ACTIVE",
            "desiredCount": 2,
            "runningCount": 2,
            "schedulingStrategy": "REPLICA",
            "taskDefinition": f"{TD_ARN_PREFIX}/td1:1",
            "deploymentController": {"type": "ECS"},
            "loadBalancers": [],
            "deployments": [],
            "events": [],
        }
        service.update(overrides)
        return service

    return _make


def pytest_configure(config: Any) -> None:
    """Configure pytest with marker options."""
    config.addinivalue_line(
        "markers",
        "unit: marks tests as unit tests",
    )
