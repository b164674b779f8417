"""Deployment drivers, one per deployment mechanism."""

from __future__ import annotations

from ecsdeploy.deploy.clients import AWSClients
from ecsdeploy.deploy.deployers.base import BaseDeployer
from ecsdeploy.deploy.deployers.codedeploy import CodeDeployDeployer
from ecsdeploy.deploy.deployers.ecs import EcsServiceDeployer
from ecsdeploy.lib.errors import DeploymentError
from ecsdeploy.models.config import DeployConfig
from ecsdeploy.models.deployment import DeploymentMechanism


def create_deployer(
    mechanism: DeploymentMechanism, clients: AWSClients, config: DeployConfig
) -> BaseDeployer:
    """Create the driver for a deployment mechanism."""
    if mechanism == DeploymentMechanism.NATIVE:
        return EcsServiceDeployer(clients, config)

    if mechanism == DeploymentMechanism.EXTERNALLY_CONTROLLED:
        return CodeDeployDeployer(clients, config)

    raise DeploymentError(
        operation="deploy",
        message=f"Unsupported deployment mechanism: {mechanism}",
    )


__all__ = [
    "BaseDeployer",
    "CodeDeployDeployer",
    "EcsServiceDeployer",
    "create_deployer",
]
