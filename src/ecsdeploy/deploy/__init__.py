"""ecsdeploy deployment engine.

This package provides the deploy decision and orchestration logic: reading
service state, resolving the task definition, deciding the desired count and
driving either a native ECS update or a CodeDeploy release.
"""

from ecsdeploy.deploy.clients import AWSClients, create_clients
from ecsdeploy.deploy.desired_count import calc_desired_count
from ecsdeploy.deploy.mechanism import classify
from ecsdeploy.deploy.orchestrator import DeployOrchestrator

__all__ = [
    "AWSClients",
    "DeployOrchestrator",
    "calc_desired_count",
    "classify",
    "create_clients",
]
