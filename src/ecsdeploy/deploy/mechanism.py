"""Deployment mechanism detection."""

from __future__ import annotations

from ecsdeploy.models.deployment import (
    DeploymentControllerType,
    DeploymentMechanism,
    ServiceSnapshot,
)


def classify(snapshot: ServiceSnapshot) -> DeploymentMechanism:
    """Classify a service by its deployment controller.

    Only a CODE_DEPLOY controller selects the blue/green release path. A
    missing or any other controller type falls back to the native rolling
    update.
    """
    if snapshot.deployment_controller == DeploymentControllerType.CODE_DEPLOY.value:
        return DeploymentMechanism.EXTERNALLY_CONTROLLED
    return DeploymentMechanism.NATIVE
