"""Application Auto Scaling probe for ECS services."""

from __future__ import annotations

import logging
from typing import Any

from ecsdeploy.deploy.clients import AWSClients, api_errors
from ecsdeploy.lib.identity import scalable_resource_id

logger = logging.getLogger(__name__)

SERVICE_NAMESPACE = "ecs"
SCALABLE_DIMENSION = "ecs:service:DesiredCount"


class AutoScalingProbe:
    """Query and toggle the scalable target registered for a service.

    The registration result is informational: it never changes the desired
    count computed for a deploy.
    """

    def __init__(self, clients: AWSClients) -> None:
        self._client = clients.application_autoscaling

    def describe_target(self, cluster: str, service: str) -> dict[str, Any] | None:
        """Return the scalable target for the service, or None."""
        resource_id = scalable_resource_id(cluster, service)
        with api_errors("autoscaling"):
            response = self._client.describe_scalable_targets(
                ServiceNamespace=SERVICE_NAMESPACE,
                ResourceIds=[resource_id],
                ScalableDimension=SCALABLE_DIMENSION,
            )
        for target in response.get("ScalableTargets") or []:
            if target.get("ResourceId") == resource_id:
                return dict(target)
        return None

    def is_registered(self, cluster: str, service: str) -> bool:
        """Whether the service is registered as a scalable target."""
        return self.describe_target(cluster, service) is not None

    def set_suspended(self, cluster: str, service: str, suspended: bool) -> None:
        """Suspend or resume dynamic and scheduled scaling for the service."""
        resource_id = scalable_resource_id(cluster, service)
        logger.info(
            "%s auto scaling for %s",
            "Suspending" if suspended else "Resuming",
            resource_id,
        )
        with api_errors("autoscaling"):
            self._client.register_scalable_target(
                ServiceNamespace=SERVICE_NAMESPACE,
                ResourceId=resource_id,
                ScalableDimension=SCALABLE_DIMENSION,
                SuspendedState={
                    "DynamicScalingInSuspended": suspended,
                    "DynamicScalingOutSuspended": suspended,
                    "ScheduledScalingSuspended": suspended,
                },
            )
