"""Service snapshot reader.

Reads the current state of one ECS service and maps it onto an immutable
:class:`ServiceSnapshot`. Values are copied verbatim; anything ECS omits stays
absent.
"""

from __future__ import annotations

import logging
from typing import Any

from ecsdeploy.deploy.clients import AWSClients, api_errors
from ecsdeploy.lib.errors import AmbiguousError, NotFoundError
from ecsdeploy.lib.identity import normalize_cluster, normalize_service
from ecsdeploy.models.deployment import (
    LoadBalancerBinding,
    SchedulingStrategy,
    ServiceSnapshot,
    TaskDefinitionRef,
)

logger = logging.getLogger(__name__)


class ServiceSnapshotReader:
    """Fetch a service snapshot from ECS."""

    def __init__(self, clients: AWSClients) -> None:
        self._ecs = clients.ecs

    def read(self, cluster: str, service: str) -> ServiceSnapshot:
        """Describe a service and build its snapshot.

        Args:
            cluster: Cluster name or ARN
            service: Service name or ARN

        Returns:
            Snapshot of the service

        Raises:
            NotFoundError: If ECS reports no active service
            AmbiguousError: If the response cannot be pinned to one service
                in the requested cluster
            TransportError: If the API call fails
        """
        cluster_name = normalize_cluster(cluster)
        service_name = normalize_service(service)
        identity = f"{cluster_name}/{service_name}"

        logger.debug("Describing service %s", identity)
        with api_errors("describe"):
            response = self._ecs.describe_services(
                cluster=cluster_name, services=[service_name]
            )

        for failure in response.get("failures") or []:
            logger.debug(
                "describe_services failure for %s: %s",
                failure.get("arn"),
                failure.get("reason"),
            )

        services = [
            sv
            for sv in response.get("services") or []
            if normalize_service(sv.get("serviceName") or sv.get("serviceArn") or "")
            == service_name
        ]
        if not services:
            raise NotFoundError("service", identity)
        if len(services) > 1:
            raise AmbiguousError(
                "service",
                identity,
                [sv.get("serviceArn") or sv.get("serviceName", "") for sv in services],
            )

        sv = services[0]
        cluster_ref = sv.get("clusterArn")
        if cluster_ref and normalize_cluster(cluster_ref) != cluster_name:
            raise AmbiguousError("cluster", cluster_name, [cluster_ref])

        status = sv.get("status") or "ACTIVE"
        if status != "ACTIVE":
            raise NotFoundError("active service", f"{identity} (status {status})")

        task_definition = sv.get("taskDefinition")
        if not task_definition:
            raise NotFoundError("task definition of service", identity)

        snapshot = ServiceSnapshot(
            service_name=sv.get("serviceName") or service_name,
            cluster=cluster_name,
            service_arn=sv.get("serviceArn"),
            status=status,
            desired_count=sv.get("desiredCount"),
            running_count=sv.get("runningCount"),
            scheduling_strategy=sv.get("schedulingStrategy")
            or SchedulingStrategy.REPLICA.value,
            task_definition=TaskDefinitionRef.from_arn(task_definition),
            deployment_controller=(sv.get("deploymentController") or {}).get("type"),
            load_balancers=tuple(
                _map_load_balancer(lb) for lb in sv.get("loadBalancers") or []
            ),
        )
        logger.debug(
            "Service %s: task definition %s, desired count %s, controller %s",
            identity,
            snapshot.task_definition,
            snapshot.desired_count,
            snapshot.deployment_controller or "(none)",
        )
        return snapshot


def _map_load_balancer(lb: dict[str, Any]) -> LoadBalancerBinding:
    return LoadBalancerBinding(
        container_name=lb.get("containerName"),
        container_port=lb.get("containerPort"),
        target_group_arn=lb.get("targetGroupArn"),
        load_balancer_name=lb.get("loadBalancerName"),
    )
