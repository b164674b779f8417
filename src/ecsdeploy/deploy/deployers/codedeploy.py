"""CodeDeploy blue/green release driver.

Services whose deployment controller is CODE_DEPLOY cannot take a new task
definition through update_service. This driver finds the CodeDeploy
application and deployment group bound to the service and creates a release
pointing at the new revision.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Sequence
from typing import Any

from ecsdeploy.deploy.clients import api_errors
from ecsdeploy.deploy.deployers.base import BaseDeployer
from ecsdeploy.deploy.waiter import poll_until, raise_if_cancelled
from ecsdeploy.lib.errors import (
    BindingAmbiguousError,
    BindingNotFoundError,
    ReleaseFailedError,
    UpdateRejectedError,
)
from ecsdeploy.lib.identity import same_service
from ecsdeploy.models.deployment import (
    DeploymentMechanism,
    DeployOutcome,
    DeployPlan,
    DeployStatus,
    ReleaseSpec,
)

logger = logging.getLogger(__name__)

ECS_COMPUTE_PLATFORM = "ECS"
BATCH_SIZE = 100
SUCCEEDED = "Succeeded"
FAILED_STATES = frozenset({"Failed", "Stopped"})


def _chunks(items: Sequence[str], size: int = BATCH_SIZE) -> Iterator[list[str]]:
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class CodeDeployDeployer(BaseDeployer):
    """Release a new task definition through CodeDeploy."""

    mechanism = DeploymentMechanism.EXTERNALLY_CONTROLLED

    def apply(
        self, plan: DeployPlan, cancel_event: threading.Event | None = None
    ) -> DeployOutcome:
        """Discover the deployment group, then create the release."""
        application, group = self.discover(plan.cluster, plan.service)
        raise_if_cancelled(
            cancel_event, "release", f"release of {plan.cluster}/{plan.service}"
        )
        load_balancers = plan.snapshot.load_balancers
        release = ReleaseSpec(
            application_name=application,
            deployment_group_name=group,
            task_definition=plan.task_definition,
            load_balancer=load_balancers[0] if load_balancers else None,
            rollback_events=plan.options.rollback_events,
        )
        detail = [
            f"create_deployment {application}/{group}",
            f"  taskDefinition: {plan.task_definition}",
        ]
        if plan.desired_count is not None:
            detail.append(f"  desiredCount:   {plan.desired_count}")

        if plan.options.dry_run:
            logger.info(
                "[DRY RUN] Would create CodeDeploy deployment in %s/%s",
                application,
                group,
            )
            return DeployOutcome(
                status=DeployStatus.DRY_RUN, release=release, detail=detail
            )

        # No count decided means no update_service call at all, not an empty one.
        if plan.desired_count is not None:
            # CodeDeploy does not manage the count; set it on the service.
            logger.info(
                "Updating desired count of %s to %d", plan.service, plan.desired_count
            )
            with api_errors("update", rejected=_update_rejected):
                self._clients.ecs.update_service(
                    cluster=plan.cluster,
                    service=plan.service,
                    desiredCount=plan.desired_count,
                )

        logger.info(
            "Creating CodeDeploy deployment in %s/%s for %s",
            application,
            group,
            plan.task_definition,
        )
        with api_errors("release", rejected=_release_rejected):
            response = self._clients.codedeploy.create_deployment(
                **release.to_create_deployment()
            )
        deployment_id = response.get("deploymentId")
        logger.info("Created CodeDeploy deployment %s", deployment_id)
        return DeployOutcome(
            status=DeployStatus.SUBMITTED,
            deployment_id=deployment_id,
            release=release,
            detail=detail,
        )

    def discover(self, cluster: str, service: str) -> tuple[str, str]:
        """Find the (application, deployment group) bound to a service.

        Raises:
            BindingNotFoundError: If no deployment group binds the service
            BindingAmbiguousError: If more than one does
            TransportError: If an API call fails
        """
        inspected: list[str] = []
        matches: list[tuple[str, str]] = []

        for application in self._ecs_applications():
            for group in self._deployment_groups(application):
                group_name = group.get("deploymentGroupName", "")
                inspected.append(f"{application}/{group_name}")
                bound = group.get("ecsServices") or []
                if any(
                    same_service(
                        cluster,
                        service,
                        binding.get("clusterName", ""),
                        binding.get("serviceName", ""),
                    )
                    for binding in bound
                ):
                    matches.append((application, group_name))

        if not matches:
            raise BindingNotFoundError(cluster, service, inspected)
        if len(matches) > 1:
            raise BindingAmbiguousError(
                cluster, service, [f"{app}/{group}" for app, group in matches]
            )

        application, group_name = matches[0]
        logger.debug(
            "Service %s/%s is bound to %s/%s", cluster, service, application, group_name
        )
        return application, group_name

    def wait(
        self,
        plan: DeployPlan,
        outcome: DeployOutcome,
        cancel_event: threading.Event | None = None,
    ) -> DeployOutcome:
        """Poll the CodeDeploy deployment until it succeeds or fails."""
        deployment_id = outcome.deployment_id
        if not deployment_id:
            return outcome
        last_status: str | None = None

        def _check() -> DeployOutcome | None:
            nonlocal last_status
            with api_errors("wait"):
                response = self._clients.codedeploy.get_deployment(
                    deploymentId=deployment_id
                )
            info = response.get("deploymentInfo") or {}
            status = info.get("status")
            if status != last_status:
                logger.info("Deployment %s: %s", deployment_id, status)
                last_status = status
            if status == SUCCEEDED:
                return outcome.model_copy(update={"status": DeployStatus.SUCCEEDED})
            if status in FAILED_STATES:
                raise ReleaseFailedError(
                    deployment_id, status, dict(info.get("errorInformation") or {})
                )
            return None

        return poll_until(
            _check,
            operation="wait",
            description=f"CodeDeploy deployment {deployment_id}",
            timeout=self._config.timeout,
            interval=self._config.poll_interval,
            cancel_event=cancel_event,
        )

    def _ecs_applications(self) -> list[str]:
        """List CodeDeploy applications on the ECS compute platform."""
        client = self._clients.codedeploy
        names: list[str] = []
        request: dict[str, Any] = {}
        while True:
            with api_errors("discover"):
                response = client.list_applications(**request)
            names.extend(response.get("applications") or [])
            if not response.get("nextToken"):
                break
            request["nextToken"] = response["nextToken"]

        applications: list[str] = []
        for chunk in _chunks(names):
            with api_errors("discover"):
                response = client.batch_get_applications(applicationNames=chunk)
            for info in response.get("applicationsInfo") or []:
                if info.get("computePlatform") == ECS_COMPUTE_PLATFORM:
                    applications.append(info["applicationName"])
        return applications

    def _deployment_groups(self, application: str) -> list[dict[str, Any]]:
        """Describe every deployment group of an application."""
        client = self._clients.codedeploy
        names: list[str] = []
        request: dict[str, Any] = {"applicationName": application}
        while True:
            with api_errors("discover"):
                response = client.list_deployment_groups(**request)
            names.extend(response.get("deploymentGroups") or [])
            if not response.get("nextToken"):
                break
            request["nextToken"] = response["nextToken"]

        groups: list[dict[str, Any]] = []
        for chunk in _chunks(names):
            with api_errors("discover"):
                response = client.batch_get_deployment_groups(
                    applicationName=application, deploymentGroupNames=chunk
                )
            groups.extend(response.get("deploymentGroupsInfo") or [])
        return groups


def _update_rejected(message: str, payload: dict[str, Any]) -> Exception:
    return UpdateRejectedError(message, payload)


def _release_rejected(message: str, payload: dict[str, Any]) -> Exception:
    return UpdateRejectedError(message, payload, operation="release")
