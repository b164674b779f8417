"""Native ECS rolling update driver."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any

from ecsdeploy.deploy.clients import api_errors
from ecsdeploy.deploy.deployers.base import BaseDeployer
from ecsdeploy.deploy.waiter import poll_until, raise_if_cancelled
from ecsdeploy.lib.errors import NotFoundError, UpdateRejectedError
from ecsdeploy.models.deployment import (
    DeploymentMechanism,
    DeployOutcome,
    DeployPlan,
    DeployStatus,
)

logger = logging.getLogger(__name__)


def build_update_request(plan: DeployPlan) -> dict[str, Any]:
    """Build keyword arguments for ``ecs.update_service``.

    desiredCount is only present when the plan decided one; an absent
    decision leaves the field out of the request entirely.
    """
    request: dict[str, Any] = {
        "cluster": plan.cluster,
        "service": plan.service,
        "taskDefinition": str(plan.task_definition),
        "forceNewDeployment": plan.options.force_new_deployment,
    }
    if plan.desired_count is not None:
        request["desiredCount"] = plan.desired_count
    return request


def _rejected(message: str, payload: dict[str, Any]) -> Exception:
    return UpdateRejectedError(message, payload)


class EcsServiceDeployer(BaseDeployer):
    """Update an ECS-controlled service in place."""

    mechanism = DeploymentMechanism.NATIVE

    def apply(
        self, plan: DeployPlan, cancel_event: threading.Event | None = None
    ) -> DeployOutcome:
        """Issue a single update_service call for the plan."""
        request = build_update_request(plan)
        detail = [
            f"update_service {plan.cluster}/{plan.service}",
            f"  taskDefinition:     {request['taskDefinition']}",
            f"  desiredCount:       {request.get('desiredCount', '(omitted)')}",
            f"  forceNewDeployment: {request['forceNewDeployment']}",
        ]

        raise_if_cancelled(
            cancel_event, "update", f"update of {plan.cluster}/{plan.service}"
        )
        if plan.options.dry_run:
            logger.info("[DRY RUN] Would update service %s", plan.service)
            return DeployOutcome(status=DeployStatus.DRY_RUN, detail=detail)

        logger.info(
            "Updating service %s/%s to %s",
            plan.cluster,
            plan.service,
            request["taskDefinition"],
        )
        submitted_at = datetime.now(timezone.utc)
        with api_errors("update", rejected=_rejected):
            response = self._clients.ecs.update_service(**request)

        deployment_id = None
        for deployment in (response.get("service") or {}).get("deployments") or []:
            if deployment.get("status") == "PRIMARY":
                deployment_id = deployment.get("id")
                break
        return DeployOutcome(
            status=DeployStatus.SUBMITTED,
            deployment_id=deployment_id,
            submitted_at=submitted_at,
            detail=detail,
        )

    def wait(
        self,
        plan: DeployPlan,
        outcome: DeployOutcome,
        cancel_event: threading.Event | None = None,
    ) -> DeployOutcome:
        """Poll the service until it is stable."""
        seen_events: set[str] = set()
        since = outcome.submitted_at

        def _check() -> DeployOutcome | None:
            with api_errors("wait"):
                response = self._clients.ecs.describe_services(
                    cluster=plan.cluster, services=[plan.service]
                )
            services = response.get("services") or []
            if not services:
                raise NotFoundError(
                    "service", f"{plan.cluster}/{plan.service}", operation="wait"
                )
            sv = services[0]

            # Events arrive newest first; skip those older than the update.
            for event in reversed(sv.get("events") or []):
                event_id = event.get("id")
                if event_id in seen_events:
                    continue
                seen_events.add(event_id)
                created = event.get("createdAt")
                if since is None or created is None or created >= since:
                    logger.info("%s", event.get("message"))

            deployments = sv.get("deployments") or []
            primary = next(
                (d for d in deployments if d.get("status") == "PRIMARY"), None
            )
            if primary is None:
                return None
            rollout = primary.get("rolloutState")
            if rollout == "FAILED":
                raise UpdateRejectedError(
                    primary.get("rolloutStateReason") or "deployment rollout failed",
                    payload=dict(primary),
                )
            if (
                len(deployments) == 1
                and rollout in (None, "COMPLETED")
                and sv.get("runningCount") == sv.get("desiredCount")
            ):
                logger.info("Service %s is stable", plan.service)
                return outcome.model_copy(update={"status": DeployStatus.STABLE})
            return None

        return poll_until(
            _check,
            operation="wait",
            description=f"service {plan.cluster}/{plan.service} stability",
            timeout=self._config.timeout,
            interval=self._config.poll_interval,
            cancel_event=cancel_event,
        )
