"""Deploy orchestrator.

Composes the snapshot reader, task definition resolver, desired count policy,
mechanism detector, autoscaling probe and the deployment drivers into a
single ``deploy`` call. Steps run strictly in order and the first failure
stops the run; nothing is retried here.
"""

from __future__ import annotations

import logging
import threading

from ecsdeploy.deploy.autoscaling import AutoScalingProbe
from ecsdeploy.deploy.clients import AWSClients, create_clients
from ecsdeploy.deploy.deployers import create_deployer
from ecsdeploy.deploy.desired_count import decide_desired_count
from ecsdeploy.deploy.mechanism import classify
from ecsdeploy.deploy.snapshot import ServiceSnapshotReader
from ecsdeploy.deploy.taskdef import TaskDefinitionResolver
from ecsdeploy.deploy.waiter import raise_if_cancelled
from ecsdeploy.lib.errors import EcsDeployError
from ecsdeploy.models.config import DeployConfig
from ecsdeploy.models.deployment import (
    DeploymentMechanism,
    DeployOptions,
    DeployPlan,
    DeployResult,
    DeployState,
)

logger = logging.getLogger(__name__)


class DeployOrchestrator:
    """Drive one ECS service to a new task definition and desired count.

    The orchestrator keeps no state between calls: every deploy reads a
    fresh snapshot. Concurrent deploys against the same service are not
    coordinated here; ECS serializes overlapping updates itself.
    """

    def __init__(self, config: DeployConfig, clients: AWSClients | None = None) -> None:
        """Initialize the orchestrator.

        Args:
            config: Deploy target and wait settings
            clients: AWS clients; created from config when omitted
        """
        self._config = config
        self._clients = clients if clients is not None else create_clients(config)

    def deploy(
        self,
        options: DeployOptions,
        cancel_event: threading.Event | None = None,
    ) -> DeployResult:
        """Deploy the configured service.

        Args:
            options: Operator intent for this deploy
            cancel_event: Set by the caller to cancel the deploy. Before
                submission nothing is mutated; during a wait the submitted
                update or release is left as is

        Returns:
            DeployResult describing the plan and the terminal status

        Raises:
            ConfigError: If local configuration is unusable
            DeploymentError: If any deploy step fails
        """
        history = [DeployState.START]
        probe = AutoScalingProbe(self._clients)
        try:
            plan = self._plan(options, probe, history, cancel_event)
            raise_if_cancelled(
                cancel_event, "autoscaling", f"deploy of {self._target}"
            )
            self._toggle_auto_scaling(plan, probe)

            deployer = create_deployer(plan.mechanism, self._clients, self._config)
            if plan.mechanism == DeploymentMechanism.NATIVE:
                self._advance(history, DeployState.NATIVE_APPLYING)
            else:
                self._advance(history, DeployState.RELEASE_SUBMITTING)
            outcome = deployer.apply(plan, cancel_event)

            if options.wait:
                self._advance(history, DeployState.WAITING)
                outcome = deployer.wait(plan, outcome, cancel_event)

            self._advance(history, DeployState.DONE)
        except EcsDeployError as exc:
            logger.debug("Deploy failed after %s: %s", history[-1].value, exc)
            history.append(DeployState.FAILED)
            raise

        return DeployResult(
            cluster=plan.cluster,
            service=plan.service,
            mechanism=plan.mechanism,
            task_definition=str(plan.task_definition),
            desired_count=plan.desired_count,
            auto_scaling_registered=plan.auto_scaling_registered,
            dry_run=options.dry_run,
            status=outcome.status,
            deployment_id=outcome.deployment_id,
            release=outcome.release,
            history=history,
            summary=plan.summary() + outcome.detail,
        )

    def _plan(
        self,
        options: DeployOptions,
        probe: AutoScalingProbe,
        history: list[DeployState],
        cancel_event: threading.Event | None,
    ) -> DeployPlan:
        config = self._config

        snapshot = ServiceSnapshotReader(self._clients).read(
            config.cluster, config.service
        )
        self._advance(history, DeployState.SNAPSHOT_READ)

        # Resolving may register a new revision.
        raise_if_cancelled(cancel_event, "register", f"deploy of {self._target}")

        task_definition = TaskDefinitionResolver(
            self._clients, config.task_definition
        ).resolve(snapshot.task_definition, options)
        self._advance(history, DeployState.TASK_DEF_RESOLVED)

        desired_count = decide_desired_count(snapshot, options)
        registered = probe.is_registered(snapshot.cluster, snapshot.service_name)
        if registered and desired_count is not None:
            logger.warning(
                "Service %s is registered with Application Auto Scaling; "
                "desired count %d may be changed by its scaling policies",
                snapshot.service_name,
                desired_count,
            )
        elif registered:
            logger.info(
                "Service %s is registered with Application Auto Scaling",
                snapshot.service_name,
            )
        self._advance(history, DeployState.COUNT_DECIDED)

        mechanism = classify(snapshot)
        self._advance(history, DeployState.MECHANISM_SELECTED)

        return DeployPlan(
            snapshot=snapshot,
            options=options,
            task_definition=task_definition,
            desired_count=desired_count,
            mechanism=mechanism,
            auto_scaling_registered=registered,
        )

    def _toggle_auto_scaling(self, plan: DeployPlan, probe: AutoScalingProbe) -> None:
        suspend = plan.options.suspend_auto_scaling
        if suspend is None:
            return
        if not plan.auto_scaling_registered:
            logger.warning(
                "Service %s is not a scalable target; ignoring %s request",
                plan.service,
                "suspend" if suspend else "resume",
            )
            return
        if plan.options.dry_run:
            logger.info(
                "[DRY RUN] Would %s auto scaling for %s",
                "suspend" if suspend else "resume",
                plan.service,
            )
            return
        probe.set_suspended(plan.cluster, plan.service, suspend)

    @property
    def _target(self) -> str:
        return f"{self._config.cluster}/{self._config.service}"

    @staticmethod
    def _advance(history: list[DeployState], state: DeployState) -> None:
        logger.debug("Deploy state: %s -> %s", history[-1].value, state.value)
        history.append(state)
