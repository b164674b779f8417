"""Pydantic models for deploy options, service state and deploy plans.

This module defines the values that flow through a single deploy: the
operator's options, the read-only service snapshot, the resolved task
definition, the CodeDeploy release request and the final result.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ecsdeploy.lib.identity import parse_task_definition

# Requested desired count meaning "keep whatever the service currently has".
DEFAULT_DESIRED_COUNT = -1


class SchedulingStrategy(str, Enum):
    """ECS service scheduling strategies."""

    REPLICA = "REPLICA"
    DAEMON = "DAEMON"


class DeploymentControllerType(str, Enum):
    """Deployment controller types reported by ECS."""

    ECS = "ECS"
    CODE_DEPLOY = "CODE_DEPLOY"
    EXTERNAL = "EXTERNAL"


class DeploymentMechanism(str, Enum):
    """How a service transitions to a new task definition."""

    NATIVE = "native"
    EXTERNALLY_CONTROLLED = "externally_controlled"


class RollbackEvent(str, Enum):
    """CodeDeploy auto-rollback trigger events."""

    DEPLOYMENT_FAILURE = "DEPLOYMENT_FAILURE"
    DEPLOYMENT_STOP_ON_ALARM = "DEPLOYMENT_STOP_ON_ALARM"
    DEPLOYMENT_STOP_ON_REQUEST = "DEPLOYMENT_STOP_ON_REQUEST"


class DeployState(str, Enum):
    """States of the deploy orchestrator."""

    START = "start"
    SNAPSHOT_READ = "snapshot_read"
    TASK_DEF_RESOLVED = "task_def_resolved"
    COUNT_DECIDED = "count_decided"
    MECHANISM_SELECTED = "mechanism_selected"
    NATIVE_APPLYING = "native_applying"
    RELEASE_SUBMITTING = "release_submitting"
    WAITING = "waiting"
    DONE = "done"
    FAILED = "failed"


class DeployStatus(str, Enum):
    """Terminal status of a successful deploy call."""

    DRY_RUN = "DRY_RUN"
    SUBMITTED = "SUBMITTED"
    STABLE = "STABLE"
    SUCCEEDED = "SUCCEEDED"


class DeployOptions(BaseModel):
    """Operator intent for a single deploy.

    Attributes:
        desired_count: Requested count; None submits no count and
            DEFAULT_DESIRED_COUNT keeps the current one
        latest_task_definition: Deploy the latest registered revision
        skip_task_definition: Deploy the currently active revision
        force_new_deployment: Force a redeploy of an identical definition
        no_wait: Return right after submission
        dry_run: Read and decide, but mutate nothing
        suspend_auto_scaling: Suspend (True) or resume (False) scaling;
            None leaves scaling untouched
        rollback_events: CodeDeploy auto-rollback events for the release
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    desired_count: int | None = Field(default=None, description="Desired count")
    latest_task_definition: bool = Field(default=False)
    skip_task_definition: bool = Field(default=False)
    force_new_deployment: bool = Field(default=False)
    no_wait: bool = Field(default=False)
    dry_run: bool = Field(default=False)
    suspend_auto_scaling: bool | None = Field(default=None)
    rollback_events: tuple[RollbackEvent, ...] = Field(default=())

    @field_validator("desired_count")
    @classmethod
    def validate_desired_count(cls, v: int | None) -> int | None:
        """Validate the count is non-negative or the keep-current sentinel."""
        if v is not None and v < 0 and v != DEFAULT_DESIRED_COUNT:
            raise ValueError(
                f"desired_count must be >= 0 or {DEFAULT_DESIRED_COUNT} "
                f"(keep current), got {v}"
            )
        return v

    @property
    def register_task_definition(self) -> bool:
        """Whether the local definition is registered as a new revision."""
        return not (self.latest_task_definition or self.skip_task_definition)

    @property
    def wait(self) -> bool:
        """Whether the deploy blocks until a terminal platform state."""
        return not (self.no_wait or self.dry_run)


class LoadBalancerBinding(BaseModel):
    """A load balancer attached to an ECS service."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    container_name: str | None = None
    container_port: int | None = None
    target_group_arn: str | None = None
    load_balancer_name: str | None = None


class TaskDefinitionRef(BaseModel):
    """Reference to a task definition revision.

    A reference with no ARN is pending: it names a revision that a live run
    would register from the local definition file.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    family: str = Field(..., min_length=1)
    revision: int | None = None
    arn: str | None = None

    @classmethod
    def from_arn(cls, arn: str) -> TaskDefinitionRef:
        """Build a reference from a task definition ARN."""
        family, revision = parse_task_definition(arn)
        return cls(family=family, revision=revision, arn=arn)

    @property
    def pending(self) -> bool:
        """Whether this revision is not registered yet."""
        return self.arn is None

    def __str__(self) -> str:
        if self.arn:
            return self.arn
        if self.revision is not None:
            return f"{self.family}:{self.revision}"
        return f"{self.family}:<new revision>"


class ServiceSnapshot(BaseModel):
    """Read-only projection of an ECS service at decision time."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    service_name: str
    cluster: str
    service_arn: str | None = None
    status: str = "ACTIVE"
    desired_count: int | None = None
    running_count: int | None = None
    scheduling_strategy: str = SchedulingStrategy.REPLICA.value
    task_definition: TaskDefinitionRef
    deployment_controller: str | None = None
    load_balancers: tuple[LoadBalancerBinding, ...] = ()


class ReleaseSpec(BaseModel):
    """A CodeDeploy release of a new task definition to one deployment group."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    application_name: str
    deployment_group_name: str
    task_definition: TaskDefinitionRef
    load_balancer: LoadBalancerBinding | None = None
    rollback_events: tuple[RollbackEvent, ...] = ()

    def app_spec(self) -> dict[str, Any]:
        """Render the AppSpec document for an ECS blue/green deployment."""
        properties: dict[str, Any] = {"TaskDefinition": str(self.task_definition)}
        lb = self.load_balancer
        if lb is not None and lb.container_name and lb.container_port is not None:
            properties["LoadBalancerInfo"] = {
                "ContainerName": lb.container_name,
                "ContainerPort": lb.container_port,
            }
        return {
            "version": "0.0",
            "Resources": [
                {
                    "TargetService": {
                        "Type": "AWS::ECS::Service",
                        "Properties": properties,
                    }
                }
            ],
        }

    def app_spec_content(self) -> str:
        """Render the AppSpec document as JSON content."""
        return json.dumps(self.app_spec(), sort_keys=True)

    def to_create_deployment(self) -> dict[str, Any]:
        """Build keyword arguments for ``codedeploy.create_deployment``."""
        request: dict[str, Any] = {
            "applicationName": self.application_name,
            "deploymentGroupName": self.deployment_group_name,
            "revision": {
                "revisionType": "AppSpecContent",
                "appSpecContent": {"content": self.app_spec_content()},
            },
        }
        if self.rollback_events:
            request["autoRollbackConfiguration"] = {
                "enabled": True,
                "events": [event.value for event in self.rollback_events],
            }
        return request


class DeployPlan(BaseModel):
    """Everything decided before a mutating call is issued."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    snapshot: ServiceSnapshot
    options: DeployOptions
    task_definition: TaskDefinitionRef
    desired_count: int | None = None
    mechanism: DeploymentMechanism
    auto_scaling_registered: bool = False

    @property
    def cluster(self) -> str:
        return self.snapshot.cluster

    @property
    def service(self) -> str:
        return self.snapshot.service_name

    def summary(self) -> list[str]:
        """Describe the plan as human-readable lines."""
        count = (
            "(unchanged)" if self.desired_count is None else str(self.desired_count)
        )
        lines = [
            f"Cluster:          {self.cluster}",
            f"Service:          {self.service}",
            f"Mechanism:        {self.mechanism.value}",
            f"Task definition:  {self.snapshot.task_definition} -> "
            f"{self.task_definition}",
            f"Desired count:    {count}",
            f"Force deployment: {self.options.force_new_deployment}",
            f"Auto scaling:     "
            f"{'registered' if self.auto_scaling_registered else 'not registered'}",
        ]
        if self.options.suspend_auto_scaling is not None:
            action = "suspend" if self.options.suspend_auto_scaling else "resume"
            lines.append(f"Scaling action:   {action}")
        return lines


class DeployOutcome(BaseModel):
    """What a deployer reports after apply or wait."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: DeployStatus
    deployment_id: str | None = None
    release: ReleaseSpec | None = None
    # UTC time just before a native update_service call.
    submitted_at: datetime | None = None
    detail: list[str] = Field(default_factory=list)


class DeployResult(BaseModel):
    """Result of a deploy call."""

    model_config = ConfigDict(extra="forbid")

    cluster: str
    service: str
    mechanism: DeploymentMechanism
    task_definition: str
    desired_count: int | None = None
    auto_scaling_registered: bool = False
    dry_run: bool = False
    status: DeployStatus
    deployment_id: str | None = None
    release: ReleaseSpec | None = None
    history: list[DeployState] = Field(default_factory=list)
    summary: list[str] = Field(default_factory=list)
