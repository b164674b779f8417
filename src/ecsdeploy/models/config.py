"""Pydantic models for the ecsdeploy configuration file."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ecsdeploy.lib.identity import normalize_cluster

DEFAULT_CLUSTER = "default"
DEFAULT_TIMEOUT = 600.0
DEFAULT_POLL_INTERVAL = 10.0


class DeployConfig(BaseModel):
    """Deploy target and runtime settings loaded from ``ecsdeploy.yml``.

    Attributes:
        region: AWS region (boto3 default chain when unset)
        profile: AWS shared-credentials profile name
        cluster: ECS cluster name or ARN, normalized to the bare name
        service: ECS service name
        task_definition: Path to the local task definition file
        timeout: Upper bound in seconds for stability and release waits
        poll_interval: Seconds between status polls while waiting
    """

    model_config = ConfigDict(extra="forbid")

    region: str | None = Field(default=None, description="AWS region")
    profile: str | None = Field(default=None, description="AWS profile name")
    cluster: str = Field(default=DEFAULT_CLUSTER, description="ECS cluster")
    service: str = Field(..., min_length=1, description="ECS service name")
    task_definition: Path | None = Field(
        default=None, description="Path to the local task definition file"
    )
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, description="Wait timeout in seconds"
    )
    poll_interval: float = Field(
        default=DEFAULT_POLL_INTERVAL,
        gt=0,
        description="Seconds between status polls",
    )

    @field_validator("cluster")
    @classmethod
    def validate_cluster(cls, v: str) -> str:
        """Normalize cluster ARNs to the bare cluster name."""
        name = normalize_cluster(v)
        if not name:
            raise ValueError("cluster must not be empty")
        return name

    @model_validator(mode="after")
    def validate_poll_interval(self) -> DeployConfig:
        """Validate that poll_interval does not exceed timeout."""
        if self.poll_interval > self.timeout:
            raise ValueError(
                f"poll_interval ({self.poll_interval:g}) must be <= "
                f"timeout ({self.timeout:g})"
            )
        return self
