"""Base interface for deployment drivers."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from ecsdeploy.deploy.clients import AWSClients
from ecsdeploy.models.config import DeployConfig
from ecsdeploy.models.deployment import DeploymentMechanism, DeployOutcome, DeployPlan


class BaseDeployer(ABC):
    """Abstract base class for deployment drivers.

    One driver exists per deployment mechanism. The orchestrator calls
    :meth:`apply` exactly once and :meth:`wait` only when the plan asks to
    block on completion.
    """

    mechanism: DeploymentMechanism

    def __init__(self, clients: AWSClients, config: DeployConfig) -> None:
        self._clients = clients
        self._config = config

    @abstractmethod
    def apply(
        self, plan: DeployPlan, cancel_event: threading.Event | None = None
    ) -> DeployOutcome:
        """Submit the plan to the platform.

        On dry run every read still happens but no mutating call is issued;
        the outcome then describes the intended change.

        Args:
            plan: Resolved deploy plan
            cancel_event: Checked once the reads are done, before the first
                mutating call

        Returns:
            DeployOutcome with status SUBMITTED, or DRY_RUN

        Raises:
            DeployCancelledError: If cancel_event is set before submission
            DeploymentError: If the submission fails
        """

    @abstractmethod
    def wait(
        self,
        plan: DeployPlan,
        outcome: DeployOutcome,
        cancel_event: threading.Event | None = None,
    ) -> DeployOutcome:
        """Block until the submitted deployment reaches a terminal state.

        Args:
            plan: The plan that was applied
            outcome: Outcome returned by :meth:`apply`
            cancel_event: Set by the caller to abort the wait

        Returns:
            DeployOutcome with the terminal success status

        Raises:
            StabilityTimeoutError: If config.timeout passes first
            DeployCancelledError: If cancel_event is set
            DeploymentError: If the platform reports a failed terminal state
        """
