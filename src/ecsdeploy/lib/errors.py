"""Custom exception hierarchy for ecsdeploy configuration and deploy operations."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class EcsDeployError(Exception):
    """Base exception for all ecsdeploy errors.

    All ecsdeploy-specific exceptions inherit from this class, enabling
    centralized exception handling at the CLI boundary.
    """

    pass


class ConfigError(EcsDeployError):
    """Exception raised for configuration errors.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class FileNotFoundError(EcsDeployError):
    """Exception raised when a configuration or definition file is not found.

    Attributes:
        path: Path to the file that was not found
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize FileNotFoundError with path and message.

        Args:
            path: Path to the file that was not found
            message: Descriptive error message, optionally with suggestions
        """
        self.path = path
        self.message = message
        super().__init__(f"File not found: {path}\n{message}")


class DeploymentError(EcsDeployError):
    """Base exception for failures while executing a deploy.

    Attributes:
        operation: Deploy step that failed (e.g. "describe", "update", "release")
        message: Human-readable error message
    """

    def __init__(self, operation: str, message: str) -> None:
        """Create a deployment error for a named operation."""
        self.operation = operation
        self.message = message
        super().__init__(f"Deployment operation '{operation}' failed: {message}")


class NotFoundError(DeploymentError):
    """Raised when the platform reports no matching resource."""

    def __init__(self, kind: str, identifier: str, operation: str = "describe") -> None:
        """Create a not-found error for a resource kind and identifier."""
        self.kind = kind
        self.identifier = identifier
        super().__init__(operation, f"{kind} '{identifier}' not found")


class AmbiguousError(DeploymentError):
    """Raised when an identity cannot be resolved to a single resource."""

    def __init__(
        self,
        kind: str,
        identifier: str,
        candidates: Sequence[str],
        operation: str = "describe",
    ) -> None:
        """Create an ambiguity error naming the candidates found."""
        self.kind = kind
        self.identifier = identifier
        self.candidates = list(candidates)
        super().__init__(
            operation,
            f"{kind} '{identifier}' is ambiguous; candidates: "
            f"{', '.join(self.candidates) or '(none)'}",
        )


class TransportError(DeploymentError):
    """Raised for network or API-level failures talking to AWS.

    Eligible for retry by the caller; never retried inside ecsdeploy.

    Attributes:
        code: AWS error code, when the API returned one
    """

    def __init__(self, operation: str, message: str, code: str | None = None) -> None:
        """Create a transport error with an optional AWS error code."""
        self.code = code
        super().__init__(operation, message)


class RegistrationError(DeploymentError):
    """Raised when registering a new task definition revision is rejected."""

    def __init__(self, family: str, message: str) -> None:
        """Create a registration error for a task definition family."""
        self.family = family
        super().__init__("register", f"task definition '{family}': {message}")


class UpdateRejectedError(DeploymentError):
    """Raised when the platform rejects a service update or release request.

    Attributes:
        payload: Diagnostic payload reported by the platform
    """

    def __init__(
        self,
        message: str,
        payload: dict[str, Any] | None = None,
        operation: str = "update",
    ) -> None:
        """Create an update rejection carrying the platform diagnostics."""
        self.payload = payload or {}
        super().__init__(operation, message)


class ReleaseFailedError(DeploymentError):
    """Raised when a blue/green release reaches a failed terminal state.

    Attributes:
        deployment_id: Release controller deployment identifier
        status: Terminal status reported by the controller
        payload: Diagnostic payload reported by the controller
    """

    def __init__(
        self,
        deployment_id: str,
        status: str,
        payload: dict[str, Any] | None = None,
    ) -> None:
        """Create a release failure for a deployment id and terminal status."""
        self.deployment_id = deployment_id
        self.status = status
        self.payload = payload or {}
        detail = self.payload.get("message")
        message = f"deployment {deployment_id} finished with status {status}"
        if detail:
            message += f": {detail}"
        super().__init__("release", message)


class BindingNotFoundError(DeploymentError):
    """Raised when no deployment group binds the cluster and service.

    Attributes:
        candidates: "application/deployment-group" names that were inspected
    """

    def __init__(self, cluster: str, service: str, candidates: Sequence[str]) -> None:
        """Create a binding-not-found error naming the inspected groups."""
        self.cluster = cluster
        self.service = service
        self.candidates = list(candidates)
        inspected = ", ".join(self.candidates) if self.candidates else "(none)"
        super().__init__(
            "discover",
            f"no CodeDeploy deployment group is bound to service '{service}' "
            f"in cluster '{cluster}'; inspected: {inspected}",
        )


class BindingAmbiguousError(DeploymentError):
    """Raised when more than one deployment group binds the cluster and service.

    Attributes:
        matches: "application/deployment-group" names that matched
    """

    def __init__(self, cluster: str, service: str, matches: Sequence[str]) -> None:
        """Create a binding-ambiguous error naming every match."""
        self.cluster = cluster
        self.service = service
        self.matches = list(matches)
        super().__init__(
            "discover",
            f"service '{service}' in cluster '{cluster}' is bound to multiple "
            f"CodeDeploy deployment groups: {', '.join(self.matches)}",
        )


class StabilityTimeoutError(DeploymentError):
    """Raised when a wait loop exceeds its bound without a terminal state.

    The deployment itself may still converge; check its status out-of-band.
    """

    def __init__(self, operation: str, description: str, timeout: float) -> None:
        """Create a timeout error for a waited-on operation."""
        self.description = description
        self.timeout = timeout
        super().__init__(
            operation,
            f"{description} did not reach a terminal state within {timeout:g}s",
        )


class DeployCancelledError(DeploymentError):
    """Raised when the caller cancels a deploy.

    ``submitted`` tells whether the update or release had already been sent
    when the cancellation was observed. Submitted work is left untouched.
    """

    def __init__(
        self, operation: str, description: str, submitted: bool = True
    ) -> None:
        """Create a cancellation error for a waited-on or pending operation."""
        self.description = description
        self.submitted = submitted
        if submitted:
            message = f"wait for {description} was cancelled"
        else:
            message = f"{description} was cancelled before submission"
        super().__init__(operation, message)
