"""AWS client aggregate and API error translation.

The deploy engine only talks to AWS through the three clients held by
:class:`AWSClients`, so tests can swap in mocks for each independently.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Generator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError, ParamValidationError

from ecsdeploy.lib.errors import TransportError
from ecsdeploy.models.config import DeployConfig

logger = logging.getLogger(__name__)

# ECS / CodeDeploy error codes that mean the platform refused the request.
REJECTION_CODES = frozenset(
    {
        "AccessDeniedException",
        "ClientException",
        "InvalidParameterException",
        "PlatformTaskDefinitionIncompatibilityException",
        "PlatformUnknownException",
        "ServiceNotActiveException",
        "ServiceNotFoundException",
        "UnsupportedFeatureException",
        "DeploymentLimitExceededException",
        "DeploymentGroupDoesNotExistException",
        "ApplicationDoesNotExistException",
        "InvalidRevisionException",
        "InvalidAutoRollbackConfigException",
    }
)


@dataclass
class AWSClients:
    """boto3 clients used by a deploy.

    Attributes:
        ecs: ECS client (service control and task definition registry)
        application_autoscaling: Application Auto Scaling client
        codedeploy: CodeDeploy client (external release controller)
    """

    ecs: Any
    application_autoscaling: Any
    codedeploy: Any


def create_clients(config: DeployConfig, **client_kwargs: Any) -> AWSClients:
    """Create boto3 clients for the configured region and profile."""
    session_kwargs: dict[str, Any] = {}
    if config.profile:
        session_kwargs["profile_name"] = config.profile
    if config.region:
        session_kwargs["region_name"] = config.region

    session = boto3.Session(**session_kwargs)
    logger.debug(
        "Creating AWS clients (region=%s, profile=%s)",
        session.region_name,
        config.profile,
    )
    return AWSClients(
        ecs=session.client("ecs", **client_kwargs),
        application_autoscaling=session.client(
            "application-autoscaling", **client_kwargs
        ),
        codedeploy=session.client("codedeploy", **client_kwargs),
    )


def error_code(exc: ClientError) -> str:
    """Return the AWS error code of a ClientError."""
    return str(exc.response.get("Error", {}).get("Code", ""))


def error_message(exc: ClientError) -> str:
    """Return the AWS error message of a ClientError."""
    return str(exc.response.get("Error", {}).get("Message", "")) or str(exc)


@contextmanager
def api_errors(
    operation: str,
    rejected: Callable[[str, dict[str, Any]], Exception] | None = None,
    rejection_codes: Collection[str] = REJECTION_CODES,
) -> Generator[None, None, None]:
    """Translate botocore failures raised inside the block.

    Args:
        operation: Deploy step name reported in the error
        rejected: Builds the step's rejection error from a message and the
            error payload; without it every failure is a TransportError
        rejection_codes: Error codes treated as platform refusals

    Raises:
        TransportError: For network failures and non-rejection API errors
    """
    try:
        yield
    except ClientError as exc:
        code = error_code(exc)
        if rejected is not None and code in rejection_codes:
            payload = dict(exc.response.get("Error", {}))
            raise rejected(error_message(exc), payload) from exc
        raise TransportError(operation, error_message(exc), code=code) from exc
    except ParamValidationError as exc:
        if rejected is not None:
            raise rejected(str(exc), {}) from exc
        raise TransportError(operation, str(exc)) from exc
    except BotoCoreError as exc:
        raise TransportError(operation, str(exc)) from exc
