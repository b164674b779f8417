"""Task definition resolution and local definition file rendering."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from ecsdeploy.config.env_loader import substitute_env_vars
from ecsdeploy.deploy.clients import AWSClients, api_errors
from ecsdeploy.lib.errors import (
    ConfigError,
    FileNotFoundError,
    NotFoundError,
    RegistrationError,
)
from ecsdeploy.lib.identity import parse_task_definition
from ecsdeploy.models.deployment import DeployOptions, TaskDefinitionRef

logger = logging.getLogger(__name__)

# Attributes returned by DescribeTaskDefinition that RegisterTaskDefinition rejects.
READ_ONLY_ATTRIBUTES = (
    "taskDefinitionArn",
    "revision",
    "status",
    "requiresAttributes",
    "compatibilities",
    "registeredAt",
    "registeredBy",
    "deregisteredAt",
)


def load_task_definition(
    path: Path, env: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Render a JSON or YAML task definition file into a register request.

    ``${VAR}`` references are substituted first. A top-level
    ``taskDefinition`` wrapper is unwrapped and read-only attributes dropped.

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigError: If the file cannot be parsed or lacks required keys
    """
    if not path.is_file():
        raise FileNotFoundError(
            str(path), "Check the task_definition path in the configuration."
        )

    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            field="task_definition", message=f"Failed to read {path}: {exc}"
        ) from exc

    text = substitute_env_vars(raw_text, env)
    try:
        if path.suffix.lower() == ".json":
            document = json.loads(text)
        else:
            document = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(
            field="task_definition", message=f"Invalid task definition {path}: {exc}"
        ) from exc

    if isinstance(document, dict) and isinstance(document.get("taskDefinition"), dict):
        document = document["taskDefinition"]
    if not isinstance(document, dict):
        raise ConfigError(
            field="task_definition",
            message=f"Task definition {path} must be a mapping",
        )

    for attribute in READ_ONLY_ATTRIBUTES:
        document.pop(attribute, None)

    if not isinstance(document.get("family"), str) or not document["family"]:
        raise ConfigError(
            field="task_definition.family",
            message=f"Task definition {path} has no family",
        )
    if not isinstance(document.get("containerDefinitions"), list):
        raise ConfigError(
            field="task_definition.containerDefinitions",
            message=f"Task definition {path} has no containerDefinitions list",
        )
    return document


class TaskDefinitionResolver:
    """Decide which task definition revision a deploy rolls out."""

    def __init__(self, clients: AWSClients, definition_path: Path | None) -> None:
        self._ecs = clients.ecs
        self._definition_path = definition_path

    def resolve(
        self, current: TaskDefinitionRef, options: DeployOptions
    ) -> TaskDefinitionRef:
        """Resolve the revision to deploy.

        Registers the local definition when neither latest nor skip is
        requested, looks up the newest revision of the current family for
        latest, and otherwise returns the active revision unchanged.
        """
        if options.register_task_definition:
            return self.register(dry_run=options.dry_run)
        if options.latest_task_definition:
            return self.latest(current.family)
        logger.info("Keeping current task definition %s", current)
        return current

    def latest(self, family: str) -> TaskDefinitionRef:
        """Return the newest ACTIVE revision of a task definition family.

        Raises:
            NotFoundError: If the family has no active revision
            TransportError: If the API call fails
        """
        request: dict[str, Any] = {
            "familyPrefix": family,
            "status": "ACTIVE",
            "sort": "DESC",
        }
        while True:
            with api_errors("list task definitions"):
                response = self._ecs.list_task_definitions(**request)
            # familyPrefix also matches longer family names; keep exact ones.
            for arn in response.get("taskDefinitionArns") or []:
                if parse_task_definition(arn)[0] == family:
                    logger.info("Latest task definition is %s", arn)
                    return TaskDefinitionRef.from_arn(arn)
            next_token = response.get("nextToken")
            if not next_token:
                break
            request["nextToken"] = next_token
        raise NotFoundError("task definition family", family, operation="resolve")

    def register(self, dry_run: bool = False) -> TaskDefinitionRef:
        """Register the local definition file as a new revision.

        On dry run the file is rendered and validated but not registered,
        and a pending reference is returned.

        Raises:
            ConfigError: If no definition file is configured or it is invalid
            FileNotFoundError: If the file does not exist
            RegistrationError: If ECS rejects the definition
            TransportError: If the API call fails
        """
        if self._definition_path is None:
            raise ConfigError(
                field="task_definition",
                message="A task definition file is required to register a "
                "new revision; use --latest-task-definition or "
                "--skip-task-definition otherwise",
            )
        document = load_task_definition(self._definition_path)
        family = document["family"]

        if dry_run:
            logger.info("[DRY RUN] Would register task definition %s", family)
            return TaskDefinitionRef(family=family)

        logger.info("Registering task definition %s", family)

        def _rejected(message: str, payload: dict[str, Any]) -> Exception:
            return RegistrationError(family, message)

        with api_errors("register", rejected=_rejected):
            response = self._ecs.register_task_definition(**document)

        registered = response.get("taskDefinition") or {}
        arn = registered.get("taskDefinitionArn")
        if not arn:
            raise RegistrationError(family, "response carried no taskDefinitionArn")
        logger.info("Registered task definition %s", arn)
        return TaskDefinitionRef.from_arn(arn)
