"""CLI command for deploying an ECS service.

Implements 'ecsdeploy deploy': roll the configured service to a new task
definition and desired count, natively or through CodeDeploy.
"""

from __future__ import annotations

import signal
import sys
import threading
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import click

from ecsdeploy.config.env_loader import load_env_file
from ecsdeploy.config.loader import ConfigLoader
from ecsdeploy.deploy.orchestrator import DeployOrchestrator
from ecsdeploy.lib.errors import (
    ConfigError,
    DeployCancelledError,
    DeploymentError,
    FileNotFoundError,
)
from ecsdeploy.lib.logging_config import get_logger, setup_logging
from ecsdeploy.models.deployment import (
    DeployOptions,
    DeployResult,
    DeployStatus,
    RollbackEvent,
)

logger = get_logger(__name__)

EXIT_CONFIG_ERROR = 2
EXIT_DEPLOY_ERROR = 3
EXIT_CANCELLED = 130


@contextmanager
def handle_deployment_errors() -> Generator[None, None, None]:
    """Context manager for consistent error handling in the deploy command.

    Exit codes:
        2: Configuration error
        3: Deployment/execution error
        130: Deploy cancelled by the operator
    """
    try:
        yield
    except (ConfigError, FileNotFoundError) as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except DeployCancelledError as e:
        logger.warning(f"Deploy cancelled: {e}")
        if e.submitted:
            click.secho(
                "Cancelled: the submitted deployment was left running",
                fg="yellow",
                err=True,
            )
        else:
            click.secho("Cancelled: no changes were made", fg="yellow", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(EXIT_CANCELLED)
    except DeploymentError as e:
        logger.error(f"Deployment error: {e}")
        click.secho(f"Error: {e.operation} failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(EXIT_DEPLOY_ERROR)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(EXIT_DEPLOY_ERROR)


@contextmanager
def cancel_on_interrupt() -> Generator[threading.Event, None, None]:
    """Install a SIGINT handler that sets a cancellation event.

    The deploy checks the event before every mutating call and while
    waiting, so an interrupt before submission changes nothing. The previous
    handler is restored on exit. Outside the main thread no handler can be
    installed and the event is never set by a signal.
    """
    event = threading.Event()
    if threading.current_thread() is not threading.main_thread():
        yield event
        return

    def _interrupt(signum: int, frame: Any) -> None:
        logger.warning("Interrupt received, cancelling deploy")
        event.set()

    previous = signal.signal(signal.SIGINT, _interrupt)
    try:
        yield event
    finally:
        signal.signal(signal.SIGINT, previous)


def _parse_rollback_events(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> tuple[RollbackEvent, ...]:
    if not value:
        return ()
    events: list[RollbackEvent] = []
    for item in value.split(","):
        name = item.strip().upper()
        if not name:
            continue
        try:
            events.append(RollbackEvent(name))
        except ValueError as exc:
            choices = ", ".join(event.value for event in RollbackEvent)
            raise click.BadParameter(
                f"unknown rollback event {item.strip()!r}; choose from {choices}"
            ) from exc
    return tuple(events)


@click.command()
@click.option(
    "--tasks",
    "desired_count",
    type=click.IntRange(min=-1),
    default=None,
    help="Desired task count (-1 keeps the current count)",
)
@click.option(
    "--latest-task-definition",
    is_flag=True,
    help="Deploy the latest registered revision of the service's family",
)
@click.option(
    "--skip-task-definition",
    is_flag=True,
    help="Keep the service's current task definition revision",
)
@click.option(
    "--force-new-deployment",
    is_flag=True,
    help="Start a new deployment even if nothing changed",
)
@click.option(
    "--no-wait",
    is_flag=True,
    help="Return as soon as the update or release is submitted",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be done without executing",
)
@click.option(
    "--suspend-auto-scaling/--resume-auto-scaling",
    "suspend_auto_scaling",
    default=None,
    help="Suspend or resume Application Auto Scaling for the service",
)
@click.option(
    "--rollback-events",
    callback=_parse_rollback_events,
    default=None,
    help="Comma-separated CodeDeploy auto-rollback events "
    "(e.g. DEPLOYMENT_FAILURE,DEPLOYMENT_STOP_ON_ALARM)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose debug logging",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress progress output",
)
@click.pass_context
def deploy(
    ctx: click.Context,
    desired_count: int | None,
    latest_task_definition: bool,
    skip_task_definition: bool,
    force_new_deployment: bool,
    no_wait: bool,
    dry_run: bool,
    suspend_auto_scaling: bool | None,
    rollback_events: tuple[RollbackEvent, ...],
    verbose: bool,
    quiet: bool,
) -> None:
    """Deploy the configured ECS service.

    By default the task definition file named in the configuration is
    registered as a new revision and rolled out.

    Example:

        ecsdeploy deploy

        ecsdeploy deploy --tasks 4 --latest-task-definition

        ecsdeploy deploy --skip-task-definition --tasks -1 --dry-run
    """
    if latest_task_definition and skip_task_definition:
        raise click.UsageError(
            "--latest-task-definition and --skip-task-definition "
            "are mutually exclusive"
        )

    if not quiet:
        setup_logging(verbose=verbose, quiet=quiet)

    obj = ctx.ensure_object(dict)
    config_path = obj.get("config_path") or "ecsdeploy.yml"
    envfile = obj.get("envfile")

    with handle_deployment_errors():
        if envfile:
            load_env_file(envfile)

        config = ConfigLoader().load_deploy_config(config_path)
        options = DeployOptions(
            desired_count=desired_count,
            latest_task_definition=latest_task_definition,
            skip_task_definition=skip_task_definition,
            force_new_deployment=force_new_deployment,
            no_wait=no_wait,
            dry_run=dry_run,
            suspend_auto_scaling=suspend_auto_scaling,
            rollback_events=rollback_events,
        )

        if not quiet:
            click.echo(
                f"Deploying service {config.service} in cluster {config.cluster}..."
            )

        orchestrator = DeployOrchestrator(config)
        with cancel_on_interrupt() as cancel_event:
            result = orchestrator.deploy(options, cancel_event=cancel_event)

        _display_result(result, quiet)


def _display_result(result: DeployResult, quiet: bool) -> None:
    """Print the deploy summary."""
    if quiet:
        click.echo(result.deployment_id or result.task_definition)
        return

    click.echo()
    if result.dry_run:
        click.secho("[DRY RUN] Would deploy:", fg="yellow")
        for line in result.summary:
            click.echo(f"  {line}")
        click.echo()
        click.secho("[DRY RUN] No changes were made", fg="yellow")
        return

    if result.status == DeployStatus.SUBMITTED:
        click.secho("Deployment Submitted", fg="green", bold=True)
    else:
        click.secho("Deployment Successful!", fg="green", bold=True)
    for line in result.summary:
        click.echo(f"  {line}")
    click.echo(f"  Status:           {result.status.value}")
    if result.deployment_id:
        click.echo(f"  Deployment ID:    {result.deployment_id}")
    click.echo()
