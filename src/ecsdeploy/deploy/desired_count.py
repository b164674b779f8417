"""Desired count policy."""

from __future__ import annotations

from ecsdeploy.models.deployment import (
    DEFAULT_DESIRED_COUNT,
    DeployOptions,
    SchedulingStrategy,
    ServiceSnapshot,
)


def calc_desired_count(
    current: int | None,
    scheduling_strategy: str | None,
    requested: int | None,
    sentinel: int = DEFAULT_DESIRED_COUNT,
) -> int | None:
    """Decide the desired count to submit, or None to submit none.

    Rules, first match wins:

    1. DAEMON services have no meaningful count: None.
    2. Nothing requested: None, the service keeps its count implicitly.
    3. The keep-current sentinel echoes the current count back, which may
       itself be None.
    4. Otherwise the requested count verbatim.
    """
    if scheduling_strategy == SchedulingStrategy.DAEMON.value:
        return None
    if requested is None:
        return None
    if requested == sentinel:
        return current
    return requested


def decide_desired_count(
    snapshot: ServiceSnapshot, options: DeployOptions
) -> int | None:
    """Apply :func:`calc_desired_count` to a snapshot and deploy options."""
    return calc_desired_count(
        snapshot.desired_count,
        snapshot.scheduling_strategy,
        options.desired_count,
    )
