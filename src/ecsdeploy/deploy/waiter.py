"""Bounded, cancellable polling and pre-submission cancellation checks."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import TypeVar

from ecsdeploy.lib.errors import DeployCancelledError, StabilityTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def raise_if_cancelled(
    cancel_event: threading.Event | None, operation: str, description: str
) -> None:
    """Stop before a mutating call once the caller has cancelled.

    Raises:
        DeployCancelledError: With ``submitted`` False, if the event is set
    """
    if cancel_event is not None and cancel_event.is_set():
        raise DeployCancelledError(operation, description, submitted=False)


def poll_until(
    check: Callable[[], T | None],
    *,
    operation: str,
    description: str,
    timeout: float,
    interval: float,
    cancel_event: threading.Event | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    """Call ``check`` until it returns a value, the deadline passes or the
    caller cancels.

    ``check`` returns None while the platform is still converging and a
    value once a terminal state is reached; it may raise to report a failed
    terminal state. Cancellation is observed between polls and while
    sleeping, so a set event aborts within one poll.

    Args:
        check: Polled once per interval
        operation: Deploy step name for raised errors
        description: What is being waited on, for messages
        timeout: Upper bound in seconds
        interval: Seconds between polls
        cancel_event: Set by the caller to abort the wait
        clock: Monotonic time source

    Returns:
        The first non-None value returned by ``check``

    Raises:
        StabilityTimeoutError: If the deadline passes first
        DeployCancelledError: If ``cancel_event`` is set
    """
    event = cancel_event if cancel_event is not None else threading.Event()
    deadline = clock() + timeout
    attempt = 0

    while True:
        if event.is_set():
            raise DeployCancelledError(operation, description)

        attempt += 1
        result = check()
        if result is not None:
            logger.debug(
                "%s reached a terminal state after %d polls", description, attempt
            )
            return result

        remaining = deadline - clock()
        if remaining <= 0:
            raise StabilityTimeoutError(operation, description, timeout)

        logger.debug(
            "Waiting for %s (poll %d, %.0fs left)", description, attempt, remaining
        )
        if event.wait(min(interval, remaining)):
            raise DeployCancelledError(operation, description)
