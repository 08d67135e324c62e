"""
Ticketing hooks shared by the task lifecycle operations.

Lifecycle operations persist their local change first and only then call
the sync service through ``run_ticketing``, which never raises.
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from ticketsync.application.sync.results import NOT_AVAILABLE, ConversionOutcome, SyncOutcome


logger = logging.getLogger("TaskLifecycle")

OutcomeT = TypeVar("OutcomeT", SyncOutcome, ConversionOutcome)


def run_ticketing(description: str, call: Callable[[], OutcomeT]) -> OutcomeT | None:
    """
    Run a sync service call as a best-effort side effect.

    Args:
        description: What the call does, for log lines ("delete ticket for task 3")
        call: Zero-argument call into the sync service

    Returns:
        The outcome, or None if the call raised.
    """
    try:
        outcome = call()
    except Exception as e:
        logger.warning(f"Warning: Could not {description}: {e}")
        return None

    report_outcome(description, outcome)
    return outcome


def report_outcome(description: str, outcome: SyncOutcome | ConversionOutcome) -> None:
    if isinstance(outcome, ConversionOutcome):
        for warning in outcome.warnings:
            if NOT_AVAILABLE not in warning:
                logger.warning(f"Warning: {description}: {warning}")
        if outcome.success:
            logger.info(f"Done: {description}")
        return

    if outcome.success:
        key = f" ({outcome.ticket_key})" if outcome.ticket_key else ""
        logger.info(f"Done: {description}{key}")
    elif outcome.is_not_available:
        logger.debug(f"Skipped {description}: ticketing integration not available")
    else:
        logger.warning(f"Warning: Could not {description}: {outcome.error}")
