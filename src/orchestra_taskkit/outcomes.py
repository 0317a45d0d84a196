"""Outcome states and task-level state overrides.

Test runs report one terminal state per test case and per test suite. A
task that ran them still finishes normally; these helpers fold the reported
states into an optional override (WARNING or FAILED) that the host reads to
route the task, and count the outcomes for the summary line.

Mapping of a reported state to an override:

    ERROR   -> FAILED
    FAILED  -> FAILED if fail_on_failure else WARNING
    SKIPPED -> WARNING
    SUCCESS -> no override

Across several results the worst override wins (FAILED > WARNING > none).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class OutcomeState(str, Enum):
    """Terminal state of a test case, a test suite or a task."""

    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"
    ERROR = "ERROR"


_OVERRIDE_RANK = {OutcomeState.WARNING: 1, OutcomeState.FAILED: 2}


def map_outcome(state: OutcomeState, *, fail_on_failure: bool) -> OutcomeState | None:
    """Map one reported state to the override it asks for, if any."""
    if state == OutcomeState.ERROR:
        return OutcomeState.FAILED
    if state == OutcomeState.FAILED:
        return OutcomeState.FAILED if fail_on_failure else OutcomeState.WARNING
    if state in (OutcomeState.SKIPPED, OutcomeState.WARNING):
        return OutcomeState.WARNING
    return None


def worst(first: OutcomeState | None, second: OutcomeState | None) -> OutcomeState | None:
    """Return the more severe of two overrides."""
    if first is None:
        return second
    if second is None:
        return first
    return first if _OVERRIDE_RANK[first] >= _OVERRIDE_RANK[second] else second


def aggregate(
    states: Iterable[OutcomeState], *, fail_on_failure: bool
) -> OutcomeState | None:
    """Fold reported states into a single task-level override.

    The result does not depend on the order of ``states``.

    Args:
        states: Terminal states reported by the server.
        fail_on_failure: Treat FAILED results as hard failures.

    Returns:
        FAILED, WARNING, or None when everything succeeded.
    """
    override: OutcomeState | None = None
    for state in states:
        override = worst(override, map_outcome(state, fail_on_failure=fail_on_failure))
    return override


@dataclass(frozen=True)
class OutcomeCounts:
    """Number of results per outcome category."""

    total: int = 0
    success: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def summary(self) -> str:
        return (
            f"{self.total} test suites finished running, {self.success} in success, "
            f"{self.skipped} skipped, {self.failed} failed"
        )


def count_outcomes(states: Iterable[OutcomeState]) -> OutcomeCounts:
    """Count results by category. ERROR and FAILED both count as failed."""
    total = success = skipped = failed = 0
    for state in states:
        total += 1
        if state == OutcomeState.SUCCESS:
            success += 1
        elif state == OutcomeState.SKIPPED:
            skipped += 1
        elif state in (OutcomeState.ERROR, OutcomeState.FAILED):
            failed += 1
    return OutcomeCounts(total=total, success=success, skipped=skipped, failed=failed)


def log_outcome(logger: logging.Logger, label: str, state: OutcomeState) -> None:
    """Log a test result at a level matching its state."""
    if state == OutcomeState.ERROR:
        logger.error(f"Test '{label}' ended with ERROR")
    elif state == OutcomeState.FAILED:
        logger.warning(f"Test '{label}' ended with FAILED")
    elif state == OutcomeState.SKIPPED:
        logger.warning(f"Test '{label}' SKIPPED")
    else:
        logger.info(f"Test '{label}' ended with {state.value}")
