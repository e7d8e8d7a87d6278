"""
Unit status queries (``tracking_kernel.domain.unit_status``).

Responsibility
--------------
Pure, side-effect-free derivations over a single unit: completeness, last
completed step, overall completion date and the steps still pending.
Every derived field stored elsewhere (``date_fully_completed``, projection
bucket membership) is computed through these functions and nowhere else.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  Functions never mutate their input
and return the same answer for the same unit.

Invariants enforced
-------------------
* A unit is complete iff every step status is Complete or N/A.
* Completion date is the latest ``completed_date`` among Complete steps;
  N/A steps contribute no date.
* ``check_unit_conformance`` guards the one-status-per-step rule.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime

from tracking_kernel.domain.types import (
    ProductionStep,
    ProductionUnit,
    ProjectTypeConfig,
    StepStatus,
)
from tracking_kernel.exceptions import ConfigurationMismatchError


@dataclass(frozen=True)
class LastCompletedStep:
    """The highest-order Complete step of a unit."""

    step: ProductionStep
    date: datetime | None
    actor: str | None


def is_complete(unit: ProductionUnit) -> bool:
    """True iff no step is Not Started or In Progress."""
    return all(entry.status.is_resolved for entry in unit.step_statuses)


def last_completed_step(
    unit: ProductionUnit,
    config: ProjectTypeConfig,
) -> LastCompletedStep | None:
    """Return the Complete step with the highest order, or None."""
    best: LastCompletedStep | None = None
    for entry in unit.step_statuses:
        if entry.status is not StepStatus.COMPLETE:
            continue
        step = config.get_step(entry.step_id)
        if step is None:
            continue
        if best is None or step.order > best.step.order:
            best = LastCompletedStep(
                step=step,
                date=entry.completed_date,
                actor=entry.completed_by,
            )
    return best


def completion_date(unit: ProductionUnit) -> datetime | None:
    """Latest completion timestamp of a complete unit; None otherwise."""
    if not is_complete(unit):
        return None
    dates = [
        entry.completed_date
        for entry in unit.step_statuses
        if entry.status is StepStatus.COMPLETE and entry.completed_date is not None
    ]
    return max(dates, default=None)


def next_pending_steps(
    unit: ProductionUnit,
    config: ProjectTypeConfig,
    limit: int | None = None,
) -> tuple[ProductionStep, ...]:
    """First ``limit`` Not Started steps by ascending order.

    Steps with no status entry on the unit count as Not Started.
    """
    if is_complete(unit):
        return ()
    pending = []
    for step in config.ordered_steps():
        entry = unit.status_for(step.step_id)
        if entry is None or entry.status is StepStatus.NOT_STARTED:
            pending.append(step)
    if limit is not None:
        pending = pending[: max(limit, 0)]
    return tuple(pending)


def _step_set_mismatch(
    unit: ProductionUnit,
    config: ProjectTypeConfig,
) -> tuple[tuple[str, ...], tuple[str, ...], tuple[str, ...]]:
    counts = Counter(entry.step_id for entry in unit.step_statuses)
    present = set(counts)
    expected = config.step_ids
    return (
        tuple(sorted(expected - present)),
        tuple(sorted(present - expected)),
        tuple(sorted(step_id for step_id, n in counts.items() if n > 1)),
    )


def conforms(unit: ProductionUnit, config: ProjectTypeConfig) -> bool:
    """True iff the unit holds exactly one status per configured step."""
    return not any(_step_set_mismatch(unit, config))


def check_unit_conformance(unit: ProductionUnit, config: ProjectTypeConfig) -> None:
    """Verify the unit holds exactly one status per configured step.

    Raises:
        ConfigurationMismatchError: listing missing, extra and duplicated
            step ids.
    """
    missing, extra, duplicated = _step_set_mismatch(unit, config)
    if missing or extra or duplicated:
        raise ConfigurationMismatchError(
            unit.unit_id,
            missing=missing,
            extra=extra,
            duplicated=duplicated,
        )
