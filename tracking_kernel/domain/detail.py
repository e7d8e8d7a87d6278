"""Per-unit detail queries: step history, what's next, timeline and navigation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from tracking_kernel.domain.projection import BatchView
from tracking_kernel.domain.types import (
    ProductionBatch,
    ProductionStep,
    ProductionUnit,
    StepStatus,
    ViewBucket,
)
from tracking_kernel.domain.unit_status import (
    LastCompletedStep,
    completion_date,
    is_complete,
    last_completed_step,
    next_pending_steps,
)
from tracking_kernel.exceptions import UnitNotFoundError


@dataclass(frozen=True)
class StepProgress:
    """One row of a unit's step history."""

    step: ProductionStep
    status: StepStatus
    completed_date: datetime | None = None
    completed_by: str | None = None


@dataclass(frozen=True)
class TimelineSpan:
    """Date range covered by a unit's recorded step completions."""

    start: datetime
    end: datetime

    @property
    def total_days(self) -> int:
        # Inclusive day count, at least one day.
        return (self.end.date() - self.start.date()).days + 1


@dataclass(frozen=True)
class UnitDetail:
    unit: ProductionUnit
    steps: tuple[StepProgress, ...]
    last_completed: LastCompletedStep | None
    next_pending: tuple[ProductionStep, ...]
    is_complete: bool
    completion_date: datetime | None
    timeline: TimelineSpan | None


@dataclass(frozen=True)
class UnitPosition:
    """Where a unit sits within one projected view (1-based)."""

    current: int
    total: int
    previous_unit_id: str | None = None
    next_unit_id: str | None = None


def unit_timeline(unit: ProductionUnit) -> TimelineSpan | None:
    dates = [e.completed_date for e in unit.step_statuses if e.completed_date is not None]
    if not dates:
        return None
    return TimelineSpan(start=min(dates), end=max(dates))


def unit_detail(
    batch: ProductionBatch,
    unit_id: str,
    pending_limit: int | None = None,
) -> UnitDetail:
    """Full step history and remaining work for one unit.

    Raises:
        UnitNotFoundError: ``unit_id`` is not in the batch.
    """
    unit = batch.get_unit(unit_id)
    if unit is None:
        raise UnitNotFoundError(unit_id, batch.batch_id)

    config = batch.config
    rows = []
    for step in config.ordered_steps():
        entry = unit.status_for(step.step_id)
        if entry is None:
            rows.append(StepProgress(step=step, status=StepStatus.NOT_STARTED))
        else:
            rows.append(
                StepProgress(
                    step=step,
                    status=entry.status,
                    completed_date=entry.completed_date,
                    completed_by=entry.completed_by,
                )
            )

    return UnitDetail(
        unit=unit,
        steps=tuple(rows),
        last_completed=last_completed_step(unit, config),
        next_pending=next_pending_steps(unit, config, pending_limit),
        is_complete=is_complete(unit),
        completion_date=completion_date(unit),
        timeline=unit_timeline(unit),
    )


def unit_position(batch_view: BatchView, view: ViewBucket, unit_id: str) -> UnitPosition:
    """Position of a unit within a view, with its neighbours for navigation.

    A unit that is not in the view gets ``current == 0``.
    """
    units = batch_view.bucket(view)
    ids = [u.unit_id for u in units]
    if unit_id not in ids:
        return UnitPosition(current=0, total=len(ids))
    index = ids.index(unit_id)
    return UnitPosition(
        current=index + 1,
        total=len(ids),
        previous_unit_id=ids[index - 1] if index > 0 else None,
        next_unit_id=ids[index + 1] if index < len(ids) - 1 else None,
    )
