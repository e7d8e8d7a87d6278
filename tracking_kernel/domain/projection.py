"""
Batch view projection.

Partitions a batch into disjoint in-progress / completed / shipped views.
The partition is rebuilt from scratch on every call: a single linear pass
with no cached bucket state to drift from the units.

Classification order per unit: shipped, then complete, then in progress.
Shipped units therefore never appear in the other two views, whatever
their step statuses say.  A unit whose step statuses do not match the
batch configuration stays in progress until it is repaired.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from tracking_kernel.domain.types import (
    ProductionBatch,
    ProductionUnit,
    ProjectTypeConfig,
    StepStatus,
    TableColumn,
    ViewBucket,
)
from tracking_kernel.domain.unit_status import completion_date, conforms, is_complete

DEFAULT_PREVIEW_LIMIT = 5


@dataclass(frozen=True)
class BatchView:
    """Read model of a batch for display."""

    in_progress: tuple[ProductionUnit, ...] = ()
    completed: tuple[ProductionUnit, ...] = ()
    shipped: tuple[ProductionUnit, ...] = ()

    def bucket(self, view: ViewBucket) -> tuple[ProductionUnit, ...]:
        if view is ViewBucket.IN_PROGRESS:
            return self.in_progress
        if view is ViewBucket.COMPLETED:
            return self.completed
        return self.shipped

    def bucket_of(self, unit_id: str) -> ViewBucket | None:
        for view in ViewBucket:
            if any(u.unit_id == unit_id for u in self.bucket(view)):
                return view
        return None

    def counts(self) -> dict[ViewBucket, int]:
        return {view: len(self.bucket(view)) for view in ViewBucket}


@dataclass(frozen=True)
class StepPreview:
    """Current status of one step on one selected unit."""

    unit_id: str
    serial: str
    status: StepStatus


def classify(unit: ProductionUnit, config: ProjectTypeConfig) -> ViewBucket:
    """Bucket for one unit.  A unit out of step with ``config`` is never complete."""
    if unit.is_shipped:
        return ViewBucket.SHIPPED
    if is_complete(unit) and conforms(unit, config):
        return ViewBucket.COMPLETED
    return ViewBucket.IN_PROGRESS


def project(batch: ProductionBatch) -> BatchView:
    """Partition the batch's units into the three display buckets."""
    in_progress: list[ProductionUnit] = []
    completed: list[ProductionUnit] = []
    shipped: list[ProductionUnit] = []

    for unit in batch.units:
        view = classify(unit, batch.config)
        if view is ViewBucket.SHIPPED:
            shipped.append(unit)
        elif view is ViewBucket.COMPLETED:
            derived = completion_date(unit)
            if unit.date_fully_completed != derived:
                unit = replace(unit, date_fully_completed=derived)
            completed.append(unit)
        else:
            if unit.date_fully_completed is not None:
                unit = replace(unit, date_fully_completed=None)
            in_progress.append(unit)

    return BatchView(
        in_progress=tuple(in_progress),
        completed=tuple(completed),
        shipped=tuple(shipped),
    )


def shipped_incomplete_unit_ids(batch: ProductionBatch) -> tuple[str, ...]:
    """Shipped units whose steps are not all resolved.

    ``mark_shipped`` never produces these; they come from data recorded
    before shipment required completion, or from a step regressed after
    shipping.
    """
    return tuple(u.unit_id for u in batch.units if u.is_shipped and not is_complete(u))


def default_selection(batch_view: BatchView, view: ViewBucket) -> frozenset[str]:
    """Units pre-selected when a view is opened: all of them, except shipped."""
    if view is ViewBucket.SHIPPED:
        return frozenset()
    return frozenset(u.unit_id for u in batch_view.bucket(view))


def preview_step_status(
    batch: ProductionBatch,
    step_id: str,
    selected_unit_ids: Iterable[str],
    limit: int = DEFAULT_PREVIEW_LIMIT,
) -> tuple[StepPreview, ...]:
    """Current status of ``step_id`` for the first ``limit`` selected units."""
    wanted = set(selected_unit_ids)
    previews: list[StepPreview] = []
    for unit in batch.units:
        if len(previews) >= limit:
            break
        if unit.unit_id not in wanted:
            continue
        entry = unit.status_for(step_id)
        previews.append(
            StepPreview(
                unit_id=unit.unit_id,
                serial=unit.serial_numbers.primary,
                status=entry.status if entry else StepStatus.NOT_STARTED,
            )
        )
    return tuple(previews)


def columns_for(config: ProjectTypeConfig, view: ViewBucket) -> tuple[TableColumn, ...]:
    """Table columns configured for one view, in declaration order."""
    return tuple(c for c in config.table_columns if view in c.views)
