"""
Batch mutation engine (``tracking_kernel.domain.mutation``).

Responsibility
--------------
Creates units and applies operator actions to a batch snapshot: bulk step
status changes over a selection of units, shipment of completed units and
appending newly sequenced units.  Every operation returns a new batch; the
input snapshot is never modified.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  Time comes from an injected Clock.
Derived fields are recomputed through ``unit_status`` on every touch.

Invariants enforced
-------------------
* One status per configured step: checked for every selected unit before
  any change; a mismatch rejects the whole call.
* ``apply_status`` is all-or-nothing: an unknown step id rejects the call.
* ``date_fully_completed`` is recomputed for every touched unit.
* Only complete, conforming units are shipped; shipment is per-unit
  partial success.
* ``expected_version`` mismatch rejects the call before any change.

Failure modes
-------------
* ``UnknownStepIdError`` -- step not in the batch's configuration.
* ``ConfigurationMismatchError`` -- a selected unit does not conform.
* ``DuplicateUnitError`` -- appended unit id already in the batch.
* ``StaleBatchError`` -- caller's snapshot is out of date.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from uuid import uuid4

from tracking_kernel.domain.clock import Clock
from tracking_kernel.domain.sequencer import generate_serials
from tracking_kernel.domain.step_workflow import classify_transition
from tracking_kernel.domain.types import (
    ProductionBatch,
    ProductionUnit,
    ProjectTypeConfig,
    SerialNumbers,
    StepStatus,
    UnitStepStatus,
)
from tracking_kernel.domain.unit_status import (
    check_unit_conformance,
    completion_date,
    conforms,
    is_complete,
)
from tracking_kernel.domain.workflow import Transition
from tracking_kernel.exceptions import (
    DuplicateUnitError,
    StaleBatchError,
    UnknownStepIdError,
)
from tracking_kernel.logging_config import LogContext, get_logger

logger = get_logger("domain.mutation")


# =============================================================================
# Result types
# =============================================================================


@dataclass(frozen=True)
class AppliedTransition:
    """One step-status change made on one unit."""

    unit_id: str
    step_id: str
    from_status: StepStatus
    to_status: StepStatus
    transition: Transition

    @property
    def is_correction(self) -> bool:
        return self.transition.correction


@dataclass(frozen=True)
class StatusApplication:
    """Outcome of ``apply_status``."""

    batch: ProductionBatch
    touched_unit_ids: tuple[str, ...] = ()
    transitions: tuple[AppliedTransition, ...] = ()
    unmatched_unit_ids: tuple[str, ...] = ()  # selected but not in the batch

    @property
    def corrections(self) -> tuple[AppliedTransition, ...]:
        return tuple(t for t in self.transitions if t.is_correction)


class ShipSkipReason(str, Enum):
    """Why a selected unit was not shipped."""

    NOT_COMPLETE = "not_complete"
    ALREADY_SHIPPED = "already_shipped"
    UNKNOWN_UNIT = "unknown_unit"
    CONFIGURATION_MISMATCH = "configuration_mismatch"


@dataclass(frozen=True)
class ShipPreconditionViolation:
    """A selected unit that was skipped by ``mark_shipped``."""

    unit_id: str
    reason: ShipSkipReason
    code: str = "SHIP_PRECONDITION_VIOLATION"


@dataclass(frozen=True)
class ShipmentResult:
    """Outcome of ``mark_shipped``."""

    batch: ProductionBatch
    shipped_unit_ids: tuple[str, ...] = ()
    violations: tuple[ShipPreconditionViolation, ...] = ()

    @property
    def skipped_unit_ids(self) -> tuple[str, ...]:
        return tuple(v.unit_id for v in self.violations)


# =============================================================================
# Helpers
# =============================================================================


def _check_version(batch: ProductionBatch, expected_version: int | None) -> None:
    if expected_version is not None and expected_version != batch.version:
        raise StaleBatchError(batch.batch_id, expected_version, batch.version)


def _dedupe(ids: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(ids))


def refresh_derived_fields(unit: ProductionUnit) -> ProductionUnit:
    """Recompute ``date_fully_completed`` from the unit's step statuses."""
    derived = completion_date(unit)
    if derived == unit.date_fully_completed:
        return unit
    return replace(unit, date_fully_completed=derived)


def initial_step_statuses(config: ProjectTypeConfig) -> tuple[UnitStepStatus, ...]:
    """One Not Started entry per configured step, in step order."""
    return tuple(UnitStepStatus(step_id=s.step_id) for s in config.ordered_steps())


# =============================================================================
# Creation
# =============================================================================


def create_units(
    config: ProjectTypeConfig,
    count: int,
    primary_seed: str,
    secondary_seed: str | None = None,
    *,
    id_factory: Callable[[], str] | None = None,
) -> tuple[ProductionUnit, ...]:
    """Create ``count`` fresh units with sequenced serials.

    Each serial field is sequenced independently from its own seed.  The
    secondary serial is set only when a secondary seed is given.
    """
    if count <= 0:
        return ()

    make_id = id_factory or (lambda: f"{config.type_id.value.lower()}_unit_{uuid4().hex}")
    primaries = generate_serials(primary_seed, count)
    secondaries = generate_serials(secondary_seed, count) if secondary_seed else ()

    units = tuple(
        ProductionUnit(
            unit_id=make_id(),
            serial_numbers=SerialNumbers(
                primary=primaries[i],
                secondary=secondaries[i] if secondaries else None,
            ),
            step_statuses=initial_step_statuses(config),
        )
        for i in range(count)
    )

    logger.info(
        "units_created",
        extra={
            "type_id": config.type_id.value,
            "count": count,
            "first_serial": primaries[0],
            "last_serial": primaries[-1],
        },
    )
    return units


def create_batch(
    config: ProjectTypeConfig,
    batch_id: str,
    batch_name: str = "",
    *,
    units: tuple[ProductionUnit, ...] = (),
    project_id: str | None = None,
    start_date: date | None = None,
    target_completion_date: date | None = None,
) -> ProductionBatch:
    """Create a batch bound to ``config`` for its whole lifetime."""
    batch = ProductionBatch(
        batch_id=batch_id,
        config=config,
        batch_name=batch_name or config.type_id.value,
        project_id=project_id,
        start_date=start_date,
        target_completion_date=target_completion_date,
    )
    if units:
        batch = add_units(batch, units)
    return batch


def add_units(
    batch: ProductionBatch,
    units: Iterable[ProductionUnit],
    *,
    start_date: date | None = None,
    target_completion_date: date | None = None,
    expected_version: int | None = None,
) -> ProductionBatch:
    """Append units to the batch and optionally update its dates.

    Raises:
        ConfigurationMismatchError: a unit does not match the batch config.
        DuplicateUnitError: a unit id is already present.
        StaleBatchError: ``expected_version`` differs from the batch.
    """
    _check_version(batch, expected_version)
    new_units = tuple(units)

    seen = set(batch.unit_ids)
    for unit in new_units:
        check_unit_conformance(unit, batch.config)
        if unit.unit_id in seen:
            raise DuplicateUnitError(unit.unit_id, batch.batch_id)
        seen.add(unit.unit_id)

    changes: dict = {}
    if new_units:
        changes["units"] = batch.units + tuple(refresh_derived_fields(u) for u in new_units)
    if start_date is not None:
        changes["start_date"] = start_date
    if target_completion_date is not None:
        changes["target_completion_date"] = target_completion_date
    if not changes:
        return batch

    logger.info(
        "units_added",
        extra={
            "batch_id": batch.batch_id,
            "added": len(new_units),
            "quantity": batch.quantity + len(new_units),
        },
    )
    return replace(batch, version=batch.version + 1, **changes)


# =============================================================================
# Status application
# =============================================================================


def apply_status(
    batch: ProductionBatch,
    step_id: str,
    new_status: StepStatus,
    actor: str,
    selected_unit_ids: Iterable[str],
    clock: Clock,
    *,
    expected_version: int | None = None,
) -> StatusApplication:
    """Set one step's status on every selected unit.

    Complete stamps ``completed_date`` with the clock and ``completed_by``
    with ``actor``; any other status leaves both untouched.  Selected ids
    that are not in the batch are reported, not raised.

    Raises:
        UnknownStepIdError: ``step_id`` is not in the batch configuration.
        ConfigurationMismatchError: a selected unit does not conform.
        StaleBatchError: ``expected_version`` differs from the batch.
    """
    _check_version(batch, expected_version)
    config = batch.config
    if config.get_step(step_id) is None:
        raise UnknownStepIdError(step_id, config.type_id.value)

    selected = _dedupe(selected_unit_ids)
    if not selected:
        return StatusApplication(batch=batch)

    wanted = set(selected)
    present = set(batch.unit_ids)
    unmatched = tuple(uid for uid in selected if uid not in present)

    # Validate everything first so a bad unit leaves the batch untouched.
    for unit in batch.units:
        if unit.unit_id in wanted:
            check_unit_conformance(unit, config)

    now = clock.now() if new_status is StepStatus.COMPLETE else None
    applied: list[AppliedTransition] = []
    touched: list[str] = []
    units: list[ProductionUnit] = []

    with LogContext.bind(batch_id=batch.batch_id, actor=actor):
        for unit in batch.units:
            if unit.unit_id not in wanted:
                units.append(unit)
                continue

            statuses = []
            for entry in unit.step_statuses:
                if entry.step_id != step_id:
                    statuses.append(entry)
                    continue
                transition = classify_transition(entry.status, new_status)
                applied.append(
                    AppliedTransition(
                        unit_id=unit.unit_id,
                        step_id=step_id,
                        from_status=entry.status,
                        to_status=new_status,
                        transition=transition,
                    )
                )
                if transition.correction:
                    logger.warning(
                        "step_status_correction",
                        extra={
                            "unit_id": unit.unit_id,
                            "step_id": step_id,
                            "from_status": entry.status.value,
                            "to_status": new_status.value,
                            "action": transition.action,
                        },
                    )
                if new_status is StepStatus.COMPLETE:
                    statuses.append(
                        replace(entry, status=new_status, completed_date=now, completed_by=actor)
                    )
                else:
                    statuses.append(replace(entry, status=new_status))

            updated = refresh_derived_fields(replace(unit, step_statuses=tuple(statuses)))
            units.append(updated)
            touched.append(unit.unit_id)

        if unmatched:
            logger.warning(
                "status_selection_unmatched",
                extra={"step_id": step_id, "unmatched_unit_ids": list(unmatched)},
            )

        if not touched:
            return StatusApplication(batch=batch, unmatched_unit_ids=unmatched)

        logger.info(
            "step_status_applied",
            extra={
                "step_id": step_id,
                "status": new_status.value,
                "touched": len(touched),
                "corrections": sum(1 for t in applied if t.is_correction),
            },
        )

    return StatusApplication(
        batch=replace(batch, units=tuple(units), version=batch.version + 1),
        touched_unit_ids=tuple(touched),
        transitions=tuple(applied),
        unmatched_unit_ids=unmatched,
    )


# =============================================================================
# Shipment
# =============================================================================


def mark_shipped(
    batch: ProductionBatch,
    selected_unit_ids: Iterable[str],
    clock: Clock,
    *,
    expected_version: int | None = None,
) -> ShipmentResult:
    """Ship every selected unit that is complete and not yet shipped.

    Units that are unknown, already shipped, out of step with the batch
    configuration or not complete are skipped and reported; the rest of the
    request proceeds.

    Raises:
        StaleBatchError: ``expected_version`` differs from the batch.
    """
    _check_version(batch, expected_version)
    selected = _dedupe(selected_unit_ids)
    if not selected:
        return ShipmentResult(batch=batch)

    present = set(batch.unit_ids)
    violations = [
        ShipPreconditionViolation(uid, ShipSkipReason.UNKNOWN_UNIT)
        for uid in selected
        if uid not in present
    ]
    wanted = set(selected)
    now = clock.now()
    shipped: list[str] = []
    units: list[ProductionUnit] = []

    for unit in batch.units:
        if unit.unit_id not in wanted:
            units.append(unit)
        elif unit.is_shipped:
            violations.append(ShipPreconditionViolation(unit.unit_id, ShipSkipReason.ALREADY_SHIPPED))
            units.append(unit)
        elif not conforms(unit, batch.config):
            violations.append(
                ShipPreconditionViolation(unit.unit_id, ShipSkipReason.CONFIGURATION_MISMATCH)
            )
            units.append(unit)
        elif not is_complete(unit):
            violations.append(ShipPreconditionViolation(unit.unit_id, ShipSkipReason.NOT_COMPLETE))
            units.append(unit)
        else:
            units.append(
                replace(
                    refresh_derived_fields(unit),
                    is_shipped=True,
                    shipped_date=now,
                )
            )
            shipped.append(unit.unit_id)

    with LogContext.bind(batch_id=batch.batch_id):
        for violation in violations:
            logger.warning(
                "ship_precondition_violation",
                extra={
                    "code": violation.code,
                    "unit_id": violation.unit_id,
                    "reason": violation.reason.value,
                },
            )
        if shipped:
            logger.info("units_shipped", extra={"shipped": len(shipped)})

    new_batch = (
        replace(batch, units=tuple(units), version=batch.version + 1) if shipped else batch
    )
    return ShipmentResult(
        batch=new_batch,
        shipped_unit_ids=tuple(shipped),
        violations=tuple(violations),
    )
