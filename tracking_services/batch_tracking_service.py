"""
Batch Tracking Service (``tracking_services.batch_tracking_service``).

Responsibility
--------------
The boundary the surrounding application wires to operator actions:
create a batch, add units, apply a status to the selected units, ship the
selected units, and read the projected views and unit detail.  Kernel
computation is delegated to ``tracking_kernel.domain``.

Architecture position
---------------------
**Services layer** -- thin glue over the pure kernel.  Owns actor
resolution and converts kernel exceptions into result objects.

Invariants enforced
-------------------
* No ``ProductionTrackingError`` crosses this boundary: every public
  mutation returns a ``BatchOperationResult``.
* On failure the result carries the caller's batch unchanged.
* Clock is injectable for deterministic testing.

Failure modes
-------------
* Kernel errors  -> ``BatchOperationResult`` with ``is_success == False``
  and the kernel error ``code`` in ``error_code``.
* Unexpected exceptions (programming errors) propagate.

Usage::

    service = BatchTrackingService(get_default_registry(), clock)
    result = service.create_batch("PR", batch_id="B-1", quantity=5)
    batch = result.batch
    result = service.apply_status(
        batch, "pr_step_01", StepStatus.COMPLETE, "Jane", batch.unit_ids,
        expected_version=batch.version,
    )
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum
from uuid import uuid4

from tracking_kernel.domain.clock import Clock, SystemClock
from tracking_kernel.domain.detail import UnitDetail, unit_detail
from tracking_kernel.domain.mutation import (
    AppliedTransition,
    ShipPreconditionViolation,
    add_units,
    apply_status,
    create_batch,
    create_units,
    mark_shipped,
)
from tracking_kernel.domain.projection import BatchView, project
from tracking_kernel.domain.sequencer import default_seed
from tracking_kernel.domain.step_registry import StepConfigRegistry
from tracking_kernel.domain.types import (
    ProductionBatch,
    ProductionLineType,
    StepStatus,
)
from tracking_kernel.exceptions import (
    ConfigNotFoundError,
    ConfigurationMismatchError,
    DuplicateUnitError,
    ProductionTrackingError,
    StaleBatchError,
    UnitNotFoundError,
    UnknownStepIdError,
)
from tracking_kernel.logging_config import LogContext, get_logger
from tracking_services.actor import (
    DEFAULT_ACTOR_NAME,
    ActorNameProvider,
    resolve_actor_name,
)

logger = get_logger("services.batch_tracking")


class BatchOperationStatus(str, Enum):
    """Status of a batch tracking operation."""

    APPLIED = "applied"
    NO_CHANGE = "no_change"
    PARTIALLY_APPLIED = "partially_applied"
    CONFIG_NOT_FOUND = "config_not_found"
    CONFIGURATION_MISMATCH = "configuration_mismatch"
    UNKNOWN_STEP = "unknown_step"
    INVALID_STATUS = "invalid_status"
    DUPLICATE_UNIT = "duplicate_unit"
    UNIT_NOT_FOUND = "unit_not_found"
    STALE_BATCH = "stale_batch"
    FAILED = "failed"


_ERROR_STATUS: dict[type[ProductionTrackingError], BatchOperationStatus] = {
    ConfigNotFoundError: BatchOperationStatus.CONFIG_NOT_FOUND,
    ConfigurationMismatchError: BatchOperationStatus.CONFIGURATION_MISMATCH,
    UnknownStepIdError: BatchOperationStatus.UNKNOWN_STEP,
    DuplicateUnitError: BatchOperationStatus.DUPLICATE_UNIT,
    UnitNotFoundError: BatchOperationStatus.UNIT_NOT_FOUND,
    StaleBatchError: BatchOperationStatus.STALE_BATCH,
}


@dataclass(frozen=True)
class BatchOperationResult:
    """Result of a batch tracking operation."""

    status: BatchOperationStatus
    batch: ProductionBatch | None = None
    message: str | None = None
    error_code: str | None = None
    touched_unit_ids: tuple[str, ...] = ()
    transitions: tuple[AppliedTransition, ...] = ()
    violations: tuple[ShipPreconditionViolation, ...] = ()
    unmatched_unit_ids: tuple[str, ...] = ()
    detail: UnitDetail | None = None

    @property
    def is_success(self) -> bool:
        return self.status in (
            BatchOperationStatus.APPLIED,
            BatchOperationStatus.NO_CHANGE,
            BatchOperationStatus.PARTIALLY_APPLIED,
        )


def _operation_context(batch_id: str, actor: str | None = None):
    """Bind log context for one service call under a fresh correlation id."""
    return LogContext.bind(
        correlation_id=uuid4().hex,
        batch_id=batch_id,
        actor=actor,
    )


def _failure(
    error: ProductionTrackingError,
    batch: ProductionBatch | None,
    operation: str,
) -> BatchOperationResult:
    status = _ERROR_STATUS.get(type(error), BatchOperationStatus.FAILED)
    logger.warning(
        "batch_operation_rejected",
        extra={"operation": operation, "status": status.value},
        exc_info=error,
    )
    return BatchOperationResult(
        status=status,
        batch=batch,
        message=str(error),
        error_code=error.code,
    )


class BatchTrackingService:
    """
    Operator-facing facade over the tracking kernel.

    Contract
    --------
    * Every mutating method returns ``BatchOperationResult``; callers
      inspect ``result.is_success`` and take ``result.batch`` as the new
      snapshot.
    * ``project`` and ``suggested_seeds`` are pure reads.

    Non-goals
    ---------
    * Does NOT persist batches or merge concurrent edits.  Callers pass
      ``expected_version`` to detect that their snapshot is stale.
    """

    def __init__(
        self,
        registry: StepConfigRegistry,
        clock: Clock | None = None,
        actor_provider: ActorNameProvider | None = None,
    ):
        self._registry = registry
        self._clock = clock or SystemClock()
        self._actor_provider = actor_provider

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_batch(
        self,
        type_id: str | ProductionLineType,
        batch_id: str,
        batch_name: str = "",
        quantity: int = 0,
        primary_seed: str | None = None,
        secondary_seed: str | None = None,
        *,
        project_id: str | None = None,
        start_date: date | None = None,
        target_completion_date: date | None = None,
    ) -> BatchOperationResult:
        """Create a batch for a production-line type with ``quantity`` fresh units."""
        with _operation_context(batch_id):
            try:
                config = self._registry.lookup(type_id)
                batch = create_batch(
                    config,
                    batch_id,
                    batch_name,
                    project_id=project_id,
                    start_date=start_date,
                    target_completion_date=target_completion_date,
                )
                primary, secondary = self._seeds(batch, primary_seed, secondary_seed)
                units = create_units(config, quantity, primary, secondary)
                if units:
                    batch = add_units(batch, units)
            except ProductionTrackingError as e:
                return _failure(e, None, "create_batch")

            logger.info(
                "batch_created",
                extra={"type_id": config.type_id.value, "quantity": batch.quantity},
            )
            return BatchOperationResult(
                status=BatchOperationStatus.APPLIED,
                batch=batch,
                touched_unit_ids=batch.unit_ids,
            )

    def add_units(
        self,
        batch: ProductionBatch,
        count: int,
        primary_seed: str | None = None,
        secondary_seed: str | None = None,
        *,
        start_date: date | None = None,
        target_completion_date: date | None = None,
        expected_version: int | None = None,
    ) -> BatchOperationResult:
        """Append ``count`` sequenced units; seeds default to the next free serials."""
        with _operation_context(batch.batch_id):
            try:
                primary, secondary = self._seeds(batch, primary_seed, secondary_seed)
                units = create_units(batch.config, count, primary, secondary)
                updated = add_units(
                    batch,
                    units,
                    start_date=start_date,
                    target_completion_date=target_completion_date,
                    expected_version=expected_version,
                )
            except ProductionTrackingError as e:
                return _failure(e, batch, "add_units")

            if updated is batch:
                return BatchOperationResult(status=BatchOperationStatus.NO_CHANGE, batch=batch)
            return BatchOperationResult(
                status=BatchOperationStatus.APPLIED,
                batch=updated,
                touched_unit_ids=tuple(u.unit_id for u in units),
            )

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def apply_status(
        self,
        batch: ProductionBatch,
        step_id: str,
        status: StepStatus | str,
        actor: str,
        selected_unit_ids: Iterable[str],
        *,
        expected_version: int | None = None,
    ) -> BatchOperationResult:
        """Apply one step status to the selected units, all or nothing."""
        try:
            new_status = StepStatus(status)
        except ValueError:
            logger.warning(
                "batch_operation_rejected",
                extra={"operation": "apply_status", "status": str(status)},
            )
            return BatchOperationResult(
                status=BatchOperationStatus.INVALID_STATUS,
                batch=batch,
                message=f"Unknown step status: {status}",
                error_code="INVALID_STEP_STATUS",
            )

        with _operation_context(batch.batch_id, actor):
            try:
                application = apply_status(
                    batch,
                    step_id,
                    new_status,
                    actor,
                    selected_unit_ids,
                    self._clock,
                    expected_version=expected_version,
                )
            except ProductionTrackingError as e:
                return _failure(e, batch, "apply_status")

        return BatchOperationResult(
            status=(
                BatchOperationStatus.APPLIED
                if application.touched_unit_ids
                else BatchOperationStatus.NO_CHANGE
            ),
            batch=application.batch,
            touched_unit_ids=application.touched_unit_ids,
            transitions=application.transitions,
            unmatched_unit_ids=application.unmatched_unit_ids,
        )

    async def apply_status_as_current_actor(
        self,
        batch: ProductionBatch,
        step_id: str,
        status: StepStatus | str,
        selected_unit_ids: Iterable[str],
        *,
        expected_version: int | None = None,
    ) -> BatchOperationResult:
        """Resolve the actor from the identity provider, then apply the status."""
        actor = await resolve_actor_name(self._actor_provider, DEFAULT_ACTOR_NAME)
        return self.apply_status(
            batch,
            step_id,
            status,
            actor,
            selected_unit_ids,
            expected_version=expected_version,
        )

    def mark_shipped(
        self,
        batch: ProductionBatch,
        selected_unit_ids: Iterable[str],
        *,
        expected_version: int | None = None,
    ) -> BatchOperationResult:
        """Ship the selected complete units; skipped units are reported."""
        with _operation_context(batch.batch_id):
            try:
                shipment = mark_shipped(
                    batch,
                    selected_unit_ids,
                    self._clock,
                    expected_version=expected_version,
                )
            except ProductionTrackingError as e:
                return _failure(e, batch, "mark_shipped")

        if shipment.shipped_unit_ids and shipment.violations:
            status = BatchOperationStatus.PARTIALLY_APPLIED
        elif shipment.shipped_unit_ids:
            status = BatchOperationStatus.APPLIED
        else:
            status = BatchOperationStatus.NO_CHANGE
        return BatchOperationResult(
            status=status,
            batch=shipment.batch,
            touched_unit_ids=shipment.shipped_unit_ids,
            violations=shipment.violations,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def project(self, batch: ProductionBatch) -> BatchView:
        return project(batch)

    def unit_detail(
        self,
        batch: ProductionBatch,
        unit_id: str,
        pending_limit: int | None = None,
    ) -> BatchOperationResult:
        try:
            detail = unit_detail(batch, unit_id, pending_limit)
        except ProductionTrackingError as e:
            return _failure(e, batch, "unit_detail")
        return BatchOperationResult(
            status=BatchOperationStatus.NO_CHANGE,
            batch=batch,
            detail=detail,
        )

    def suggested_seeds(self, batch: ProductionBatch) -> tuple[str, str | None]:
        """Default seeds for the next units added to ``batch``."""
        return self._seeds(batch, None, None)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _seeds(
        batch: ProductionBatch,
        primary_seed: str | None,
        secondary_seed: str | None,
    ) -> tuple[str, str | None]:
        rules = batch.config.serial_prefix_rules
        primary = primary_seed or default_seed(rules.primary, batch.quantity)
        if secondary_seed is None and rules.secondary is not None:
            secondary_seed = default_seed(rules.secondary, batch.quantity)
        return primary, secondary_seed or None
