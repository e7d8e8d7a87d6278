"""
Tracking kernel domain layer.

Pure functional core: value objects, the step configuration registry,
serial sequencing, unit status queries, batch mutation and projection.
ZERO I/O.
"""

from tracking_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SequentialClock,
    SystemClock,
)
from tracking_kernel.domain.detail import (
    StepProgress,
    TimelineSpan,
    UnitDetail,
    UnitPosition,
    unit_detail,
    unit_position,
    unit_timeline,
)
from tracking_kernel.domain.mutation import (
    AppliedTransition,
    ShipmentResult,
    ShipPreconditionViolation,
    ShipSkipReason,
    StatusApplication,
    add_units,
    apply_status,
    create_batch,
    create_units,
    mark_shipped,
)
from tracking_kernel.domain.projection import (
    BatchView,
    StepPreview,
    columns_for,
    default_selection,
    preview_step_status,
    project,
    shipped_incomplete_unit_ids,
)
from tracking_kernel.domain.sequencer import (
    SerialSpec,
    default_seed,
    generate_serials,
    parse_serial,
)
from tracking_kernel.domain.step_registry import StepConfigRegistry
from tracking_kernel.domain.step_workflow import (
    STEP_STATUS_WORKFLOW,
    classify_transition,
)
from tracking_kernel.domain.types import (
    FieldType,
    ProductionBatch,
    ProductionLineType,
    ProductionStep,
    ProductionUnit,
    ProjectTypeConfig,
    SerialNumbers,
    SerialPrefixRules,
    StepStatus,
    TableColumn,
    UnitField,
    UnitStepStatus,
    ViewBucket,
)
from tracking_kernel.domain.unit_status import (
    LastCompletedStep,
    check_unit_conformance,
    completion_date,
    conforms,
    is_complete,
    last_completed_step,
    next_pending_steps,
)

__all__ = [
    # Clock
    "Clock",
    "DeterministicClock",
    "SequentialClock",
    "SystemClock",
    # Types
    "FieldType",
    "ProductionBatch",
    "ProductionLineType",
    "ProductionStep",
    "ProductionUnit",
    "ProjectTypeConfig",
    "SerialNumbers",
    "SerialPrefixRules",
    "StepStatus",
    "TableColumn",
    "UnitField",
    "UnitStepStatus",
    "ViewBucket",
    # Registry
    "StepConfigRegistry",
    # Sequencer
    "SerialSpec",
    "default_seed",
    "generate_serials",
    "parse_serial",
    # Status
    "LastCompletedStep",
    "check_unit_conformance",
    "conforms",
    "completion_date",
    "is_complete",
    "last_completed_step",
    "next_pending_steps",
    # Workflow
    "STEP_STATUS_WORKFLOW",
    "classify_transition",
    # Mutation
    "AppliedTransition",
    "ShipmentResult",
    "ShipPreconditionViolation",
    "ShipSkipReason",
    "StatusApplication",
    "add_units",
    "apply_status",
    "create_batch",
    "create_units",
    "mark_shipped",
    # Projection
    "BatchView",
    "StepPreview",
    "columns_for",
    "default_selection",
    "preview_step_status",
    "project",
    "shipped_incomplete_unit_ids",
    # Detail
    "StepProgress",
    "TimelineSpan",
    "UnitDetail",
    "UnitPosition",
    "unit_detail",
    "unit_position",
    "unit_timeline",
]
