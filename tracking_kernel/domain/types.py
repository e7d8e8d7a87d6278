"""
tracking_kernel.domain.types -- Pure frozen dataclasses for production tracking.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.  Every mutation in the engine builds a new snapshot
with ``dataclasses.replace``; nothing here is ever modified in place.

Invariants enforced:
    - All DTOs are frozen (immutable snapshots).
    - A batch carries the ProjectTypeConfig it was created with, so the
      step sequence never drifts mid-session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


# =============================================================================
# Enums
# =============================================================================


class StepStatus(str, Enum):
    """Progress state of one unit for one step."""

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETE = "Complete"
    NOT_APPLICABLE = "N/A"

    @property
    def is_resolved(self) -> bool:
        """True for states that count toward unit completion."""
        return self in (StepStatus.COMPLETE, StepStatus.NOT_APPLICABLE)


class ProductionLineType(str, Enum):
    """Closed set of supported production-line types."""

    PR = "PR"
    ASSEMBLY = "ASSEMBLY"

    @classmethod
    def parse(cls, value: str | ProductionLineType) -> ProductionLineType:
        """Resolve a type key case-insensitively.

        Raises:
            ValueError: if ``value`` names no supported type.
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())


class ViewBucket(str, Enum):
    """Display categories of a batch projection."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SHIPPED = "shipped"


class FieldType(str, Enum):
    """Input type of an operator-entered unit field."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class ProductionStep:
    """One ordered stage of a production/inspection sequence."""

    step_id: str
    name: str
    order: int  # 1-based, dense within a config


@dataclass(frozen=True)
class SerialPrefixRules:
    """Serial prefixes used to suggest default seeds for new units."""

    primary: str
    secondary: str | None = None  # e.g. PCB S/N; absent for some lines


@dataclass(frozen=True)
class TableColumn:
    """A display column and the projection buckets that show it."""

    column_id: str
    label: str
    views: tuple[ViewBucket, ...]
    width: str | None = None


@dataclass(frozen=True)
class UnitField:
    """An operator-entered field on a unit."""

    key: str
    label: str
    field_type: FieldType = FieldType.TEXT
    required: bool = False
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProjectTypeConfig:
    """Read-only step configuration for one production-line type."""

    type_id: ProductionLineType
    display_name: str
    steps: tuple[ProductionStep, ...]
    serial_prefix_rules: SerialPrefixRules
    table_columns: tuple[TableColumn, ...] = ()
    unit_fields: tuple[UnitField, ...] = ()

    @property
    def step_ids(self) -> frozenset[str]:
        return frozenset(s.step_id for s in self.steps)

    def ordered_steps(self) -> tuple[ProductionStep, ...]:
        return tuple(sorted(self.steps, key=lambda s: s.order))

    def get_step(self, step_id: str) -> ProductionStep | None:
        for step in self.steps:
            if step.step_id == step_id:
                return step
        return None


# =============================================================================
# Units and batches
# =============================================================================


@dataclass(frozen=True)
class UnitStepStatus:
    """One unit's progress on one step, referenced by ``step_id``."""

    step_id: str
    status: StepStatus = StepStatus.NOT_STARTED
    completed_date: datetime | None = None
    completed_by: str | None = None


@dataclass(frozen=True)
class SerialNumbers:
    """Tracked serial fields of a unit."""

    primary: str
    secondary: str | None = None


@dataclass(frozen=True)
class ProductionUnit:
    """One serialized item moving through the configured steps.

    ``date_fully_completed`` is a cache of the derived completion date; the
    mutation engine recomputes it on every touch.
    """

    unit_id: str
    serial_numbers: SerialNumbers
    step_statuses: tuple[UnitStepStatus, ...]
    is_shipped: bool = False
    shipped_date: datetime | None = None
    date_fully_completed: datetime | None = None

    def status_for(self, step_id: str) -> UnitStepStatus | None:
        for entry in self.step_statuses:
            if entry.step_id == step_id:
                return entry
        return None


@dataclass(frozen=True)
class ProductionBatch:
    """A named collection of units tracked together.

    ``version`` increases by one on every state-changing operation so a
    caller holding an older snapshot can detect that it is stale.
    """

    batch_id: str
    config: ProjectTypeConfig
    units: tuple[ProductionUnit, ...] = ()
    batch_name: str = ""
    project_id: str | None = None
    start_date: date | None = None
    target_completion_date: date | None = None
    version: int = 0

    @property
    def quantity(self) -> int:
        return len(self.units)

    @property
    def unit_ids(self) -> tuple[str, ...]:
        return tuple(u.unit_id for u in self.units)

    def get_unit(self, unit_id: str) -> ProductionUnit | None:
        for unit in self.units:
            if unit.unit_id == unit_id:
                return unit
        return None
