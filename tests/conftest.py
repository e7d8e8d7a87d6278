"""
Pytest fixtures for the tracking kernel test suite.

Provides:
- Deterministic clocks
- A three-step configuration (A, B, C) and batches built from it
- The shipped YAML registry
"""

from datetime import datetime, timezone

import pytest

from tracking_config import get_default_registry
from tracking_kernel.domain.clock import DeterministicClock
from tracking_kernel.domain.mutation import create_batch, create_units
from tracking_kernel.domain.step_registry import StepConfigRegistry
from tracking_kernel.domain.types import (
    ProductionLineType,
    ProductionStep,
    ProjectTypeConfig,
    SerialPrefixRules,
    TableColumn,
    ViewBucket,
)
from tracking_kernel.logging_config import LogContext

T0 = datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _clear_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(T0)


@pytest.fixture
def abc_config() -> ProjectTypeConfig:
    """Three-step config [A(1), B(2), C(3)]."""
    return ProjectTypeConfig(
        type_id=ProductionLineType.ASSEMBLY,
        display_name="Three Step Line",
        steps=(
            ProductionStep("A", "Inspect", 1),
            ProductionStep("B", "Assemble", 2),
            ProductionStep("C", "Test", 3),
        ),
        serial_prefix_rules=SerialPrefixRules(primary="AB-", secondary="PCB-"),
        table_columns=(
            TableColumn("unitSN", "Unit S/N", (ViewBucket.IN_PROGRESS, ViewBucket.COMPLETED, ViewBucket.SHIPPED)),
            TableColumn("lastStepCompleted", "Last Step", (ViewBucket.IN_PROGRESS,)),
            TableColumn("dateCompleted", "Date Completed", (ViewBucket.COMPLETED,)),
        ),
    )


@pytest.fixture
def id_factory():
    counter = iter(range(1, 10_000))
    return lambda: f"U{next(counter)}"


@pytest.fixture
def abc_batch(abc_config, id_factory):
    """Batch of three fresh units U1..U3."""
    units = create_units(abc_config, 3, "AB-001", id_factory=id_factory)
    return create_batch(abc_config, "batch-1", "Three Step Batch", units=units)


@pytest.fixture
def abc_registry(abc_config) -> StepConfigRegistry:
    return StepConfigRegistry((abc_config,))


@pytest.fixture
def default_registry() -> StepConfigRegistry:
    return get_default_registry()
