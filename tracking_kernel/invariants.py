"""
Tracking Kernel Invariants Contract.

These invariants are structural law for every production batch.  No
production-line configuration may override them.

This module declares the invariants explicitly.  Enforcement is
distributed across StepConfigRegistry, unit_status, mutation and
projection.
"""

from enum import Enum, unique


@unique
class TrackingInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel.

    Configuration decides *which* steps a unit passes through, never
    *whether* these rules apply.
    """

    STEP_SET_MATCHES_CONFIG = "step_set_matches_config"
    """Each unit has exactly one status per configured step, no extras.
    Enforced by unit_status.check_unit_conformance before every mutation."""

    DENSE_STEP_ORDER = "dense_step_order"
    """Step orders are unique and form 1..N. Enforced by
    StepConfigRegistry.register."""

    COMPLETE_MEANS_RESOLVED = "complete_means_resolved"
    """A unit is complete iff every step is Complete or N/A. Defined once in
    unit_status.is_complete."""

    COMPLETION_DATE_DERIVED = "completion_date_derived"
    """date_fully_completed is set iff the unit is complete and equals the
    latest completed step date. Recomputed by mutation on every touch."""

    SHIP_REQUIRES_COMPLETE = "ship_requires_complete"
    """Only complete units may be shipped. Enforced by mutation.mark_shipped."""

    SHIPPED_IS_TERMINAL = "shipped_is_terminal"
    """Shipped units never reappear in in-progress or completed views.
    Enforced by projection.project classification order."""


# All invariants as a frozenset for programmatic checks.
ALL_TRACKING_INVARIANTS: frozenset[TrackingInvariant] = frozenset(TrackingInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "tracking_config",
    "tracking_services",
)
