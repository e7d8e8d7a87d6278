"""
Typed Exception Hierarchy for the Tracking Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Bulk operations over a production batch are driven by operator actions in a
UI.  The boundary facade must turn every failure into a user-facing message
without parsing strings, so:
  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - WRONG way to handle errors:
    try:
        apply_status(batch, step_id, status, actor, selected, clock)
    except Exception as e:
        if "not in config" in str(e):  # FRAGILE - message might change
            show_step_picker()

Example - RIGHT way:
    try:
        apply_status(batch, step_id, status, actor, selected, clock)
    except UnknownStepIdError as e:
        log.warning("unknown_step", extra={"step_id": e.step_id})
        api_response(code=e.code, step_id=e.step_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from ProductionTrackingError:

    ProductionTrackingError (base)
    |
    +-- ConfigError
    |   +-- ConfigNotFoundError
    |   +-- InvalidStepConfigError
    |   +-- DuplicateConfigError
    |   +-- ConfigurationMismatchError
    |
    +-- MutationError
    |   +-- UnknownStepIdError
    |   +-- DuplicateUnitError
    |   +-- UnitNotFoundError
    |
    +-- ConcurrencyError
        +-- StaleBatchError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                     | When Raised
-------------|--------------------------|------------------------------------------
Config       | CONFIG_NOT_FOUND         | Production-line type is not registered
             | INVALID_STEP_CONFIG      | Step orders not dense 1..N, duplicate ids
             | DUPLICATE_CONFIG         | Type registered twice
             | CONFIGURATION_MISMATCH   | Unit step statuses differ from config
-------------|--------------------------|------------------------------------------
Mutation     | UNKNOWN_STEP_ID          | Status applied to a step not in config
             | DUPLICATE_UNIT           | Unit id already present in the batch
             | UNIT_NOT_FOUND           | Detail query for an absent unit
-------------|--------------------------|------------------------------------------
Concurrency  | STALE_BATCH              | expected_version differs from snapshot

Not exceptions (reported as data or logs):
    INVALID_SERIAL_SEED          -- sequencer fallback, logged at WARNING
    SHIP_PRECONDITION_VIOLATION  -- per-unit entry in ShipmentResult

===============================================================================
"""


class ProductionTrackingError(Exception):
    """
    Base exception for all tracking kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PRODUCTION_TRACKING_ERROR"


# Configuration exceptions


class ConfigError(ProductionTrackingError):
    """Base exception for step-configuration errors."""

    code: str = "CONFIG_ERROR"


class ConfigNotFoundError(ConfigError):
    """No configuration is registered for the production-line type."""

    code: str = "CONFIG_NOT_FOUND"

    def __init__(self, type_id: str, available: tuple[str, ...] = ()):
        self.type_id = type_id
        self.available = available
        msg = f"Unknown production-line type: {type_id}"
        if available:
            msg += f" (supported: {', '.join(available)})"
        super().__init__(msg)


class InvalidStepConfigError(ConfigError):
    """Step sequence violates ordering or identity rules."""

    code: str = "INVALID_STEP_CONFIG"

    def __init__(self, type_id: str, reason: str):
        self.type_id = type_id
        self.reason = reason
        super().__init__(f"Invalid step configuration for {type_id}: {reason}")


class DuplicateConfigError(ConfigError):
    """A configuration for this type is already registered."""

    code: str = "DUPLICATE_CONFIG"

    def __init__(self, type_id: str):
        self.type_id = type_id
        super().__init__(f"Configuration already registered for type: {type_id}")


class ConfigurationMismatchError(ConfigError):
    """
    A unit's step statuses do not match the active configuration.

    Blocks any further mutation of the unit until the data is repaired.
    """

    code: str = "CONFIGURATION_MISMATCH"

    def __init__(
        self,
        unit_id: str,
        missing: tuple[str, ...] = (),
        extra: tuple[str, ...] = (),
        duplicated: tuple[str, ...] = (),
    ):
        self.unit_id = unit_id
        self.missing = missing
        self.extra = extra
        self.duplicated = duplicated
        parts = []
        if missing:
            parts.append(f"missing={list(missing)}")
        if extra:
            parts.append(f"extra={list(extra)}")
        if duplicated:
            parts.append(f"duplicated={list(duplicated)}")
        super().__init__(
            f"Unit {unit_id} step statuses do not match configuration: "
            + ", ".join(parts)
        )


# Mutation exceptions


class MutationError(ProductionTrackingError):
    """Base exception for batch mutation errors."""

    code: str = "MUTATION_ERROR"


class UnknownStepIdError(MutationError):
    """Status was applied to a step that is not part of the configuration."""

    code: str = "UNKNOWN_STEP_ID"

    def __init__(self, step_id: str, type_id: str):
        self.step_id = step_id
        self.type_id = type_id
        super().__init__(f"Step {step_id} is not defined for type {type_id}")


class DuplicateUnitError(MutationError):
    """Unit id already present in the batch."""

    code: str = "DUPLICATE_UNIT"

    def __init__(self, unit_id: str, batch_id: str):
        self.unit_id = unit_id
        self.batch_id = batch_id
        super().__init__(f"Unit {unit_id} already exists in batch {batch_id}")


class UnitNotFoundError(MutationError):
    """Unit id is not part of the batch."""

    code: str = "UNIT_NOT_FOUND"

    def __init__(self, unit_id: str, batch_id: str):
        self.unit_id = unit_id
        self.batch_id = batch_id
        super().__init__(f"Unit {unit_id} not found in batch {batch_id}")


# Concurrency exceptions


class ConcurrencyError(ProductionTrackingError):
    """Base exception for snapshot conflicts."""

    code: str = "CONCURRENCY_ERROR"


class StaleBatchError(ConcurrencyError):
    """The caller's view of the batch is older than the snapshot."""

    code: str = "STALE_BATCH"

    def __init__(self, batch_id: str, expected_version: int, actual_version: int):
        self.batch_id = batch_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Batch {batch_id} is at version {actual_version}, "
            f"caller expected {expected_version}"
        )
