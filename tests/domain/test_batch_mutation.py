"""
Tests for tracking_kernel.domain.mutation.

Covers unit creation, appending units, bulk status application and
shipment, including the rejection paths that must leave the batch
untouched.
"""

import logging
from dataclasses import replace
from datetime import date, timedelta

import pytest

from tracking_kernel.domain.mutation import (
    ShipSkipReason,
    add_units,
    apply_status,
    create_batch,
    create_units,
    mark_shipped,
)
from tracking_kernel.domain.types import ProductionUnit, SerialNumbers, StepStatus, UnitStepStatus
from tracking_kernel.exceptions import (
    ConfigurationMismatchError,
    DuplicateUnitError,
    StaleBatchError,
    UnknownStepIdError,
)

NS = StepStatus.NOT_STARTED
IP = StepStatus.IN_PROGRESS
C = StepStatus.COMPLETE
NA = StepStatus.NOT_APPLICABLE


def _complete_all(batch, clock, unit_ids=("U1",), actor="Jane"):
    for step_id in ("A", "B", "C"):
        batch = apply_status(batch, step_id, C, actor, unit_ids, clock).batch
    return batch


# =============================================================================
# Creation
# =============================================================================


class TestCreateUnits:
    def test_serials_and_fresh_statuses(self, abc_config, id_factory):
        units = create_units(abc_config, 3, "AB-010", "PCB-0001", id_factory=id_factory)

        assert [u.unit_id for u in units] == ["U1", "U2", "U3"]
        assert [u.serial_numbers.primary for u in units] == ["AB-010", "AB-011", "AB-012"]
        assert [u.serial_numbers.secondary for u in units] == ["PCB-0001", "PCB-0002", "PCB-0003"]
        for unit in units:
            assert [e.step_id for e in unit.step_statuses] == ["A", "B", "C"]
            assert all(e.status is NS for e in unit.step_statuses)
            assert not unit.is_shipped
            assert unit.date_fully_completed is None

    def test_secondary_absent_without_seed(self, abc_config, id_factory):
        units = create_units(abc_config, 2, "AB-001", id_factory=id_factory)
        assert all(u.serial_numbers.secondary is None for u in units)

    def test_default_ids_are_unique(self, abc_config):
        units = create_units(abc_config, 5, "AB-001")
        ids = [u.unit_id for u in units]
        assert len(set(ids)) == 5
        assert all(i.startswith("assembly_unit_") for i in ids)

    @pytest.mark.parametrize("count", [0, -3])
    def test_non_positive_count(self, abc_config, count):
        assert create_units(abc_config, count, "AB-001") == ()


class TestCreateBatch:
    def test_empty_batch(self, abc_config):
        batch = create_batch(abc_config, "b-1")
        assert batch.quantity == 0
        assert batch.version == 0
        assert batch.batch_name == "ASSEMBLY"
        assert batch.config is abc_config

    def test_with_units(self, abc_batch):
        assert abc_batch.quantity == 3
        assert abc_batch.unit_ids == ("U1", "U2", "U3")
        assert abc_batch.batch_name == "Three Step Batch"
        assert abc_batch.version == 1


class TestAddUnits:
    def test_appends_and_bumps_version(self, abc_batch, abc_config):
        extra = create_units(abc_config, 2, "AB-004", id_factory=iter(["U4", "U5"]).__next__)
        batch = add_units(abc_batch, extra, expected_version=1)

        assert batch.unit_ids == ("U1", "U2", "U3", "U4", "U5")
        assert batch.version == 2
        assert abc_batch.quantity == 3

    def test_updates_dates(self, abc_batch):
        start = date(2024, 3, 1)
        batch = add_units(abc_batch, (), start_date=start, target_completion_date=start + timedelta(days=30))
        assert batch.start_date == start
        assert batch.target_completion_date == date(2024, 3, 31)
        assert batch.version == abc_batch.version + 1

    def test_nothing_to_do_returns_same_batch(self, abc_batch):
        assert add_units(abc_batch, ()) is abc_batch

    def test_duplicate_unit_rejected(self, abc_batch):
        with pytest.raises(DuplicateUnitError) as exc_info:
            add_units(abc_batch, (abc_batch.units[0],))
        assert exc_info.value.unit_id == "U1"

    def test_nonconforming_unit_rejected(self, abc_batch):
        stray = ProductionUnit(
            unit_id="U9",
            serial_numbers=SerialNumbers("AB-009"),
            step_statuses=(UnitStepStatus("A"),),
        )
        with pytest.raises(ConfigurationMismatchError):
            add_units(abc_batch, (stray,))

    def test_stale_version_rejected(self, abc_batch):
        with pytest.raises(StaleBatchError):
            add_units(abc_batch, (), start_date=date(2024, 1, 1), expected_version=0)


# =============================================================================
# Status application
# =============================================================================


class TestApplyStatus:
    def test_complete_stamps_date_and_actor(self, abc_batch, clock):
        result = apply_status(abc_batch, "A", C, "Jane", ["U1", "U2"], clock)

        assert result.touched_unit_ids == ("U1", "U2")
        for uid in ("U1", "U2"):
            entry = result.batch.get_unit(uid).status_for("A")
            assert entry.status is C
            assert entry.completed_date == clock.now()
            assert entry.completed_by == "Jane"
        assert result.batch.get_unit("U3").status_for("A").status is NS

    def test_input_batch_untouched(self, abc_batch, clock):
        apply_status(abc_batch, "A", C, "Jane", ["U1"], clock)
        assert abc_batch.get_unit("U1").status_for("A").status is NS
        assert abc_batch.version == 1

    @pytest.mark.parametrize("status", [NS, IP, NA])
    def test_non_complete_leaves_stamps(self, abc_batch, clock, status):
        batch = apply_status(abc_batch, "A", C, "Jane", ["U1"], clock).batch
        clock.advance(60)
        entry = apply_status(batch, "A", status, "Bob", ["U1"], clock).batch.get_unit("U1").status_for("A")

        assert entry.status is status
        assert entry.completed_by == "Jane"

    def test_other_steps_untouched(self, abc_batch, clock):
        batch = apply_status(abc_batch, "B", IP, "Jane", ["U1"], clock).batch
        unit = batch.get_unit("U1")
        assert unit.status_for("A").status is NS
        assert unit.status_for("C").status is NS

    def test_unknown_step_rejects_whole_call(self, abc_batch, clock):
        with pytest.raises(UnknownStepIdError) as exc_info:
            apply_status(abc_batch, "Z", C, "Jane", ["U1", "U2"], clock)
        assert exc_info.value.step_id == "Z"

    def test_empty_selection_is_noop(self, abc_batch, clock):
        result = apply_status(abc_batch, "A", C, "Jane", [], clock)
        assert result.batch is abc_batch
        assert result.touched_unit_ids == ()

    def test_unmatched_ids_reported(self, abc_batch, clock, caplog):
        with caplog.at_level(logging.WARNING, logger="tracking_kernel"):
            result = apply_status(abc_batch, "A", IP, "Jane", ["U1", "ghost"], clock)

        assert result.touched_unit_ids == ("U1",)
        assert result.unmatched_unit_ids == ("ghost",)
        assert any(r.getMessage() == "status_selection_unmatched" for r in caplog.records)

    def test_only_unmatched_ids_returns_same_batch(self, abc_batch, clock):
        result = apply_status(abc_batch, "A", IP, "Jane", ["ghost"], clock)
        assert result.batch is abc_batch
        assert result.unmatched_unit_ids == ("ghost",)

    def test_duplicate_selection_counted_once(self, abc_batch, clock):
        result = apply_status(abc_batch, "A", IP, "Jane", ["U1", "U1"], clock)
        assert result.touched_unit_ids == ("U1",)
        assert len(result.transitions) == 1

    def test_version_bumped_once_per_call(self, abc_batch, clock):
        result = apply_status(abc_batch, "A", C, "Jane", ["U1", "U2", "U3"], clock)
        assert result.batch.version == abc_batch.version + 1

    def test_stale_version_rejected(self, abc_batch, clock):
        with pytest.raises(StaleBatchError) as exc_info:
            apply_status(abc_batch, "A", C, "Jane", ["U1"], clock, expected_version=0)
        assert exc_info.value.actual_version == 1

    def test_matching_version_accepted(self, abc_batch, clock):
        result = apply_status(abc_batch, "A", C, "Jane", ["U1"], clock, expected_version=1)
        assert result.batch.version == 2

    def test_nonconforming_selected_unit_rejects_call(self, abc_batch, clock):
        broken = replace(abc_batch.units[1], step_statuses=abc_batch.units[1].step_statuses[:2])
        batch = replace(abc_batch, units=(abc_batch.units[0], broken, abc_batch.units[2]))

        with pytest.raises(ConfigurationMismatchError):
            apply_status(batch, "A", C, "Jane", ["U1", "U2"], clock)

    def test_nonconforming_unselected_unit_ignored(self, abc_batch, clock):
        broken = replace(abc_batch.units[1], step_statuses=abc_batch.units[1].step_statuses[:2])
        batch = replace(abc_batch, units=(abc_batch.units[0], broken, abc_batch.units[2]))

        result = apply_status(batch, "A", C, "Jane", ["U1"], clock)
        assert result.touched_unit_ids == ("U1",)

    def test_recompletion_restamps(self, abc_batch, clock):
        batch = apply_status(abc_batch, "A", C, "Jane", ["U1"], clock).batch
        clock.advance(3600)
        entry = apply_status(batch, "A", C, "Bob", ["U1"], clock).batch.get_unit("U1").status_for("A")
        assert entry.completed_by == "Bob"
        assert entry.completed_date == clock.now()


class TestDerivedCompletion:
    def test_completion_date_tracks_latest_step(self, abc_batch, clock):
        t1 = clock.now()
        batch = apply_status(abc_batch, "A", C, "Jane", ["U1"], clock).batch
        clock.advance(3600)
        batch = apply_status(batch, "B", NA, "Jane", ["U1"], clock).batch
        assert batch.get_unit("U1").date_fully_completed is None

        clock.advance(3600)
        t3 = clock.now()
        batch = apply_status(batch, "C", C, "Jane", ["U1"], clock).batch
        unit = batch.get_unit("U1")
        assert unit.date_fully_completed == t3
        assert t3 > t1

    def test_regression_clears_completion_date(self, abc_batch, clock, caplog):
        batch = _complete_all(abc_batch, clock)
        assert batch.get_unit("U1").date_fully_completed is not None

        with caplog.at_level(logging.WARNING, logger="tracking_kernel"):
            result = apply_status(batch, "B", IP, "Bob", ["U1"], clock)

        unit = result.batch.get_unit("U1")
        assert unit.date_fully_completed is None
        assert len(result.corrections) == 1
        assert result.corrections[0].transition.action == "reopen"
        assert any(r.getMessage() == "step_status_correction" for r in caplog.records)

    def test_forward_progress_is_not_a_correction(self, abc_batch, clock):
        result = apply_status(abc_batch, "A", IP, "Jane", ["U1"], clock)
        assert result.corrections == ()


# =============================================================================
# Shipment
# =============================================================================


class TestMarkShipped:
    def test_ships_complete_units(self, abc_batch, clock):
        batch = _complete_all(abc_batch, clock, ("U1", "U2"))
        clock.advance(86400)
        result = mark_shipped(batch, ["U1", "U2"], clock)

        assert result.shipped_unit_ids == ("U1", "U2")
        assert result.violations == ()
        for uid in ("U1", "U2"):
            unit = result.batch.get_unit(uid)
            assert unit.is_shipped
            assert unit.shipped_date == clock.now()
        assert result.batch.version == batch.version + 1

    def test_incomplete_unit_skipped(self, abc_batch, clock):
        batch = _complete_all(abc_batch, clock, ("U1",))
        result = mark_shipped(batch, ["U1", "U2"], clock)

        assert result.shipped_unit_ids == ("U1",)
        assert result.skipped_unit_ids == ("U2",)
        assert result.violations[0].reason is ShipSkipReason.NOT_COMPLETE
        assert result.violations[0].code == "SHIP_PRECONDITION_VIOLATION"
        assert not result.batch.get_unit("U2").is_shipped

    def test_already_shipped_skipped(self, abc_batch, clock):
        batch = mark_shipped(_complete_all(abc_batch, clock), ["U1"], clock).batch
        first_date = batch.get_unit("U1").shipped_date
        clock.advance(60)

        result = mark_shipped(batch, ["U1"], clock)
        assert result.shipped_unit_ids == ()
        assert result.violations[0].reason is ShipSkipReason.ALREADY_SHIPPED
        assert result.batch is batch
        assert result.batch.get_unit("U1").shipped_date == first_date

    def test_unit_missing_configured_steps_skipped(self, abc_batch, clock):
        partial = replace(
            abc_batch.units[0],
            step_statuses=(UnitStepStatus("A", C, clock.now(), "Jane"),),
        )
        batch = replace(abc_batch, units=(partial,) + abc_batch.units[1:])

        result = mark_shipped(batch, ["U1"], clock)
        assert result.shipped_unit_ids == ()
        assert result.skipped_unit_ids == ("U1",)
        assert result.violations[0].reason is ShipSkipReason.CONFIGURATION_MISMATCH
        assert result.batch is batch
        assert not result.batch.get_unit("U1").is_shipped

    def test_unknown_unit_reported(self, abc_batch, clock):
        result = mark_shipped(abc_batch, ["ghost"], clock)
        assert result.violations[0].reason is ShipSkipReason.UNKNOWN_UNIT
        assert result.batch is abc_batch

    def test_empty_selection(self, abc_batch, clock):
        result = mark_shipped(abc_batch, [], clock)
        assert result.batch is abc_batch
        assert result.shipped_unit_ids == ()

    def test_stale_version_rejected(self, abc_batch, clock):
        with pytest.raises(StaleBatchError):
            mark_shipped(abc_batch, ["U1"], clock, expected_version=7)
