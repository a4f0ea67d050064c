"""Tests for availability checks and roster resolution."""

import pytest
from dataclasses import replace
from datetime import date

from or_planner.availability import (
    apply_roster,
    auto_assignment_pool,
    is_assignable_shift,
    is_available_for_auto_assignment,
    is_excluded,
    is_on_vacation,
    is_scheduled,
    is_short_shift,
    recovering_staff_ids,
    resolve_linked_availability,
)
from or_planner.defaults import DEFAULT_SHIFTS, RECOVERY
from or_planner.models import CustomTime, Roster, Staff

from builders import MONDAY, SATURDAY


class TestScheduling:
    """Tests for is_scheduled and is_available_for_auto_assignment."""

    def test_regular_weekday(self, junior: Staff):
        """Default staff work Monday."""
        assert is_scheduled(junior, MONDAY)
        assert is_available_for_auto_assignment(junior, MONDAY)

    def test_not_scheduled_on_weekend(self, junior: Staff):
        """Saturday is not a default work day."""
        assert not is_scheduled(junior, SATURDAY)

    def test_custom_time_overrides_work_days(self, junior: Staff):
        """An explicit window means the person was rostered that day."""
        weekend = replace(junior, custom_time=CustomTime("08:00", "16:00"))
        assert is_scheduled(weekend, SATURDAY)

    @pytest.mark.parametrize("code", ["OFF", "RECOVERY", "SICK"])
    def test_non_working_codes(self, junior: Staff, code: str):
        """Reserved off codes mean not scheduled."""
        assert not is_scheduled(replace(junior, current_shift=code), MONDAY)

    def test_vacation_blocks_scheduling(self, vacationing_expert: Staff):
        """Staff on vacation are neither scheduled nor available."""
        assert is_on_vacation(vacationing_expert, "16.03.2026")
        assert not is_scheduled(vacationing_expert, MONDAY)
        assert not is_available_for_auto_assignment(vacationing_expert, MONDAY)

    def test_sick_is_scheduled_but_not_available(self, junior: Staff):
        """Sick staff still show on the board but are never auto-assigned."""
        sick = replace(junior, is_sick=True)
        assert is_scheduled(sick, MONDAY)
        assert not is_available_for_auto_assignment(sick, MONDAY)


class TestLinkedAvailability:
    """Tests for coworker dependencies."""

    def test_no_dependency(self, junior: Staff):
        assert resolve_linked_availability(junior, [junior], MONDAY)

    def test_sick_coworker_blocks(self, junior: Staff, expert_lead: Staff):
        """A dependent person is unavailable when the coworker is sick."""
        dependent = replace(junior, requires_coworker_id="A")
        sick_lead = replace(expert_lead, is_sick=True)
        assert not resolve_linked_availability(dependent, [dependent, sick_lead], MONDAY)
        assert resolve_linked_availability(dependent, [dependent, expert_lead], MONDAY)

    def test_coworker_on_vacation_blocks(self, junior: Staff, vacationing_expert: Staff):
        dependent = replace(junior, requires_coworker_id="V")
        assert not resolve_linked_availability(
            dependent, [dependent, vacationing_expert], MONDAY
        )

    def test_unknown_coworker_fails_open(self, junior: Staff):
        """An id that cannot be resolved never blocks anyone."""
        dependent = replace(junior, requires_coworker_id="GHOST")
        assert resolve_linked_availability(dependent, [dependent], MONDAY)


class TestShiftRules:
    """Tests for shift-code and custom-window filters."""

    def test_short_custom_window(self, junior: Staff):
        """Windows under 7.5 hours are short."""
        assert is_short_shift(replace(junior, custom_time=CustomTime("07:00", "13:00")))
        assert not is_short_shift(replace(junior, custom_time=CustomTime("07:00", "15:30")))
        assert not is_short_shift(junior)

    def test_assignable_flag(self, junior: Staff, config):
        """Non-assignable shift codes are filtered; unknown codes pass."""
        assert is_assignable_shift(junior, config)
        assert not is_assignable_shift(replace(junior, current_shift="F5"), config)
        assert is_assignable_shift(replace(junior, current_shift="XYZ"), config)

    def test_exclusion_keyword_is_case_insensitive(self, config):
        helper = Staff(id="H", name="Max Hilfskraft", skills={"UCH": "Expert"})
        assert is_excluded(helper, config)

    def test_pool_filters(self, junior: Staff, expert_lead: Staff, config):
        """The pool drops management-only, short-shift and excluded staff."""
        manager = Staff(id="M", name="Mia", is_management_only=True)
        short = replace(junior, id="S", custom_time=CustomTime("07:00", "12:00"))
        helper = Staff(id="H", name="Hilfskraft 1")
        pool = auto_assignment_pool([expert_lead, junior, manager, short, helper], MONDAY, config)
        assert [s.id for s in pool] == ["A", "B"]


class TestRecovery:
    """Tests for recovery propagation across days."""

    def test_recovery_shifts_are_detected(self):
        """Night and on-call shifts require recovery; day shifts do not."""
        roster = Roster(date=date(2026, 3, 15), shifts={"A": "N", "B": "T1", "C": "BD"})
        assert recovering_staff_ids(roster, DEFAULT_SHIFTS) == ["A", "C"]

    def test_accepts_plain_mapping(self):
        assert recovering_staff_ids({"A": "BD"}, DEFAULT_SHIFTS) == ["A"]
        assert recovering_staff_ids(None, DEFAULT_SHIFTS) == []

    def test_recovering_staff_are_not_scheduled(self, expert_lead: Staff, junior: Staff):
        """The day after a night shift the person is set to RECOVERY."""
        previous = Roster(date=date(2026, 3, 15), shifts={"A": "N"})
        today = Roster(date=MONDAY, shifts={"A": "T1", "B": "T1"})
        staff = apply_roster(
            [expert_lead, junior], today, recovering_staff_ids(previous, DEFAULT_SHIFTS)
        )
        assert staff[0].current_shift == RECOVERY
        assert not is_scheduled(staff[0], MONDAY)
        assert is_scheduled(staff[1], MONDAY)

    def test_apply_roster_leaves_input_untouched(self, junior: Staff):
        roster = Roster(
            date=MONDAY,
            shifts={"B": "AT19"},
            custom_times={"B": CustomTime("08:30", "17:00")},
        )
        resolved = apply_roster([junior], roster)
        assert resolved[0].current_shift == "AT19"
        assert resolved[0].custom_time == CustomTime("08:30", "17:00")
        assert junior.current_shift == "T1"
        assert junior.custom_time is None

    def test_missing_roster_entry_defaults_to_day_shift(self, junior: Staff):
        resolved = apply_roster([replace(junior, current_shift="OFF")], None)
        assert resolved[0].current_shift == "T1"
