"""Tests for the hill-climbing optimizer."""

import pytest
from concurrent.futures import ThreadPoolExecutor

from or_planner.models import Assignment, Staff
from or_planner.optimizer import (
    AssignmentOptimizer,
    OptimizerRequest,
    coverage_alerts,
    run_optimizer,
    submit_refinement,
)
from or_planner.scoring import is_qualified

from builders import make_room


def request_for(assignments, rooms, pool, config, pairings=()):
    return OptimizerRequest.snapshot(assignments, rooms, pool, pool, config, pairings)


def teams(response) -> dict:
    return {a.room_id: a.staff_ids for a in response.assignments}


class TestOptimizerBasics:
    """Basic refinement behaviour."""

    def test_bench_member_replaces_weaker_lead_and_fills_gap(
        self, uch_room, expert_lead, junior, config
    ):
        """A junior-only room gets the benched expert lead and keeps the junior."""
        request = request_for([Assignment("SAAL_1", ["B"])], [uch_room], [expert_lead, junior], config)
        response = run_optimizer(request)

        assert teams(response) == {"SAAL_1": ["A", "B"]}
        assert response.alerts == []
        assert 1 < response.iterations <= config.optimizer_max_iterations

    def test_empty_active_room_is_filled_from_bench(self, uch_room, expert_lead, junior, config):
        response = run_optimizer(request_for([], [uch_room], [expert_lead, junior], config))
        assert teams(response) == {"SAAL_1": ["A", "B"]}

    def test_lateral_swap_between_rooms(self, config):
        """Two people each better suited to the other's room trade places."""
        rooms = [
            make_room("SAAL_1", depts=["UCH"], ops=["UCH"], required=1),
            make_room("SAAL_2", depts=["GYN"], ops=["GYN"], required=1),
        ]
        x = Staff(id="X", name="Xaver", skills={"UCH": "Junior", "GYN": "Expert"})
        y = Staff(id="Y", name="Yara", skills={"UCH": "Expert", "GYN": "Junior"})
        request = request_for(
            [Assignment("SAAL_1", ["X"]), Assignment("SAAL_2", ["Y"])], rooms, [x, y], config
        )
        response = run_optimizer(request)
        assert teams(response) == {"SAAL_1": ["Y"], "SAAL_2": ["X"]}

    def test_score_never_decreases(self, uch_room, expert_lead, junior, config):
        request = request_for([Assignment("SAAL_1", ["B"])], [uch_room], [expert_lead, junior], config)
        optimizer = AssignmentOptimizer(request)
        before = optimizer.schedule_score(request.assignments)
        response = optimizer.optimize()
        assert response.score >= before

    def test_no_iterations_keeps_input(self, uch_room, expert_lead, junior, config):
        config.optimizer_max_iterations = 0
        request = request_for([Assignment("SAAL_1", ["B"])], [uch_room], [expert_lead, junior], config)
        response = run_optimizer(request)
        assert teams(response) == {"SAAL_1": ["B"]}
        assert response.iterations == 0


class TestQualificationSafety:
    """The output never places someone in a room they are not qualified for."""

    def test_unqualified_member_is_removed(self, uch_room, junior, gyn_expert, config):
        request = request_for(
            [Assignment("SAAL_1", ["C", "B"])], [uch_room], [junior, gyn_expert], config
        )
        response = run_optimizer(request)

        assert "C" not in response.assignments[0].staff_ids
        assert any("Removed C" in alert for alert in response.alerts)

    def test_unknown_member_is_removed(self, uch_room, junior, config):
        request = request_for([Assignment("SAAL_1", ["B", "GHOST"])], [uch_room], [junior], config)
        response = run_optimizer(request)
        assert teams(response) == {"SAAL_1": ["B"]}

    def test_all_outputs_qualified(self, config):
        rooms = [
            make_room("SAAL_1", depts=["UCH"], ops=["UCH", "ACH"], required=3),
            make_room("SAAL_2", depts=["GYN"], ops=["GYN"]),
        ]
        pool = [
            Staff(id="P1", name="P1", skills={"UCH": "Expert"}, is_lead_capable=True, lead_depts=["UCH"]),
            Staff(id="P2", name="P2", skills={"ACH": "Junior", "GYN": "Junior"}),
            Staff(id="P3", name="P3", skills={"GYN": "Expert"}),
            Staff(id="P4", name="P4", skills={"HNO": "Expert"}),
            Staff(id="P5", name="P5", skills={"UCH": "Junior", "GYN": "Junior"}),
        ]
        response = run_optimizer(
            request_for([Assignment("SAAL_1", ["P4", "P2"])], rooms, pool, config)
        )
        by_room = {r.id: r for r in rooms}
        by_staff = {s.id: s for s in pool}
        placed = [sid for a in response.assignments for sid in a.staff_ids]
        assert len(placed) == len(set(placed))
        for assignment in response.assignments:
            for sid in assignment.staff_ids:
                assert is_qualified(by_staff[sid], by_room[assignment.room_id], config)


class TestRequestSnapshot:
    """The request is isolated from later caller edits."""

    def test_snapshot_is_deep_copy(self, uch_room, junior, config):
        assignments = [Assignment("SAAL_1", ["B"])]
        request = request_for(assignments, [uch_room], [junior], config)
        assignments[0].staff_ids.append("Z")
        uch_room.operations.clear()

        assert request.assignments[0].staff_ids == ["B"]
        assert request.rooms[0].operation_count == 1

    def test_runs_in_executor(self, uch_room, expert_lead, junior, config):
        request = request_for([], [uch_room], [expert_lead, junior], config)
        with ThreadPoolExecutor(max_workers=1) as executor:
            response = submit_refinement(request, executor).result(timeout=10)
        assert teams(response) == {"SAAL_1": ["A", "B"]}


class TestCoverageAlerts:
    """Alert strings for rooms left short."""

    def test_empty_and_understaffed_rooms(self, config):
        rooms = [
            make_room("SAAL_1", ops=["UCH"]),
            make_room("SAAL_2", depts=["GYN"], ops=["GYN"]),
            make_room("SAAL_3", ops=[]),
        ]
        alerts = coverage_alerts([Assignment("SAAL_1", ["B"])], rooms)
        assert alerts == [
            "WARNING: SAAL_1 (UCH) is understaffed (1/2).",
            "CRITICAL: SAAL_2 (GYN) has no staff.",
        ]

    @pytest.mark.parametrize("team", [["A", "B"], ["A", "B", "C"]])
    def test_full_rooms_raise_nothing(self, team):
        assert coverage_alerts([Assignment("SAAL_1", team)], [make_room()]) == []
