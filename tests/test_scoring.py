"""Tests for qualification and candidate scoring."""

import pytest
from dataclasses import replace

from or_planner.models import SkillLevel, SpecialRule, Staff, StaffPairing
from or_planner.scoring import dominant_department, is_qualified, rank_candidates, score

from builders import make_room


class TestDominantDepartment:
    """Tests for the operations-weighted department."""

    def test_most_operations_win(self):
        room = make_room(depts=["ACH"], ops=["UCH", "UCH", "ACH"])
        assert dominant_department(room) == "UCH"

    def test_tie_goes_to_first_primary_department(self):
        """Equal counts resolve in the room's declared department order."""
        room = make_room(depts=["ACH", "UCH"], ops=["UCH", "ACH"])
        assert dominant_department(room) == "ACH"

    def test_tie_outside_primary_goes_to_first_operation(self):
        room = make_room(depts=["UCH"], ops=["GYN", "ORTH"])
        assert dominant_department(room) == "GYN"

    def test_no_operations_uses_first_primary_department(self):
        assert dominant_department(make_room(depts=["ACH", "UCH"], ops=[])) == "ACH"
        assert dominant_department(make_room(depts=[], ops=[])) == ""


class TestQualification:
    """Tests for the is_qualified hard gate."""

    def test_junior_in_room_department_qualifies(self, uch_room, junior, config):
        assert is_qualified(junior, uch_room, config)

    def test_other_department_does_not_qualify(self, uch_room, gyn_expert, config):
        assert not is_qualified(gyn_expert, uch_room, config)

    def test_operation_department_qualifies(self, gyn_expert, config):
        """Skill in the department of a scheduled operation is enough."""
        room = make_room(depts=["UCH"], ops=["UCH", "GYN"])
        assert is_qualified(gyn_expert, room, config)

    def test_exclusion_keyword_disqualifies(self, uch_room, config):
        helper = Staff(id="H", name="Hilfskraft Nord", skills={"UCH": "Expert"})
        assert not is_qualified(helper, uch_room, config)

    def test_special_rule_skill_floor(self, expert_lead, config):
        """Rooms triggering a rule need the rule's skill at the given level."""
        config.special_rules = [
            SpecialRule(trigger_dept="ROBOT", required_skill="DA_VINCI", min_level=SkillLevel.EXPERT)
        ]
        room = make_room(tags=["ROBOT"])
        assert not is_qualified(expert_lead, room, config)

        junior_robot = replace(expert_lead, skills={"UCH": "Expert", "DA_VINCI": "Junior"})
        assert not is_qualified(junior_robot, room, config)

        expert_robot = replace(expert_lead, skills={"UCH": "Expert", "DA_VINCI": "Expert"})
        assert is_qualified(expert_robot, room, config)
        assert is_qualified(expert_lead, make_room(), config)


class TestScore:
    """Tests for the score function."""

    def test_expert_lead_in_lead_slot(self, uch_room, expert_lead, config):
        """A matching expert lead scores strongly in slot 0."""
        assert score(expert_lead, uch_room, 0, "UCH", config=config) > 4000

    def test_second_lead_as_support_is_negative(self, uch_room, expert_lead, config):
        """A second lead-capable person in a room is penalised."""
        other_lead = replace(expert_lead, id="A2", name="Arne")
        assert score(other_lead, uch_room, 1, "UCH", [expert_lead], config=config) < 0

    def test_unqualified_gets_penalty(self, uch_room, gyn_expert, config):
        expected = -config.weights.unqualified_penalty
        assert score(gyn_expert, uch_room, 0, "UCH", config=config) == expected

    def test_pairing_short_circuits(self, uch_room, expert_lead, gyn_expert, config):
        """A partner of a team member gets the pairing bonus, qualified or not."""
        pairings = [StaffPairing("A", "C")]
        value = score(gyn_expert, uch_room, 1, "UCH", [expert_lead], pairings=pairings, config=config)
        assert value == config.weights.pairing_bonus

    def test_inactive_pairing_is_ignored(self, uch_room, expert_lead, gyn_expert, config):
        pairings = [StaffPairing("A", "C", active=False)]
        value = score(gyn_expert, uch_room, 1, "UCH", [expert_lead], pairings=pairings, config=config)
        assert value == -config.weights.unqualified_penalty

    def test_expert_beats_junior_in_support_slot(self, uch_room, expert_lead, junior, config):
        expert = Staff(id="E", name="Emil", skills={"UCH": "Expert"})
        team = [expert_lead]
        assert score(expert, uch_room, 1, "UCH", team, config=config) > score(
            junior, uch_room, 1, "UCH", team, config=config
        )

    def test_wrong_lead_department_is_heavily_penalised(self, uch_room, config):
        """A lead whose departments match neither the operations nor the room."""
        wrong = Staff(
            id="W",
            name="Wim",
            skills={"UCH": "Junior", "GYN": "Expert"},
            is_lead_capable=True,
            lead_depts=["GYN"],
        )
        assert score(wrong, uch_room, 0, "UCH", config=config) < -100000

    def test_department_priority(self, uch_room, junior, config):
        """Listed departments earn a rank-weighted bonus; unlisted ones a penalty."""
        base = score(junior, uch_room, 1, "UCH", config=config)
        second = replace(junior, department_priority=["GYN", "UCH"])
        unlisted = replace(junior, department_priority=["GYN"])
        w = config.weights
        assert score(second, uch_room, 1, "UCH", config=config) == base + (
            w.dept_priority_bonus - w.dept_priority_step
        )
        assert score(unlisted, uch_room, 1, "UCH", config=config) == (
            base - w.dept_priority_mismatch_penalty
        )

    def test_preferred_room_bonus_decays_with_position(self, uch_room, junior, config):
        base = score(junior, uch_room, 1, "UCH", config=config)
        first = replace(junior, preferred_rooms=["saal_1"])
        second = replace(junior, preferred_rooms=["SAAL_2", "SAAL_1"])
        bonus = config.weights.preferred_room_bonus
        assert score(first, uch_room, 1, "UCH", config=config) == base + bonus
        assert score(second, uch_room, 1, "UCH", config=config) == base + bonus / 2

    def test_score_is_deterministic(self, uch_room, expert_lead, junior, config):
        first = score(junior, uch_room, 1, "UCH", [expert_lead], config=config)
        assert score(junior, uch_room, 1, "UCH", [expert_lead], config=config) == first


class TestRankCandidates:
    """Tests for candidate ranking."""

    def test_best_first(self, uch_room, expert_lead, junior, config):
        ranked = rank_candidates([junior, expert_lead], uch_room, 0, "UCH", config=config)
        assert [s.id for s, _ in ranked] == ["A", "B"]

    def test_ties_keep_input_order(self, uch_room, junior, config):
        """Equal scores keep the order the candidates were given in."""
        twins = [replace(junior, id=f"B{k}") for k in range(4)]
        ranked = rank_candidates(twins, uch_room, 1, "UCH", config=config)
        assert [s.id for s, _ in ranked] == ["B0", "B1", "B2", "B3"]
        assert len({value for _, value in ranked}) == 1

    @pytest.mark.parametrize("slot", [0, 1])
    def test_empty_pool(self, uch_room, config, slot: int):
        assert rank_candidates([], uch_room, slot, "UCH", config=config) == []
