"""
Qualification gate and candidate scoring.

Everything here is pure: the constructor, the optimizer and the resolution
advisor call these functions many times per slot and rely on identical inputs
giving identical results.
"""

from typing import Dict, List, Sequence, Tuple

from .availability import is_excluded
from .defaults import default_config
from .models import (
    AppConfig,
    Room,
    ScoringWeights,
    SkillLevel,
    SpecialRule,
    Staff,
    StaffPairing,
)

_FALLBACK_CONFIG = default_config()


def dominant_department(room: Room) -> str:
    """Department with the most operations in the room today.

    Ties go to the department declared first in the room's primary
    departments, then to the one whose operation appears first. Without
    operations the first primary department is used.
    """
    counts: Dict[str, int] = {}
    for op in room.operations:
        if op.dept:
            counts[op.dept] = counts.get(op.dept, 0) + 1

    if not counts:
        return room.primary_depts[0] if room.primary_depts else ""

    best = max(counts.values())
    tied = [dept for dept, count in counts.items() if count == best]
    for dept in room.primary_depts:
        if dept in tied:
            return dept
    return tied[0]


def rule_applies(rule: SpecialRule, room: Room) -> bool:
    return (
        rule.trigger_dept in room.primary_depts
        or rule.trigger_dept in room.tags
        or any(op.dept == rule.trigger_dept for op in room.operations)
    )


def is_qualified(staff: Staff, room: Room, config: AppConfig | None = None) -> bool:
    """Hard gate: may this person work in this room at all?

    Requires at least Junior skill in one of the room's departments (primary
    departments plus those of today's operations), no exclusion keyword match,
    and the skill floor of every special rule the room triggers.
    """
    config = config or _FALLBACK_CONFIG
    if is_excluded(staff, config):
        return False

    for rule in config.special_rules:
        if rule_applies(rule, room):
            floor = max(rule.min_level, SkillLevel.JUNIOR)
            if staff.skill_in(rule.required_skill) < floor:
                return False

    return any(staff.skill_in(dept) >= SkillLevel.JUNIOR for dept in room.active_depts)


def _paired_with_team(
    staff: Staff, team_ids: Sequence[str], pairings: Sequence[StaffPairing]
) -> bool:
    for pairing in pairings:
        if pairing.active and pairing.partner_of(staff.id) in team_ids:
            return True
    return False


def score(
    staff: Staff,
    room: Room,
    slot_index: int,
    dominant_dept: str,
    current_team: Sequence[Staff] = (),
    weights: ScoringWeights | None = None,
    pairings: Sequence[StaffPairing] = (),
    config: AppConfig | None = None,
) -> float:
    """Fitness of a candidate for one slot of a room, given the partial team.

    Higher is better. A partner of someone already on the team short-circuits
    to the pairing bonus; unqualified candidates get the negative
    unqualified penalty.
    """
    config = config or _FALLBACK_CONFIG
    w = weights or config.weights
    team_ids = [member.id for member in current_team]

    if _paired_with_team(staff, team_ids, pairings):
        return w.pairing_bonus

    if not is_qualified(staff, room, config):
        return -w.unqualified_penalty

    total = 0.0
    skill = staff.skill_in(dominant_dept)
    is_expert = skill >= SkillLevel.EXPERT
    is_junior = skill == SkillLevel.JUNIOR

    if staff.department_priority:
        if dominant_dept in staff.department_priority:
            rank = staff.department_priority.index(dominant_dept)
            total += max(0.0, w.dept_priority_bonus - rank * w.dept_priority_step)
        else:
            total -= w.dept_priority_mismatch_penalty

    # Second lead-capable person in the same room
    if staff.is_lead_capable and any(m.is_lead_capable for m in current_team):
        total -= w.double_lead_penalty

    if slot_index == 0:
        if staff.is_lead_capable:
            total += w.lead_role_bonus
            matches_ops = dominant_dept in staff.lead_depts
            matches_room = any(d in staff.lead_depts for d in room.primary_depts)
            if matches_ops:
                total += w.op_match_bonus
            if matches_room:
                total += w.room_owner_bonus
            if staff.lead_depts and not (matches_ops or matches_room):
                total -= w.wrong_lead_penalty
            if not (is_expert or is_junior):
                total -= w.lead_without_skill_penalty

        if is_expert:
            total += w.expert_match_bonus
        elif is_junior:
            total += w.junior_match_bonus
    else:
        if is_expert:
            total += w.springer_expert_bonus
        elif is_junior:
            total += w.springer_junior_bonus
        if staff.is_lead_capable:
            total -= w.double_lead_springer_penalty

    wanted = (room.name.lower(), room.id.lower())
    for position, preferred in enumerate(staff.preferred_rooms):
        if preferred.lower() in wanted:
            total += w.preferred_room_bonus / (position + 1)
            break

    secondary = {op.dept for op in room.operations if op.dept and op.dept != dominant_dept}
    for dept in sorted(secondary):
        if staff.skill_in(dept) >= SkillLevel.EXPERT:
            total += w.secondary_skill_bonus

    if current_team:
        team_has_expert = any(
            m.skill_in(dominant_dept) >= SkillLevel.EXPERT for m in current_team
        )
        if is_expert and not team_has_expert:
            total += w.team_composition_bonus

        uncovered = [
            dept
            for dept in room.active_depts
            if not any(m.skill_in(dept) >= SkillLevel.JUNIOR for m in current_team)
        ]
        if uncovered and not any(
            staff.skill_in(dept) >= SkillLevel.JUNIOR for dept in uncovered
        ):
            total -= w.coverage_penalty

    return total


def rank_candidates(
    candidates: Sequence[Staff],
    room: Room,
    slot_index: int,
    dominant_dept: str,
    current_team: Sequence[Staff] = (),
    pairings: Sequence[StaffPairing] = (),
    config: AppConfig | None = None,
) -> List[Tuple[Staff, float]]:
    """Candidates with their scores, best first.

    Sorted once on score; equal scores keep their input order.
    """
    config = config or _FALLBACK_CONFIG
    scored = [
        (
            candidate,
            score(
                candidate,
                room,
                slot_index,
                dominant_dept,
                current_team,
                config.weights,
                pairings,
                config,
            ),
        )
        for candidate in candidates
    ]
    return sorted(scored, key=lambda item: item[1], reverse=True)
