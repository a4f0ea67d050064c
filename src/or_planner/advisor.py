"""
Replacement suggestions for a single validation issue.
"""

from datetime import date
from typing import List, Sequence

from .availability import (
    is_assignable_shift,
    is_available_for_auto_assignment,
    is_short_shift,
    resolve_linked_availability,
)
from .dates import as_date
from .defaults import MAX_SUGGESTIONS, default_config
from .models import (
    AppConfig,
    Assignment,
    IssueCategory,
    RankedCandidate,
    Room,
    SkillLevel,
    Staff,
    StaffPairing,
    ValidationIssue,
)
from .scoring import dominant_department, is_qualified, rank_candidates


def target_slot(issue: ValidationIssue, team_ids: Sequence[str]) -> int:
    """Slot the suggestion is meant to fill.

    Empty team: the lead slot. Understaffing: the first support slot. An issue
    naming a team member: that member's slot. Otherwise the first support slot.
    """
    if not team_ids:
        return 0
    if issue.category == IssueCategory.UNDERSTAFFING:
        return 1
    if issue.staff_id is not None and issue.staff_id in team_ids:
        return list(team_ids).index(issue.staff_id)
    return 1


def suggest_replacements(
    issue: ValidationIssue,
    room: Room,
    staff: Sequence[Staff],
    assignments: Sequence[Assignment],
    day: date | str,
    config: AppConfig | None = None,
    pairings: Sequence[StaffPairing] = (),
    limit: int = MAX_SUGGESTIONS,
) -> List[RankedCandidate]:
    """Rank free staff who could resolve the issue in the given room.

    Nothing is changed: the caller applies the chosen candidate and
    re-validates.
    """
    config = config or default_config()
    day = as_date(day)
    staff = list(staff)
    staff_by_id = {s.id: s for s in staff}
    assigned = {sid for a in assignments for sid in a.staff_ids}

    team_ids = [sid for a in assignments if a.room_id == room.id for sid in a.staff_ids]
    slot_index = target_slot(issue, team_ids)
    team = [
        staff_by_id[sid]
        for sid in team_ids
        if sid in staff_by_id and sid != issue.staff_id
    ]

    candidates = [
        s
        for s in staff
        if s.id not in assigned
        and is_available_for_auto_assignment(s, day)
        and is_assignable_shift(s, config)
        and is_qualified(s, room, config)
        and resolve_linked_availability(s, staff, day)
    ]

    dominant = dominant_department(room)
    active_pairings = [p for p in pairings if p.active]
    ranked = rank_candidates(
        candidates, room, slot_index, dominant, team, active_pairings, config
    )
    return [
        RankedCandidate(
            staff=candidate,
            score=value,
            reasons=_reasons(candidate, room, dominant, team, active_pairings, config),
        )
        for candidate, value in ranked[:limit]
    ]


def _reasons(
    candidate: Staff,
    room: Room,
    dominant: str,
    team: Sequence[Staff],
    pairings: Sequence[StaffPairing],
    config: AppConfig,
) -> List[str]:
    reasons = []
    skill = candidate.skill_in(dominant)
    if skill >= SkillLevel.JUNIOR:
        reasons.append(f"{skill.label} in {dominant}")
    if candidate.is_lead_capable:
        reasons.append("Lead-qualified")
    if candidate.can_lead(dominant):
        reasons.append(f"Leads {dominant}")

    wanted = (room.name.lower(), room.id.lower())
    if any(r.lower() in wanted for r in candidate.preferred_rooms):
        reasons.append("Preferred room")

    for member in team:
        if any(p.partner_of(member.id) == candidate.id for p in pairings):
            reasons.append(f"Paired with {member.name}")

    if candidate.is_management_only:
        reasons.append("Management override")
    if is_short_shift(candidate, config.full_shift_minutes):
        hours = candidate.custom_time.duration_minutes / 60
        reasons.append(f"Short shift ({hours:.1f}h)")
    return reasons
