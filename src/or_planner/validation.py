"""
Rule checks over a completed assignment set.

validate() keeps no state between calls; it is re-run after every change
(manual edit, suggestion applied, optimizer pass).
"""

from collections import defaultdict
from typing import Dict, List, Sequence

from .defaults import default_config
from .models import (
    AppConfig,
    Assignment,
    IssueCategory,
    IssueType,
    Room,
    SkillLevel,
    Staff,
    ValidationIssue,
)
from .scoring import dominant_department, rule_applies


def validate(
    rooms: Sequence[Room],
    assignments: Sequence[Assignment],
    staff: Sequence[Staff],
    config: AppConfig | None = None,
) -> List[ValidationIssue]:
    """Return every rule violation found in the assignment set.

    Order is deterministic: double bookings in assignment order first, then
    per room (in room order) understaffing, skill coverage and
    cross-department operations.
    """
    config = config or default_config()
    staff_by_id = {s.id: s for s in staff}
    rooms_by_id = {r.id: r for r in rooms}
    issues: List[ValidationIssue] = []

    issues.extend(_double_bookings(assignments, rooms_by_id, staff_by_id))

    teams: Dict[str, List[str]] = defaultdict(list)
    has_assignment = set()
    for assignment in assignments:
        teams[assignment.room_id].extend(assignment.staff_ids)
        has_assignment.add(assignment.room_id)

    for room in rooms:
        if not room.is_active and room.id not in has_assignment:
            continue
        team_ids = teams.get(room.id, [])
        team = [staff_by_id[sid] for sid in team_ids if sid in staff_by_id]
        issues.extend(_check_room(room, team_ids, team, config))

    return issues


def _double_bookings(
    assignments: Sequence[Assignment],
    rooms_by_id: Dict[str, Room],
    staff_by_id: Dict[str, Staff],
) -> List[ValidationIssue]:
    rooms_per_staff: Dict[str, List[str]] = defaultdict(list)
    for assignment in assignments:
        for staff_id in assignment.staff_ids:
            if assignment.room_id not in rooms_per_staff[staff_id]:
                rooms_per_staff[staff_id].append(assignment.room_id)

    issues = []
    for assignment in assignments:
        reported = set()
        for staff_id in assignment.staff_ids:
            if staff_id in reported or len(rooms_per_staff[staff_id]) < 2:
                continue
            reported.add(staff_id)
            person = staff_by_id.get(staff_id)
            room_names = [
                rooms_by_id[rid].name if rid in rooms_by_id else rid
                for rid in rooms_per_staff[staff_id]
            ]
            issues.append(
                ValidationIssue(
                    type=IssueType.ERROR,
                    room_id=assignment.room_id,
                    category=IssueCategory.DOUBLE_BOOKING,
                    staff_id=staff_id,
                    message=(
                        f"{person.name if person else staff_id} is double-booked "
                        f"({', '.join(room_names)})."
                    ),
                )
            )
    return issues


def _check_room(
    room: Room, team_ids: List[str], team: List[Staff], config: AppConfig
) -> List[ValidationIssue]:
    issues = []

    if len(team_ids) < room.slot_count:
        issues.append(
            ValidationIssue(
                type=IssueType.WARNING,
                room_id=room.id,
                category=IssueCategory.UNDERSTAFFING,
                message=(
                    f"{room.name} is understaffed "
                    f"({len(team_ids)} of {room.slot_count})."
                ),
            )
        )

    dominant = dominant_department(room)
    if dominant and room.slot_count > 0:
        levels = [member.skill_in(dominant) for member in team]
        if not any(level >= SkillLevel.JUNIOR for level in levels):
            issues.append(
                ValidationIssue(
                    type=IssueType.ERROR,
                    room_id=room.id,
                    category=IssueCategory.MISSING_SKILL,
                    message=f"{room.name}: missing skill {dominant}.",
                )
            )
        elif not any(level >= SkillLevel.EXPERT for level in levels):
            issues.append(
                ValidationIssue(
                    type=IssueType.WARNING,
                    room_id=room.id,
                    category=IssueCategory.WEAK_SKILL,
                    message=f"{room.name}: only Junior coverage for {dominant}.",
                )
            )

    if team:
        for rule in config.special_rules:
            if not rule_applies(rule, room):
                continue
            floor = max(rule.min_level, SkillLevel.JUNIOR)
            if not any(m.skill_in(rule.required_skill) >= floor for m in team):
                issues.append(
                    ValidationIssue(
                        type=IssueType.ERROR,
                        room_id=room.id,
                        category=IssueCategory.MISSING_SKILL,
                        message=(
                            f"{room.name}: missing skill {rule.required_skill} "
                            f"({floor.label} or better)."
                        ),
                    )
                )

    for op in room.operations:
        if op.dept and room.primary_depts and op.dept not in room.primary_depts:
            label = op.procedure or op.id or "operation"
            issues.append(
                ValidationIssue(
                    type=IssueType.WARNING,
                    room_id=room.id,
                    category=IssueCategory.CROSS_DEPARTMENT_TRANSFER,
                    message=(
                        f"{room.name}: {label} ({op.dept}) is outside the room's "
                        f"departments ({', '.join(room.primary_depts)})."
                    ),
                )
            )

    return issues
