"""
Implicit preference learning from manual room moves.

Kept apart from the engine: the caller decides when a move should teach the
staff directory something and persists the returned record itself.
"""

from dataclasses import replace

from .defaults import MAX_PREFERRED_ROOMS
from .models import Room, SkillLevel, Staff


def learn_room_preference(staff: Staff, room: Room) -> Staff:
    """Return a copy of staff updated after being moved into room.

    The room goes to the front of the preferred rooms (at most three kept).
    The room's first primary department goes to the front of the department
    priority, but only if the person actually holds a skill there.
    """
    preferred = [r for r in staff.preferred_rooms if r != room.name]
    preferred.insert(0, room.name)
    preferred = preferred[:MAX_PREFERRED_ROOMS]

    priority = list(staff.department_priority)
    if room.primary_depts:
        main_dept = room.primary_depts[0]
        if staff.skill_in(main_dept) >= SkillLevel.JUNIOR:
            priority = [d for d in priority if d != main_dept]
            priority.insert(0, main_dept)

    return replace(staff, preferred_rooms=preferred, department_priority=priority)
