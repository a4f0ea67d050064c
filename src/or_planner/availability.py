"""
Availability checks: vacations, roster shift codes, custom windows and
linked coworker dependencies.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, List, Mapping

from .dates import as_date, weekday_abbreviation
from .defaults import DEFAULT_SHIFT_CODE, FULL_SHIFT_MINUTES, NON_WORKING_SHIFTS, RECOVERY
from .models import AppConfig, Roster, ShiftDef, Staff

logger = logging.getLogger(__name__)


def is_on_vacation(staff: Staff, day: date | str) -> bool:
    """True iff the date falls within any inclusive vacation range."""
    return staff.is_on_vacation(as_date(day))


def is_scheduled(staff: Staff, day: date | str) -> bool:
    """Whether the person is rostered to work on the date.

    Does not look at the sick flag: sick staff are still scheduled and shown
    greyed out by the planning board.
    """
    day = as_date(day)
    if is_on_vacation(staff, day):
        return False
    if staff.current_shift in NON_WORKING_SHIFTS:
        return False
    # A custom window means the person was explicitly rostered for the day
    if staff.custom_time is not None and staff.custom_time.start and staff.custom_time.end:
        return True
    return weekday_abbreviation(day) in staff.work_days


def is_available_for_auto_assignment(staff: Staff, day: date | str) -> bool:
    """Stricter than is_scheduled: sick or vacationing staff never qualify."""
    day = as_date(day)
    if staff.is_sick or is_on_vacation(staff, day):
        return False
    return is_scheduled(staff, day)


def resolve_linked_availability(
    staff: Staff, all_staff: Iterable[Staff], day: date | str
) -> bool:
    """Check the coworker a staff member depends on.

    Fails open: an unknown coworker id never blocks anyone.
    """
    if not staff.requires_coworker_id:
        return True
    coworker = next(
        (s for s in all_staff if s.id == staff.requires_coworker_id), None
    )
    if coworker is None:
        logger.debug(
            "Coworker %s of %s not found, treating as present",
            staff.requires_coworker_id,
            staff.id,
        )
        return True
    return not coworker.is_sick and not is_on_vacation(coworker, day)


def is_short_shift(staff: Staff, full_shift_minutes: int = FULL_SHIFT_MINUTES) -> bool:
    """Custom window shorter than a full shift (visible, but not auto-assigned)."""
    if staff.custom_time is None or not staff.custom_time.start or not staff.custom_time.end:
        return False
    return staff.custom_time.duration_minutes < full_shift_minutes


def is_assignable_shift(staff: Staff, config: AppConfig) -> bool:
    """Respect the assignable flag of the person's shift; unknown codes pass."""
    shift = config.shift_def(staff.current_shift or DEFAULT_SHIFT_CODE)
    return shift.is_assignable if shift is not None else True


def is_excluded(staff: Staff, config: AppConfig) -> bool:
    """Name matches one of the configured exclusion keywords (case-insensitive)."""
    name = (staff.name or "").lower()
    return any(k and k.lower() in name for k in config.exclusion_keywords)


def auto_assignment_pool(
    staff: List[Staff], day: date | str, config: AppConfig
) -> List[Staff]:
    """Everyone the engine may place on the date, regardless of room."""
    day = as_date(day)
    return [
        s
        for s in staff
        if is_available_for_auto_assignment(s, day)
        and not is_excluded(s, config)
        and not s.is_management_only
        and is_assignable_shift(s, config)
        and not is_short_shift(s, config.full_shift_minutes)
        and resolve_linked_availability(s, staff, day)
    ]


def recovering_staff_ids(
    previous_roster: Roster | Mapping[str, str] | None,
    shift_defs: Mapping[str, ShiftDef],
) -> List[str]:
    """Staff who worked a recovery-requiring shift the day before.

    Accepts either a Roster or a plain staff id -> shift code mapping.
    """
    if previous_roster is None:
        return []
    shifts = (
        previous_roster.shifts if isinstance(previous_roster, Roster) else previous_roster
    )
    recovering = []
    for staff_id, code in shifts.items():
        shift = shift_defs.get(code)
        if shift is not None and shift.requires_recovery:
            recovering.append(staff_id)
    return recovering


def apply_roster(
    staff: List[Staff],
    roster: Roster | None,
    recovering_ids: Iterable[str] = (),
) -> List[Staff]:
    """Resolve each person's shift code and custom window for the roster date.

    Returns copies; the input records are left untouched. Recovering staff get
    the RECOVERY sentinel regardless of what the roster says.
    """
    recovering = set(recovering_ids)
    shifts = roster.shifts if roster is not None else {}
    custom_times = roster.custom_times if roster is not None else {}

    resolved = []
    for s in staff:
        code = shifts.get(s.id, DEFAULT_SHIFT_CODE)
        if s.id in recovering:
            code = RECOVERY
        resolved.append(
            replace(s, current_shift=code, custom_time=custom_times.get(s.id))
        )
    return resolved
