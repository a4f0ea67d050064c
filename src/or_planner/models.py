"""
Data models for the operating-room staff planner.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum, IntEnum
from typing import Dict, List

from .dates import time_to_minutes


class SkillLevel(IntEnum):
    """Ordered capability level of a staff member in a department."""

    NONE = 0
    JUNIOR = 1
    EXPERT = 2
    EXPERT_PLUS = 3

    @classmethod
    def parse(cls, raw) -> "SkillLevel":
        """Parse a skill token as used in staff directories.

        Accepts the long forms ("Expert", "Expert+", "Junior") as well as the
        short forms ("E", "J"). Anything unrecognised counts as no skill.
        """
        if isinstance(raw, SkillLevel):
            return raw
        if raw is None:
            return cls.NONE
        token = str(raw).strip().lower()
        return _SKILL_TOKENS.get(token, cls.NONE)

    @property
    def label(self) -> str:
        return _SKILL_LABELS[self]


_SKILL_TOKENS = {
    "expert+": SkillLevel.EXPERT_PLUS,
    "expert": SkillLevel.EXPERT,
    "e": SkillLevel.EXPERT,
    "junior": SkillLevel.JUNIOR,
    "j": SkillLevel.JUNIOR,
}

_SKILL_LABELS = {
    SkillLevel.NONE: "",
    SkillLevel.JUNIOR: "Junior",
    SkillLevel.EXPERT: "Expert",
    SkillLevel.EXPERT_PLUS: "Expert+",
}


@dataclass
class VacationPeriod:
    """Represents a vacation period for a staff member."""

    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(
                f"End date {self.end} cannot be before start date {self.start}"
            )

    def contains(self, check_date: date) -> bool:
        """Check if a date falls within this vacation period."""
        return self.start <= check_date <= self.end

    @property
    def duration_days(self) -> int:
        """Number of days in this vacation period (inclusive)."""
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class CustomTime:
    """Individual working window for one day ("HH:MM" strings)."""

    start: str
    end: str

    @property
    def duration_minutes(self) -> int:
        """Length of the window, wrapping past midnight if end < start."""
        start = time_to_minutes(self.start)
        end = time_to_minutes(self.end)
        if end < start:
            end += 24 * 60
        return end - start


@dataclass
class Staff:
    """A staff member with skills, flags and availability for one planning run."""

    id: str
    name: str
    role: str = ""
    skills: Dict[str, SkillLevel] = field(default_factory=dict)
    is_lead_capable: bool = False
    is_management_only: bool = False
    is_sick: bool = False
    lead_depts: List[str] = field(default_factory=list)
    work_days: List[str] = field(
        default_factory=lambda: ["Mo", "Di", "Mi", "Do", "Fr"]
    )
    vacations: List[VacationPeriod] = field(default_factory=list)
    preferred_rooms: List[str] = field(default_factory=list)
    department_priority: List[str] = field(default_factory=list)
    current_shift: str = "T1"
    custom_time: CustomTime | None = None
    requires_coworker_id: str | None = None

    def __post_init__(self):
        # Upstream records are not guaranteed to be complete
        self.skills = {
            dept: SkillLevel.parse(level) for dept, level in (self.skills or {}).items()
        }
        self.lead_depts = list(self.lead_depts or [])
        self.vacations = list(self.vacations or [])
        self.preferred_rooms = list(self.preferred_rooms or [])
        self.department_priority = list(self.department_priority or [])
        if self.work_days is None:
            self.work_days = []
        if not self.current_shift:
            self.current_shift = "T1"

    def skill_in(self, dept: str) -> SkillLevel:
        """Skill level held in a department (NONE if absent)."""
        return self.skills.get(dept, SkillLevel.NONE)

    def is_on_vacation(self, check_date: date) -> bool:
        """Check if staff member is on vacation on a specific date."""
        return any(vac.contains(check_date) for vac in self.vacations)

    def can_lead(self, dept: str) -> bool:
        """Lead-capable and eligible to lead the given department."""
        return self.is_lead_capable and dept in self.lead_depts


@dataclass
class Operation:
    """A procedure scheduled in a room for the day."""

    dept: str
    start: str | None = None
    duration: int | None = None  # minutes
    procedure: str = ""
    id: str = ""


@dataclass
class Room:
    """An operating room with its department affinities and the day's program."""

    id: str
    name: str
    primary_depts: List[str] = field(default_factory=list)
    required_staff_count: int = 2
    operations: List[Operation] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)

    PRIORITY_TAG = "PRIORITY"

    def __post_init__(self):
        self.primary_depts = list(self.primary_depts or [])
        self.operations = list(self.operations or [])
        self.tags = list(self.tags or [])
        if self.required_staff_count is None:
            self.required_staff_count = 2

    @property
    def is_priority(self) -> bool:
        return self.PRIORITY_TAG in self.tags

    @property
    def operation_count(self) -> int:
        return len(self.operations)

    @property
    def is_active(self) -> bool:
        """Rooms without operations are only staffed when tagged priority."""
        return self.operation_count > 0 or self.is_priority

    @property
    def slot_count(self) -> int:
        """Number of slots to fill; malformed counts collapse to zero."""
        try:
            return max(0, int(self.required_staff_count))
        except (TypeError, ValueError):
            return 0

    @property
    def active_depts(self) -> List[str]:
        """Primary departments followed by any further operation departments."""
        depts = list(self.primary_depts)
        for op in self.operations:
            if op.dept and op.dept not in depts:
                depts.append(op.dept)
        return depts


@dataclass
class Assignment:
    """Ordered team of a room: index 0 is the lead, the rest support."""

    room_id: str
    staff_ids: List[str] = field(default_factory=list)

    @property
    def lead_id(self) -> str | None:
        return self.staff_ids[0] if self.staff_ids else None


@dataclass(frozen=True)
class StaffPairing:
    """Administratively declared affinity between two staff members."""

    staff_id_1: str
    staff_id_2: str
    type: str = "TANDEM"
    active: bool = True

    def involves(self, staff_id: str) -> bool:
        return staff_id in (self.staff_id_1, self.staff_id_2)

    def partner_of(self, staff_id: str) -> str | None:
        """The other member of the pair, or None if staff_id is not in it."""
        if staff_id == self.staff_id_1:
            return self.staff_id_2
        if staff_id == self.staff_id_2:
            return self.staff_id_1
        return None


@dataclass(frozen=True)
class ShiftDef:
    """Definition of a roster shift code."""

    start: str
    end: str
    label: str = ""
    is_assignable: bool = True
    requires_recovery: bool = False

    UNBOUNDED = "-"

    @property
    def is_time_bounded(self) -> bool:
        return self.start != self.UNBOUNDED and self.end != self.UNBOUNDED


@dataclass(frozen=True)
class SpecialRule:
    """Skill floor for rooms of a category (e.g. robotics)."""

    trigger_dept: str
    required_skill: str
    min_level: SkillLevel = SkillLevel.JUNIOR


@dataclass(frozen=True)
class ScoringWeights:
    """Scalar weights applied to each signal of the candidate score."""

    pairing_bonus: float = 20000.0
    unqualified_penalty: float = 10000.0
    dept_priority_bonus: float = 2500.0
    dept_priority_step: float = 1000.0
    dept_priority_mismatch_penalty: float = 4000.0
    double_lead_penalty: float = 5000.0
    lead_role_bonus: float = 3000.0
    op_match_bonus: float = 2000.0
    room_owner_bonus: float = 1000.0
    wrong_lead_penalty: float = 500000.0
    expert_match_bonus: float = 1000.0
    junior_match_bonus: float = 400.0
    lead_without_skill_penalty: float = 10000.0
    springer_expert_bonus: float = 800.0
    springer_junior_bonus: float = 300.0
    double_lead_springer_penalty: float = 2000.0
    preferred_room_bonus: float = 500.0
    secondary_skill_bonus: float = 200.0
    team_composition_bonus: float = 600.0
    coverage_penalty: float = 150.0
    full_team_bonus: float = 500.0

    @classmethod
    def from_mapping(cls, raw: Dict[str, float] | None) -> "ScoringWeights":
        """Build weights from a partial mapping; unknown keys are rejected."""
        raw = raw or {}
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(f"Unknown scoring weight(s): {', '.join(unknown)}")
        return cls(**{key: float(value) for key, value in raw.items()})


@dataclass(frozen=True)
class TimelineBounds:
    """Display range of the day view; not used for scheduling."""

    start_hour: int = 7
    end_hour: int = 17


@dataclass
class AppConfig:
    """Configuration snapshot consumed by the planning engine."""

    shifts: Dict[str, ShiftDef] = field(default_factory=dict)
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    departments: List[str] = field(default_factory=list)
    exclusion_keywords: List[str] = field(default_factory=list)
    timeline: TimelineBounds = field(default_factory=TimelineBounds)
    special_rules: List[SpecialRule] = field(default_factory=list)
    full_shift_minutes: int = 450
    optimizer_max_iterations: int = 50

    def shift_def(self, code: str | None) -> ShiftDef | None:
        """Look up a shift code; None for unknown codes."""
        if code is None:
            return None
        return self.shifts.get(code)


@dataclass
class Roster:
    """Shift codes and custom windows for one date."""

    date: date
    shifts: Dict[str, str] = field(default_factory=dict)
    custom_times: Dict[str, CustomTime] = field(default_factory=dict)


class IssueType(str, Enum):
    """Severity of a validation issue."""

    ERROR = "error"
    WARNING = "warning"


class IssueCategory(str, Enum):
    """Machine-checkable tag of a validation issue."""

    DOUBLE_BOOKING = "double-booking"
    UNDERSTAFFING = "understaffing"
    MISSING_SKILL = "missing-skill"
    WEAK_SKILL = "weak-skill"
    CROSS_DEPARTMENT_TRANSFER = "cross-department-transfer"


@dataclass(frozen=True)
class ValidationIssue:
    """A single rule violation found in an assignment set."""

    type: IssueType
    room_id: str
    category: IssueCategory
    message: str
    staff_id: str | None = None

    def __str__(self):
        return f"[{self.type.value.upper()}] {self.category.value}: {self.message}"


@dataclass
class RankedCandidate:
    """Replacement suggestion with its score and human-readable reasons."""

    staff: Staff
    score: float
    reasons: List[str] = field(default_factory=list)


@dataclass
class AssignmentResult:
    """Output of a planning run."""

    assignments: List[Assignment]
    alerts: List[str] = field(default_factory=list)
    unassigned_staff: List[str] = field(default_factory=list)
    optimized: bool = False
    score: float | None = None

    def team_of(self, room_id: str) -> List[str]:
        """Staff ids assigned to a room (empty if the room has no team)."""
        for assignment in self.assignments:
            if assignment.room_id == room_id:
                return list(assignment.staff_ids)
        return []

    @property
    def assigned_staff_ids(self) -> List[str]:
        return [sid for a in self.assignments for sid in a.staff_ids]
