"""
OR Planner - Operating room staff assignment, validation and resolution.
"""

__version__ = "0.1.0"

from .advisor import suggest_replacements
from .availability import (
    apply_roster,
    is_available_for_auto_assignment,
    is_on_vacation,
    is_scheduled,
    recovering_staff_ids,
    resolve_linked_availability,
)
from .config import ConfigurationError, InvalidDateFormatError, PlanLoader, PlanningInput
from .constructor import GreedyConstructor
from .learning import learn_room_preference
from .models import (
    AppConfig,
    Assignment,
    AssignmentResult,
    IssueCategory,
    IssueType,
    Operation,
    RankedCandidate,
    Room,
    ScoringWeights,
    ShiftDef,
    SkillLevel,
    SpecialRule,
    Staff,
    StaffPairing,
    ValidationIssue,
    VacationPeriod,
)
from .optimizer import AssignmentOptimizer, OptimizerRequest, OptimizerResponse
from .planner import build_assignments, build_assignments_async
from .reporter import PlanReporter
from .scoring import dominant_department, is_qualified, score
from .validation import validate

__all__ = [
    "PlanLoader",
    "PlanningInput",
    "ConfigurationError",
    "InvalidDateFormatError",
    "AppConfig",
    "Assignment",
    "AssignmentResult",
    "IssueCategory",
    "IssueType",
    "Operation",
    "RankedCandidate",
    "Room",
    "ScoringWeights",
    "ShiftDef",
    "SkillLevel",
    "SpecialRule",
    "Staff",
    "StaffPairing",
    "ValidationIssue",
    "VacationPeriod",
    "apply_roster",
    "is_available_for_auto_assignment",
    "is_on_vacation",
    "is_scheduled",
    "recovering_staff_ids",
    "resolve_linked_availability",
    "dominant_department",
    "is_qualified",
    "score",
    "GreedyConstructor",
    "AssignmentOptimizer",
    "OptimizerRequest",
    "OptimizerResponse",
    "build_assignments",
    "build_assignments_async",
    "validate",
    "suggest_replacements",
    "learn_room_preference",
    "PlanReporter",
]
