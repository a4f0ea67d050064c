"""Built-in defaults. Plan files override any of these."""

from typing import Dict

from .models import AppConfig, ScoringWeights, ShiftDef, TimelineBounds

# Reserved shift codes
DEFAULT_SHIFT_CODE = "T1"
OFF = "OFF"
RECOVERY = "RECOVERY"
SICK = "SICK"
NON_WORKING_SHIFTS = frozenset({OFF, RECOVERY, SICK})

# Planning knobs
FULL_SHIFT_MINUTES = 450  # custom windows shorter than 7.5h are not auto-assigned
OPTIMIZER_MAX_ITERATIONS = 50
OPTIMIZER_TIMEOUT_SECONDS = 30.0
MAX_PREFERRED_ROOMS = 3
MAX_SUGGESTIONS = 3

DEFAULT_EXCLUSION_KEYWORDS = ["hilfskraft"]

DEFAULT_SHIFTS: Dict[str, ShiftDef] = {
    "T1": ShiftDef("07:00", "15:30", "T1 - Tagdienst"),
    "F7": ShiftDef("07:00", "15:30", "F7 - Frueh"),
    "AT19": ShiftDef("08:30", "17:00", "AT19 - Mittel"),
    "T11": ShiftDef("11:30", "20:00", "T11 - Spaet OP"),
    "T10": ShiftDef("07:00", "17:45", "T10 - Langer Dienst"),
    "F5": ShiftDef("07:00", "13:00", "F5 - Rufdienst nach T10", is_assignable=False),
    "BD": ShiftDef(
        "07:00", "07:00+1", "BD - Bereitschaft", is_assignable=False, requires_recovery=True
    ),
    "N": ShiftDef(
        "20:00", "07:00+1", "N - Nachtdienst", is_assignable=False, requires_recovery=True
    ),
    OFF: ShiftDef("-", "-", "Frei", is_assignable=False),
    RECOVERY: ShiftDef("-", "-", "Erholung", is_assignable=False),
    SICK: ShiftDef("-", "-", "Krank", is_assignable=False),
    "URLAUB": ShiftDef("-", "-", "Urlaub", is_assignable=False),
}


def default_config() -> AppConfig:
    """A fresh configuration populated with the built-in defaults."""
    return AppConfig(
        shifts=dict(DEFAULT_SHIFTS),
        weights=ScoringWeights(),
        departments=[],
        exclusion_keywords=list(DEFAULT_EXCLUSION_KEYWORDS),
        timeline=TimelineBounds(),
        special_rules=[],
        full_shift_minutes=FULL_SHIFT_MINUTES,
        optimizer_max_iterations=OPTIMIZER_MAX_ITERATIONS,
    )
