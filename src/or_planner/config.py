"""
Plan loader for parsing YAML planning files.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .availability import apply_roster, recovering_staff_ids
from .dates import as_date, format_date, parse_date, previous_day
from .defaults import default_config
from .models import (
    AppConfig,
    CustomTime,
    Operation,
    Roster,
    Room,
    ScoringWeights,
    ShiftDef,
    SkillLevel,
    SpecialRule,
    Staff,
    StaffPairing,
    TimelineBounds,
    VacationPeriod,
)

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Custom exception for configuration errors."""

    pass


class InvalidDateFormatError(ConfigurationError):
    """Raised when a date is not in DD.MM.YYYY format."""

    pass


@dataclass
class PlanningInput:
    """Everything a plan file describes, ready for the planning engine."""

    date: date | None
    config: AppConfig
    staff: List[Staff] = field(default_factory=list)
    rooms: List[Room] = field(default_factory=list)
    pairings: List[StaffPairing] = field(default_factory=list)
    rosters: Dict[date, Roster] = field(default_factory=dict)

    def roster_for(self, day: date | str) -> Roster | None:
        return self.rosters.get(as_date(day))

    def staff_on(self, day: date | str) -> List[Staff]:
        """Staff with the day's shift codes applied.

        Whoever worked a shift requiring recovery on the previous day is set
        to RECOVERY.
        """
        day = as_date(day)
        recovering = recovering_staff_ids(
            self.rosters.get(previous_day(day)), self.config.shifts
        )
        return apply_roster(self.staff, self.rosters.get(day), recovering)


class PlanLoader:
    """Loads and validates operating-room planning input from YAML files."""

    def __init__(self, config_path: str | Path):
        """
        Initialize the PlanLoader with a plan file path.

        Args:
            config_path: Path to the YAML plan file

        Raises:
            FileNotFoundError: If the plan file doesn't exist
        """
        self.config_path = Path(config_path)

        if not self.config_path.exists():
            raise FileNotFoundError(f"Plan file not found: {self.config_path}")

        self._raw_config: Dict[str, Any] | None = None
        self._config: PlanningInput | None = None

    def load(self) -> PlanningInput:
        """
        Load and parse the plan file.

        Returns:
            PlanningInput with all parsed data

        Raises:
            InvalidDateFormatError: If dates are not in DD.MM.YYYY format
            ConfigurationError: If the plan is invalid
        """
        with open(self.config_path, "r", encoding="utf-8") as f:
            try:
                self._raw_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(self._raw_config, dict):
            raise ConfigurationError(
                f"Plan file must contain a mapping at the top level: {self.config_path}"
            )

        self._config = self._parse_config()
        self._validate()

        return self._config

    def reload(self) -> PlanningInput:
        """
        Reload the plan from the file.

        Useful if the file has been modified.
        """
        return self.load()

    @property
    def config(self) -> PlanningInput:
        """
        Get the loaded planning input.

        Raises:
            RuntimeError: If load() hasn't been called yet
        """
        if self._config is None:
            raise RuntimeError("Plan not loaded. Call load() first.")
        return self._config

    @property
    def raw_config(self) -> Dict[str, Any]:
        """
        Get the raw plan dictionary.

        Raises:
            RuntimeError: If load() hasn't been called yet
        """
        if self._raw_config is None:
            raise RuntimeError("Plan not loaded. Call load() first.")
        return self._raw_config

    def _parse_config(self) -> PlanningInput:
        """Parse raw YAML data into a PlanningInput object."""
        raw = self._raw_config

        planning = raw.get("planning") or {}
        plan_date = None
        if planning.get("date") is not None:
            plan_date = self._parse_date(planning["date"], "planning.date")

        app_config = self._parse_app_config(raw.get("config") or {})
        staff = self._parse_staff(raw.get("staff") or [])
        rooms = self._parse_rooms(raw.get("rooms") or [])
        pairings = self._parse_pairings(raw.get("pairings") or [])
        rosters = self._parse_rosters(raw.get("roster") or {})

        return PlanningInput(
            date=plan_date,
            config=app_config,
            staff=staff,
            rooms=rooms,
            pairings=pairings,
            rosters=rosters,
        )

    def _parse_date(self, value: Any, where: str) -> date:
        if isinstance(value, date):
            return value
        try:
            return parse_date(value)
        except ValueError as e:
            raise InvalidDateFormatError(
                f"{where} must be in DD.MM.YYYY format, got: {value}. "
                f"Example: 16.03.2026"
            ) from e

    def _parse_app_config(self, config_raw: Dict[str, Any]) -> AppConfig:
        """Overlay the plan's config section on the built-in defaults."""
        app_config = default_config()

        for code, shift_raw in (config_raw.get("shifts") or {}).items():
            shift_raw = shift_raw or {}
            app_config.shifts[str(code)] = ShiftDef(
                start=_time_text(shift_raw.get("start", ShiftDef.UNBOUNDED)),
                end=_time_text(shift_raw.get("end", ShiftDef.UNBOUNDED)),
                label=shift_raw.get("label", str(code)),
                is_assignable=bool(shift_raw.get("assignable", True)),
                requires_recovery=bool(shift_raw.get("requires_recovery", False)),
            )

        try:
            app_config.weights = ScoringWeights.from_mapping(config_raw.get("weights"))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid scoring weights: {e}") from e

        if "departments" in config_raw:
            app_config.departments = list(config_raw["departments"] or [])
        if "exclusion_keywords" in config_raw:
            app_config.exclusion_keywords = [
                str(k) for k in config_raw["exclusion_keywords"] or []
            ]

        timeline = config_raw.get("timeline") or {}
        app_config.timeline = TimelineBounds(
            start_hour=int(timeline.get("start_hour", app_config.timeline.start_hour)),
            end_hour=int(timeline.get("end_hour", app_config.timeline.end_hour)),
        )
        if app_config.timeline.start_hour >= app_config.timeline.end_hour:
            raise ConfigurationError(
                f"timeline.start_hour ({app_config.timeline.start_hour}) must be before "
                f"timeline.end_hour ({app_config.timeline.end_hour})"
            )

        app_config.special_rules = [
            self._parse_special_rule(rule_raw)
            for rule_raw in config_raw.get("special_rules") or []
        ]

        try:
            if "full_shift_minutes" in config_raw:
                app_config.full_shift_minutes = int(config_raw["full_shift_minutes"])
            if "optimizer_max_iterations" in config_raw:
                app_config.optimizer_max_iterations = int(
                    config_raw["optimizer_max_iterations"]
                )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid planning limit: {e}") from e

        return app_config

    def _parse_special_rule(self, rule_raw: Dict[str, Any]) -> SpecialRule:
        trigger = rule_raw.get("trigger_dept")
        required = rule_raw.get("required_skill")
        if not trigger or not required:
            raise ConfigurationError(
                f"Special rule needs trigger_dept and required_skill, got: {rule_raw}"
            )
        level = SkillLevel.parse(rule_raw.get("min_level", "Junior"))
        if level == SkillLevel.NONE:
            raise ConfigurationError(
                f"Special rule for {trigger} has an unknown min_level: "
                f"{rule_raw.get('min_level')}"
            )
        return SpecialRule(trigger_dept=trigger, required_skill=required, min_level=level)

    def _parse_staff(self, staff_raw: List[Dict[str, Any]]) -> List[Staff]:
        """Parse staff records from raw plan data."""
        staff = []

        for person in staff_raw:
            staff_id = person.get("id")
            if not staff_id:
                raise ConfigurationError(f"Staff entry without id: {person}")
            staff_id = str(staff_id)

            kwargs: Dict[str, Any] = {}
            if "work_days" in person:
                kwargs["work_days"] = list(person["work_days"] or [])

            staff.append(
                Staff(
                    id=staff_id,
                    name=str(person.get("name", staff_id)),
                    role=person.get("role", ""),
                    skills={
                        str(dept): level
                        for dept, level in (person.get("skills") or {}).items()
                    },
                    is_lead_capable=bool(person.get("lead_capable", False)),
                    is_management_only=bool(person.get("management_only", False)),
                    is_sick=bool(person.get("sick", False)),
                    lead_depts=_text_list(person.get("lead_depts")),
                    vacations=self._parse_vacations(
                        person.get("vacations") or [], staff_id
                    ),
                    preferred_rooms=_text_list(person.get("preferred_rooms")),
                    department_priority=_text_list(person.get("department_priority")),
                    requires_coworker_id=(
                        str(person["requires_coworker"])
                        if person.get("requires_coworker") is not None
                        else None
                    ),
                    **kwargs,
                )
            )

        return staff

    def _parse_vacations(
        self, vacations_raw: List[Dict[str, Any]], staff_id: str
    ) -> List[VacationPeriod]:
        """Parse vacation periods for a staff member."""
        vacations = []

        for vac_data in vacations_raw:
            start = self._parse_date(vac_data.get("start"), f"Vacation start of {staff_id}")
            end = self._parse_date(vac_data.get("end"), f"Vacation end of {staff_id}")
            try:
                vacations.append(VacationPeriod(start=start, end=end))
            except ValueError as e:
                raise ConfigurationError(f"Invalid vacation for {staff_id}: {e}") from e

        return vacations

    def _parse_rooms(self, rooms_raw: List[Dict[str, Any]]) -> List[Room]:
        """Parse rooms and today's operations."""
        rooms = []

        for room_raw in rooms_raw:
            room_id = room_raw.get("id")
            if not room_id:
                raise ConfigurationError(f"Room entry without id: {room_raw}")
            room_id = str(room_id)

            operations = []
            for index, op in enumerate(room_raw.get("operations") or []):
                if not op.get("dept"):
                    raise ConfigurationError(
                        f"Operation {index + 1} in room {room_id} has no dept"
                    )
                operations.append(
                    Operation(
                        dept=str(op["dept"]),
                        start=_time_text(op["start"]) if op.get("start") is not None else None,
                        duration=op.get("duration"),
                        procedure=op.get("procedure", ""),
                        id=str(op.get("id", "")),
                    )
                )

            rooms.append(
                Room(
                    id=room_id,
                    name=str(room_raw.get("name", room_id)),
                    primary_depts=_text_list(room_raw.get("primary_depts")),
                    required_staff_count=room_raw.get("required_staff", 2),
                    operations=operations,
                    tags=_text_list(room_raw.get("tags")),
                )
            )

        return rooms

    def _parse_pairings(self, pairings_raw: List[Any]) -> List[StaffPairing]:
        """Pairings are either [id1, id2] lists or mappings."""
        pairings = []

        for entry in pairings_raw:
            if isinstance(entry, (list, tuple)):
                if len(entry) != 2:
                    raise ConfigurationError(f"A pairing needs exactly two staff ids: {entry}")
                pairings.append(StaffPairing(str(entry[0]), str(entry[1])))
            elif isinstance(entry, dict):
                pairings.append(
                    StaffPairing(
                        staff_id_1=str(entry.get("staff_id_1")),
                        staff_id_2=str(entry.get("staff_id_2")),
                        type=entry.get("type", "TANDEM"),
                        active=bool(entry.get("active", True)),
                    )
                )
            else:
                raise ConfigurationError(f"Invalid pairing entry: {entry}")

        return pairings

    def _parse_rosters(self, roster_raw: Dict[Any, Any]) -> Dict[date, Roster]:
        """
        Parse per-day rosters.

        Each day maps staff ids to either a shift code or a mapping with
        'shift' and an optional custom 'start'/'end' window.
        """
        rosters = {}

        for day_raw, entries in roster_raw.items():
            day = self._parse_date(day_raw, "Roster date")
            roster = Roster(date=day)
            for staff_id, entry in (entries or {}).items():
                staff_id = str(staff_id)
                if isinstance(entry, dict):
                    roster.shifts[staff_id] = str(entry.get("shift", "T1"))
                    if entry.get("start") is not None and entry.get("end") is not None:
                        roster.custom_times[staff_id] = CustomTime(
                            _time_text(entry["start"]), _time_text(entry["end"])
                        )
                else:
                    roster.shifts[staff_id] = str(entry)
            rosters[day] = roster

        return rosters

    def _validate(self) -> None:
        """
        Validate that the plan is internally consistent.

        Raises:
            ConfigurationError: If the plan has issues
        """
        plan = self._config

        staff_ids = [s.id for s in plan.staff]
        duplicates = sorted({sid for sid in staff_ids if staff_ids.count(sid) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate staff id(s): {', '.join(duplicates)}")

        room_ids = [r.id for r in plan.rooms]
        duplicates = sorted({rid for rid in room_ids if room_ids.count(rid) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate room id(s): {', '.join(duplicates)}")

        known = set(staff_ids)
        for pairing in plan.pairings:
            for sid in (pairing.staff_id_1, pairing.staff_id_2):
                if sid not in known:
                    raise ConfigurationError(
                        f"Pairing references unknown staff member '{sid}'"
                    )

        for day, roster in plan.rosters.items():
            for sid, code in roster.shifts.items():
                if sid not in known:
                    raise ConfigurationError(
                        f"Roster for {format_date(day)} references unknown staff member '{sid}'"
                    )
                if code not in plan.config.shifts:
                    raise ConfigurationError(
                        f"Roster for {format_date(day)} uses undefined shift '{code}' "
                        f"for {sid}. Defined shifts: {', '.join(plan.config.shifts)}"
                    )

        self._check_departments()

    def _check_departments(self) -> None:
        """Warn about departments that are used but not declared."""
        plan = self._config
        if not plan.config.departments:
            return

        declared = set(plan.config.departments)
        for room in plan.rooms:
            for dept in room.active_depts:
                if dept not in declared:
                    logger.warning(
                        "Room %s uses undeclared department %s", room.id, dept
                    )

    def get_summary(self) -> str:
        """
        Get a summary of the loaded plan.

        Raises:
            RuntimeError: If load() hasn't been called yet
        """
        plan = self.config

        lines = [
            f"Plan from: {self.config_path}",
            f"Planning date: {format_date(plan.date) if plan.date else 'not set'}",
            f"Rooms: {len(plan.rooms)} "
            f"({sum(1 for r in plan.rooms if r.is_active)} with operations or priority)",
        ]

        for room in plan.rooms:
            lines.append(
                f"  - {room.name}: {room.operation_count} operation(s), "
                f"{room.slot_count} slot(s)"
            )

        lines.append(f"Total Staff: {len(plan.staff)}")
        lines.append(f"Pairings: {len(plan.pairings)}")
        lines.append(f"Roster days: {len(plan.rosters)}")

        return "\n".join(lines)


def _text_list(values: Any) -> List[str]:
    """Ids and names as text; YAML reads unquoted numbers as ints."""
    return [str(v) for v in values or []]


def _time_text(value: Any) -> str:
    """
    Normalise a clock value read from YAML.

    YAML 1.1 reads unquoted times such as 11:30 as base-60 integers (690).
    """
    if isinstance(value, int) and not isinstance(value, bool):
        hours, minutes = divmod(value, 60)
        return f"{hours:02d}:{minutes:02d}"
    return str(value)
