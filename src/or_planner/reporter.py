"""
Reporting and output formatting for room assignment plans.
"""

from datetime import date
from typing import List, Sequence, Tuple

import pandas as pd

from .dates import format_date
from .models import (
    AssignmentResult,
    IssueType,
    RankedCandidate,
    Room,
    Staff,
    ValidationIssue,
)
from .scoring import dominant_department


class PlanReporter:
    """Formats and displays a planning run."""

    def __init__(
        self,
        result: AssignmentResult,
        rooms: Sequence[Room],
        staff: Sequence[Staff],
        issues: Sequence[ValidationIssue] = (),
        day: date | None = None,
        suggestions: Sequence[Tuple[ValidationIssue, List[RankedCandidate]]] = (),
    ):
        self.result = result
        self.rooms = list(rooms)
        self.staff_by_id = {s.id: s for s in staff}
        self.issues = list(issues)
        self.day = day
        self.suggestions = list(suggestions)

    def print_report(self, quiet: bool) -> None:
        """Print complete planning report."""
        self._print_header()
        self._print_room_teams()
        self._print_issues()

        if not quiet:
            self._print_alerts()
            self._print_suggestions()
            self._print_unassigned()

    def _print_title(self, title: str) -> None:
        print("=" * 80)
        print(title)
        print("=" * 80)

    def _staff_name(self, staff_id: str) -> str:
        person = self.staff_by_id.get(staff_id)
        return person.name if person else staff_id

    def _print_header(self) -> None:
        """Print report header."""
        self._print_title("OPERATING ROOM STAFF PLAN")

        errors = sum(1 for i in self.issues if i.type == IssueType.ERROR)
        warnings = len(self.issues) - errors

        if self.day is not None:
            print(f"\nDate: {format_date(self.day)}")
        print(f"Optimized: {'yes' if self.result.optimized else 'no (greedy plan)'}")
        if self.result.score is not None:
            print(f"Schedule Score: {self.result.score:.2f}")
        print(f"Rooms Staffed: {len(self.result.assignments)}")
        print(f"Staff Assigned: {len(self.result.assigned_staff_ids)}")
        print(f"Issues: {errors} error(s), {warnings} warning(s)")
        print()

    def room_table(self) -> pd.DataFrame:
        """One row per active room with its lead, support staff and fill level."""
        data = []
        for room in self.rooms:
            team = self.result.team_of(room.id)
            if not room.is_active and not team:
                continue
            data.append(
                {
                    "Room": room.name,
                    "Dept": dominant_department(room),
                    "Ops": room.operation_count,
                    "Lead": self._staff_name(team[0]) if team else "",
                    "Support": ", ".join(self._staff_name(sid) for sid in team[1:]),
                    "Staffed": f"{len(team)}/{room.slot_count}",
                }
            )

        df = pd.DataFrame(data, columns=["Room", "Dept", "Ops", "Lead", "Support", "Staffed"])
        return df.set_index("Room")

    def issue_table(self) -> pd.DataFrame:
        """Validation issues as a table, in validation order."""
        names = {r.id: r.name for r in self.rooms}
        data = [
            {
                "Type": issue.type.value,
                "Category": issue.category.value,
                "Room": names.get(issue.room_id, issue.room_id),
                "Message": issue.message,
            }
            for issue in self.issues
        ]
        return pd.DataFrame(data, columns=["Type", "Category", "Room", "Message"])

    def _print_room_teams(self) -> None:
        """Print room-by-room teams."""
        self._print_title("ROOM TEAMS")

        df = self.room_table()
        if df.empty:
            print("\n  No active rooms for this date")
        else:
            print(df.to_string())
        print()

    def _print_issues(self) -> None:
        """Print validation issues."""
        self._print_title("VALIDATION")

        if not self.issues:
            print("\n✓ No issues found")
            print()
            return

        print(self.issue_table().to_string(index=False))
        print()

    def _print_alerts(self) -> None:
        """Print planner alerts."""
        if not self.result.alerts:
            return

        self._print_title("ALERTS")
        for alert in self.result.alerts:
            print(f"  • {alert}")
        print()

    def _print_suggestions(self) -> None:
        """Print replacement candidates per issue."""
        if not self.suggestions:
            return

        self._print_title("SUGGESTIONS")
        for issue, candidates in self.suggestions:
            print(f"\n  {issue.message}")
            if not candidates:
                print("    (no available candidates)")
                continue
            for candidate in candidates:
                reasons = ", ".join(candidate.reasons) or "-"
                print(
                    f"    {candidate.staff.name:20s} {candidate.score:10.1f}  {reasons}"
                )
        print()

    def _print_unassigned(self) -> None:
        """Print available staff left without a room."""
        self._print_title("UNASSIGNED STAFF")

        if not self.result.unassigned_staff:
            print("\n  Everyone available is assigned")
            print()
            return

        data = []
        for staff_id in self.result.unassigned_staff:
            person = self.staff_by_id.get(staff_id)
            data.append(
                {
                    "Staff": person.name if person else staff_id,
                    "Shift": person.current_shift if person else "",
                    "Skills": ", ".join(
                        f"{dept}:{level.label}"
                        for dept, level in (person.skills.items() if person else [])
                        if level.label
                    ),
                }
            )

        df = pd.DataFrame(data).set_index("Staff")
        print(df.to_string())
        print()

    def export_to_csv(self, filepath: str) -> None:
        """Export the room teams to a CSV file."""
        self.room_table().to_csv(filepath)
        print(f"\n✓ Plan exported to {filepath}")
