"""
Export strategies for planning results.

Each exporter encapsulates one output format; the CLI picks them by flag.
"""

import csv
from abc import ABC, abstractmethod
from typing import Sequence

from .models import AssignmentResult, Room, Staff, ValidationIssue


class ExportStrategy(ABC):
    """Abstract base class for plan export strategies.

    Common lookups shared by the concrete formats are provided here.
    """

    def __init__(
        self,
        result: AssignmentResult,
        rooms: Sequence[Room],
        staff: Sequence[Staff],
        issues: Sequence[ValidationIssue] = (),
    ):
        """Initialize the export strategy.

        Args:
            result: The planning result to export
            rooms: Rooms of the plan, in display order
            staff: Staff records, used to resolve names
            issues: Validation issues of the result
        """
        self.result = result
        self.rooms = list(rooms)
        self.staff = list(staff)
        self.issues = list(issues)

    @abstractmethod
    def export(self, filepath: str) -> None:
        """Export to the specified file.

        Args:
            filepath: Path to the output file
        """
        pass

    def _staff_names(self) -> dict[str, str]:
        return {s.id: s.name for s in self.staff}

    def _room_names(self) -> dict[str, str]:
        return {r.id: r.name for r in self.rooms}

    def _write(self, filepath: str, fieldnames: list[str], rows: list[dict[str, str]]) -> None:
        with open(filepath, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(rows)


class AssignmentCSVExporter(ExportStrategy):
    """Exports one row per assigned slot.

    Output format: Room, Slot, Role, Staff ID, Staff Name
    Slot 1 is the lead; rooms appear in room order.
    """

    FIELDNAMES = ["Room", "Slot", "Role", "Staff ID", "Staff Name"]

    def export(self, filepath: str) -> None:
        """Export the assignments to a CSV file.

        Args:
            filepath: Path to the output CSV file
        """
        names = self._staff_names()
        rows: list[dict[str, str]] = []

        for room in self.rooms:
            for slot, staff_id in enumerate(self.result.team_of(room.id)):
                rows.append(
                    {
                        "Room": room.name,
                        "Slot": str(slot + 1),
                        "Role": "Lead" if slot == 0 else "Support",
                        "Staff ID": staff_id,
                        "Staff Name": names.get(staff_id, staff_id),
                    }
                )

        self._write(filepath, self.FIELDNAMES, rows)
        print(f"\n✓ Assignments exported to {filepath}")


class IssueCSVExporter(ExportStrategy):
    """Exports validation issues.

    Output format: Type, Category, Room, Staff, Message
    """

    FIELDNAMES = ["Type", "Category", "Room", "Staff", "Message"]

    def export(self, filepath: str) -> None:
        """Export the issues to a CSV file.

        Args:
            filepath: Path to the output CSV file
        """
        rooms = self._room_names()
        names = self._staff_names()
        rows = [
            {
                "Type": issue.type.value,
                "Category": issue.category.value,
                "Room": rooms.get(issue.room_id, issue.room_id),
                "Staff": names.get(issue.staff_id, issue.staff_id) if issue.staff_id else "",
                "Message": issue.message,
            }
            for issue in self.issues
        ]

        self._write(filepath, self.FIELDNAMES, rows)
        print(f"\n✓ Issues exported to {filepath} ({len(rows)} issue(s))")
