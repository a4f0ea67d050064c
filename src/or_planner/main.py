"""
Main entry point for the operating-room staff planner.
"""

import argparse
import logging
import sys

from .advisor import suggest_replacements
from .config import ConfigurationError, InvalidDateFormatError, PlanLoader
from .dates import format_date, parse_date
from .defaults import OPTIMIZER_TIMEOUT_SECONDS
from .exporters import AssignmentCSVExporter, IssueCSVExporter
from .models import IssueType
from .planner import build_assignments
from .reporter import PlanReporter
from .validation import validate


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="or-planner",
        description="Assign operating room staff for one day and check the plan",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full report for the date in the plan file
  or-planner plans/week12.yaml

  # Another date, greedy plan only
  or-planner plans/week12.yaml --date 17.03.2026 --no-optimize

  # Export assignments and issues to CSV
  or-planner plans/week12.yaml --export-csv plan.csv --export-issues issues.csv
        """,
    )

    parser.add_argument("config", type=str, help="Path to YAML plan file")
    parser.add_argument("--date", type=str, help="Planning date (DD.MM.YYYY)")
    parser.add_argument("--export-csv", type=str, help="Export assignments to CSV file")
    parser.add_argument("--export-issues", type=str, help="Export validation issues to CSV file")
    parser.add_argument(
        "--no-optimize",
        action="store_true",
        help="Skip the refinement pass and keep the greedy plan",
    )
    parser.add_argument(
        "--optimizer-timeout",
        type=float,
        default=OPTIMIZER_TIMEOUT_SECONDS,
        help=f"Seconds to wait for the refinement pass (default: {OPTIMIZER_TIMEOUT_SECONDS:g})",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress detailed output (only show teams and issues)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        # Load plan
        print(f"Loading plan from: {args.config}")
        loader = PlanLoader(args.config)
        plan = loader.load()

        print("✓ Plan loaded successfully")
        print(loader.get_summary())
        print()

        if args.date:
            try:
                day = parse_date(args.date)
            except ValueError as e:
                raise InvalidDateFormatError(str(e)) from e
        elif plan.date is not None:
            day = plan.date
        else:
            raise ConfigurationError("No planning date: set planning.date or pass --date")

        staff = plan.staff_on(day)

        # Build assignments
        print(f"Planning {format_date(day)}...")
        result = build_assignments(
            plan.rooms,
            staff,
            day,
            plan.config,
            plan.pairings,
            optimize=not args.no_optimize,
            timeout=args.optimizer_timeout,
        )
        print("✓ Planning complete")
        print()

        issues = validate(plan.rooms, result.assignments, staff, plan.config)

        suggestions = []
        if not args.quiet:
            rooms_by_id = {r.id: r for r in plan.rooms}
            for issue in issues:
                room = rooms_by_id.get(issue.room_id)
                if room is None:
                    continue
                candidates = suggest_replacements(
                    issue, room, staff, result.assignments, day, plan.config, plan.pairings
                )
                suggestions.append((issue, candidates))

        # Generate report
        reporter = PlanReporter(result, plan.rooms, staff, issues, day, suggestions)
        reporter.print_report(args.quiet)

        # Export to CSV if requested
        if args.export_csv:
            AssignmentCSVExporter(result, plan.rooms, staff, issues).export(args.export_csv)
        if args.export_issues:
            IssueCSVExporter(result, plan.rooms, staff, issues).export(args.export_issues)

        # Exit with appropriate code
        has_errors = any(issue.type == IssueType.ERROR for issue in issues)
        sys.exit(1 if has_errors else 0)

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except InvalidDateFormatError as e:
        print(f"Date Format Error: {e}", file=sys.stderr)
        print("\n Tip: Use DD.MM.YYYY for all dates.", file=sys.stderr)
        print("   Example: 16.03.2026", file=sys.stderr)
        sys.exit(1)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        sys.exit(1)

    except ValueError as e:
        print(f"Validation Error: {e}", file=sys.stderr)
        sys.exit(1)

    except Exception as e:
        print(f"Unexpected Error: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
