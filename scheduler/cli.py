"""
CLI interface for the CPM scheduler.

Loads a schedule (JSON document or CSV task list), runs the engine and
reports the result.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from scheduler.config.settings import settings
from .analysis.critical_path import analyze_critical_path, print_critical_path_report
from .cpm.calendar import WorkCalendar
from .cpm.engine import CPMEngine
from .cpm.exceptions import CPMError
from .cpm.models import CPMResult, CPMState
from .data_loader import export_results_csv, load_schedule, load_tasks_csv, result_to_dict
from .utils.logger import configure_logging


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    if settings.LOG_TO_FILE:
        configure_logging('scheduler', level=logging.getLevelName(level), console=False)


def load_input(path: Path):
    """Load rows, calendar and anchor from a .json or .csv file."""
    if path.suffix.lower() == '.csv':
        return load_tasks_csv(path), WorkCalendar(), None
    return load_schedule(path)


def print_summary(result: CPMResult) -> None:
    """Print run status, stats and issues."""
    stats = result.stats
    print(f"\nState: {result.state.value}")
    print(f"  Tasks:          {stats.task_count}")
    print(f"  Critical tasks: {stats.critical_count}")
    print(f"  Project end:    {stats.project_end}")
    print(f"  Duration:       {stats.duration} work days")
    print(f"  Calc time:      {stats.calc_time_ms:.1f} ms")
    if stats.error:
        print(f"  Error:          {stats.error}")

    if result.issues:
        print(f"\nIssues ({len(result.issues)}):")
        for issue in result.issues[:20]:
            print(f"  [{issue.severity}] {issue.task_id}: {issue.code} - {issue.message}")
        if len(result.issues) > 20:
            print(f"  ... and {len(result.issues) - 20} more")


def main(argv: list[str] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    parser = argparse.ArgumentParser(
        description="Run a Critical Path Method calculation on a schedule",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Schedule a JSON file and print the critical path report
  python -m scheduler.cli schedule.json

  # CSV task list anchored on a given date, results to CSV
  python -m scheduler.cli tasks.csv --start 2024-01-01 --output results.csv

  # Machine-readable output
  python -m scheduler.cli schedule.json --json - --no-report
""",
    )

    parser.add_argument(
        "input_file",
        type=Path,
        help="Schedule file (.json document or .csv task list)",
    )
    parser.add_argument(
        "--start",
        dest="project_start",
        help="Project anchor date YYYY-MM-DD (overrides projectStart; default: today)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        dest="output_csv",
        help="Write per-task results to this CSV file",
    )
    parser.add_argument(
        "--json",
        dest="output_json",
        help="Write the full result as JSON to this file ('-' for stdout)",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help=f"Fixed-point iteration cap per pass (default: {settings.CPM_MAX_ITERATIONS})",
    )
    parser.add_argument(
        "--tighten-deadlines",
        action="store_true",
        help="Let FNLT/SNLT/MFO dates tighten late dates",
    )
    parser.add_argument(
        "--near-critical-days",
        type=int,
        default=None,
        help=f"Near-critical float threshold (default: {settings.NEAR_CRITICAL_FLOAT_DAYS})",
    )
    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Skip the summary and critical path report",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)
    if args.max_iterations is not None and args.max_iterations < 1:
        parser.error("--max-iterations must be >= 1")
    setup_logging(args.verbose)

    problems = settings.validate_required_settings()
    if problems:
        for problem in problems:
            logging.error(f"Invalid setting: {problem}")
        return 2

    try:
        rows, calendar, project_start = load_input(args.input_file)
    except (OSError, ValueError, CPMError) as e:
        logging.error(f"Could not load {args.input_file}: {e}")
        return 2

    engine = CPMEngine(
        calendar,
        max_iterations=args.max_iterations,
        tighten_deadlines=args.tighten_deadlines,
    )
    result = engine.run(rows, args.project_start or project_start)

    if not args.no_report:
        print_summary(result)
        print()
        print_critical_path_report(analyze_critical_path(result, args.near_critical_days))

    if args.output_csv:
        export_results_csv(result, args.output_csv)

    if args.output_json:
        text = json.dumps(result_to_dict(result), indent=2)
        if args.output_json == '-':
            print(text)
        else:
            Path(args.output_json).write_text(text + '\n', encoding='utf-8')
            logging.info(f"Wrote {args.output_json}")

    return 1 if result.state == CPMState.FAILED else 0


if __name__ == "__main__":
    sys.exit(main())
