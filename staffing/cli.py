"""Command-line interface for the staffing workload tools."""

from __future__ import annotations

import argparse
import sys

from staffing.config import StaffingConfig, load_config
from staffing.domain.db import init_database, reset_database
from staffing.domain.repositories import DatabaseManager
from staffing.errors import StaffingError
from staffing.io.export_csv import export_assignments_csv, export_workload_csv
from staffing.io.import_csv import (
    import_assignments_csv,
    import_employees_csv,
    import_projects_csv,
    import_requirements_csv,
)
from staffing.services import StaffingServices, build_services
from staffing.services.workload import format_percent


def _config(args: argparse.Namespace) -> StaffingConfig:
    cfg = load_config(args.config)
    if args.db:
        cfg.db_url = args.db
    return cfg


def _services(args: argparse.Namespace) -> StaffingServices:
    cfg = _config(args)
    return build_services(DatabaseManager(cfg.db_url, echo=cfg.echo_sql), cfg)


def _cmd_init_db(args: argparse.Namespace) -> None:
    """Initialize (or reset) the database."""
    db_url = _config(args).db_url
    if args.reset:
        reset_database(db_url)
    else:
        init_database(db_url)
    print(f"[OK] Database ready: {db_url}")


def _cmd_import_csv(args: argparse.Namespace) -> None:
    """Import CSV data into database in one transaction."""
    services = _services(args)

    # Parents before children so foreign keys resolve
    steps = [
        ("employees", args.employees, import_employees_csv),
        ("projects", args.projects, import_projects_csv),
        ("requirements", args.requirements, import_requirements_csv),
        ("assignments", args.assignments, import_assignments_csv),
    ]
    try:
        with services.transactions.session_scope() as session:
            for label, path, importer in steps:
                if path:
                    count = importer(session, path)
                    print(f"[OK] Imported {count} {label}")
    except Exception as e:
        print(f"[ERROR] Import failed: {e}")
        raise
    print("[OK] CSV import complete")


def _cmd_workload(args: argparse.Namespace) -> None:
    """Print (and optionally export) an employee's daily workload."""
    services = _services(args)
    workload = services.calculator.calculate_workload(args.employee, args.start, args.end)

    for day in workload:
        projects = ", ".join(
            f"{a.project_name or a.project_id} {format_percent(a.allocation)}%" for a in day.assignments
        )
        line = f"{day.date.isoformat()}  {format_percent(day.total_workload):>6}%"
        print(f"{line}  {projects}" if projects else line)

    peak = max(day.total_workload for day in workload)
    print(f"[INFO] Peak workload {format_percent(peak)}% over {len(workload)} days")

    if args.out:
        export_workload_csv(workload, args.out)


def _cmd_validate(args: argparse.Namespace) -> None:
    """Check whether an allocation fits the employee's workload."""
    services = _services(args)
    result = services.validator.validate_assignment(
        args.employee,
        args.start,
        args.end,
        args.allocation,
        exclude_assignment_id=args.exclude,
    )
    if not result.valid:
        print(f"[ERROR] {result.message}")
        sys.exit(1)
    if result.warning:
        print(f"[WARN] {result.message}")
    else:
        print("[OK] Allocation fits")


def _cmd_terminate(args: argparse.Namespace) -> None:
    """Terminate an assignment."""
    services = _services(args)
    services.coordinator.terminate_assignment(args.assignment, args.reason)


def _cmd_refresh_warnings(args: argparse.Namespace) -> None:
    """Recompute workload warnings for all active assignments."""
    services = _services(args)
    services.coordinator.refresh_workload_warnings()


def _cmd_export(args: argparse.Namespace) -> None:
    """Export assignments from database to CSV."""
    services = _services(args)
    with services.transactions.read_only() as session:
        count = export_assignments_csv(session, args.assignments, employee_id=args.employee)
    print(f"[OK] Exported {count} assignments to {args.assignments}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="staffing",
        description="Employee workload and project assignment management"
    )

    # Global options
    parser.add_argument("--db", help="Database URL (overrides config; default: sqlite:///staffing.db)")
    parser.add_argument("--config", help="Path to config YAML or JSON")

    sub = parser.add_subparsers(dest="command", required=True)

    # init-db command
    init = sub.add_parser("init-db", help="Initialize database")
    init.add_argument("--reset", action="store_true", help="Drop and recreate all tables")
    init.set_defaults(func=_cmd_init_db)

    # import-csv command
    imp = sub.add_parser("import-csv", help="Import CSV data into database")
    imp.add_argument("--employees", help="Path to employees CSV")
    imp.add_argument("--projects", help="Path to projects CSV")
    imp.add_argument("--requirements", help="Path to project requirements CSV")
    imp.add_argument("--assignments", help="Path to assignments CSV")
    imp.set_defaults(func=_cmd_import_csv)

    # workload command
    wl = sub.add_parser("workload", help="Show an employee's daily workload")
    wl.add_argument("--employee", type=int, required=True, help="Employee ID")
    wl.add_argument("--start", required=True, help="First day (YYYY-MM-DD)")
    wl.add_argument("--end", required=True, help="Last day, inclusive (YYYY-MM-DD)")
    wl.add_argument("--out", help="Optional: export workload to CSV")
    wl.set_defaults(func=_cmd_workload)

    # validate command
    val = sub.add_parser("validate", help="Check a proposed allocation")
    val.add_argument("--employee", type=int, required=True, help="Employee ID")
    val.add_argument("--start", required=True, help="First day (YYYY-MM-DD)")
    val.add_argument("--end", required=True, help="Last day, inclusive (YYYY-MM-DD)")
    val.add_argument("--allocation", type=int, required=True, help="Allocation percentage")
    val.add_argument("--exclude", type=int, help="Assignment ID to leave out of the current workload")
    val.set_defaults(func=_cmd_validate)

    # terminate command
    term = sub.add_parser("terminate", help="Terminate an assignment")
    term.add_argument("--assignment", type=int, required=True, help="Assignment ID")
    term.add_argument("--reason", required=True, help="Termination reason")
    term.set_defaults(func=_cmd_terminate)

    # refresh-warnings command
    ref = sub.add_parser("refresh-warnings", help="Recompute workload warnings")
    ref.set_defaults(func=_cmd_refresh_warnings)

    # export command
    exp = sub.add_parser("export", help="Export assignments to CSV")
    exp.add_argument("--assignments", required=True, help="Path to export assignments CSV")
    exp.add_argument("--employee", type=int, help="Employee ID to filter assignments (optional)")
    exp.set_defaults(func=_cmd_export)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except StaffingError as e:
        print(f"[ERROR] {e.error_type}: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
