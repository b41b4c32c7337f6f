"""CSV export of assignments and daily workload reports."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from staffing.domain.repositories import AssignmentRepository
from staffing.services.workload import DailyWorkload

ASSIGNMENT_COLUMNS = [
    "id",
    "project_id",
    "project_name",
    "employee_id",
    "requirement_id",
    "role",
    "allocation_percentage",
    "start_date",
    "end_date",
    "status",
    "workload_warning",
    "termination_reason",
    "dr_status",
    "position_status",
]
WORKLOAD_COLUMNS = ["date", "total_workload", "assignment_id", "project_id", "project_name", "allocation"]


def export_assignments_csv(
    session: Session,
    csv_path: str | Path,
    employee_id: Optional[int] = None,
) -> int:
    """
    Export assignments from database to CSV.

    Args:
        session: Database session
        csv_path: Output CSV path
        employee_id: Only export this employee's assignments (optional)

    Returns:
        Number of assignments exported
    """
    if employee_id is not None:
        assignments = AssignmentRepository.get_by_employee(session, employee_id)
    else:
        assignments = AssignmentRepository.get_all(session)

    df = pd.DataFrame([a.to_dict() for a in assignments], columns=ASSIGNMENT_COLUMNS)
    df.to_csv(csv_path, index=False)

    print(f"[INFO] Exported {len(df)} assignments to {csv_path}")
    return len(df)


def workload_frame(workload: List[DailyWorkload]) -> pd.DataFrame:
    """
    Flatten daily workloads into one row per (day, assignment).

    Days without any assignment keep a single row with empty assignment
    columns so that every day of the range appears in the report.
    """
    rows = []
    for day in workload:
        base = {"date": day.date.isoformat(), "total_workload": float(day.total_workload)}
        if not day.assignments:
            rows.append(base)
            continue
        for allocation in day.assignments:
            rows.append({
                **base,
                "assignment_id": allocation.assignment_id,
                "project_id": allocation.project_id,
                "project_name": allocation.project_name,
                "allocation": float(allocation.allocation),
            })
    return pd.DataFrame(rows, columns=WORKLOAD_COLUMNS)


def export_workload_csv(workload: List[DailyWorkload], csv_path: str | Path) -> int:
    """Write a workload report; returns the number of days covered."""
    workload_frame(workload).to_csv(csv_path, index=False)
    print(f"[INFO] Exported workload for {len(workload)} days to {csv_path}")
    return len(workload)
