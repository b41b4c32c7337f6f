"""CSV import utilities to load seed data into the database.

Rows are added to the given session; committing is up to the caller.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import pandas as pd
from sqlalchemy.orm import Session

from staffing.domain.models import STATUS_ACTIVE, Assignment, Employee, Project, Requirement
from staffing.domain.repositories import (
    AssignmentRepository,
    EmployeeRepository,
    ProjectRepository,
    RequirementRepository,
)


def _read(csv_path: str | Path, date_columns: tuple = ()) -> pd.DataFrame:
    df = pd.read_csv(csv_path)

    # Normalize column names
    df.columns = df.columns.str.lower().str.strip()

    for col in date_columns:
        if col in df.columns:
            df[col] = pd.to_datetime(df[col]).dt.date
    return df


def _opt(row: pd.Series, column: str, cast=str) -> Optional[Any]:
    value = row.get(column)
    return cast(value) if pd.notna(value) else None


def import_employees_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import employees from CSV into database.

    Args:
        session: Database session
        csv_path: Path to employees CSV (id, name, work_time_factor, part_time_factor, ...)

    Returns:
        Number of employees imported
    """
    df = _read(csv_path)

    employees = []
    for _, row in df.iterrows():
        emp = Employee(
            id=_opt(row, 'id', int),
            name=str(row['name']),
            email=_opt(row, 'email'),
            position=_opt(row, 'position'),
            seniority_level=_opt(row, 'seniority_level'),
            work_time_factor=float(row['work_time_factor']) if pd.notna(row.get('work_time_factor')) else 1.0,
            part_time_factor=float(row['part_time_factor']) if pd.notna(row.get('part_time_factor')) else 100.0,
        )
        employees.append(emp)

    EmployeeRepository.bulk_create(session, employees)

    print(f"[INFO] Imported {len(employees)} employees from {csv_path}")
    return len(employees)


def import_projects_csv(session: Session, csv_path: str | Path) -> int:
    """Import projects (id, name, project_number, start_date, end_date)."""
    df = _read(csv_path, date_columns=('start_date', 'end_date'))

    projects = [
        Project(
            id=_opt(row, 'id', int),
            name=str(row['name']),
            project_number=_opt(row, 'project_number'),
            start_date=_opt(row, 'start_date', lambda d: d),
            end_date=_opt(row, 'end_date', lambda d: d),
            status=_opt(row, 'status') or STATUS_ACTIVE,
        )
        for _, row in df.iterrows()
    ]
    ProjectRepository.bulk_create(session, projects)

    print(f"[INFO] Imported {len(projects)} projects from {csv_path}")
    return len(projects)


def import_requirements_csv(session: Session, csv_path: str | Path) -> int:
    """Import project requirements (id, project_id, role, start_date, end_date)."""
    df = _read(csv_path, date_columns=('start_date', 'end_date'))

    requirements = [
        Requirement(
            id=_opt(row, 'id', int),
            project_id=int(row['project_id']),
            role=str(row['role']),
            seniority_level=_opt(row, 'seniority_level'),
            start_date=row['start_date'],
            end_date=row['end_date'],
            status=_opt(row, 'status') or "open",
        )
        for _, row in df.iterrows()
    ]
    RequirementRepository.bulk_create(session, requirements)

    print(f"[INFO] Imported {len(requirements)} requirements from {csv_path}")
    return len(requirements)


def import_assignments_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import existing assignments as they are.

    Workload rules are not applied here: historical data may already exceed
    the ceiling. Run ``refresh-warnings`` afterwards to set the warning flags.
    """
    df = _read(csv_path, date_columns=('start_date', 'end_date'))

    assignments = []
    for _, row in df.iterrows():
        status = _opt(row, 'status') or STATUS_ACTIVE
        assignments.append(
            Assignment(
                id=_opt(row, 'id', int),
                project_id=int(row['project_id']),
                employee_id=int(row['employee_id']),
                requirement_id=_opt(row, 'requirement_id', int),
                role=_opt(row, 'role'),
                allocation_percentage=int(row['allocation_percentage']),
                start_date=row['start_date'],
                end_date=row['end_date'],
                status=status,
                termination_reason=_opt(row, 'termination_reason'),
                workload_warning=False,
            )
        )
    AssignmentRepository.bulk_create(session, assignments)

    print(f"[INFO] Imported {len(assignments)} assignments from {csv_path}")
    return len(assignments)
