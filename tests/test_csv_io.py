"""Tests for CSV import/export functionality."""

from datetime import date

import pandas as pd
import pytest

from staffing.domain.repositories import (
    AssignmentRepository,
    EmployeeRepository,
    ProjectRepository,
    RequirementRepository,
)
from staffing.errors import ReferenceNotFound
from staffing.io.export_csv import export_assignments_csv, export_workload_csv, workload_frame
from staffing.io.import_csv import (
    import_assignments_csv,
    import_employees_csv,
    import_projects_csv,
    import_requirements_csv,
)


@pytest.fixture
def csv_files(tmp_path):
    """Write a small, consistent set of seed CSVs."""
    files = {
        "employees": """id,name,email,work_time_factor,part_time_factor
1,Ada Full,ada@example.com,1.0,100
2,Bo Part,,0.5,80
""",
        "projects": """id,name,project_number,start_date,end_date
1,Alpha,P-001,2024-01-01,2024-12-31
2,Beta,P-002,,
""",
        "requirements": """id,project_id,role,start_date,end_date
1,1,Developer,2024-03-01,2024-03-31
""",
        "assignments": """id,project_id,employee_id,requirement_id,role,allocation_percentage,start_date,end_date,status,termination_reason
1,1,1,1,Developer,60,2024-03-01,2024-03-31,active,
2,2,1,,Reviewer,30,2024-03-15,2024-04-15,active,
3,2,2,,,50,2024-03-01,2024-03-31,terminated,Budget cut
""",
    }
    paths = {}
    for name, content in files.items():
        path = tmp_path / f"{name}.csv"
        path.write_text(content)
        paths[name] = path
    return paths


def _import_all(services, csv_files):
    with services.transactions.session_scope() as session:
        import_employees_csv(session, csv_files["employees"])
        import_projects_csv(session, csv_files["projects"])
        import_requirements_csv(session, csv_files["requirements"])
        import_assignments_csv(session, csv_files["assignments"])


def test_import_employees_csv(db, csv_files):
    """Test importing employees from CSV."""
    session = db.get_session()
    count = import_employees_csv(session, csv_files["employees"])
    session.commit()
    assert count == 2

    part_timer = EmployeeRepository.get_by_id(session, 2)
    assert part_timer.name == "Bo Part"
    assert part_timer.email is None
    assert part_timer.work_time_factor == 0.5
    assert part_timer.part_time_factor == 80
    session.close()


def test_import_projects_and_requirements(db, csv_files):
    session = db.get_session()
    import_projects_csv(session, csv_files["projects"])
    count = import_requirements_csv(session, csv_files["requirements"])
    session.commit()
    assert count == 1

    alpha = ProjectRepository.get_by_id(session, 1)
    assert alpha.start_date == date(2024, 1, 1)
    assert ProjectRepository.get_by_id(session, 2).end_date is None

    requirement = RequirementRepository.get_by_id(session, 1)
    assert requirement.period.end == date(2024, 3, 31)
    assert requirement.status == "open"
    session.close()


def test_import_assignments_csv(services, csv_files):
    _import_all(services, csv_files)

    with services.transactions.read_only() as session:
        assignments = AssignmentRepository.get_all(session)

    assert [a.id for a in assignments] == [1, 2, 3]
    assert assignments[0].requirement_id == 1
    assert assignments[1].requirement_id is None
    assert assignments[1].project_name == "Beta"
    assert assignments[2].status == "terminated"
    assert assignments[2].termination_reason == "Budget cut"
    assert all(a.workload_warning is False for a in assignments)


def test_imported_assignments_feed_workload_and_warnings(services, csv_files):
    _import_all(services, csv_files)

    (day,) = services.calculator.calculate_workload(1, "2024-03-20", "2024-03-20")
    assert day.total_workload == 90

    assert services.coordinator.refresh_workload_warnings() == 2


def test_import_with_dangling_reference_rolls_back(services, csv_files, tmp_path):
    orphan = tmp_path / "orphans.csv"
    orphan.write_text("""project_id,employee_id,allocation_percentage,start_date,end_date
1,42,10,2024-03-01,2024-03-02
""")

    with pytest.raises(ReferenceNotFound):
        with services.transactions.session_scope() as session:
            import_employees_csv(session, csv_files["employees"])
            import_projects_csv(session, csv_files["projects"])
            import_assignments_csv(session, orphan)

    with services.transactions.read_only() as session:
        assert EmployeeRepository.get_all(session) == []


def test_export_assignments_csv(services, csv_files, tmp_path):
    """Test exporting assignments to CSV."""
    _import_all(services, csv_files)

    out = tmp_path / "assignments_export.csv"
    with services.transactions.read_only() as session:
        count = export_assignments_csv(session, out)
    assert count == 3

    df = pd.read_csv(out)
    assert list(df["id"]) == [1, 2, 3]
    assert list(df["project_name"]) == ["Alpha", "Beta", "Beta"]
    assert list(df["status"]) == ["active", "active", "terminated"]


def test_export_assignments_for_one_employee(services, csv_files, tmp_path):
    _import_all(services, csv_files)

    out = tmp_path / "employee2.csv"
    with services.transactions.read_only() as session:
        count = export_assignments_csv(session, out, employee_id=2)

    assert count == 1
    assert list(pd.read_csv(out)["employee_id"]) == [2]


def test_workload_export_has_a_row_per_day_and_project(services, csv_files, tmp_path):
    _import_all(services, csv_files)
    workload = services.calculator.calculate_workload(1, "2024-02-29", "2024-03-15")

    frame = workload_frame(workload)
    # 2024-02-29 is empty, 03-01..03-14 have one project, 03-15 has two
    assert len(frame) == 1 + 14 + 2
    assert frame.iloc[0]["date"] == "2024-02-29"
    assert pd.isna(frame.iloc[0]["project_id"])

    out = tmp_path / "workload.csv"
    assert export_workload_csv(workload, out) == 16
    df = pd.read_csv(out)
    assert df[df["date"] == "2024-03-15"]["total_workload"].tolist() == [90.0, 90.0]
