"""Pytest configuration and shared fixtures."""

from datetime import date

import pytest

from staffing.config import StaffingConfig
from staffing.domain.models import Assignment, Employee, Project, Requirement
from staffing.domain.repositories import DatabaseManager
from staffing.services import build_services


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def db(tmp_path):
    """File-backed SQLite database so that several sessions (and threads) share it."""
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'staffing.db'}")
    manager.create_tables()
    yield manager
    manager.dispose()


@pytest.fixture
def cfg():
    return StaffingConfig(lock_timeout_seconds=5.0, operation_timeout_seconds=30.0)


@pytest.fixture
def services(db, cfg):
    return build_services(db, cfg)


@pytest.fixture
def seed(db):
    """
    Two employees, two projects and one requirement.

    Employee 1 works full time; employee 2 has part_time_factor 80.
    Requirement 1 belongs to project 1 and covers March 2024.
    """
    session = db.get_session()
    session.add_all([
        Employee(id=1, name="Ada Full", email="ada@example.com", work_time_factor=1.0, part_time_factor=100),
        Employee(id=2, name="Bo Part", email="bo@example.com", work_time_factor=1.0, part_time_factor=80),
        Project(id=1, name="Alpha", project_number="P-001"),
        Project(id=2, name="Beta", project_number="P-002"),
    ])
    session.flush()
    session.add(
        Requirement(
            id=1, project_id=1, role="Developer",
            start_date=date(2024, 3, 1), end_date=date(2024, 3, 31),
        )
    )
    session.commit()
    session.close()
    return db


@pytest.fixture
def add_assignment(seed):
    """Insert an assignment directly, bypassing workload validation."""

    def _add(employee_id=1, project_id=1, allocation=50,
             start=date(2024, 3, 1), end=date(2024, 3, 31), status="active", **extra):
        session = seed.get_session()
        assignment = Assignment(
            employee_id=employee_id,
            project_id=project_id,
            allocation_percentage=allocation,
            start_date=start,
            end_date=end,
            status=status,
            **extra,
        )
        session.add(assignment)
        session.commit()
        session.close()
        return assignment.id

    return _add
