"""Repository classes for data access.

Repositories flush but never commit: the transaction boundary belongs to
the caller (see ``unit_of_work.TransactionManager``).
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload, sessionmaker

from staffing.config import DEFAULT_DB_URL

from .db import create_db_engine
from .models import STATUS_ACTIVE, Assignment, Base, Employee, Project, Requirement


class DatabaseManager:
    """Manages database connection and session factory."""

    def __init__(self, db_url: str = DEFAULT_DB_URL, echo: bool = False):
        """
        Initialize database manager.

        Args:
            db_url: SQLAlchemy database URL (default: sqlite:///staffing.db)
            echo: Log emitted SQL
        """
        self.db_url = db_url
        self.engine = create_db_engine(db_url, echo=echo)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_tables(self):
        """Create all tables if they don't exist."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self):
        """Drop all tables (use with caution!)."""
        Base.metadata.drop_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


class EmployeeRepository:
    """Repository for employee data access."""

    @staticmethod
    def get_all(session: Session) -> List[Employee]:
        """Get all employees."""
        return session.query(Employee).order_by(Employee.id).all()

    @staticmethod
    def get_by_id(session: Session, employee_id: int) -> Optional[Employee]:
        """Get employee by ID."""
        return session.get(Employee, employee_id)

    @staticmethod
    def get_for_update(session: Session, employee_id: int) -> Optional[Employee]:
        """
        Get employee by ID and lock its row until the transaction ends.

        The row lock is what serializes assignment writers for one employee
        across processes; SQLite ignores FOR UPDATE.
        """
        return (
            session.query(Employee)
            .filter(Employee.id == employee_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def create(session: Session, employee: Employee) -> Employee:
        """Add a new employee and assign its id."""
        session.add(employee)
        session.flush()
        return employee

    @staticmethod
    def bulk_create(session: Session, employees: List[Employee]) -> None:
        """Add multiple employees."""
        session.add_all(employees)
        session.flush()


class ProjectRepository:
    """Repository for project data access."""

    @staticmethod
    def get_all(session: Session) -> List[Project]:
        """Get all projects."""
        return session.query(Project).order_by(Project.id).all()

    @staticmethod
    def get_by_id(session: Session, project_id: int) -> Optional[Project]:
        """Get project by ID."""
        return session.get(Project, project_id)

    @staticmethod
    def create(session: Session, project: Project) -> Project:
        """Add a new project."""
        session.add(project)
        session.flush()
        return project

    @staticmethod
    def bulk_create(session: Session, projects: List[Project]) -> None:
        """Add multiple projects."""
        session.add_all(projects)
        session.flush()


class RequirementRepository:
    """Repository for project requirement data access."""

    @staticmethod
    def get_by_id(session: Session, requirement_id: int) -> Optional[Requirement]:
        """Get requirement by ID."""
        return session.get(Requirement, requirement_id)

    @staticmethod
    def get_by_project(session: Session, project_id: int) -> List[Requirement]:
        """Get all requirements of a project."""
        return (
            session.query(Requirement)
            .filter(Requirement.project_id == project_id)
            .order_by(Requirement.start_date)
            .all()
        )

    @staticmethod
    def create(session: Session, requirement: Requirement) -> Requirement:
        """Add a new requirement."""
        session.add(requirement)
        session.flush()
        return requirement

    @staticmethod
    def bulk_create(session: Session, requirements: List[Requirement]) -> None:
        """Add multiple requirements."""
        session.add_all(requirements)
        session.flush()


class AssignmentRepository:
    """Repository for assignment data access."""

    @staticmethod
    def get_all(session: Session) -> List[Assignment]:
        """Get all assignments."""
        return (
            session.query(Assignment)
            .options(joinedload(Assignment.project))
            .order_by(Assignment.id)
            .all()
        )

    @staticmethod
    def get_all_active(session: Session) -> List[Assignment]:
        """Get active assignments ordered by employee and start date."""
        return (
            session.query(Assignment)
            .options(joinedload(Assignment.project))
            .filter(Assignment.status == STATUS_ACTIVE)
            .order_by(Assignment.employee_id, Assignment.start_date, Assignment.id)
            .all()
        )

    @staticmethod
    def get_by_id(session: Session, assignment_id: int) -> Optional[Assignment]:
        """Get assignment by ID with its project loaded."""
        return (
            session.query(Assignment)
            .options(joinedload(Assignment.project))
            .filter(Assignment.id == assignment_id)
            .first()
        )

    @staticmethod
    def get_by_employee(session: Session, employee_id: int) -> List[Assignment]:
        """Get all assignments for a specific employee."""
        return (
            session.query(Assignment)
            .options(joinedload(Assignment.project))
            .filter(Assignment.employee_id == employee_id)
            .order_by(Assignment.start_date, Assignment.id)
            .all()
        )

    @staticmethod
    def get_by_project(session: Session, project_id: int) -> List[Assignment]:
        """Get all assignments for a specific project."""
        return (
            session.query(Assignment)
            .options(joinedload(Assignment.project))
            .filter(Assignment.project_id == project_id)
            .order_by(Assignment.start_date, Assignment.id)
            .all()
        )

    @staticmethod
    def get_by_requirement(session: Session, requirement_id: int) -> List[Assignment]:
        """Get the assignment history of a requirement, most recent start first."""
        return (
            session.query(Assignment)
            .options(joinedload(Assignment.project))
            .filter(Assignment.requirement_id == requirement_id)
            .order_by(Assignment.start_date.desc(), Assignment.id.desc())
            .all()
        )

    @staticmethod
    def find_active_overlapping(
        session: Session,
        employee_id: int,
        start: date,
        end: date,
        exclude_id: Optional[int] = None,
    ) -> List[Assignment]:
        """
        Get active assignments of an employee overlapping [start, end].

        Both intervals are inclusive: an assignment ending on ``start`` overlaps.
        """
        query = (
            session.query(Assignment)
            .options(joinedload(Assignment.project))
            .filter(
                Assignment.employee_id == employee_id,
                Assignment.status == STATUS_ACTIVE,
                Assignment.start_date <= end,
                Assignment.end_date >= start,
            )
        )
        if exclude_id is not None:
            query = query.filter(Assignment.id != exclude_id)
        return query.order_by(Assignment.start_date, Assignment.id).all()

    @staticmethod
    def create(session: Session, assignment: Assignment) -> Assignment:
        """Add a new assignment and assign its id."""
        session.add(assignment)
        session.flush()
        return assignment

    @staticmethod
    def bulk_create(session: Session, assignments: List[Assignment]) -> None:
        """Add multiple assignments."""
        session.add_all(assignments)
        session.flush()
