"""Domain models and data access layer."""

from .dates import DateRange, parse_date
from .models import Assignment, Base, Employee, Project, Requirement
from .repositories import (
    AssignmentRepository,
    DatabaseManager,
    EmployeeRepository,
    ProjectRepository,
    RequirementRepository,
)
from .unit_of_work import EmployeeLocks, TransactionManager

__all__ = [
    "DateRange",
    "parse_date",
    "Employee",
    "Project",
    "Requirement",
    "Assignment",
    "Base",
    "DatabaseManager",
    "EmployeeRepository",
    "ProjectRepository",
    "RequirementRepository",
    "AssignmentRepository",
    "EmployeeLocks",
    "TransactionManager",
]
