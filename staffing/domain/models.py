"""SQLAlchemy models for the staffing system."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship

from .dates import DateRange

STATUS_ACTIVE = "active"
STATUS_TERMINATED = "terminated"
ASSIGNMENT_STATUSES = (STATUS_ACTIVE, STATUS_TERMINATED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Employee(Base):
    """Employee with the capacity factors used by workload calculations."""

    __tablename__ = "employees"
    __table_args__ = (
        CheckConstraint("work_time_factor > 0 AND work_time_factor <= 1", name="ck_employee_work_time"),
        CheckConstraint("part_time_factor >= 0 AND part_time_factor <= 100", name="ck_employee_part_time"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    position = Column(String(100), nullable=True)
    seniority_level = Column(String(50), nullable=True)
    work_time_factor = Column(Float, nullable=False, default=1.0)  # fraction of full time
    part_time_factor = Column(Float, nullable=False, default=100.0)  # percent
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE)

    # Relationships
    assignments = relationship("Assignment", back_populates="employee")

    def __repr__(self) -> str:
        return (
            f"<Employee(id={self.id}, name='{self.name}', "
            f"wtf={self.work_time_factor}, ptf={self.part_time_factor})>"
        )


class Project(Base):
    """Project that employees are staffed onto."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    project_number = Column(String(50), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = Column(String(50), nullable=False, default=STATUS_ACTIVE)

    # Relationships
    requirements = relationship("Requirement", back_populates="project")
    assignments = relationship("Assignment", back_populates="project")

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name='{self.name}')>"


class Requirement(Base):
    """Staffing need of a project: a role to fill for a period."""

    __tablename__ = "project_requirements"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_requirement_dates"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    role = Column(String(100), nullable=False)
    seniority_level = Column(String(50), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="open")  # open, filled, closed

    # Relationships
    project = relationship("Project", back_populates="requirements")
    assignments = relationship("Assignment", back_populates="requirement")

    @property
    def period(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    def __repr__(self) -> str:
        return f"<Requirement(id={self.id}, project={self.project_id}, role='{self.role}')>"


class Assignment(Base):
    """Allocation of an employee to a project for an inclusive date range."""

    __tablename__ = "project_assignments"
    __table_args__ = (
        CheckConstraint(
            "allocation_percentage > 0 AND allocation_percentage <= 100",
            name="ck_assignment_allocation",
        ),
        CheckConstraint("end_date >= start_date", name="ck_assignment_dates"),
        Index("ix_assignment_employee_status", "employee_id", "status"),
        Index("ix_assignment_project", "project_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    requirement_id = Column(Integer, ForeignKey("project_requirements.id"), nullable=True)
    role = Column(String(255), nullable=True)
    allocation_percentage = Column(Integer, nullable=False)  # 10..100 in steps of 10
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # inclusive
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE)
    workload_warning = Column(Boolean, nullable=False, default=False)
    termination_reason = Column(Text, nullable=True)
    dr_status = Column(String(10), nullable=True)
    position_status = Column(String(10), nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    # Relationships
    employee = relationship("Employee", back_populates="assignments")
    project = relationship("Project", back_populates="assignments")
    requirement = relationship("Requirement", back_populates="assignments")

    @property
    def project_name(self) -> Optional[str]:
        return self.project.name if self.project is not None else None

    @property
    def period(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "project_name": self.project_name,
            "employee_id": self.employee_id,
            "requirement_id": self.requirement_id,
            "role": self.role,
            "allocation_percentage": self.allocation_percentage,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "status": self.status,
            "workload_warning": self.workload_warning,
            "termination_reason": self.termination_reason,
            "dr_status": self.dr_status,
            "position_status": self.position_status,
        }

    def __repr__(self) -> str:
        return (
            f"<Assignment(id={self.id}, emp={self.employee_id}, project={self.project_id}, "
            f"alloc={self.allocation_percentage}, {self.start_date}..{self.end_date}, status={self.status})>"
        )
