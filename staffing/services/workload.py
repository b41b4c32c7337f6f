"""Per-day workload calculation for an employee."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from staffing.domain.dates import DateLike, DateRange
from staffing.domain.models import Assignment
from staffing.domain.repositories import AssignmentRepository, EmployeeRepository
from staffing.domain.unit_of_work import TransactionManager
from staffing.errors import NotFound, ValidationFailure

TWO_PLACES = Decimal("0.01")


def to_decimal(value) -> Decimal:
    # via str() so that 0.1 stays 0.1 instead of its binary expansion
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_percent(value) -> Decimal:
    """Round to 2 decimal places, halves away from zero."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_percent(value) -> str:
    """Render a percentage without trailing zeros: 110.00 -> '110', 72.50 -> '72.5'."""
    text = format(round_percent(value), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def capacity_multiplier(work_time_factor, part_time_factor) -> Decimal:
    """work_time_factor (0-1) times part_time_factor normalized from percent to a fraction."""
    return to_decimal(work_time_factor) * (to_decimal(part_time_factor) / 100)


@dataclass(frozen=True)
class ProjectAllocation:
    """Effective allocation of one assignment on one day."""

    assignment_id: int
    project_id: int
    project_name: Optional[str]
    allocation: Decimal

    def to_dict(self) -> dict:
        return {
            "assignment_id": self.assignment_id,
            "project_id": self.project_id,
            "project_name": self.project_name,
            "allocation": float(self.allocation),
        }


@dataclass(frozen=True)
class DailyWorkload:
    """Total effective workload of an employee on one calendar day."""

    date: date
    total_workload: Decimal
    assignments: List[ProjectAllocation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "total_workload": float(self.total_workload),
            "assignments": [a.to_dict() for a in self.assignments],
        }


def build_daily_workloads(
    period: DateRange,
    work_time_factor,
    part_time_factor,
    assignments: Iterable[Assignment],
) -> List[DailyWorkload]:
    """
    Spread assignments over every day of ``period``.

    Each assignment contributes allocation * multiplier on the days its own
    inclusive range covers. Per-assignment allocations are rounded to 2
    places; the day total is the rounded sum of the unrounded contributions.

    Returns:
        One entry per day in ascending order, len(period) entries
    """
    multiplier = capacity_multiplier(work_time_factor, part_time_factor)
    assignments = list(assignments)

    result: List[DailyWorkload] = []
    for day in period.days():
        total = Decimal(0)
        allocations: List[ProjectAllocation] = []
        for assignment in assignments:
            if not assignment.start_date <= day <= assignment.end_date:
                continue
            raw = to_decimal(assignment.allocation_percentage) * multiplier
            total += raw
            allocations.append(
                ProjectAllocation(
                    assignment_id=assignment.id,
                    project_id=assignment.project_id,
                    project_name=assignment.project_name,
                    allocation=round_percent(raw),
                )
            )
        result.append(DailyWorkload(date=day, total_workload=round_percent(total), assignments=allocations))
    return result


class WorkloadCalculator:
    """
    Computes the effective daily workload of an employee over a date range.

    Only active assignments count. The calculation is a pure read.
    """

    def __init__(
        self,
        transactions: TransactionManager,
        employee_repository=EmployeeRepository,
        assignment_repository=AssignmentRepository,
    ):
        self.transactions = transactions
        self.employees = employee_repository
        self.assignments = assignment_repository

    def calculate_workload(
        self,
        employee_id: int,
        start: DateLike,
        end: DateLike,
        exclude_assignment_id: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> List[DailyWorkload]:
        """
        Calculate the employee's workload for every day in [start, end].

        Args:
            employee_id: Employee ID
            start: First day (inclusive)
            end: Last day (inclusive)
            exclude_assignment_id: Assignment to leave out, e.g. the one being updated
            session: Session of an enclosing transaction; a read-only one is opened otherwise

        Returns:
            List of DailyWorkload, one per calendar day

        Raises:
            NotFound: If the employee does not exist
            ValidationFailure: If the id or dates are malformed, or end < start
        """
        if isinstance(employee_id, bool) or not isinstance(employee_id, int) or employee_id < 1:
            raise ValidationFailure("Valid employee ID is required", field="employee_id")
        period = DateRange.parse(start, end)

        if session is not None:
            return self._calculate(session, employee_id, period, exclude_assignment_id)
        with self.transactions.read_only() as read_session:
            return self._calculate(read_session, employee_id, period, exclude_assignment_id)

    def _calculate(
        self,
        session: Session,
        employee_id: int,
        period: DateRange,
        exclude_assignment_id: Optional[int],
    ) -> List[DailyWorkload]:
        employee = self.employees.get_by_id(session, employee_id)
        if employee is None:
            raise NotFound("Employee", employee_id)

        overlapping = self.assignments.find_active_overlapping(
            session, employee_id, period.start, period.end, exclude_id=exclude_assignment_id
        )
        return build_daily_workloads(
            period, employee.work_time_factor, employee.part_time_factor, overlapping
        )
