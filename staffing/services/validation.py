"""Workload validation for proposed assignments."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import InvalidOperation
from typing import Optional

from sqlalchemy.orm import Session

from staffing.config import StaffingConfig
from staffing.domain.dates import DateLike

from .workload import WorkloadCalculator, format_percent, to_decimal


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a workload check; ``warning`` is what gets stored on the row."""

    valid: bool
    warning: bool
    message: Optional[str] = None

    def to_dict(self) -> dict:
        result = {"valid": self.valid, "warning": self.warning}
        if self.message is not None:
            result["message"] = self.message
        return result


class AssignmentValidator:
    """Decides whether an employee can take on an additional allocation."""

    def __init__(self, calculator: WorkloadCalculator, cfg: Optional[StaffingConfig] = None):
        self.calculator = calculator
        self.cfg = cfg or StaffingConfig()

    def _step_message(self) -> str:
        return f"Allocation must be in steps of {self.cfg.allocation_step}%"

    def _warning_message(self) -> str:
        return f"High workload warning (>{format_percent(self.cfg.warning_threshold)}%)"

    def is_valid_step(self, allocation) -> bool:
        """True for a positive multiple of the allocation step not above the ceiling."""
        if isinstance(allocation, bool) or allocation is None:
            return False
        try:
            value = to_decimal(allocation)
        except (InvalidOperation, TypeError, ValueError):
            return False
        if not value.is_finite():
            return False
        return 0 < value <= to_decimal(self.cfg.max_workload) and value % self.cfg.allocation_step == 0

    def validate_assignment(
        self,
        employee_id: int,
        start: DateLike,
        end: DateLike,
        allocation_percentage,
        exclude_assignment_id: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> ValidationResult:
        """
        Check a proposed allocation against the employee's existing workload.

        Checks run in order and the first failing one decides the result:
        allocation step, then the per-day ceiling, then the warning band.

        Args:
            employee_id: Employee ID
            start: First day of the proposed assignment
            end: Last day of the proposed assignment (inclusive)
            allocation_percentage: Proposed allocation
            exclude_assignment_id: Assignment whose own contribution must not be counted
            session: Session of an enclosing transaction

        Returns:
            ValidationResult; rule violations are never raised

        Raises:
            NotFound: If the employee does not exist
        """
        if not self.is_valid_step(allocation_percentage):
            return ValidationResult(valid=False, warning=False, message=self._step_message())

        workload = self.calculator.calculate_workload(
            employee_id, start, end, exclude_assignment_id=exclude_assignment_id, session=session
        )
        max_workload = max(day.total_workload for day in workload)
        projected = max_workload + to_decimal(allocation_percentage)

        if projected > to_decimal(self.cfg.max_workload):
            return ValidationResult(
                valid=False,
                warning=False,
                message=(
                    f"Total workload would exceed {format_percent(self.cfg.max_workload)}%: "
                    f"{format_percent(projected)}%"
                ),
            )

        if projected > to_decimal(self.cfg.warning_threshold):
            return ValidationResult(valid=True, warning=True, message=self._warning_message())

        return ValidationResult(valid=True, warning=False)
