"""AssignmentCoordinator - validated, atomic create/update/terminate of assignments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from staffing.domain.dates import DateLike, DateRange, parse_date
from staffing.domain.models import (
    ASSIGNMENT_STATUSES,
    STATUS_ACTIVE,
    STATUS_TERMINATED,
    Assignment,
    Project,
    Requirement,
)
from staffing.domain.repositories import (
    AssignmentRepository,
    EmployeeRepository,
    ProjectRepository,
    RequirementRepository,
)
from staffing.domain.unit_of_work import TransactionManager
from staffing.errors import NotFound, ReferenceNotFound, ValidationFailure

from .validation import AssignmentValidator, ValidationResult
from .workload import to_decimal

REQUIRED_CREATE_FIELDS = ("project_id", "employee_id", "start_date", "end_date", "allocation_percentage")
OPTIONAL_CREATE_FIELDS = ("requirement_id", "role", "dr_status", "position_status")
PATCHABLE_FIELDS = (
    "role",
    "start_date",
    "end_date",
    "allocation_percentage",
    "dr_status",
    "position_status",
    "status",
    "termination_reason",
)
# Changing any of these can raise the employee's workload
WORKLOAD_FIELDS = ("start_date", "end_date", "allocation_percentage")


def _require_id(data: Mapping[str, Any], name: str, required: bool = True) -> Optional[int]:
    value = data.get(name)
    if value is None and not required:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        label = name.replace("_id", "").replace("_", " ")
        raise ValidationFailure(f"Valid {label} ID is required", field=name)
    return value


def _optional_text(data: Mapping[str, Any], name: str, min_length: int = 0) -> Optional[str]:
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, str) or len(value.strip()) < min_length:
        if min_length:
            raise ValidationFailure(
                f"{name.replace('_', ' ').capitalize()} must be at least {min_length} characters long",
                field=name,
            )
        raise ValidationFailure(f"{name.replace('_', ' ').capitalize()} must be a string", field=name)
    return value.strip()


@dataclass(frozen=True)
class AssignmentPatch:
    """
    Partial update of an assignment.

    Only keys present in ``changes`` are applied; an explicit None is a real
    value (e.g. clearing termination_reason), not "leave unchanged".
    """

    changes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Own copy, so later edits to the caller's dict cannot bypass the check
        object.__setattr__(self, "changes", dict(self.changes))
        unknown = sorted(set(self.changes) - set(PATCHABLE_FIELDS))
        if unknown:
            raise ValidationFailure(
                f"Fields cannot be updated: {', '.join(unknown)}",
                details={"fields": unknown},
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AssignmentPatch":
        return cls(data)

    def provides(self, name: str) -> bool:
        return name in self.changes

    def get(self, name: str, default: Any = None) -> Any:
        return self.changes.get(name, default)


class AssignmentCoordinator:
    """
    Coordinates assignment writes with workload validation.

    Each write runs in one transaction holding the employee's lock, so the
    workload read and the insert/update that depends on it cannot interleave
    with another writer for the same employee.
    """

    def __init__(
        self,
        transactions: TransactionManager,
        validator: AssignmentValidator,
        assignment_repository=AssignmentRepository,
        employee_repository=EmployeeRepository,
        project_repository=ProjectRepository,
        requirement_repository=RequirementRepository,
    ):
        self.transactions = transactions
        self.validator = validator
        self.assignments = assignment_repository
        self.employees = employee_repository
        self.projects = project_repository
        self.requirements = requirement_repository

    # ------------------------------------------------------------------ writes

    def create_assignment(self, data: Mapping[str, Any]) -> Assignment:
        """
        Validate and persist a new active assignment.

        Args:
            data: project_id, employee_id, start_date, end_date, allocation_percentage;
                optionally requirement_id, role, dr_status, position_status

        Returns:
            The persisted Assignment with its workload_warning set

        Raises:
            ValidationFailure: Malformed input or a workload rule violation (nothing is written)
            ReferenceNotFound: Employee, project or requirement does not exist
        """
        missing = [name for name in REQUIRED_CREATE_FIELDS if data.get(name) is None]
        if missing:
            raise ValidationFailure(
                f"Missing required fields: {', '.join(missing)}", details={"fields": missing}
            )
        unknown = sorted(set(data) - set(REQUIRED_CREATE_FIELDS) - set(OPTIONAL_CREATE_FIELDS))
        if unknown:
            raise ValidationFailure(f"Unknown fields: {', '.join(unknown)}", details={"fields": unknown})

        employee_id = _require_id(data, "employee_id")
        project_id = _require_id(data, "project_id")
        requirement_id = _require_id(data, "requirement_id", required=False)
        period = DateRange.parse(data["start_date"], data["end_date"])
        allocation = data["allocation_percentage"]
        role = _optional_text(data, "role", min_length=2)
        dr_status = _optional_text(data, "dr_status")
        position_status = _optional_text(data, "position_status")

        with self.transactions.employee_transaction(employee_id) as session:
            project = self._check_references(session, employee_id, project_id, requirement_id, period)
            result = self.validator.validate_assignment(
                employee_id, period.start, period.end, allocation, session=session
            )
            self._raise_if_invalid(result, employee_id, period, allocation)

            assignment = Assignment(
                project_id=project_id,
                employee_id=employee_id,
                requirement_id=requirement_id,
                role=role,
                allocation_percentage=int(to_decimal(allocation)),
                start_date=period.start,
                end_date=period.end,
                status=STATUS_ACTIVE,
                workload_warning=result.warning,
                dr_status=dr_status,
                position_status=position_status,
            )
            assignment.project = project
            self.assignments.create(session, assignment)

        print(
            f"[OK] Created assignment {assignment.id}: employee {employee_id} -> project {project_id} "
            f"at {allocation}% for {period}" + (" [workload warning]" if result.warning else "")
        )
        return assignment

    def update_assignment(self, assignment_id: int, data: Mapping[str, Any] | AssignmentPatch) -> Assignment:
        """
        Apply a partial update, re-validating workload when it can grow.

        Re-validation runs when allocation or dates actually change, or when a
        terminated assignment is reactivated. The assignment's own current
        contribution is excluded so it is not counted twice.

        Raises:
            NotFound: If the assignment does not exist
            ValidationFailure: Malformed patch or a workload rule violation (nothing is written)
        """
        patch = data if isinstance(data, AssignmentPatch) else AssignmentPatch.from_mapping(data)
        employee_id = self._employee_of(assignment_id)

        with self.transactions.employee_transaction(employee_id) as session:
            assignment = self.assignments.get_by_id(session, assignment_id)
            if assignment is None:
                raise NotFound("Assignment", assignment_id)

            merged = self._merge(assignment, patch)
            period = DateRange(merged["start_date"], merged["end_date"])
            if assignment.requirement_id is not None and (
                patch.provides("start_date") or patch.provides("end_date")
            ):
                requirement = self.requirements.get_by_id(session, assignment.requirement_id)
                self._check_requirement_period(requirement, period)

            if patch.provides("allocation_percentage") and not self.validator.is_valid_step(
                merged["allocation_percentage"]
            ):
                raise ValidationFailure(
                    f"Allocation must be in steps of {self.validator.cfg.allocation_step}%",
                    field="allocation_percentage",
                )
            merged["allocation_percentage"] = int(to_decimal(merged["allocation_percentage"]))

            workload_changed = any(
                patch.provides(name) and merged[name] != getattr(assignment, name)
                for name in WORKLOAD_FIELDS
            )
            reactivated = assignment.status != STATUS_ACTIVE and merged["status"] == STATUS_ACTIVE
            if merged["status"] == STATUS_ACTIVE and (workload_changed or reactivated):
                result = self.validator.validate_assignment(
                    employee_id,
                    period.start,
                    period.end,
                    merged["allocation_percentage"],
                    exclude_assignment_id=assignment.id,
                    session=session,
                )
                self._raise_if_invalid(result, employee_id, period, merged["allocation_percentage"])
                merged["workload_warning"] = result.warning

            for name, value in merged.items():
                setattr(assignment, name, value)
            session.flush()

        print(f"[OK] Updated assignment {assignment_id}: {sorted(patch.changes)}")
        return assignment

    def terminate_assignment(self, assignment_id: int, reason: Optional[str]) -> Assignment:
        """
        Terminate an assignment, keeping the row for history.

        No workload re-validation happens: releasing capacity is always allowed.

        Raises:
            ValidationFailure: If reason is missing or blank
            NotFound: If the assignment does not exist
        """
        if not isinstance(reason, str) or not reason.strip():
            raise ValidationFailure("Termination reason is required", field="reason")

        employee_id = self._employee_of(assignment_id)
        with self.transactions.employee_transaction(employee_id) as session:
            assignment = self.assignments.get_by_id(session, assignment_id)
            if assignment is None:
                raise NotFound("Assignment", assignment_id)
            assignment.status = STATUS_TERMINATED
            assignment.termination_reason = reason.strip()
            session.flush()

        print(f"[OK] Terminated assignment {assignment_id}: {reason.strip()}")
        return assignment

    def refresh_workload_warnings(self) -> int:
        """
        Recompute workload_warning for every active assignment.

        Each assignment is validated against the others of its employee, never
        against itself. Rows whose employee is already above the ceiling are
        flagged as well. Allocations off the allocation step (possible in
        imported data) are reported and keep their current flag.

        Returns:
            Number of assignments whose flag changed
        """
        with self.transactions.read_only() as session:
            employee_ids = sorted({a.employee_id for a in self.assignments.get_all_active(session)})
        print(f"[INFO] Refreshing workload warnings for {len(employee_ids)} employees")

        changed = 0
        off_step: List[int] = []
        for employee_id in employee_ids:
            with self.transactions.employee_transaction(employee_id) as session:
                for assignment in self.assignments.get_by_employee(session, employee_id):
                    if not assignment.is_active:
                        continue
                    if not self.validator.is_valid_step(assignment.allocation_percentage):
                        # Step rule, not workload: leave the flag alone
                        off_step.append(assignment.id)
                        continue
                    result = self.validator.validate_assignment(
                        employee_id,
                        assignment.start_date,
                        assignment.end_date,
                        assignment.allocation_percentage,
                        exclude_assignment_id=assignment.id,
                        session=session,
                    )
                    if not result.valid:
                        print(f"[WARN] Assignment {assignment.id}: {result.message}")
                    flag = result.warning or not result.valid
                    if assignment.workload_warning != flag:
                        assignment.workload_warning = flag
                        changed += 1

        if off_step:
            print(
                f"[WARN] {len(off_step)} assignments are not in steps of "
                f"{self.validator.cfg.allocation_step}%, warnings left unchanged: {off_step}"
            )
        print(f"[OK] Workload warnings refreshed: {changed} assignments changed")
        return changed

    # ------------------------------------------------------------------- reads

    def get_assignment(self, assignment_id: int) -> Assignment:
        with self.transactions.read_only() as session:
            assignment = self.assignments.get_by_id(session, assignment_id)
        if assignment is None:
            raise NotFound("Assignment", assignment_id)
        return assignment

    def get_employee_assignments(self, employee_id: int) -> List[Assignment]:
        with self.transactions.read_only() as session:
            return self.assignments.get_by_employee(session, employee_id)

    def get_project_assignments(self, project_id: int) -> List[Assignment]:
        with self.transactions.read_only() as session:
            return self.assignments.get_by_project(session, project_id)

    def get_requirement_history(self, requirement_id: int) -> List[Assignment]:
        with self.transactions.read_only() as session:
            return self.assignments.get_by_requirement(session, requirement_id)

    def check_employee_availability(self, employee_id: int, start: DateLike, end: DateLike) -> List[Assignment]:
        """Active assignments of the employee that overlap [start, end], by start date."""
        period = DateRange.parse(start, end)
        with self.transactions.read_only() as session:
            return self.assignments.find_active_overlapping(session, employee_id, period.start, period.end)

    # ----------------------------------------------------------------- helpers

    def _employee_of(self, assignment_id: int) -> int:
        with self.transactions.read_only() as session:
            assignment = self.assignments.get_by_id(session, assignment_id)
            if assignment is None:
                raise NotFound("Assignment", assignment_id)
            return assignment.employee_id

    def _check_references(
        self,
        session: Session,
        employee_id: int,
        project_id: int,
        requirement_id: Optional[int],
        period: DateRange,
    ) -> Project:
        if self.employees.get_by_id(session, employee_id) is None:
            raise ReferenceNotFound("employee", employee_id)
        project = self.projects.get_by_id(session, project_id)
        if project is None:
            raise ReferenceNotFound("project", project_id)
        if requirement_id is not None:
            requirement = self.requirements.get_by_id(session, requirement_id)
            if requirement is None:
                raise ReferenceNotFound("requirement", requirement_id)
            self._check_requirement_period(requirement, period)
        return project

    @staticmethod
    def _check_requirement_period(requirement: Optional[Requirement], period: DateRange) -> None:
        if requirement is None:
            return
        if not requirement.period.covers(period):
            raise ValidationFailure(
                "Assignment dates must fall within requirement period",
                field="start_date",
                details={
                    "requirement_period": str(requirement.period),
                    "assignment_period": str(period),
                },
            )

    def _merge(self, assignment: Assignment, patch: AssignmentPatch) -> Dict[str, Any]:
        """Current values overridden by the patch, checked for consistency."""
        merged: Dict[str, Any] = {name: getattr(assignment, name) for name in PATCHABLE_FIELDS}
        merged.update(patch.changes)

        for name in ("start_date", "end_date"):
            if patch.provides(name):
                merged[name] = parse_date(merged[name], name)
        for name, min_length in (("role", 2), ("dr_status", 0), ("position_status", 0)):
            if patch.provides(name):
                merged[name] = _optional_text(merged, name, min_length=min_length)

        if merged["status"] not in ASSIGNMENT_STATUSES:
            raise ValidationFailure(
                f"Status must be one of: {', '.join(ASSIGNMENT_STATUSES)}", field="status"
            )

        reason = merged["termination_reason"]
        if reason is not None and (not isinstance(reason, str) or not reason.strip()):
            reason = None
        if merged["status"] == STATUS_TERMINATED:
            if reason is None:
                raise ValidationFailure("Termination reason is required", field="termination_reason")
            merged["termination_reason"] = reason.strip()
        else:
            if patch.get("termination_reason") is not None:
                raise ValidationFailure(
                    "Termination reason can only be set on terminated assignments",
                    field="termination_reason",
                )
            merged["termination_reason"] = None
        return merged

    @staticmethod
    def _raise_if_invalid(result: ValidationResult, employee_id: int, period: DateRange, allocation) -> None:
        if result.valid:
            return
        print(f"[WARN] Rejected assignment for employee {employee_id} ({period}, {allocation}%): {result.message}")
        raise ValidationFailure(
            result.message,
            field="allocation_percentage",
            details={"employee_id": employee_id, "period": str(period), "allocation_percentage": allocation},
        )
