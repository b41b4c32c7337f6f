"""Workload calculation, validation and assignment coordination."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from staffing.config import StaffingConfig
from staffing.domain.repositories import DatabaseManager
from staffing.domain.unit_of_work import TransactionManager

from .assignments import AssignmentCoordinator, AssignmentPatch
from .validation import AssignmentValidator, ValidationResult
from .workload import DailyWorkload, ProjectAllocation, WorkloadCalculator

__all__ = [
    "AssignmentCoordinator",
    "AssignmentPatch",
    "AssignmentValidator",
    "ValidationResult",
    "WorkloadCalculator",
    "DailyWorkload",
    "ProjectAllocation",
    "StaffingServices",
    "build_services",
]


@dataclass
class StaffingServices:
    """The wired components; build once per process and pass around."""

    transactions: TransactionManager
    calculator: WorkloadCalculator
    validator: AssignmentValidator
    coordinator: AssignmentCoordinator


def build_services(db: DatabaseManager, cfg: Optional[StaffingConfig] = None) -> StaffingServices:
    """
    Wire the transaction manager, calculator, validator and coordinator.

    Args:
        db: Database manager owning the engine
        cfg: Business rules and timeouts (defaults if omitted)
    """
    cfg = cfg or StaffingConfig()
    transactions = TransactionManager(
        db,
        lock_timeout=cfg.lock_timeout_seconds,
        operation_timeout=cfg.operation_timeout_seconds,
    )
    calculator = WorkloadCalculator(transactions)
    validator = AssignmentValidator(calculator, cfg)
    coordinator = AssignmentCoordinator(transactions, validator)
    return StaffingServices(
        transactions=transactions,
        calculator=calculator,
        validator=validator,
        coordinator=coordinator,
    )
