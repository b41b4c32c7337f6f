"""Error taxonomy for the staffing core.

Workload validation outcomes are returned as values by the validator;
everything here is raised and left for the boundary layer to map onto
user-facing responses.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class StaffingError(Exception):
    """Base class for all staffing errors."""

    error_type = "staffing_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a dictionary for API responses."""
        return {
            "type": self.error_type,
            "message": self.message,
            "details": self.details,
        }


class NotFound(StaffingError):
    """Raised when an employee or assignment does not exist."""

    error_type = "not_found"

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} not found with identifier: {identifier}",
            {"resource": resource, "identifier": identifier},
        )
        self.resource = resource
        self.identifier = identifier


class ValidationFailure(StaffingError):
    """Raised when input or a workload rule rejects an operation."""

    error_type = "validation"

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.field = field


class ReferenceNotFound(StaffingError):
    """Raised when a foreign key target (employee, project, requirement) is missing."""

    error_type = "reference_not_found"

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"Referenced {resource} not found: {identifier}",
            {"resource": resource, "identifier": identifier},
        )
        self.resource = resource
        self.identifier = identifier


class Conflict(StaffingError):
    """Reserved for uniqueness violations."""

    error_type = "conflict"


class Transient(StaffingError):
    """Connection, lock or timeout failure; the caller may retry."""

    error_type = "transient"
