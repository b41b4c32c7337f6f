"""I/O utilities for CSV import/export."""

from .import_csv import (
    import_assignments_csv,
    import_employees_csv,
    import_projects_csv,
    import_requirements_csv,
)
from .export_csv import export_assignments_csv, export_workload_csv, workload_frame

__all__ = [
    "import_employees_csv",
    "import_projects_csv",
    "import_requirements_csv",
    "import_assignments_csv",
    "export_assignments_csv",
    "export_workload_csv",
    "workload_frame",
]
