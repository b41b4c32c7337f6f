"""Staffing package: employee workload calculation and validated project assignments.

Modules:
- config: load and validate configuration (JSON or YAML)
- errors: error taxonomy raised by the services
- domain: dates, SQLAlchemy models, repositories and transaction management
- services: workload calculator, assignment validator and coordinator
- io: CSV import/export helpers
- cli: command-line interface entrypoints
"""

__all__ = [
    "config",
    "errors",
    "domain",
    "services",
    "io",
    "cli",
]
