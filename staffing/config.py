"""Configuration loading for the staffing core (JSON or YAML)."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict

import yaml


DEFAULT_DB_URL = "sqlite:///staffing.db"


@dataclass
class StaffingConfig:
    """Business rules and infrastructure settings."""

    db_url: str = DEFAULT_DB_URL
    max_workload: float = 100.0  # hard ceiling per day, percent
    warning_threshold: float = 80.0  # above this a workload warning is flagged
    allocation_step: int = 10
    lock_timeout_seconds: float = 10.0
    operation_timeout_seconds: float = 30.0
    echo_sql: bool = False

    def validate(self) -> None:
        """
        Check internal consistency of the configuration.

        Raises:
            ValueError: If thresholds or timeouts are out of range
        """
        if not 0 < self.warning_threshold <= self.max_workload:
            raise ValueError(
                f"warning_threshold must be in (0, max_workload]: {self.warning_threshold}"
            )
        if self.allocation_step <= 0 or self.max_workload % self.allocation_step != 0:
            raise ValueError(f"allocation_step must divide max_workload: {self.allocation_step}")
        if self.lock_timeout_seconds <= 0 or self.operation_timeout_seconds <= 0:
            raise ValueError("Timeouts must be positive")


def _read_raw(path: Path) -> Dict[str, Any]:
    text = path.read_text()
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    return data or {}


def load_config(path: str | Path | None = None) -> StaffingConfig:
    """
    Load configuration from a YAML or JSON file.

    Unknown keys are rejected so that typos do not silently fall back to defaults.

    Args:
        path: Path to the config file; None returns the defaults

    Returns:
        Validated StaffingConfig
    """
    if path is None:
        cfg = StaffingConfig()
        cfg.validate()
        return cfg

    raw = _read_raw(Path(path))
    # Allow the settings to live under a top-level "staffing" key
    if "staffing" in raw and isinstance(raw["staffing"], dict):
        raw = raw["staffing"]

    known = {f.name for f in fields(StaffingConfig)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")

    cfg = StaffingConfig(**raw)
    cfg.validate()
    return cfg
