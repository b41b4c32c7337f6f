"""Tests for configuration loading."""

import json

import pytest

from staffing.config import DEFAULT_DB_URL, StaffingConfig, load_config


def test_defaults():
    cfg = load_config()
    assert cfg.db_url == DEFAULT_DB_URL
    assert cfg.max_workload == 100.0
    assert cfg.warning_threshold == 80.0
    assert cfg.allocation_step == 10


def test_load_yaml(tmp_path):
    path = tmp_path / "staffing.yaml"
    path.write_text(
        "staffing:\n"
        "  db_url: sqlite:///other.db\n"
        "  warning_threshold: 75\n"
        "  lock_timeout_seconds: 2.5\n"
    )

    cfg = load_config(path)

    assert cfg.db_url == "sqlite:///other.db"
    assert cfg.warning_threshold == 75
    assert cfg.lock_timeout_seconds == 2.5
    assert cfg.operation_timeout_seconds == 30.0


def test_load_json(tmp_path):
    path = tmp_path / "staffing.json"
    path.write_text(json.dumps({"allocation_step": 5, "echo_sql": True}))

    cfg = load_config(str(path))

    assert cfg.allocation_step == 5
    assert cfg.echo_sql is True


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")
    assert load_config(path) == StaffingConfig()


def test_unknown_keys_rejected(tmp_path):
    path = tmp_path / "typo.yaml"
    path.write_text("warning_treshold: 70\n")

    with pytest.raises(ValueError, match="Unknown config keys"):
        load_config(path)


@pytest.mark.parametrize("overrides", [
    {"warning_threshold": 120},
    {"warning_threshold": 0},
    {"allocation_step": 30},
    {"allocation_step": 0},
    {"lock_timeout_seconds": 0},
])
def test_invalid_values_rejected(overrides):
    with pytest.raises(ValueError):
        StaffingConfig(**overrides).validate()
