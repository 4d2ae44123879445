from __future__ import annotations

import math
from pathlib import Path

import pytest

from antirsi.timing.config import (
    BreakConfig,
    TimingConfig,
    WorkBreakConfig,
    is_valid_config,
    merge_config,
    validate_config,
)


def test_defaults():
    cfg = TimingConfig.default()
    assert cfg.mini == BreakConfig(interval_seconds=240, duration_seconds=13)
    assert cfg.work == WorkBreakConfig(interval_seconds=3000, duration_seconds=480, postpone_seconds=600)
    assert cfg.tick_interval_ms == 500
    assert cfg.natural_break_continuation_window_seconds == 30
    assert is_valid_config(cfg)


def test_merge_without_override_returns_base():
    base = TimingConfig.default()
    assert merge_config(base) is base


def test_merge_is_field_by_field():
    base = TimingConfig.default()
    merged = merge_config(base, {"mini": {"duration_seconds": 20}, "work": {"postpone_seconds": 120}})
    assert merged.mini.duration_seconds == 20
    assert merged.mini.interval_seconds == 240
    assert merged.work.postpone_seconds == 120
    assert merged.work.interval_seconds == 3000
    assert merged.tick_interval_ms == 500
    # base is untouched
    assert base.mini.duration_seconds == 13


def test_merge_ignores_none_and_unknown_fields():
    base = TimingConfig.default()
    merged = merge_config(base, {"tick_interval_ms": None, "mini": {"colour": "red"}, "bogus": 1})
    assert merged == base


def test_merge_accepts_camel_case_keys():
    merged = merge_config(
        TimingConfig.default(),
        {"work": {"intervalSeconds": 1800}, "tickIntervalMs": 1000, "naturalBreakContinuationWindowSeconds": 45},
    )
    assert merged.work.interval_seconds == 1800
    assert merged.tick_interval_ms == 1000
    assert merged.natural_break_continuation_window_seconds == 45


def test_merge_does_not_validate():
    merged = merge_config(TimingConfig.default(), {"mini": {"interval_seconds": -5}})
    assert merged.mini.interval_seconds == -5
    assert validate_config(merged) == ["mini.interval_seconds must be > 0 (got -5)"]


def test_validate_reports_each_problem():
    cfg = merge_config(
        TimingConfig.default(),
        {"work": {"postpone_seconds": 0}, "tick_interval_ms": 0, "natural_break_continuation_window_seconds": -1},
    )
    problems = validate_config(cfg)
    assert len(problems) == 3
    assert not is_valid_config(cfg)


def test_validate_rejects_non_finite_values():
    cfg = merge_config(
        TimingConfig.default(),
        {
            "mini": {"interval_seconds": float("nan")},
            "work": {"duration_seconds": float("inf")},
            "natural_break_continuation_window_seconds": float("nan"),
        },
    )
    problems = validate_config(cfg)
    assert len(problems) == 3
    assert problems[0].startswith("mini.interval_seconds")
    assert not is_valid_config(cfg)


def test_from_dict_rejects_non_finite_numbers():
    for raw in ("nan", " inf ", float("nan"), -math.inf):
        with pytest.raises(ValueError):
            TimingConfig.from_dict({"mini": {"interval_seconds": raw}})
    with pytest.raises(ValueError):
        TimingConfig.from_dict({"tick_interval_ms": "NaN"})


def test_with_patch_merges_onto_self():
    base = merge_config(TimingConfig.default(), {"tick_interval_ms": 1000})
    patched = base.with_patch({"mini": {"duration_seconds": 20}})
    assert patched.tick_interval_ms == 1000
    assert patched.mini.duration_seconds == 20
    assert base.with_patch(None) is base


def test_zero_window_is_valid():
    cfg = merge_config(TimingConfig.default(), {"natural_break_continuation_window_seconds": 0})
    assert is_valid_config(cfg)


def test_from_dict_coerces_numeric_strings():
    cfg = TimingConfig.from_dict({"mini": {"interval_seconds": "300"}})
    assert cfg.mini.interval_seconds == 300.0


def test_from_dict_rejects_non_numbers():
    with pytest.raises(ValueError):
        TimingConfig.from_dict({"mini": {"interval_seconds": "soon"}})
    with pytest.raises(ValueError):
        TimingConfig.from_dict({"work": "long"})
    with pytest.raises(ValueError):
        TimingConfig.from_dict({"tick_interval_ms": True})


def test_to_dict_round_trips_through_from_dict():
    cfg = merge_config(TimingConfig.default(), {"mini": {"interval_seconds": 120}})
    assert TimingConfig.from_dict(cfg.to_dict()) == cfg


def test_from_yaml(tmp_path: Path):
    path = tmp_path / "antirsi.yaml"
    path.write_text(
        """
version: 1
mini:
  interval_seconds: 300
work:
  duration_seconds: 600
""",
        encoding="utf-8",
    )
    cfg = TimingConfig.from_yaml(path)
    assert cfg.mini.interval_seconds == 300
    assert cfg.mini.duration_seconds == 13
    assert cfg.work.duration_seconds == 600


def test_from_yaml_rejects_invalid_values(tmp_path: Path):
    path = tmp_path / "antirsi.yaml"
    path.write_text("mini:\n  duration_seconds: 0\n", encoding="utf-8")
    with pytest.raises(ValueError):
        TimingConfig.from_yaml(path)


def test_from_yaml_version_mismatch_raises(tmp_path: Path):
    path = tmp_path / "antirsi.yaml"
    path.write_text("version: 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        TimingConfig.from_yaml(path)


def test_bundled_config_file_is_valid():
    path = Path(__file__).resolve().parent.parent / "config" / "antirsi.yaml"
    assert TimingConfig.from_yaml(path) == TimingConfig.default()
