from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml


CONFIG_VERSION = 1


@dataclass(frozen=True)
class BreakConfig:
    interval_seconds: float = 4 * 60
    duration_seconds: float = 13


@dataclass(frozen=True)
class WorkBreakConfig(BreakConfig):
    interval_seconds: float = 50 * 60
    duration_seconds: float = 8 * 60
    postpone_seconds: float = 10 * 60


@dataclass(frozen=True)
class TimingConfig:
    """Break timing parameters. Immutable; updates produce a new instance."""

    mini: BreakConfig = field(default_factory=BreakConfig)
    work: WorkBreakConfig = field(default_factory=WorkBreakConfig)
    tick_interval_ms: float = 500
    natural_break_continuation_window_seconds: float = 30

    @staticmethod
    def default() -> "TimingConfig":
        return TimingConfig()

    def with_patch(self, patch: Optional[Mapping[str, Any]]) -> "TimingConfig":
        return merge_config(self, patch)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "TimingConfig":
        """Build a config from a (possibly partial) mapping on top of the defaults.

        Unknown keys are ignored. Leaf values must be numbers (numeric strings are
        accepted); anything else raises ValueError. Positivity is NOT checked here,
        see validate_config().
        """
        return merge_config(cls.default(), _coerce_numbers(_normalize_keys(data)))

    @classmethod
    def from_yaml(cls, path: str | Path) -> "TimingConfig":
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config root must be a mapping, got {type(raw).__name__}")

        version = raw.get("version", CONFIG_VERSION)
        if version != CONFIG_VERSION:
            raise ValueError(f"Unsupported timing config version: {version}")

        cfg = cls.from_dict(raw)
        problems = validate_config(cfg)
        if problems:
            raise ValueError("Invalid timing config: " + "; ".join(problems))
        return cfg


# persisted configs from the desktop app use camelCase keys
_KEY_ALIASES: Dict[str, str] = {
    "intervalSeconds": "interval_seconds",
    "durationSeconds": "duration_seconds",
    "postponeSeconds": "postpone_seconds",
    "tickIntervalMs": "tick_interval_ms",
    "naturalBreakContinuationWindowSeconds": "natural_break_continuation_window_seconds",
}

_TOP_LEVEL_NUMBERS = ("tick_interval_ms", "natural_break_continuation_window_seconds")


def _as_dict(value: object) -> dict:
    return dict(value) if isinstance(value, Mapping) else {}


def _normalize_keys(raw: object) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in _as_dict(raw).items():
        key = _KEY_ALIASES.get(key, key)
        if key in ("mini", "work"):
            value = _normalize_keys(value) if isinstance(value, Mapping) else value
        out[key] = value
    return out


def _filter_dataclass_kwargs(dataclass_type, raw: Mapping[str, Any]) -> Dict[str, Any]:
    allowed_keys = {f.name for f in fields(dataclass_type)}
    return {k: v for k, v in raw.items() if k in allowed_keys and v is not None}


def _to_number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got bool")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"{name} must be finite, got {value!r}")
        return value
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            number = None
        if number is not None:
            if not math.isfinite(number):
                raise ValueError(f"{name} must be finite, got {value!r}")
            return number
    raise ValueError(f"{name} must be a number, got {value!r}")


def _coerce_numbers(data: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for block, block_type in (("mini", BreakConfig), ("work", WorkBreakConfig)):
        raw_block = data.get(block)
        if raw_block is None:
            continue
        if not isinstance(raw_block, Mapping):
            raise ValueError(f"{block} must be a mapping, got {type(raw_block).__name__}")
        known = _filter_dataclass_kwargs(block_type, raw_block)
        out[block] = {k: _to_number(v, f"{block}.{k}") for k, v in known.items()}
    for key in _TOP_LEVEL_NUMBERS:
        if data.get(key) is not None:
            out[key] = _to_number(data[key], key)
    return out


def _merge_block(base_block, raw: object):
    patch = _filter_dataclass_kwargs(type(base_block), _as_dict(raw))
    if not patch:
        return base_block
    return replace(base_block, **patch)


def merge_config(base: TimingConfig, override: Optional[Mapping[str, Any]] = None) -> TimingConfig:
    """Overlay a partial config onto `base`, leaf by leaf.

    Nested `mini`/`work` blocks are merged field-by-field; absent or None
    fields keep the base value. No validation happens here.
    """
    if override is None:
        return base
    if isinstance(override, TimingConfig):
        return override

    data = _normalize_keys(override)
    top = {k: data[k] for k in _TOP_LEVEL_NUMBERS if data.get(k) is not None}
    return replace(
        base,
        mini=_merge_block(base.mini, data.get("mini")),
        work=_merge_block(base.work, data.get("work")),
        **top,
    )


def _is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_config(cfg: TimingConfig) -> List[str]:
    """Return a list of human-readable problems; empty means valid."""
    problems: List[str] = []

    def _positive(name: str, value: float) -> None:
        if not _is_finite_number(value) or value <= 0:
            problems.append(f"{name} must be > 0 (got {value!r})")

    _positive("mini.interval_seconds", cfg.mini.interval_seconds)
    _positive("mini.duration_seconds", cfg.mini.duration_seconds)
    _positive("work.interval_seconds", cfg.work.interval_seconds)
    _positive("work.duration_seconds", cfg.work.duration_seconds)
    _positive("work.postpone_seconds", cfg.work.postpone_seconds)
    _positive("tick_interval_ms", cfg.tick_interval_ms)

    window = cfg.natural_break_continuation_window_seconds
    if not _is_finite_number(window) or window < 0:
        problems.append(f"natural_break_continuation_window_seconds must be >= 0 (got {window!r})")

    return problems


def is_valid_config(cfg: TimingConfig) -> bool:
    return not validate_config(cfg)
