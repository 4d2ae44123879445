from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .config import TimingConfig


class Status(str, Enum):
    NORMAL = "normal"
    IN_MINI = "in-mini"
    IN_WORK = "in-work"


class BreakType(str, Enum):
    MINI = "mini"
    WORK = "work"


class EventType(str, Enum):
    MINI_BREAK_START = "mini-break-start"
    WORK_BREAK_START = "work-break-start"
    BREAK_UPDATE = "break-update"
    BREAK_END = "break-end"
    STATUS_UPDATE = "status-update"
    PAUSED = "paused"
    RESUMED = "resumed"


@dataclass(frozen=True)
class Timings:
    # *_elapsed: time until the next break; *_taking: time spent in the current break
    mini_elapsed: float = 0.0
    mini_taking: float = 0.0
    work_elapsed: float = 0.0
    work_taking: float = 0.0


@dataclass(frozen=True)
class EngineState:
    """Everything the reducer owns. Replaced, never patched in place."""

    status: Status = Status.NORMAL
    timings: Timings = field(default_factory=Timings)
    last_idle_seconds: float = 0.0
    last_updated_seconds: float = 0.0
    config: TimingConfig = field(default_factory=TimingConfig)
    user_paused: bool = False
    inhibitors: FrozenSet[str] = frozenset()
    processes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Snapshot:
    """Read-only projection handed to UI / IPC consumers."""

    state: Status
    timings: Timings
    last_idle_seconds: float
    last_updated_seconds: float
    paused: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "timings": asdict(self.timings),
            "last_idle_seconds": self.last_idle_seconds,
            "last_updated_seconds": self.last_updated_seconds,
            "paused": self.paused,
        }


@dataclass(frozen=True)
class AntiRsiEvent:
    type: EventType
    break_type: Optional[BreakType] = None
    natural_continuation: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.value}
        if self.break_type is not None:
            data["break_type"] = self.break_type.value
        if self.type == EventType.WORK_BREAK_START:
            data["natural_continuation"] = self.natural_continuation
        return data
