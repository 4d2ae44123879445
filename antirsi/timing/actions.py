from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence, Union


@dataclass(frozen=True)
class Tick:
    idle_seconds: float
    dt_seconds: float


@dataclass(frozen=True)
class SetConfig:
    # partial config mapping, merged leaf by leaf onto the current config
    patch: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResetConfig:
    pass


@dataclass(frozen=True)
class ResetTimings:
    pass


@dataclass(frozen=True)
class StartMiniBreak:
    pass


@dataclass(frozen=True)
class EndMiniBreak:
    pass


@dataclass(frozen=True)
class StartWorkBreak:
    natural_continuation: bool = False


@dataclass(frozen=True)
class EndWorkBreak:
    pass


@dataclass(frozen=True)
class PostponeWorkBreak:
    pass


@dataclass(frozen=True)
class SetUserPaused:
    value: bool


@dataclass(frozen=True)
class AddInhibitor:
    id: str


@dataclass(frozen=True)
class RemoveInhibitor:
    id: str


@dataclass(frozen=True)
class SetProcesses:
    processes: Sequence[str] = ()


Action = Union[
    Tick,
    SetConfig,
    ResetConfig,
    ResetTimings,
    StartMiniBreak,
    EndMiniBreak,
    StartWorkBreak,
    EndWorkBreak,
    PostponeWorkBreak,
    SetUserPaused,
    AddInhibitor,
    RemoveInhibitor,
    SetProcesses,
]


def action_name(action: object) -> str:
    return type(action).__name__
