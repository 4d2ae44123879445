from __future__ import annotations

from dataclasses import replace
from typing import List

from .config import TimingConfig
from .types import EngineState, Snapshot, Timings


def select_is_paused(state: EngineState) -> bool:
    return state.user_paused or len(state.inhibitors) > 0


def select_timings(state: EngineState) -> Timings:
    return replace(state.timings)


def select_config(state: EngineState) -> TimingConfig:
    return state.config


def select_snapshot(state: EngineState) -> Snapshot:
    return Snapshot(
        state=state.status,
        timings=select_timings(state),
        last_idle_seconds=state.last_idle_seconds,
        last_updated_seconds=state.last_updated_seconds,
        paused=select_is_paused(state),
    )


def select_inhibitor_count(state: EngineState) -> int:
    return len(state.inhibitors)


def select_processes(state: EngineState) -> List[str]:
    return list(state.processes)
