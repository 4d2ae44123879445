from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Mapping, Optional

from .actions import (
    AddInhibitor,
    EndMiniBreak,
    EndWorkBreak,
    PostponeWorkBreak,
    RemoveInhibitor,
    ResetConfig,
    ResetTimings,
    SetConfig,
    SetProcesses,
    SetUserPaused,
    StartMiniBreak,
    StartWorkBreak,
    Tick,
)
from .config import TimingConfig, merge_config
from .types import EngineState, Status, Timings


# normal: idle up to duration * ratio still counts as "working"
MINI_ACTIVITY_IDLE_RATIO = 0.3
# in-mini: idle below this means the user touched the keyboard again
MINI_BREAK_ACTIVE_IDLE_SECONDS = 1
# in-work: idle must reach this before break time is credited
WORK_BREAK_IDLE_SECONDS = 4


@dataclass(frozen=True)
class Reduction:
    state: EngineState
    changed: bool


def _clamp(value: float, low: float, high: float) -> float:
    if value < low:
        return low
    if value > high:
        return high
    return value


def _clamp_to(value: float, high: float) -> float:
    return _clamp(value, 0, high)


def create_initial_state(config_override: Optional[Mapping[str, Any]] = None) -> EngineState:
    config = merge_config(TimingConfig.default(), config_override)
    return EngineState(config=config)


# -------------------------
# break transitions
# -------------------------

def _enter_mini_break(state: EngineState) -> EngineState:
    timings = replace(
        state.timings,
        mini_elapsed=state.config.mini.interval_seconds,
        mini_taking=0,
    )
    return replace(state, status=Status.IN_MINI, timings=timings)


def _leave_mini_break(state: EngineState) -> EngineState:
    timings = replace(
        state.timings,
        mini_elapsed=0,
        mini_taking=state.config.mini.duration_seconds,
    )
    return replace(state, status=Status.NORMAL, timings=timings)


def _enter_work_break(state: EngineState, natural_continuation: bool) -> EngineState:
    cfg = state.config
    timings = Timings(
        mini_elapsed=0,
        mini_taking=cfg.mini.duration_seconds,
        work_elapsed=cfg.work.interval_seconds,
        work_taking=state.timings.work_taking if natural_continuation else 0,
    )
    return replace(state, status=Status.IN_WORK, timings=timings)


def _leave_work_break(state: EngineState) -> EngineState:
    cfg = state.config
    timings = Timings(
        mini_elapsed=0,
        mini_taking=cfg.mini.duration_seconds,
        work_elapsed=0,
        work_taking=cfg.work.duration_seconds,
    )
    return replace(state, status=Status.NORMAL, timings=timings)


def _postpone_work_break(state: EngineState) -> EngineState:
    work = state.config.work
    timings = Timings(
        mini_elapsed=0,
        mini_taking=0,
        work_elapsed=_clamp(work.interval_seconds - work.postpone_seconds, 0, work.interval_seconds),
        work_taking=0,
    )
    return replace(state, status=Status.NORMAL, timings=timings)


def _reset_timings(state: EngineState) -> EngineState:
    return replace(
        state,
        status=Status.NORMAL,
        timings=Timings(),
        last_idle_seconds=0,
        last_updated_seconds=0,
    )


def _reset_with_config(state: EngineState, config: TimingConfig) -> EngineState:
    # pause flags, inhibitors and processes survive a config swap
    return _reset_timings(replace(state, config=config))


# -------------------------
# tick
# -------------------------

def _tick(state: EngineState, action: Tick) -> EngineState:
    if state.user_paused or state.inhibitors:
        return state

    idle = action.idle_seconds
    delta = max(0, action.dt_seconds)
    if delta == 0 and idle == state.last_idle_seconds:
        return state

    cfg = state.config
    t = state.timings
    mini_elapsed, mini_taking = t.mini_elapsed, t.mini_taking
    work_elapsed, work_taking = t.work_elapsed, t.work_taking

    base = replace(
        state,
        last_idle_seconds=idle,
        last_updated_seconds=state.last_updated_seconds + delta,
    )

    if state.status == Status.NORMAL:
        if idle <= cfg.mini.duration_seconds * MINI_ACTIVITY_IDLE_RATIO:
            mini_elapsed = _clamp_to(mini_elapsed + delta, cfg.mini.interval_seconds)
            mini_taking = 0
        else:
            mini_taking = _clamp_to(mini_taking + delta, cfg.mini.duration_seconds)

        work_elapsed = _clamp_to(work_elapsed + delta, cfg.work.interval_seconds)
        work_taking = 0

        # natural break: the user already stepped away long enough
        natural_reset = idle >= cfg.natural_break_continuation_window_seconds
        if natural_reset:
            mini_elapsed = 0
            mini_taking = cfg.mini.duration_seconds

        nxt = replace(base, timings=Timings(mini_elapsed, mini_taking, work_elapsed, work_taking))

        # work break always wins over a mini break
        if work_elapsed >= cfg.work.interval_seconds:
            return _enter_work_break(nxt, False)
        if not natural_reset and mini_elapsed >= cfg.mini.interval_seconds:
            return _enter_mini_break(nxt)
        return nxt

    if state.status == Status.IN_MINI:
        work_elapsed = _clamp_to(work_elapsed + delta, cfg.work.interval_seconds)
        if idle < MINI_BREAK_ACTIVE_IDLE_SECONDS:
            mini_taking = 0
        else:
            mini_taking = _clamp_to(mini_taking + delta, cfg.mini.duration_seconds)

        nxt = replace(base, timings=Timings(mini_elapsed, mini_taking, work_elapsed, work_taking))

        if work_elapsed >= cfg.work.interval_seconds:
            return _enter_work_break(nxt, False)
        if mini_taking >= cfg.mini.duration_seconds:
            return _leave_mini_break(nxt)
        return nxt

    if state.status == Status.IN_WORK:
        if idle >= WORK_BREAK_IDLE_SECONDS:
            work_taking = _clamp_to(work_taking + delta, cfg.work.duration_seconds)

        nxt = replace(base, timings=Timings(mini_elapsed, mini_taking, work_elapsed, work_taking))

        if work_taking >= cfg.work.duration_seconds:
            return _leave_work_break(nxt)
        return nxt

    return state


# -------------------------
# flags / sets
# -------------------------

def _set_user_paused(state: EngineState, action: SetUserPaused) -> EngineState:
    value = bool(action.value)
    if state.user_paused == value:
        return state
    return replace(state, user_paused=value)


def _add_inhibitor(state: EngineState, action: AddInhibitor) -> EngineState:
    if action.id in state.inhibitors:
        return state
    return replace(state, inhibitors=state.inhibitors | {action.id})


def _remove_inhibitor(state: EngineState, action: RemoveInhibitor) -> EngineState:
    if action.id not in state.inhibitors:
        return state
    return replace(state, inhibitors=state.inhibitors - {action.id})


def _set_processes(state: EngineState, action: SetProcesses) -> EngineState:
    processes = tuple(action.processes)
    if processes == state.processes:
        return state
    return replace(state, processes=processes)


_HANDLERS: Dict[type, Callable[[EngineState, Any], EngineState]] = {
    Tick: _tick,
    SetConfig: lambda s, a: _reset_with_config(s, merge_config(s.config, a.patch)),
    ResetConfig: lambda s, a: _reset_with_config(s, TimingConfig.default()),
    ResetTimings: lambda s, a: _reset_timings(s),
    StartMiniBreak: lambda s, a: _enter_mini_break(s),
    EndMiniBreak: lambda s, a: _leave_mini_break(s),
    StartWorkBreak: lambda s, a: _enter_work_break(s, bool(a.natural_continuation)),
    EndWorkBreak: lambda s, a: _leave_work_break(s),
    PostponeWorkBreak: lambda s, a: _postpone_work_break(s),
    SetUserPaused: _set_user_paused,
    AddInhibitor: _add_inhibitor,
    RemoveInhibitor: _remove_inhibitor,
    SetProcesses: _set_processes,
}


def reduce(state: EngineState, action: object) -> Reduction:
    """
    Pure reducer: (state, action) -> Reduction.

    When nothing changed, `changed` is False and `state` is the very object that
    was passed in. Unknown actions are ignored.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        return Reduction(state=state, changed=False)
    next_state = handler(state, action)
    return Reduction(state=next_state, changed=next_state is not state)
