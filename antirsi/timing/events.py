from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .actions import StartWorkBreak
from .selectors import select_is_paused, select_snapshot
from .types import AntiRsiEvent, BreakType, EngineState, EventType, Snapshot, Status


@dataclass
class DerivedEvents:
    events: List[AntiRsiEvent] = field(default_factory=list)
    # gates re-rendering; independent from whether events fired
    snapshot_changed: bool = False


def break_type_for_status(status: Status) -> Optional[BreakType]:
    if status == Status.IN_MINI:
        return BreakType.MINI
    if status == Status.IN_WORK:
        return BreakType.WORK
    return None


def snapshots_equal(prev: Snapshot, nxt: Snapshot) -> bool:
    return (
        prev.state == nxt.state
        and prev.last_idle_seconds == nxt.last_idle_seconds
        and prev.last_updated_seconds == nxt.last_updated_seconds
        and prev.paused == nxt.paused
        and prev.timings == nxt.timings
    )


def derive_events(prev_state: EngineState, next_state: EngineState, action: object) -> DerivedEvents:
    """
    Turn a state transition into discrete notifications.

    Order: paused/resumed, then break start / break end (or break-update when
    the status did not move), and always a trailing status-update.
    """
    prev_snapshot = select_snapshot(prev_state)
    next_snapshot = select_snapshot(next_state)

    events: List[AntiRsiEvent] = []

    prev_paused = select_is_paused(prev_state)
    next_paused = select_is_paused(next_state)
    if prev_paused != next_paused:
        events.append(AntiRsiEvent(EventType.PAUSED if next_paused else EventType.RESUMED))

    prev_break = break_type_for_status(prev_snapshot.state)
    next_break = break_type_for_status(next_snapshot.state)

    if prev_snapshot.state != next_snapshot.state:
        if next_break == BreakType.MINI:
            events.append(AntiRsiEvent(EventType.MINI_BREAK_START))
        elif next_break == BreakType.WORK:
            natural = isinstance(action, StartWorkBreak) and bool(action.natural_continuation)
            events.append(AntiRsiEvent(EventType.WORK_BREAK_START, natural_continuation=natural))

        if prev_break is not None and next_break != prev_break:
            events.append(AntiRsiEvent(EventType.BREAK_END, break_type=prev_break))
    elif next_break is not None:
        events.append(AntiRsiEvent(EventType.BREAK_UPDATE, break_type=next_break))

    events.append(AntiRsiEvent(EventType.STATUS_UPDATE))

    return DerivedEvents(
        events=events,
        snapshot_changed=not snapshots_equal(prev_snapshot, next_snapshot),
    )
