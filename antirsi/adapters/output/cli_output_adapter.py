from __future__ import annotations

from typing import Iterable, Optional, Set

from ...timing.types import AntiRsiEvent, EventType, Snapshot


def _fmt_seconds(value: float) -> str:
    total = int(value)
    return f"{total // 60:02d}:{total % 60:02d}"


class CliOutputAdapter:
    """Output adapter for the terminal: one line per event."""

    def __init__(self, *, event_types: Optional[Iterable[EventType]] = None) -> None:
        self.event_types: Optional[Set[EventType]] = set(event_types) if event_types else None

    def send(self, event: AntiRsiEvent, snapshot: Snapshot) -> None:
        if self.event_types is not None and event.type not in self.event_types:
            return
        print(f"[{event.type.value}] {self.render(snapshot)}")

    @staticmethod
    def render(snapshot: Snapshot) -> str:
        t = snapshot.timings
        paused = " (paused)" if snapshot.paused else ""
        return (
            f"{snapshot.state.value}{paused} "
            f"mini {_fmt_seconds(t.mini_elapsed)}/{_fmt_seconds(t.mini_taking)} "
            f"work {_fmt_seconds(t.work_elapsed)}/{_fmt_seconds(t.work_taking)} "
            f"idle {snapshot.last_idle_seconds:.0f}s"
        )
