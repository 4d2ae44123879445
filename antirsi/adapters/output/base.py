from __future__ import annotations

from typing import Protocol

from ...timing.types import AntiRsiEvent, Snapshot


class OutputAdapter(Protocol):
    def send(self, event: AntiRsiEvent, snapshot: Snapshot) -> None:
        """Deliver one event (with the snapshot it was derived from) to an external channel."""
        ...
