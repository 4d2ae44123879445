from __future__ import annotations

import logging
from typing import Iterable, List

from ...timing.types import AntiRsiEvent, Snapshot
from .base import OutputAdapter

logger = logging.getLogger(__name__)


class EventHub:
    """Fan one event out to every registered output adapter, in order."""

    def __init__(self, adapters: Iterable[OutputAdapter] | None = None) -> None:
        self.adapters: List[OutputAdapter] = list(adapters or [])
        self.errors_total: int = 0

    def add(self, adapter: OutputAdapter) -> None:
        self.adapters.append(adapter)

    def dispatch(self, event: AntiRsiEvent, snapshot: Snapshot) -> None:
        for adapter in self.adapters:
            try:
                adapter.send(event, snapshot)
            except Exception:
                self.errors_total += 1
                logger.exception(f"Output adapter {type(adapter).__name__} failed on {event.type.value}")
