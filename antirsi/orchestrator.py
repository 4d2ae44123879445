from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Set

from .adapters.output.hub import EventHub
from .adapters.process_watcher import ProcessWatcher
from .service import AntiRsiService
from .timing.types import AntiRsiEvent, EventType, Snapshot

logger = logging.getLogger(__name__)


SYSTEM_SUSPEND_INHIBITOR = "system:suspend"
SYSTEM_LOCK_INHIBITOR = "system:lock"


def process_inhibitor_id(name: str) -> str:
    return f"process:{name}"


class AppOrchestrator:
    """
    Glue between the service and the outside world.

    - fans service events out to output adapters, throttling status-update
    - turns watched-process changes into SET_PROCESSES + process:<name> inhibitors
    - turns OS suspend / lock notifications into system:* inhibitors
    """

    def __init__(
        self,
        service: AntiRsiService,
        *,
        process_watcher: Optional[ProcessWatcher] = None,
        hub: Optional[EventHub] = None,
        status_throttle_seconds: float = 0.25,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.service = service
        self.process_watcher = process_watcher
        self.hub = hub or EventHub()
        self.status_throttle_seconds = status_throttle_seconds
        self._clock = clock

        self._last_status_broadcast_at: Optional[float] = None
        self._process_inhibitors: Set[str] = set()
        self._unsubscribe_service: Optional[Callable[[], None]] = None
        self._unsubscribe_processes: Optional[Callable[[], None]] = None

        self.status_throttled_total: int = 0

    def start(self, *, start_watcher: bool = True) -> None:
        if self._unsubscribe_service is None:
            self._unsubscribe_service = self.service.subscribe(self._on_event)

        if self.process_watcher is not None and self._unsubscribe_processes is None:
            self._unsubscribe_processes = self.process_watcher.subscribe(self._on_processes)
            if start_watcher:
                self.process_watcher.start()

    def stop(self) -> None:
        if self._unsubscribe_service is not None:
            self._unsubscribe_service()
            self._unsubscribe_service = None
        if self._unsubscribe_processes is not None:
            self._unsubscribe_processes()
            self._unsubscribe_processes = None
        if self.process_watcher is not None:
            self.process_watcher.stop()

        # 观察器停了，不能让它留下的 process:* inhibitor 继续暂停计时
        for inhibitor in sorted(self._process_inhibitors):
            self.service.remove_inhibitor(inhibitor)
        self._process_inhibitors = set()

    # -------------------------
    # service -> outputs
    # -------------------------

    def _on_event(self, event: AntiRsiEvent, snapshot: Snapshot) -> None:
        if event.type == EventType.STATUS_UPDATE:
            now = self._clock()
            last = self._last_status_broadcast_at
            if last is not None and now - last < self.status_throttle_seconds:
                self.status_throttled_total += 1
                return
            self._last_status_broadcast_at = now
        self.hub.dispatch(event, snapshot)

    # -------------------------
    # processes -> inhibitors
    # -------------------------

    def _on_processes(self, processes: List[str]) -> None:
        self.service.set_processes(processes)

        wanted = {process_inhibitor_id(name) for name in processes}
        for inhibitor in sorted(wanted - self._process_inhibitors):
            self.service.add_inhibitor(inhibitor)
        for inhibitor in sorted(self._process_inhibitors - wanted):
            self.service.remove_inhibitor(inhibitor)
        self._process_inhibitors = wanted

    # -------------------------
    # OS power / session notifications
    # -------------------------

    def on_system_suspend(self) -> None:
        self.service.add_inhibitor(SYSTEM_SUSPEND_INHIBITOR)

    def on_system_resume(self) -> None:
        self.service.remove_inhibitor(SYSTEM_SUSPEND_INHIBITOR)

    def on_screen_lock(self) -> None:
        self.service.add_inhibitor(SYSTEM_LOCK_INHIBITOR)

    def on_screen_unlock(self) -> None:
        self.service.remove_inhibitor(SYSTEM_LOCK_INHIBITOR)
