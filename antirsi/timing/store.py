from __future__ import annotations

import threading
from collections import deque
from typing import Any, Callable, List, Mapping, Optional

from .actions import action_name
from .metrics import TimingMetrics
from .reducer import create_initial_state, reduce
from .types import EngineState


StoreListener = Callable[[EngineState, EngineState, object], None]


class TimingStore:
    """
    Holds the single EngineState for one process.

    All mutation goes through dispatch(); listeners see (prev, next, action) only
    when the reducer reported a change, in subscription order.

    A dispatch issued from inside a listener is queued and applied after the
    current round of notifications, so every listener sees transitions one
    action at a time.
    """

    def __init__(
        self,
        initial_config: Optional[Mapping[str, Any]] = None,
        *,
        metrics: Optional[TimingMetrics] = None,
    ) -> None:
        self._state: EngineState = create_initial_state(initial_config)
        self._listeners: List[StoreListener] = []
        self._lock = threading.RLock()
        self._pending: deque = deque()
        self._dispatching = False
        self.metrics = metrics or TimingMetrics()

    def get_state(self) -> EngineState:
        return self._state

    def dispatch(self, action: object) -> bool:
        """
        Apply one action. Returns True if the state changed.

        Called re-entrantly from a listener, the action is queued and False is
        returned; it runs once the outer dispatch has notified everyone.
        """
        with self._lock:
            if self._dispatching:
                self._pending.append(action)
                return False

            self._dispatching = True
            try:
                changed = self._apply(action)
                while self._pending:
                    self._apply(self._pending.popleft())
            finally:
                self._pending.clear()
                self._dispatching = False
            return changed

    def _apply(self, action: object) -> bool:
        prev = self._state
        result = reduce(prev, action)
        self.metrics.inc_action(action_name(action), result.changed)
        if not result.changed:
            return False

        self._state = result.state
        for listener in list(self._listeners):
            listener(prev, result.state, action)
        return True

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe
