# antirsi/service.py
# =========================
# AntiRsiService：调度器 / 驱动器（墙钟 + 空闲采样 → TICK）
# AntiRsiService: scheduler / driver (wall clock + idle samples -> TICK)
# =========================

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, List, Mapping, Optional

from .adapters.idle_source import IdleSource
from .config_provider import ConfigProvider
from .timing.actions import (
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
from .timing.config import TimingConfig, validate_config
from .timing.events import derive_events
from .timing.selectors import (
    select_config,
    select_inhibitor_count,
    select_is_paused,
    select_processes,
    select_snapshot,
)
from .timing.store import TimingStore
from .timing.types import AntiRsiEvent, EngineState, EventType, Snapshot


logger = logging.getLogger(__name__)


EventListener = Callable[[AntiRsiEvent, Snapshot], None]


class AntiRsiService:
    """
    Drives a TimingStore from the wall clock.

    职责 / Responsibilities:
    - 以 tick_interval_ms 为周期采样空闲时间并派发 TICK
    - 暂停（用户 / inhibitor）时整个定时器拆掉，恢复时从“现在”重新计时（不补偿）
    - tick_interval_ms 变化时重启定时器
    - 把 state 变化转成事件，同步地按顺序推给订阅者
    - 配置变化时通过 ConfigProvider 持久化

    All calls must come from the thread that runs the event loop; the store
    serializes dispatches but the timer task lives on that loop.
    """

    def __init__(
        self,
        store: TimingStore,
        idle_source: IdleSource,
        *,
        config_provider: Optional[ConfigProvider] = None,
        on_config_changed: Optional[Callable[[TimingConfig], None]] = None,
        on_processes_changed: Optional[Callable[[List[str]], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.idle_source = idle_source
        self.config_provider = config_provider
        self.on_config_changed = on_config_changed
        self.on_processes_changed = on_processes_changed
        self._clock = clock

        self._listeners: List[EventListener] = []

        self._running = False
        self._timer_task: Optional[asyncio.Task] = None
        self._last_tick_at: Optional[float] = None

        self.ticks_total: int = 0
        self.idle_errors_total: int = 0
        self.listener_errors_total: int = 0

        self._unsubscribe_store: Optional[Callable[[], None]] = store.subscribe(self._on_state_transition)

        state = store.get_state()
        if self.on_config_changed:
            self.on_config_changed(select_config(state))
        self._emit(select_snapshot(state), AntiRsiEvent(EventType.STATUS_UPDATE))

    # -------------------------
    # 生命周期 / lifecycle
    # -------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def timer_active(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    def start(self) -> None:
        """Start ticking. Must be called from inside a running event loop."""
        self._running = True
        self._restart_timer()

    def stop(self) -> None:
        self._running = False
        self._cancel_timer()
        self._last_tick_at = None

    def close(self) -> None:
        self.stop()
        if self._unsubscribe_store is not None:
            self._unsubscribe_store()
            self._unsubscribe_store = None
        self._listeners.clear()

    # -------------------------
    # 查询 / queries
    # -------------------------

    def get_snapshot(self) -> Snapshot:
        return select_snapshot(self.store.get_state())

    def get_config(self) -> TimingConfig:
        return select_config(self.store.get_state())

    def get_processes(self) -> List[str]:
        return select_processes(self.store.get_state())

    def is_paused(self) -> bool:
        return select_is_paused(self.store.get_state())

    # -------------------------
    # 命令 / commands
    # -------------------------

    def dispatch(self, action: object) -> bool:
        return self.store.dispatch(action)

    def trigger_work_break(self) -> bool:
        if self.is_paused():
            return False
        return self.dispatch(StartWorkBreak(natural_continuation=False))

    def trigger_micro_pause(self) -> bool:
        if self.is_paused():
            return False
        return self.dispatch(StartMiniBreak())

    def postpone_work_break(self) -> bool:
        if self.is_paused():
            return False
        return self.dispatch(PostponeWorkBreak())

    def skip_work_break(self) -> bool:
        if self.is_paused():
            return False
        return self.dispatch(EndWorkBreak())

    def skip_micro_break(self) -> bool:
        if self.is_paused():
            return False
        return self.dispatch(EndMiniBreak())

    def pause(self) -> bool:
        return self.dispatch(SetUserPaused(True))

    def resume(self) -> bool:
        return self.dispatch(SetUserPaused(False))

    def reset_timings(self) -> None:
        self.dispatch(SetUserPaused(False))
        self.dispatch(ResetTimings())
        self._restart_timer()

    def add_inhibitor(self, source_id: str) -> bool:
        return self.dispatch(AddInhibitor(source_id))

    def remove_inhibitor(self, source_id: str) -> bool:
        return self.dispatch(RemoveInhibitor(source_id))

    def set_processes(self, processes: List[str]) -> bool:
        return self.dispatch(SetProcesses(tuple(processes)))

    def set_config(self, patch: Mapping[str, Any], *, persist: bool = True) -> bool:
        """
        Merge `patch` onto the current config. Invalid results are rejected here
        and never reach the reducer. Returns True if the patch was applied.
        """
        before = self.get_config()
        candidate = before.with_patch(patch)
        problems = validate_config(candidate)
        if problems:
            logger.warning(f"Rejected timing config patch: {'; '.join(problems)}")
            return False

        self.dispatch(SetConfig(patch))
        after = self.get_config()
        if persist and after != before:
            self._persist(after)
        return True

    def reset_config_to_defaults(self) -> None:
        before = self.get_config()
        self.dispatch(ResetConfig())
        after = self.get_config()
        if after != before:
            self._persist(after)

    # -------------------------
    # 事件订阅 / event sink
    # -------------------------

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register a listener; it immediately receives a status-update."""
        self._listeners.append(listener)
        self._call_listener(listener, AntiRsiEvent(EventType.STATUS_UPDATE), self.get_snapshot())

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -------------------------
    # tick
    # -------------------------

    def tick_once(self) -> bool:
        """Sample idle time and the elapsed delta, then dispatch one TICK."""
        if self.is_paused():
            return False

        try:
            idle_seconds = float(self.idle_source.idle_seconds())
        except Exception as e:
            # 采样失败不推进时钟基线，下次 tick 会把这段时间一起算上
            self.idle_errors_total += 1
            logger.warning(f"Idle time sampling failed, skipping tick: {e}")
            return False

        now = self._clock()
        last = self._last_tick_at if self._last_tick_at is not None else now
        dt_seconds = max(0.0, now - last)
        self._last_tick_at = now

        self.ticks_total += 1
        return self.dispatch(Tick(idle_seconds=idle_seconds, dt_seconds=dt_seconds))

    async def _run_timer(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            self.tick_once()

    def _cancel_timer(self) -> None:
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None

    def _restart_timer(self) -> None:
        self._cancel_timer()

        if self.is_paused() or not self._running:
            self._last_tick_at = None
            return

        interval_seconds = self.get_config().tick_interval_ms / 1000.0
        self._last_tick_at = self._clock()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; tick timer not scheduled")
            return
        self._timer_task = loop.create_task(self._run_timer(interval_seconds))
        logger.debug(f"Tick timer started ({interval_seconds:.3f}s)")

    def _sync_timer_with_pause(self, state: EngineState) -> None:
        if select_is_paused(state):
            self._cancel_timer()
            self._last_tick_at = None
            logger.info(f"Timing paused (user={state.user_paused}, inhibitors={select_inhibitor_count(state)})")
            return
        logger.info("Timing resumed")
        self._restart_timer()

    # -------------------------
    # 状态转移 → 事件 / transitions -> events
    # -------------------------

    def _on_state_transition(self, prev_state: EngineState, next_state: EngineState, action: object) -> None:
        prev_paused = select_is_paused(prev_state)
        next_paused = select_is_paused(next_state)
        if prev_paused != next_paused:
            self._sync_timer_with_pause(next_state)

        prev_config = select_config(prev_state)
        next_config = select_config(next_state)
        if prev_config != next_config:
            if self.on_config_changed:
                self.on_config_changed(next_config)
            if prev_config.tick_interval_ms != next_config.tick_interval_ms and not next_paused:
                self._restart_timer()

        if prev_state.processes != next_state.processes and self.on_processes_changed:
            self.on_processes_changed(select_processes(next_state))

        derived = derive_events(prev_state, next_state, action)
        snapshot = select_snapshot(next_state)
        for event in derived.events:
            if event.type != EventType.STATUS_UPDATE:
                logger.info(f"Event {event.type.value} -> {snapshot.state.value}")
            self._emit(snapshot, event)

    def _emit(self, snapshot: Snapshot, event: AntiRsiEvent) -> None:
        for listener in list(self._listeners):
            self._call_listener(listener, event, snapshot)

    def _call_listener(self, listener: EventListener, event: AntiRsiEvent, snapshot: Snapshot) -> None:
        try:
            listener(event, snapshot)
        except Exception:
            self.listener_errors_total += 1
            logger.exception(f"Event listener failed on {event.type.value}")

    def _persist(self, cfg: TimingConfig) -> None:
        if self.config_provider is None:
            return
        if not self.config_provider.save(cfg):
            logger.warning("Timing config was applied but could not be persisted")
