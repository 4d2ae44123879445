from __future__ import annotations

import asyncio
import time
from pathlib import Path

import pytest

from antirsi.adapters.idle_source import FixedIdleSource
from antirsi.config_provider import ConfigProvider
from antirsi.service import AntiRsiService
from antirsi.timing import EventType, Status, TimingStore


class BrokenIdleSource:
    def idle_seconds(self) -> float:
        raise RuntimeError("no display")


def _collect(service):
    events = []
    service.subscribe(lambda event, snapshot: events.append((event.type, snapshot.state)))
    events.clear()
    return events


def test_construction_emits_initial_status_and_config():
    configs = []
    store = TimingStore({"tick_interval_ms": 1000})
    svc = AntiRsiService(store, FixedIdleSource(), on_config_changed=configs.append)
    assert [c.tick_interval_ms for c in configs] == [1000]

    received = []
    svc.subscribe(lambda event, snapshot: received.append(event.type))
    assert received == [EventType.STATUS_UPDATE]
    svc.close()


def test_tick_once_uses_clock_delta(service, clock, idle):
    # first tick only records the clock baseline (dt=0, same idle -> no-op)
    assert service.tick_once() is False
    assert service.get_snapshot().timings.mini_elapsed == 0

    clock.advance(2.5)
    service.tick_once()
    snap = service.get_snapshot()
    assert snap.timings.mini_elapsed == 2.5
    assert snap.last_updated_seconds == 2.5

    idle.set(10)
    clock.advance(1)
    service.tick_once()
    assert service.get_snapshot().timings.mini_taking == 1
    assert service.ticks_total == 3


def test_idle_source_failure_skips_tick(clock):
    svc = AntiRsiService(TimingStore(), BrokenIdleSource(), clock=clock)
    assert svc.tick_once() is False
    assert svc.idle_errors_total == 1
    assert svc.get_snapshot().last_updated_seconds == 0
    svc.close()


def test_mini_break_events_through_service(service, clock):
    events = _collect(service)
    service.tick_once()
    for _ in range(240):
        clock.advance(1)
        service.tick_once()
    assert service.get_snapshot().state == Status.IN_MINI
    assert (EventType.MINI_BREAK_START, Status.IN_MINI) in events


def test_commands_ignored_while_paused(service):
    service.pause()
    assert service.is_paused() is True
    assert service.trigger_work_break() is False
    assert service.trigger_micro_pause() is False
    assert service.postpone_work_break() is False
    assert service.skip_work_break() is False
    assert service.skip_micro_break() is False
    assert service.tick_once() is False
    assert service.get_snapshot().state == Status.NORMAL


def test_trigger_and_skip_work_break(service):
    events = _collect(service)
    assert service.trigger_work_break() is True
    assert service.get_snapshot().state == Status.IN_WORK
    assert service.postpone_work_break() is True
    snap = service.get_snapshot()
    assert snap.state == Status.NORMAL
    assert snap.timings.work_elapsed == 2400

    service.trigger_micro_pause()
    service.skip_micro_break()
    assert service.get_snapshot().state == Status.NORMAL
    assert [e for e, _ in events if e != EventType.STATUS_UPDATE] == [
        EventType.WORK_BREAK_START,
        EventType.BREAK_END,
        EventType.MINI_BREAK_START,
        EventType.BREAK_END,
    ]


def test_pause_resume_and_inhibitors_emit_events(service):
    events = _collect(service)
    service.pause()
    service.add_inhibitor("system:lock")
    service.resume()
    assert service.is_paused() is True
    service.remove_inhibitor("system:lock")
    assert service.is_paused() is False

    kinds = [e for e, _ in events if e != EventType.STATUS_UPDATE]
    assert kinds == [EventType.PAUSED, EventType.RESUMED]


def test_reset_timings_unpauses(service, clock):
    service.tick_once()
    clock.advance(30)
    service.tick_once()
    service.pause()
    service.reset_timings()
    snap = service.get_snapshot()
    assert snap.paused is False
    assert snap.timings.mini_elapsed == 0
    assert snap.last_updated_seconds == 0


def test_set_config_persists_and_resets(tmp_path: Path, clock):
    provider = ConfigProvider(tmp_path / "antirsi.yaml")
    configs = []
    svc = AntiRsiService(
        TimingStore(), FixedIdleSource(), config_provider=provider, on_config_changed=configs.append, clock=clock
    )
    svc.add_inhibitor("process:zoom.us")
    svc.remove_inhibitor("process:zoom.us")
    svc.pause()

    assert svc.set_config({"tick_interval_ms": 1000}) is True
    assert svc.get_config().tick_interval_ms == 1000
    assert svc.is_paused() is True
    assert provider.snapshot().tick_interval_ms == 1000
    assert ConfigProvider(tmp_path / "antirsi.yaml").snapshot().tick_interval_ms == 1000
    assert [c.tick_interval_ms for c in configs] == [500, 1000]

    svc.reset_config_to_defaults()
    assert svc.get_config().tick_interval_ms == 500
    assert provider.snapshot().tick_interval_ms == 500
    svc.close()


def test_set_config_rejects_invalid_patch(service):
    events = _collect(service)
    assert service.set_config({"mini": {"duration_seconds": 0}}) is False
    assert service.get_config().mini.duration_seconds == 13
    assert events == []


def test_processes_callback(clock):
    seen = []
    svc = AntiRsiService(TimingStore(), FixedIdleSource(), on_processes_changed=seen.append, clock=clock)
    svc.set_processes(["zoom.us"])
    svc.set_processes(["zoom.us"])
    assert seen == [["zoom.us"]]
    assert svc.get_processes() == ["zoom.us"]
    svc.close()


def test_failing_listener_does_not_block_others(service):
    received = []

    def boom(event, snapshot):
        raise RuntimeError("boom")

    service.subscribe(boom)
    service.subscribe(lambda event, snapshot: received.append(event.type))
    received.clear()

    service.trigger_micro_pause()
    assert EventType.MINI_BREAK_START in received
    assert service.listener_errors_total >= 1


def test_set_config_rejects_non_finite_values(service, clock):
    assert service.set_config({"mini": {"interval_seconds": float("nan")}}) is False
    assert service.get_config().mini.interval_seconds == 240

    service.tick_once()
    for _ in range(240):
        clock.advance(1)
        service.tick_once()
    assert service.get_snapshot().state == Status.IN_MINI
    assert service.get_snapshot().timings.mini_elapsed == 240


def test_command_from_listener_is_delivered_after_current_events(service):
    delivered = []

    def on_event(event, snapshot):
        delivered.append((event.type, snapshot.state, snapshot.paused))
        if event.type == EventType.MINI_BREAK_START:
            service.pause()

    service.subscribe(on_event)
    delivered.clear()

    service.trigger_micro_pause()
    assert delivered == [
        (EventType.MINI_BREAK_START, Status.IN_MINI, False),
        (EventType.STATUS_UPDATE, Status.IN_MINI, False),
        (EventType.PAUSED, Status.IN_MINI, True),
        (EventType.BREAK_UPDATE, Status.IN_MINI, True),
        (EventType.STATUS_UPDATE, Status.IN_MINI, True),
    ]
    assert service.is_paused() is True


# -------------------------
# timer (asyncio)
# -------------------------

@pytest.mark.asyncio
async def test_timer_ticks_and_stops():
    store = TimingStore({"tick_interval_ms": 10})
    svc = AntiRsiService(store, FixedIdleSource())
    svc.start()
    assert svc.timer_active
    await asyncio.sleep(0.1)
    assert svc.ticks_total >= 2
    assert svc.get_snapshot().timings.work_elapsed > 0

    svc.stop()
    svc.stop()
    await asyncio.sleep(0)
    assert not svc.timer_active
    ticks = svc.ticks_total
    await asyncio.sleep(0.05)
    assert svc.ticks_total == ticks
    svc.close()


@pytest.mark.asyncio
async def test_pause_tears_down_timer_and_resume_restarts():
    svc = AntiRsiService(TimingStore({"tick_interval_ms": 10}), FixedIdleSource())
    svc.start()
    await asyncio.sleep(0.05)

    svc.add_inhibitor("system:suspend")
    assert not svc.timer_active
    frozen = svc.get_snapshot()
    await asyncio.sleep(0.05)
    assert svc.get_snapshot() == frozen

    resumed_at = time.monotonic()
    svc.remove_inhibitor("system:suspend")
    assert svc.timer_active
    await asyncio.sleep(0.05)
    running_for = time.monotonic() - resumed_at
    after = svc.get_snapshot()
    # no catch-up: only time since the resume is credited
    assert 0 < after.timings.work_elapsed - frozen.timings.work_elapsed <= running_for + 1e-6
    svc.close()


@pytest.mark.asyncio
async def test_tick_interval_change_restarts_timer():
    svc = AntiRsiService(TimingStore({"tick_interval_ms": 10}), FixedIdleSource())
    svc.start()
    first_task = svc._timer_task
    svc.set_config({"tick_interval_ms": 20}, persist=False)
    assert svc._timer_task is not first_task
    assert svc.timer_active

    same_task = svc._timer_task
    svc.set_config({"mini": {"duration_seconds": 15}}, persist=False)
    assert svc._timer_task is same_task
    svc.close()
