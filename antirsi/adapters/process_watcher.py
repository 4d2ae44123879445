# process_watcher.py
# =========================
# 进程观察器：轮询被关注的进程名，只在集合变化时通知
# Process watcher: polls watched process names, notifies on change only
# =========================

from __future__ import annotations

import asyncio
import logging
import subprocess
from typing import Callable, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)


WATCHED_PROCESSES = ("zoom.us",)

ProcessProbe = Callable[[str], bool]
ProcessesListener = Callable[[List[str]], None]


def pgrep_probe(name: str) -> bool:
    """True if a process with exactly this command name is running."""
    result = subprocess.run(
        ["pgrep", "-x", name],
        capture_output=True,
        text=True,
        timeout=5,
    )
    return result.returncode == 0 and bool(result.stdout.strip())


class ProcessWatcher:
    """
    中文：
      只负责“看到了哪些进程”，不决定是否暂停计时。
      是否把进程映射为 inhibitor 由 AppOrchestrator 决定。

    English:
      Reports which watched processes are running. Inhibition policy lives in
      AppOrchestrator.
    """

    def __init__(
        self,
        *,
        watched: Iterable[str] = WATCHED_PROCESSES,
        interval_seconds: float = 2.5,
        probe: Optional[ProcessProbe] = None,
    ) -> None:
        self.watched: List[str] = list(watched)
        self.interval_seconds = float(interval_seconds)
        self.probe: ProcessProbe = probe or pgrep_probe

        self._current: Set[str] = set()
        self._listeners: List[ProcessesListener] = []
        self._task: Optional[asyncio.Task] = None

        self.polls_total: int = 0
        self.errors_total: int = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def current(self) -> List[str]:
        return sorted(self._current)

    def subscribe(self, listener: ProcessesListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -------------------------
    # 轮询 / Polling
    # -------------------------

    def scan(self) -> Set[str]:
        """Probe every watched name once. Raises if the probe fails."""
        return {name for name in self.watched if self.probe(name)}

    def apply(self, found: Set[str]) -> bool:
        """Store a scan result; notify listeners if the set changed."""
        if found == self._current:
            return False
        self._current = set(found)
        processes = self.current()
        logger.info(f"Watched processes changed: {processes}")
        for listener in list(self._listeners):
            try:
                listener(list(processes))
            except Exception:
                logger.exception("Process listener failed")
        return True

    def poll_once(self) -> bool:
        self.polls_total += 1
        try:
            found = self.scan()
        except Exception as e:
            self.errors_total += 1
            logger.warning(f"Process polling failed: {e}")
            return False
        return self.apply(found)

    async def poll_once_async(self) -> bool:
        # probe 可能阻塞（子进程），放到线程里跑
        self.polls_total += 1
        try:
            found = await asyncio.to_thread(self.scan)
        except Exception as e:
            self.errors_total += 1
            logger.warning(f"Process polling failed: {e}")
            return False
        return self.apply(found)

    # -------------------------
    # 生命周期 / lifecycle
    # -------------------------

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while True:
            await self.poll_once_async()
            await asyncio.sleep(self.interval_seconds)
