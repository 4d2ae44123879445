# idle_source.py
# =========================
# 系统空闲时间采样（外部协作者）
# System idle-time sampling (external collaborator)
# =========================

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import sys
from typing import Callable, List, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class IdleSource(Protocol):
    def idle_seconds(self) -> float:
        """Seconds since the last keyboard / mouse input."""
        ...


class FixedIdleSource:
    """
    中文：手动设置的空闲值，用于测试与演示
    English: manually driven idle value, for tests and demos
    """

    def __init__(self, value: float = 0.0) -> None:
        self.value = float(value)

    def set(self, value: float) -> None:
        self.value = float(value)

    def idle_seconds(self) -> float:
        return self.value


def _parse_number(stdout: str) -> float:
    return float(stdout.strip().splitlines()[0])


_HID_IDLE_RE = re.compile(r'"HIDIdleTime"\s*=\s*(\d+)')


def _parse_ioreg(stdout: str) -> float:
    match = _HID_IDLE_RE.search(stdout)
    if match is None:
        raise ValueError("HIDIdleTime not found in ioreg output")
    return float(match.group(1))


class CommandIdleSource:
    """
    中文：
      通过外部命令读取空闲时间，例如：
        - Linux/X11: xprintidle（毫秒）
        - macOS:     ioreg -c IOHIDSystem（纳秒）
      命令失败直接抛异常，由调用方（AntiRsiService）记录并跳过本次 tick。

    English:
      Reads idle time from an external command. Failures raise; the caller logs
      them and skips the tick.
    """

    def __init__(
        self,
        command: Sequence[str],
        *,
        scale: float = 1.0,
        parser: Optional[Callable[[str], float]] = None,
        timeout_seconds: float = 2.0,
    ) -> None:
        self.command: List[str] = list(command)
        self.scale = float(scale)
        self.parser = parser or _parse_number
        self.timeout_seconds = timeout_seconds

    def idle_seconds(self) -> float:
        result = subprocess.run(
            self.command,
            capture_output=True,
            text=True,
            timeout=self.timeout_seconds,
            check=True,
        )
        value = self.parser(result.stdout) / self.scale
        return max(0.0, value)


def default_idle_source() -> IdleSource:
    """Pick a sampler for the current platform, falling back to 'always active'."""
    if sys.platform == "darwin":
        return CommandIdleSource(["ioreg", "-c", "IOHIDSystem"], scale=1e9, parser=_parse_ioreg)
    if shutil.which("xprintidle"):
        return CommandIdleSource(["xprintidle"], scale=1000.0)

    logger.warning("No idle-time sampler available on this platform; treating user as always active")
    return FixedIdleSource(0.0)
