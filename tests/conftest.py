# tests/conftest.py
# Pytest 配置

import asyncio
import inspect

import pytest

from antirsi.adapters.idle_source import FixedIdleSource
from antirsi.service import AntiRsiService
from antirsi.timing.store import TimingStore


def pytest_addoption(parser):
    """兼容没有 pytest-asyncio 插件时的 ini 配置。"""
    parser.addini(
        "asyncio_mode",
        "Compatibility option when pytest-asyncio is unavailable",
        default="auto",
    )


def pytest_configure(config):
    """注册自定义 marker"""
    config.addinivalue_line(
        "markers", "asyncio: mark test as asyncio coroutine test"
    )


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    """
    当 pytest-asyncio 不可用时，兜底执行 async 测试函数。
    """
    plugin_manager = pyfuncitem.config.pluginmanager
    if plugin_manager.hasplugin("pytest_asyncio") or plugin_manager.hasplugin("asyncio"):
        return None

    test_function = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_function):
        return None

    test_args = {
        arg: pyfuncitem.funcargs[arg]
        for arg in pyfuncitem._fixtureinfo.argnames
    }
    asyncio.run(test_function(**test_args))
    return True


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def idle() -> FixedIdleSource:
    return FixedIdleSource(0.0)


@pytest.fixture
def service(clock, idle):
    svc = AntiRsiService(TimingStore(), idle, clock=clock)
    yield svc
    svc.close()
