from .actions import (
    Action,
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
from .config import BreakConfig, TimingConfig, WorkBreakConfig, merge_config, validate_config
from .events import DerivedEvents, derive_events
from .metrics import TimingMetrics
from .reducer import Reduction, create_initial_state, reduce
from .selectors import (
    select_config,
    select_inhibitor_count,
    select_is_paused,
    select_processes,
    select_snapshot,
)
from .store import TimingStore
from .types import AntiRsiEvent, BreakType, EngineState, EventType, Snapshot, Status, Timings

__all__ = [
    "Action",
    "AddInhibitor",
    "EndMiniBreak",
    "EndWorkBreak",
    "PostponeWorkBreak",
    "RemoveInhibitor",
    "ResetConfig",
    "ResetTimings",
    "SetConfig",
    "SetProcesses",
    "SetUserPaused",
    "StartMiniBreak",
    "StartWorkBreak",
    "Tick",
    "BreakConfig",
    "TimingConfig",
    "WorkBreakConfig",
    "merge_config",
    "validate_config",
    "DerivedEvents",
    "derive_events",
    "TimingMetrics",
    "Reduction",
    "create_initial_state",
    "reduce",
    "select_config",
    "select_inhibitor_count",
    "select_is_paused",
    "select_processes",
    "select_snapshot",
    "TimingStore",
    "AntiRsiEvent",
    "BreakType",
    "EngineState",
    "EventType",
    "Snapshot",
    "Status",
    "Timings",
]
