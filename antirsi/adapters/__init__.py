from .idle_source import CommandIdleSource, FixedIdleSource, IdleSource, default_idle_source
from .process_watcher import WATCHED_PROCESSES, ProcessWatcher, pgrep_probe

__all__ = [
    "CommandIdleSource",
    "FixedIdleSource",
    "IdleSource",
    "default_idle_source",
    "WATCHED_PROCESSES",
    "ProcessWatcher",
    "pgrep_probe",
]
