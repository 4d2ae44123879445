from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class TimingMetrics:
    dispatched_total: int = 0
    changed_total: int = 0
    ignored_total: int = 0

    by_action: Dict[str, int] = field(default_factory=dict)
    ignored_by_action: Dict[str, int] = field(default_factory=dict)

    def inc_action(self, action: str, changed: bool) -> None:
        self.dispatched_total += 1
        self.by_action[action] = self.by_action.get(action, 0) + 1
        if changed:
            self.changed_total += 1
        else:
            self.ignored_total += 1
            self.ignored_by_action[action] = self.ignored_by_action.get(action, 0) + 1
