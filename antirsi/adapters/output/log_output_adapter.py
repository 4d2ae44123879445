from __future__ import annotations

from loguru import logger

from ...timing.types import AntiRsiEvent, EventType, Snapshot
from .cli_output_adapter import CliOutputAdapter


class LogOutputAdapter:
    """Output adapter that writes break events into the loguru sinks."""

    def __init__(self, *, include_status: bool = False) -> None:
        self.include_status = include_status

    def send(self, event: AntiRsiEvent, snapshot: Snapshot) -> None:
        if event.type == EventType.STATUS_UPDATE:
            if self.include_status:
                logger.debug(f"[{event.type.value}] {CliOutputAdapter.render(snapshot)}")
            return

        extra = ""
        if event.break_type is not None:
            extra = f" break={event.break_type.value}"
        if event.natural_continuation:
            extra += " natural"
        logger.info(f"[{event.type.value}]{extra} {CliOutputAdapter.render(snapshot)}")
