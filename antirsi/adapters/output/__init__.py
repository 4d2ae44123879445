from .base import OutputAdapter
from .cli_output_adapter import CliOutputAdapter
from .hub import EventHub
from .log_output_adapter import LogOutputAdapter

__all__ = ["OutputAdapter", "CliOutputAdapter", "EventHub", "LogOutputAdapter"]
