"""Break-timing core for the AntiRSI break reminder."""

__version__ = "0.1.0"
