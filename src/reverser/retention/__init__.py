"""Time-based retention of stored artifacts."""

from .retention_sweeper import RetentionSweeper, SweepPolicy

__all__ = ["RetentionSweeper", "SweepPolicy"]
