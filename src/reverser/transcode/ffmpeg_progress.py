"""Parse ffmpeg stderr into completion percentages."""

from __future__ import annotations

import re
from collections.abc import Callable


def _to_seconds(hours: str, minutes: str, seconds: str) -> float:
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


class FFmpegProgressParser:
    """Feed stderr lines, receive percentages via ``callback``.

    ffmpeg prints the input ``Duration:`` once in its banner and a ``time=``
    position on every stats line; the ratio of the two is the percentage.
    """

    _DURATION_PATTERN = re.compile(r"Duration:\s*(\d+):(\d+):(\d+(?:\.\d+)?)")
    _TIME_PATTERN = re.compile(r"time=\s*(\d+):(\d+):(\d+(?:\.\d+)?)")

    def __init__(self, callback: Callable[[float], None], *, min_step: float = 1.0) -> None:
        self._callback = callback
        self._min_step = min_step
        self._total: float | None = None
        self._last_percent: float | None = None

    @property
    def total_seconds(self) -> float | None:
        return self._total

    def __call__(self, line: str) -> None:
        if self._total is None:
            duration = self._DURATION_PATTERN.search(line)
            if duration:
                total = _to_seconds(*duration.groups())
                self._total = total if total > 0 else None
                return

        match = self._TIME_PATTERN.search(line)
        if not match or not self._total:
            return
        elapsed = _to_seconds(*match.groups())
        percent = max(0.0, min(100.0, (elapsed / self._total) * 100.0))
        if self._last_percent is not None and percent < self._last_percent + self._min_step:
            return
        self._last_percent = percent
        self._callback(percent)
