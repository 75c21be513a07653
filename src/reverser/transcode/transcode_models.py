"""Data structures for transcode jobs."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class JobState(StrEnum):
    """Lifecycle states of a request-scoped job."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TranscodeEventKind(StrEnum):
    STARTED = "started"
    PROGRESS = "progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class TranscodeEvent:
    """Lifecycle notification emitted by a runner."""

    kind: TranscodeEventKind
    command: tuple[str, ...] = ()
    percent: float | None = None
    reason: str | None = None

    @classmethod
    def started(cls, command: list[str] | tuple[str, ...]) -> "TranscodeEvent":
        return cls(TranscodeEventKind.STARTED, command=tuple(command))

    @classmethod
    def progress(cls, percent: float) -> "TranscodeEvent":
        return cls(TranscodeEventKind.PROGRESS, percent=percent)

    @classmethod
    def completed(cls) -> "TranscodeEvent":
        return cls(TranscodeEventKind.COMPLETED)

    @classmethod
    def failed(cls, reason: str) -> "TranscodeEvent":
        return cls(TranscodeEventKind.FAILED, reason=reason)


EventCallback = Callable[[TranscodeEvent], None]


@dataclass(slots=True)
class TranscodeResult:
    """Outcome of a successful transcode."""

    output_path: Path
    command: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0
