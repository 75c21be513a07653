"""Data structures for the upload workflow."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..transcode.transcode_models import JobState, TranscodeEvent


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ReverseJob:
    """One request-scoped transcode over one uploaded artifact.

    The derived identity is allocated before the engine starts so that the
    failure path knows which partial output to remove.
    """

    input_identity: str
    output_identity: str
    state: JobState = JobState.RUNNING
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None
    failure_reason: str | None = None
    last_percent: float | None = None
    events: list[TranscodeEvent] = field(default_factory=list)

    def succeed(self) -> None:
        self.state = JobState.SUCCEEDED
        self.finished_at = _utcnow()

    def fail(self, reason: str) -> None:
        self.state = JobState.FAILED
        self.failure_reason = reason
        self.finished_at = _utcnow()


@dataclass(slots=True, frozen=True)
class UploadOutcome:
    """Identities and public locators of a finished job."""

    original_identity: str
    derived_identity: str
    original_url: str
    derived_url: str
