"""Data structures describing stored artifacts."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path


class ArtifactKind(StrEnum):
    """Directory class an artifact lives in."""

    INCOMING = "incoming"
    DERIVED = "derived"


@dataclass(slots=True, frozen=True)
class Artifact:
    """A file at rest in one of the artifact directories."""

    identity: str
    kind: ArtifactKind
    path: Path
    size_bytes: int
    modified_at: float

    @property
    def modified_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.modified_at, tz=timezone.utc)

    def age_seconds(self, now: float) -> float:
        return now - self.modified_at
