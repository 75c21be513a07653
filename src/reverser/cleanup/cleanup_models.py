"""Reports returned by cleanup and sweep operations."""

from dataclasses import dataclass, field

from ..storage.artifact_models import ArtifactKind


@dataclass(slots=True)
class SweepReport:
    """Counters of one pass over the artifact directories."""

    deleted: list[tuple[ArtifactKind, str]] = field(default_factory=list)
    skipped: list[tuple[ArtifactKind, str]] = field(default_factory=list)
    failed: list[tuple[ArtifactKind, str]] = field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


@dataclass(slots=True)
class CleanupReport:
    """Per-identity outcome of an explicit cleanup request.

    ``None`` means the identity was not supplied; ``False`` means the artifact
    was already gone or could not be removed.
    """

    original_deleted: bool | None = None
    derived_deleted: bool | None = None
    errors: list[str] = field(default_factory=list)
