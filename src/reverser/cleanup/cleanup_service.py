"""Delete artifacts on client request or operator reset."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from ..exceptions import StorageError
from ..storage.artifact_models import Artifact, ArtifactKind
from ..storage.artifact_store import ArtifactStore
from .cleanup_models import CleanupReport, SweepReport

logger = logging.getLogger(__name__)


def purge_artifacts(
    store: ArtifactStore,
    should_delete: Callable[[Artifact], bool],
    *,
    respect_leases: bool = True,
    log: logging.Logger = logger,
) -> SweepReport:
    """Delete every artifact matching ``should_delete`` in both directories.

    Abandoned ``.partial`` uploads are candidates like any other file; one
    still being written is leased and skipped. Each file is attempted
    independently; a failure is logged and counted but never stops the pass.
    """
    report = SweepReport()
    for kind in ArtifactKind:
        try:
            artifacts = store.list_artifacts(kind, include_partial=True)
        except StorageError as exc:
            log.error("cleanup.scan_failed", extra={"kind": kind.value, "error": str(exc)})
            continue
        for artifact in artifacts:
            key = (kind, artifact.identity)
            if respect_leases and store.is_leased(kind, artifact.identity):
                report.skipped.append(key)
                continue
            if not should_delete(artifact):
                continue
            try:
                if store.delete(kind, artifact.identity):
                    report.deleted.append(key)
            except StorageError as exc:
                report.failed.append(key)
                log.error(
                    "cleanup.delete_failed",
                    extra={"kind": kind.value, "identity": artifact.identity, "error": str(exc)},
                )
    return report


@dataclass(slots=True)
class CleanupService:
    """Handle explicit deletion signals from clients and operators."""

    store: ArtifactStore
    log: logging.Logger = field(default_factory=lambda: logger)

    def request_cleanup(
        self,
        original_locator: str | None = None,
        derived_locator: str | None = None,
    ) -> CleanupReport:
        """Delete whichever artifacts the client names.

        Always succeeds: missing files and delete failures are only logged, so
        repeating a request is harmless.
        """
        report = CleanupReport()
        if original_locator:
            report.original_deleted = self._delete_one(ArtifactKind.INCOMING, original_locator, report)
        if derived_locator:
            report.derived_deleted = self._delete_one(ArtifactKind.DERIVED, derived_locator, report)
        self.log.info(
            "cleanup.request.done",
            extra={
                "original_locator": original_locator,
                "derived_locator": derived_locator,
                "original_deleted": report.original_deleted,
                "derived_deleted": report.derived_deleted,
            },
        )
        return report

    def cleanup_all(self, *, force: bool = False) -> SweepReport:
        """Delete every artifact in both directories regardless of age.

        Artifacts leased by an in-flight job are kept unless ``force`` is set.
        """
        report = purge_artifacts(self.store, lambda _: True, respect_leases=not force, log=self.log)
        self.log.info(
            "cleanup.all.done",
            extra={
                "deleted": report.deleted_count,
                "failed": report.failed_count,
                "skipped": len(report.skipped),
            },
        )
        return report

    def _delete_one(self, kind: ArtifactKind, locator: str, report: CleanupReport) -> bool:
        identity = self.store.resolve_locator(locator)
        if identity is None:
            self.log.warning("cleanup.invalid_locator", extra={"kind": kind.value, "locator": locator})
            return False
        try:
            return self.store.delete(kind, identity)
        except StorageError as exc:
            report.errors.append(str(exc))
            self.log.error(
                "cleanup.delete_failed",
                extra={"kind": kind.value, "identity": identity, "error": str(exc)},
            )
            return False
