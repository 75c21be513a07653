"""Coordinate uploads, reverse jobs and the artifacts they leave behind."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from fastapi import UploadFile

from ..config import UploadLimits
from ..exceptions import MissingUploadError, TranscodeError, UnsupportedMediaError
from ..storage.artifact_models import ArtifactKind
from ..storage.artifact_store import ArtifactStore, safe_extension
from ..transcode.transcode_models import EventCallback, TranscodeEvent, TranscodeEventKind
from ..transcode.transcode_runner import TranscodeRunner
from .upload_models import ReverseJob, UploadOutcome

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = frozenset(
    {".mp4", ".m4v", ".mov", ".webm", ".mkv", ".avi", ".mpg", ".mpeg", ".ogv", ".3gp", ".wmv", ".flv", ".ts"}
)
GENERIC_CONTENT_TYPES = frozenset({"", "application/octet-stream"})


def is_video_upload(upload: UploadFile) -> bool:
    """Accept ``video/*`` uploads, or generic ones carrying a video extension."""
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type.startswith("video/"):
        return True
    return content_type in GENERIC_CONTENT_TYPES and safe_extension(upload.filename) in VIDEO_EXTENSIONS


@dataclass(slots=True)
class UploadCoordinator:
    """Accept one upload, reverse it and report both artifacts.

    Nothing is deleted on success; retention belongs to the cleanup handler
    and the sweeper. A failed job removes its input and any partial output.
    """

    store: ArtifactStore
    runner: TranscodeRunner
    limits: UploadLimits
    log: logging.Logger = field(default_factory=lambda: logger)

    def validate_submission(self, upload: UploadFile | None) -> UploadFile:
        if upload is None or not upload.filename:
            self.log.warning("upload.missing_file")
            raise MissingUploadError("No video file uploaded.")
        if not is_video_upload(upload):
            self.log.warning(
                "upload.unsupported_media",
                extra={"content_type": upload.content_type, "upload_filename": upload.filename},
            )
            raise UnsupportedMediaError(upload.content_type or "unknown")
        return upload

    async def handle_upload(
        self,
        upload: UploadFile | None,
        *,
        on_event: EventCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> UploadOutcome:
        upload = self.validate_submission(upload)
        job = ReverseJob(
            input_identity=self.store.allocate_incoming_name(upload.filename),
            output_identity=self.store.allocate_derived_name(),
        )
        output_path = self.store.path_for(ArtifactKind.DERIVED, job.output_identity)

        def _record(event: TranscodeEvent) -> None:
            job.events.append(event)
            if event.kind is TranscodeEventKind.PROGRESS:
                job.last_percent = event.percent
            if on_event is not None:
                on_event(event)

        with self.store.lease((ArtifactKind.INCOMING, job.input_identity), (ArtifactKind.DERIVED, job.output_identity)):
            artifact = await self.store.persist_upload(upload, job.input_identity, self.limits)
            self.log.info(
                "upload.job.started",
                extra={"input": job.input_identity, "output": job.output_identity, "size_bytes": artifact.size_bytes},
            )
            try:
                await self.runner.run(artifact.path, output_path, on_event=_record, cancel_event=cancel_event)
            except TranscodeError as exc:
                self._record_failure(job, exc.reason)
                raise
            except asyncio.CancelledError:
                self._record_failure(job, "request cancelled")
                raise
            except Exception as exc:
                self.log.exception("upload.job.unexpected_error", extra={"input": job.input_identity})
                self._record_failure(job, str(exc))
                raise TranscodeError(str(exc)) from exc

        job.succeed()
        self.log.info(
            "upload.job.completed",
            extra={"input": job.input_identity, "output": job.output_identity},
        )
        return UploadOutcome(
            original_identity=job.input_identity,
            derived_identity=job.output_identity,
            original_url=self.store.url_for(ArtifactKind.INCOMING, job.input_identity),
            derived_url=self.store.url_for(ArtifactKind.DERIVED, job.output_identity),
        )

    def _record_failure(self, job: ReverseJob, reason: str) -> None:
        job.fail(reason)
        self.store.discard(ArtifactKind.INCOMING, job.input_identity)
        self.store.discard(ArtifactKind.DERIVED, job.output_identity)
        self.log.warning(
            "upload.job.failed",
            extra={"input": job.input_identity, "output": job.output_identity, "reason": reason},
        )
