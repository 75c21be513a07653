"""Filesystem storage for uploaded and derived videos."""

from __future__ import annotations

import logging
import re
import secrets
import time
from collections import Counter
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

from fastapi import UploadFile

from ..config import ArtifactPaths, UploadLimits
from ..exceptions import EmptyUploadError, PayloadTooLargeError, StorageError, UploadReadError
from .artifact_models import Artifact, ArtifactKind

PARTIAL_SUFFIX = ".partial"
DERIVED_EXTENSION = ".mp4"
MAX_STEM_LENGTH = 80

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_SAFE_EXTENSION = re.compile(r"^\.[A-Za-z0-9]{1,8}$")


def sanitize_stem(filename: str | None) -> str:
    """Reduce an uploaded filename to a safe stem."""
    if not filename:
        return "video"
    stem = PurePosixPath(filename.replace("\\", "/")).stem
    cleaned = _UNSAFE_CHARS.sub("_", stem).strip("._-")
    return cleaned[:MAX_STEM_LENGTH] or "video"


def safe_extension(filename: str | None) -> str:
    if not filename:
        return ""
    suffix = PurePosixPath(filename.replace("\\", "/")).suffix.lower()
    return suffix if _SAFE_EXTENSION.match(suffix) else ""


def _unique_token() -> str:
    return f"{time.time_ns() // 1_000_000}-{secrets.token_hex(3)}"


@dataclass(slots=True)
class ArtifactStore:
    """Manage the incoming and derived artifact directories.

    Both directories are flat namespaces; the filesystem name and mtime are the
    only state kept. Names are unique per creation, so writers never contend,
    and deletes treat a missing file as already done.
    """

    paths: ArtifactPaths
    upload_prefix: str = "/uploads"
    derived_prefix: str = "/reversed_videos"
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    _leases: Counter[tuple[ArtifactKind, str]] = field(default_factory=Counter)

    def ensure_structure(self) -> None:
        self.paths.uploads.mkdir(parents=True, exist_ok=True)
        self.paths.derived.mkdir(parents=True, exist_ok=True)

    def directory(self, kind: ArtifactKind) -> Path:
        if kind is ArtifactKind.INCOMING:
            return self.paths.uploads
        return self.paths.derived

    def path_for(self, kind: ArtifactKind, identity: str) -> Path:
        return self.directory(kind) / identity

    def url_for(self, kind: ArtifactKind, identity: str) -> str:
        prefix = self.upload_prefix if kind is ArtifactKind.INCOMING else self.derived_prefix
        return f"{prefix.rstrip('/')}/{identity}"

    def allocate_incoming_name(self, original_name: str | None) -> str:
        """Derive a unique upload name from the client's filename."""
        return f"{sanitize_stem(original_name)}-original-{_unique_token()}{safe_extension(original_name)}"

    def allocate_derived_name(self) -> str:
        return f"reversed-{_unique_token()}{DERIVED_EXTENSION}"

    @staticmethod
    def resolve_locator(locator: str | None) -> str | None:
        """Turn a public URL or bare name into an artifact identity.

        Only the final path component is kept, so a locator can never address
        a file outside its directory.
        """
        if not locator or not isinstance(locator, str):
            return None
        path = unquote(urlparse(locator.strip()).path).replace("\\", "/")
        if path.endswith("/"):
            return None
        name = PurePosixPath(path).name
        if name in {"", ".", ".."}:
            return None
        return name

    async def persist_upload(self, upload: UploadFile, identity: str, limits: UploadLimits) -> Artifact:
        """Stream an upload into the incoming directory.

        Data goes to ``<identity>.partial`` first and is renamed once complete.
        The partial file is leased while it is written, so sweeps only ever
        see abandoned ones, and any failure or cancellation removes it.
        """
        self.ensure_structure()
        target = self.path_for(ArtifactKind.INCOMING, identity)
        partial = target.with_name(target.name + PARTIAL_SUFFIX)
        total = 0
        with self.lease((ArtifactKind.INCOMING, partial.name)):
            try:
                with partial.open("wb") as sink:
                    while True:
                        chunk = await upload.read(limits.chunk_size_bytes)
                        if not chunk:
                            break
                        total += len(chunk)
                        if total > limits.max_bytes:
                            self.log.warning(
                                "artifact.upload.too_large",
                                extra={"identity": identity, "size_bytes": total, "limit_bytes": limits.max_bytes},
                            )
                            raise PayloadTooLargeError(total, limits.max_bytes)
                        sink.write(chunk)
                if total == 0:
                    raise EmptyUploadError("uploaded file is empty")
                partial.replace(target)
            except OSError as exc:
                partial.unlink(missing_ok=True)
                self.log.error("artifact.upload.write_failed", extra={"identity": identity}, exc_info=exc)
                raise UploadReadError(str(exc)) from exc
            except BaseException:
                partial.unlink(missing_ok=True)
                raise

        self.log.info(
            "artifact.upload.persisted",
            extra={"identity": identity, "size_bytes": total, "path": str(target)},
        )
        artifact = self.stat(ArtifactKind.INCOMING, identity)
        if artifact is None:
            raise UploadReadError(f"upload {identity} vanished after write")
        return artifact

    def stat(self, kind: ArtifactKind, identity: str) -> Artifact | None:
        path = self.path_for(kind, identity)
        try:
            info = path.stat()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"cannot stat {path}: {exc}") from exc
        if not path.is_file():
            return None
        return Artifact(
            identity=identity,
            kind=kind,
            path=path,
            size_bytes=info.st_size,
            modified_at=info.st_mtime,
        )

    def list_artifacts(self, kind: ArtifactKind, *, include_partial: bool = False) -> list[Artifact]:
        """Return artifacts at rest in one directory."""
        directory = self.directory(kind)
        try:
            entries = sorted(directory.iterdir())
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageError(f"cannot scan {directory}: {exc}") from exc

        artifacts: list[Artifact] = []
        for entry in entries:
            if not include_partial and entry.name.endswith(PARTIAL_SUFFIX):
                continue
            try:
                artifact = self.stat(kind, entry.name)
            except StorageError as exc:
                self.log.warning("artifact.stat_failed", extra={"path": str(entry), "error": str(exc)})
                continue
            if artifact is not None:
                artifacts.append(artifact)
        return artifacts

    def delete(self, kind: ArtifactKind, identity: str) -> bool:
        """Remove one artifact; ``False`` means it was already gone."""
        path = self.path_for(kind, identity)
        try:
            path.unlink()
        except FileNotFoundError:
            self.log.debug("artifact.delete.missing", extra={"kind": kind.value, "identity": identity})
            return False
        except OSError as exc:
            raise StorageError(f"cannot delete {path}: {exc}") from exc
        self.log.info("artifact.deleted", extra={"kind": kind.value, "identity": identity})
        return True

    def discard(self, kind: ArtifactKind, identity: str) -> bool:
        """Best-effort delete used on error paths; failures are only logged."""
        try:
            return self.delete(kind, identity)
        except StorageError as exc:
            self.log.error(
                "artifact.discard_failed",
                extra={"kind": kind.value, "identity": identity, "error": str(exc)},
            )
            return False

    @contextmanager
    def lease(self, *artifacts: tuple[ArtifactKind, str]) -> Iterator[None]:
        """Mark artifacts as in use so sweeps leave them alone."""
        for key in artifacts:
            self._leases[key] += 1
        try:
            yield
        finally:
            for key in artifacts:
                self._leases[key] -= 1
                if self._leases[key] <= 0:
                    del self._leases[key]

    def is_leased(self, kind: ArtifactKind, identity: str) -> bool:
        return self._leases.get((kind, identity), 0) > 0
