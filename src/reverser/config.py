"""Application configuration builder.

Values come from ``REVERSER_*`` environment variables. Defaults give
500 MiB uploads, an hourly age sweep with a 24 hour threshold and a full
sweep every ten minutes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


def _default_media_root() -> Path:
    return Path("./var/media")


@dataclass(slots=True)
class ArtifactPaths:
    root: Path
    uploads: Path
    derived: Path


@dataclass(slots=True)
class UploadLimits:
    max_bytes: int
    chunk_size_bytes: int


class AppConfig(BaseSettings):
    """Pydantic settings container for the service."""

    model_config = SettingsConfigDict(env_prefix="REVERSER_", extra="ignore")

    host: str = Field(default="0.0.0.0", description="Interface uvicorn binds to.")
    port: int = Field(default=3000, ge=1, le=65535, description="Listening port.")
    log_level: str = Field(default="INFO", description="Root log level.")
    media_root: Path = Field(
        default_factory=_default_media_root,
        description="Directory holding the uploads/ and reversed_videos/ folders.",
    )
    uploads_dirname: str = Field(default="uploads", min_length=1)
    derived_dirname: str = Field(default="reversed_videos", min_length=1)
    max_upload_bytes: int = Field(
        default=500 * MIB,
        ge=1,
        description="Uploads above this size are rejected before processing.",
    )
    upload_chunk_bytes: int = Field(default=1 * MIB, ge=1024)
    age_sweep_interval_seconds: float = Field(
        default=60 * 60,
        gt=0,
        description="Period of the age-based retention sweep.",
    )
    age_threshold_seconds: float = Field(
        default=24 * 60 * 60,
        ge=0,
        description="Artifacts whose mtime is older than this are removed by the age sweep.",
    )
    full_sweep_interval_seconds: float = Field(
        default=10 * 60,
        ge=0,
        description="Period of the unconditional sweep; 0 disables it.",
    )
    startup_full_sweep: bool = Field(
        default=True,
        description="Delete every artifact once when the service starts.",
    )
    ffmpeg_path: str = Field(default="ffmpeg", min_length=1)
    transcode_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Upper bound for a single ffmpeg run; unset means unbounded.",
    )
    cancel_on_disconnect: bool = Field(
        default=False,
        description="Stop the ffmpeg process when the uploading client goes away.",
    )

    @property
    def artifact_paths(self) -> ArtifactPaths:
        root = Path(self.media_root)
        return ArtifactPaths(
            root=root,
            uploads=root / self.uploads_dirname,
            derived=root / self.derived_dirname,
        )

    @property
    def upload_limits(self) -> UploadLimits:
        return UploadLimits(
            max_bytes=self.max_upload_bytes,
            chunk_size_bytes=self.upload_chunk_bytes,
        )


def _ensure_artifact_paths(paths: ArtifactPaths) -> None:
    paths.root.mkdir(parents=True, exist_ok=True)
    paths.uploads.mkdir(parents=True, exist_ok=True)
    paths.derived.mkdir(parents=True, exist_ok=True)


def load_config(**overrides: object) -> AppConfig:
    """Load configuration from environment and create the artifact directories."""
    config = AppConfig(**overrides)
    _ensure_artifact_paths(config.artifact_paths)
    return config


__all__ = ["AppConfig", "ArtifactPaths", "UploadLimits", "load_config"]
