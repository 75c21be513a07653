"""Pydantic schemas for cleanup requests."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CleanupRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    original_video_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("originalVideoUrl", "originalArtifactUrl", "original_video_url"),
    )
    reversed_video_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("reversedVideoUrl", "derivedArtifactUrl", "reversed_video_url"),
    )


class CleanupAllResponse(BaseModel):
    success: bool
    message: str
    deleted: int = 0
    failed: int = 0
