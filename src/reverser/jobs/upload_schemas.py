"""Pydantic schemas for upload responses."""

from pydantic import BaseModel, ConfigDict, Field


class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    original_video_url: str | None = Field(default=None, alias="originalVideoUrl")
    reversed_video_url: str | None = Field(default=None, alias="reversedVideoUrl")
