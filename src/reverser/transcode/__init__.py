"""External transcoding engine integration."""

from .transcode_models import EventCallback, JobState, TranscodeEvent, TranscodeEventKind, TranscodeResult
from .transcode_runner import FFmpegTranscodeRunner, TranscodeRunner

__all__ = [
    "EventCallback",
    "FFmpegTranscodeRunner",
    "JobState",
    "TranscodeEvent",
    "TranscodeEventKind",
    "TranscodeResult",
    "TranscodeRunner",
]
