from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Callable
from pathlib import Path

os.environ.setdefault("REVERSER_MEDIA_ROOT", tempfile.mkdtemp(prefix="reverser-tests-"))
os.environ.setdefault("REVERSER_STARTUP_FULL_SWEEP", "false")

import pytest  # noqa: E402

from src.reverser.config import ArtifactPaths, UploadLimits  # noqa: E402
from src.reverser.storage.artifact_store import ArtifactStore  # noqa: E402

FAKE_FFMPEG_SUCCESS = """#!/bin/sh
for last; do :; done
echo "Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'input':" >&2
echo "  Duration: 00:00:02.00, start: 0.000000, bitrate: 120 kb/s" >&2
printf "frame=   25 fps=0.0 q=28.0 size=       0kB time=00:00:01.00 bitrate=N/A speed=2.0x\\r" >&2
printf "frame=   50 fps=0.0 q=-1.0 Lsize=      10kB time=00:00:02.00 bitrate=40.9kbits/s speed=2.0x\\n" >&2
printf 'reversed-bytes' > "$last"
exit 0
"""

FAKE_FFMPEG_FAILURE = """#!/bin/sh
for last; do :; done
printf 'partial' > "$last"
echo "input: Invalid data found when processing input" >&2
exit 1
"""

FAKE_FFMPEG_HANG = """#!/bin/sh
echo "  Duration: 00:00:10.00, start: 0.000000, bitrate: 120 kb/s" >&2
exec sleep 30
"""


@pytest.fixture
def artifact_paths(tmp_path: Path) -> ArtifactPaths:
    paths = ArtifactPaths(
        root=tmp_path,
        uploads=tmp_path / "uploads",
        derived=tmp_path / "reversed_videos",
    )
    paths.uploads.mkdir(parents=True, exist_ok=True)
    paths.derived.mkdir(parents=True, exist_ok=True)
    return paths


@pytest.fixture
def store(artifact_paths: ArtifactPaths) -> ArtifactStore:
    return ArtifactStore(artifact_paths)


@pytest.fixture
def upload_limits() -> UploadLimits:
    return UploadLimits(max_bytes=1024, chunk_size_bytes=64)


@pytest.fixture
def fake_ffmpeg(tmp_path: Path) -> Callable[[str], str]:
    """Write an executable stand-in for ffmpeg and return its path."""

    scripts = {
        "success": FAKE_FFMPEG_SUCCESS,
        "failure": FAKE_FFMPEG_FAILURE,
        "hang": FAKE_FFMPEG_HANG,
    }

    def _build(mode: str) -> str:
        script = tmp_path / f"fake-ffmpeg-{mode}"
        script.write_text(scripts[mode], encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(script)

    return _build
