from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.reverser.config import load_config
from src.reverser.main import create_app
from tests.mocks.runners import RunnerScenario, StubRunner


def build_client(tmp_path: Path, runner: StubRunner, **overrides) -> TestClient:
    config = load_config(media_root=tmp_path / "media", max_upload_bytes=1024, **overrides)
    app = create_app(config, runner=runner, start_retention=False)
    return TestClient(app)


def dir_listing(tmp_path: Path, name: str) -> list[str]:
    return sorted(path.name for path in (tmp_path / "media" / name).iterdir())


def test_upload_returns_both_locators(tmp_path) -> None:
    client = build_client(tmp_path, StubRunner())

    response = client.post("/upload", files={"video": ("clip.mp4", b"abcdef", "video/mp4")})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Video reversed successfully!"
    assert body["originalVideoUrl"].startswith("/uploads/clip-original-")
    assert body["reversedVideoUrl"].startswith("/reversed_videos/reversed-")

    original = client.get(body["originalVideoUrl"])
    derived = client.get(body["reversedVideoUrl"])
    assert original.status_code == 200 and original.content == b"abcdef"
    assert derived.status_code == 200 and derived.content == b"fedcba"


def test_oversized_upload_is_rejected_before_writing(tmp_path) -> None:
    runner = StubRunner()
    client = build_client(tmp_path, runner)

    response = client.post("/upload", files={"video": ("big.mp4", b"x" * 2048, "video/mp4")})

    assert response.status_code == 413
    assert response.json() == {"success": False, "message": "File too large. Maximum size is 1024 bytes."}
    assert dir_listing(tmp_path, "uploads") == []
    assert dir_listing(tmp_path, "reversed_videos") == []
    assert runner.calls == []


def test_missing_file_is_a_client_error(tmp_path) -> None:
    client = build_client(tmp_path, StubRunner())

    response = client.post("/upload", data={"note": "no file"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "No video file uploaded."}


def test_non_video_upload_is_rejected(tmp_path) -> None:
    client = build_client(tmp_path, StubRunner())

    response = client.post("/upload", files={"video": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 415
    assert response.json()["success"] is False
    assert dir_listing(tmp_path, "uploads") == []


@pytest.mark.parametrize("scenario", [RunnerScenario.FAILURE, RunnerScenario.CRASH])
def test_engine_failure_removes_input(tmp_path, scenario) -> None:
    client = build_client(tmp_path, StubRunner(scenario=scenario))

    response = client.post("/upload", files={"video": ("clip.mp4", b"abcdef", "video/mp4")})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["message"].startswith("Error processing video: ")
    assert dir_listing(tmp_path, "uploads") == []
    assert dir_listing(tmp_path, "reversed_videos") == []


def test_text_field_in_place_of_file_is_a_client_error(tmp_path) -> None:
    runner = StubRunner()
    client = build_client(tmp_path, runner)

    response = client.post("/upload", data={"video": "not-a-file"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"].startswith("Upload error: ")
    assert runner.calls == []
    assert dir_listing(tmp_path, "uploads") == []
