import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.reverser.config import load_config
from src.reverser.main import create_app
from tests.mocks.runners import StubRunner


@pytest.fixture
def media_root(tmp_path: Path) -> Path:
    return tmp_path / "media"


@pytest.fixture
def client(media_root: Path) -> TestClient:
    config = load_config(media_root=media_root)
    return TestClient(create_app(config, runner=StubRunner(), start_retention=False))


def seed(media_root: Path) -> tuple[Path, Path]:
    original = media_root / "uploads" / "clip-original-1.mp4"
    derived = media_root / "reversed_videos" / "reversed-1.mp4"
    original.write_bytes(b"original")
    derived.write_bytes(b"derived")
    return original, derived


def test_cleanup_with_json_body(client, media_root) -> None:
    original, derived = seed(media_root)

    response = client.post(
        "/cleanup-video",
        json={"originalVideoUrl": "/uploads/clip-original-1.mp4", "reversedVideoUrl": "/reversed_videos/reversed-1.mp4"},
    )

    assert response.status_code == 200
    assert response.text == "Cleanup request received."
    assert not original.exists()
    assert not derived.exists()


def test_cleanup_with_beacon_text_body(client, media_root) -> None:
    original, derived = seed(media_root)
    body = json.dumps({"originalVideoUrl": "/uploads/clip-original-1.mp4"})

    response = client.post("/cleanup-video", content=body, headers={"content-type": "text/plain;charset=UTF-8"})

    assert response.status_code == 200
    assert not original.exists()
    assert derived.exists()


def test_cleanup_accepts_artifact_aliases_and_form_bodies(client, media_root) -> None:
    original, derived = seed(media_root)

    response = client.post("/cleanup-video", data={"derivedArtifactUrl": "/reversed_videos/reversed-1.mp4"})

    assert response.status_code == 200
    assert original.exists()
    assert not derived.exists()


def test_cleanup_twice_is_acknowledged_both_times(client, media_root) -> None:
    seed(media_root)
    payload = {"originalVideoUrl": "/uploads/clip-original-1.mp4", "reversedVideoUrl": "/reversed_videos/reversed-1.mp4"}

    first = client.post("/cleanup-video", json=payload)
    second = client.post("/cleanup-video", json=payload)

    assert (first.status_code, first.text) == (second.status_code, second.text) == (200, "Cleanup request received.")


def test_cleanup_with_empty_body_is_acknowledged(client) -> None:
    response = client.post("/cleanup-video")

    assert response.status_code == 200


@pytest.mark.parametrize(
    ("body", "content_type"),
    [
        ("{not json", "text/plain"),
        ("[1, 2, 3]", "application/json"),
        ('{"originalVideoUrl": 42}', "application/json"),
    ],
)
def test_malformed_cleanup_body_is_a_client_error(client, media_root, body, content_type) -> None:
    original, derived = seed(media_root)

    response = client.post("/cleanup-video", content=body, headers={"content-type": content_type})

    assert response.status_code == 400
    assert response.text == "Invalid request body"
    assert original.exists() and derived.exists()


def test_cleanup_all_empties_directories(client, media_root) -> None:
    seed(media_root)

    response = client.post("/cleanup-all")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "All files deleted from uploads and reversed_videos.",
        "deleted": 2,
        "failed": 0,
    }
    assert list((media_root / "uploads").iterdir()) == []
    assert list((media_root / "reversed_videos").iterdir()) == []
