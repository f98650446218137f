import json

import httpx
import pytest

from gallery.client.api import GalleryClient
from gallery.client.upload_flow import (
    MAX_VIDEO_BYTES,
    InvalidTransition,
    UploadErrorKind,
    UploadFlow,
    UploadState,
)

from conftest import MP4_HEADER, PNG_HEADER

VIDEO_JSON = {
    "id": "abc",
    "title": "My clip",
    "description": None,
    "publicId": "video-uploads/abc",
    "originalSize": 0,
    "compressedSize": 250,
    "duration": 2.0,
    "createdAt": "2025-01-01T12:00:00",
}


def _client(handler) -> GalleryClient:
    return GalleryClient("http://testserver", token="tok", transport=httpx.MockTransport(handler))


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(MP4_HEADER + b"\x00" * 200_000)
    return path


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(PNG_HEADER + b"\x00" * 100)
    return path


def test_successful_video_upload_reports_progress_and_navigates(video_file):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        body = request.read()
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = body
        return httpx.Response(200, json={"success": True, "video": dict(VIDEO_JSON, originalSize=len(video_file.read_bytes()))})

    progress = []
    flow = UploadFlow(_client(handler), on_progress=progress.append)
    assert flow.select_file(video_file) == UploadState.FILE_SELECTED
    assert flow.submit("My clip", "desc") == UploadState.SUCCEEDED

    assert flow.result.public_id == "video-uploads/abc"
    assert flow.navigate_to == "/home"
    assert seen["auth"] == "Bearer tok"
    assert b'name="originalSize"' in seen["body"]
    assert str(video_file.stat().st_size).encode() in seen["body"]
    assert progress[-1] == 100
    assert progress == sorted(progress)
    assert all(0 <= p <= 100 for p in progress)


def test_oversized_video_is_rejected_without_network(tmp_path):
    path = tmp_path / "big.mp4"
    with path.open("wb") as fh:
        fh.write(MP4_HEADER)
        fh.truncate(MAX_VIDEO_BYTES + 1)

    def handler(request):
        raise AssertionError("no request expected")

    flow = UploadFlow(_client(handler))
    assert flow.select_file(path) == UploadState.REJECTED
    assert flow.message == "File size too large"
    with pytest.raises(InvalidTransition):
        flow.submit("Big")


def test_file_of_exactly_max_size_is_accepted(tmp_path):
    path = tmp_path / "edge.mp4"
    with path.open("wb") as fh:
        fh.write(MP4_HEADER)
        fh.truncate(MAX_VIDEO_BYTES)
    flow = UploadFlow(_client(lambda request: httpx.Response(500)))
    assert flow.select_file(path) == UploadState.FILE_SELECTED


def test_wrong_category_is_rejected(image_file):
    flow = UploadFlow(_client(lambda request: httpx.Response(500)))
    assert flow.select_file(image_file) == UploadState.REJECTED
    assert flow.message == "Please select a video file"


def test_title_is_required_before_sending(video_file):
    def handler(request):
        raise AssertionError("no request expected")

    flow = UploadFlow(_client(handler))
    flow.select_file(video_file)
    assert flow.submit("   ") == UploadState.FILE_SELECTED
    assert flow.message == "Title is required"


@pytest.mark.parametrize(
    "response,kind",
    [
        (httpx.Response(413, text="Request Entity Too Large"), UploadErrorKind.PAYLOAD_TOO_LARGE),
        (httpx.Response(502, json={"error": "Media upload failed: boom", "code": "upstream_failure"}), UploadErrorKind.SERVER_REPORTED),
        (httpx.Response(200, json={"unexpected": True}), UploadErrorKind.GENERIC),
    ],
)
def test_http_failures_are_categorised(video_file, response, kind):
    flow = UploadFlow(_client(lambda request: response))
    flow.select_file(video_file)
    assert flow.submit("My clip") == UploadState.FAILED
    assert flow.error_kind == kind
    assert flow.progress == 0
    assert flow.navigate_to is None


def test_server_detail_is_shown(video_file):
    flow = UploadFlow(_client(lambda request: httpx.Response(400, json={"error": "Title is required", "code": "bad_request"})))
    flow.select_file(video_file)
    flow.submit("My clip")
    assert flow.message == "Upload failed: Title is required"


@pytest.mark.parametrize(
    "exc,kind",
    [
        (httpx.ReadTimeout("timed out"), UploadErrorKind.TIMEOUT),
        (httpx.ConnectError("refused"), UploadErrorKind.NO_RESPONSE),
    ],
)
def test_transport_failures_are_categorised(video_file, exc, kind):
    def handler(request):
        raise exc

    flow = UploadFlow(_client(handler))
    flow.select_file(video_file)
    assert flow.submit("My clip") == UploadState.FAILED
    assert flow.error_kind == kind


def test_retry_keeps_title_and_description(video_file):
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request.read())
        if len(attempts) == 1:
            return httpx.Response(502, json={"error": "boom", "code": "upstream_failure"})
        return httpx.Response(200, json={"success": True, "video": VIDEO_JSON})

    flow = UploadFlow(_client(handler))
    flow.select_file(video_file)
    assert flow.submit("Keep me", "and me") == UploadState.FAILED
    assert (flow.title, flow.description) == ("Keep me", "and me")

    assert flow.submit() == UploadState.SUCCEEDED
    assert b"Keep me" in attempts[1]
    assert b"and me" in attempts[1]


def test_image_flow_returns_public_id(image_file):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/image-upload"
        return httpx.Response(200, content=json.dumps({"publicId": "image-uploads/xyz"}))

    flow = UploadFlow(_client(handler), kind="image", max_bytes=None)
    assert flow.select_file(image_file) == UploadState.FILE_SELECTED
    assert flow.submit() == UploadState.SUCCEEDED
    assert flow.result == "image-uploads/xyz"


def test_cannot_submit_without_file():
    flow = UploadFlow(_client(lambda request: httpx.Response(500)))
    with pytest.raises(InvalidTransition):
        flow.submit("title")
