"""
Pytest configuration and fixtures for API Gateway tests.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from shared.models.video import (
    CapturedFrame,
    GeneratedImage,
    VideoOperation,
    VideoRecord,
    VideoSource,
)


@pytest.fixture(autouse=True)
def clean_session_state():
    """Start every test with no videos, runs or SSE connections."""
    from api_gateway.services import run_registry, sse_manager
    from modules.uploader import video_store

    def clear():
        run_registry.runs.clear()
        video_store._videos.clear()
        sse_manager.connections.clear()

    clear()
    yield
    clear()


@pytest.fixture
def upload_video(tmp_path):
    path = tmp_path / "upload_vid-upload.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42movie")
    return VideoRecord(
        id="vid-upload",
        source=VideoSource.UPLOAD,
        local_path=str(path),
        preview_url="/api/v1/videos/vid-upload/preview",
        mime_type="video/mp4",
        filename="clip.mp4"
    )


@pytest.fixture
def link_video():
    return VideoRecord(
        id="vid-link",
        source=VideoSource.LINK,
        url="https://cdn.example.com/clip.mp4",
        preview_url="https://cdn.example.com/clip.mp4",
        mime_type="video/mp4"
    )


@pytest.fixture
def captured_frame():
    return CapturedFrame(data=b"\x89PNGframe", width=1280, height=720)


@pytest.fixture
def mock_genai_client():
    """Gemini client whose video finishes after two polls."""
    client = MagicMock()
    client.describe = AsyncMock(side_effect=["A person walks along a beach.", "A beach at sunset"])
    client.generate_image = AsyncMock(return_value=GeneratedImage(data="Y2xlYW4="))
    client.generate_video = AsyncMock(return_value=VideoOperation(name="operations/op1"))
    client.get_video_operation = AsyncMock(side_effect=[
        VideoOperation(name="operations/op1"),
        VideoOperation(name="operations/op1", done=True, video_uri="https://genai.test/v.mp4"),
    ])
    client.with_credential = MagicMock(side_effect=lambda uri: f"{uri}?key=test-key")
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def mock_selector():
    """Key selector with a key already chosen."""
    selector = MagicMock()
    selector.has_selected_api_key = AsyncMock(return_value=True)
    selector.open_select_key = AsyncMock()
    selector.api_key = "test-key"
    return selector
