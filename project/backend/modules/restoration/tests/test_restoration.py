"""
Unit tests for the describe, clean-frame and generate stages.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from modules.restoration import (
    analyze_video_content,
    clean_frame,
    generate_clean_video,
    select_analysis_input,
    wait_for_operation,
)
from modules.restoration.prompts import (
    ANALYSIS_PROMPT,
    DEFAULT_FRAME_DESCRIPTION,
    DEFAULT_VIDEO_DESCRIPTION,
    IMAGE_QUALITY_SUFFIX,
    VIDEO_QUALITY_SUFFIX,
)
from shared.errors import GenerationError, NoResultError, PipelineCancelledError
from shared.models.video import (
    CapturedFrame,
    GeneratedImage,
    OperationError,
    VideoOperation,
    VideoRecord,
    VideoSource,
)

PATCH_WAIT = "modules.restoration.video_generator._wait_interval"


@pytest.fixture
def frame():
    return CapturedFrame(data=b"\x89PNGframe", width=4, height=4)


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.describe = AsyncMock(return_value="A person walks along a beach.")
    client.generate_image = AsyncMock(return_value=GeneratedImage(data="Y2xlYW4="))
    client.generate_video = AsyncMock(return_value=VideoOperation(name="operations/op1"))
    client.with_credential = MagicMock(side_effect=lambda uri: f"{uri}?key=k")
    return client


def pending(name="operations/op1"):
    return VideoOperation(name=name, done=False)


def finished(uri="https://genai.test/v.mp4"):
    return VideoOperation(name="operations/op1", done=True, video_uri=uri)


class TestSelectAnalysisInput:
    """Test the choice of describe input."""

    def test_upload_uses_stored_copy(self, frame, tmp_path):
        path = tmp_path / "upload_v.webm"
        path.write_bytes(b"movie")
        video = VideoRecord(
            id="v",
            source=VideoSource.UPLOAD,
            local_path=str(path),
            preview_url="p",
            mime_type="video/webm"
        )
        selected = select_analysis_input(video, frame)

        assert selected.data == "bW92aWU="
        assert selected.mime_type == "video/webm"
        assert not selected.degraded

    def test_link_falls_back_to_frame(self, frame):
        video = VideoRecord(
            id="v",
            source=VideoSource.LINK,
            url="https://cdn.example.com/a.mp4",
            preview_url="https://cdn.example.com/a.mp4"
        )
        selected = select_analysis_input(video, frame)

        assert selected.data == frame.base64_data
        assert selected.mime_type == "image/png"
        assert selected.degraded


class TestAnalyzeVideoContent:
    """Test the describe stage."""

    @pytest.mark.asyncio
    async def test_returns_description(self, mock_client):
        description = await analyze_video_content(mock_client, "ZGF0YQ==", "video/mp4")

        assert description == "A person walks along a beach."
        mock_client.describe.assert_awaited_once_with("ZGF0YQ==", "video/mp4", ANALYSIS_PROMPT)

    @pytest.mark.asyncio
    async def test_empty_response_uses_default(self, mock_client):
        mock_client.describe.return_value = ""
        assert await analyze_video_content(mock_client, "ZGF0YQ==", "video/mp4") == DEFAULT_VIDEO_DESCRIPTION

    @pytest.mark.asyncio
    async def test_failure_propagates_unchanged(self, mock_client):
        mock_client.describe.side_effect = GenerationError("Quota exceeded for model")

        with pytest.raises(GenerationError) as exc_info:
            await analyze_video_content(mock_client, "ZGF0YQ==", "video/mp4")
        assert str(exc_info.value) == "Quota exceeded for model"


class TestCleanFrame:
    """Test the clean-frame stage."""

    @pytest.mark.asyncio
    async def test_describe_then_regenerate(self, mock_client):
        mock_client.describe.return_value = "A beach at sunset"

        image = await clean_frame(mock_client, "ZnJhbWU=")

        assert image.data == "Y2xlYW4="
        assert mock_client.describe.await_args.args[:2] == ("ZnJhbWU=", "image/png")
        mock_client.generate_image.assert_awaited_once_with("A beach at sunset" + IMAGE_QUALITY_SUFFIX)

    @pytest.mark.asyncio
    async def test_empty_description_uses_default(self, mock_client):
        mock_client.describe.return_value = ""

        await clean_frame(mock_client, "ZnJhbWU=")

        mock_client.generate_image.assert_awaited_once_with(DEFAULT_FRAME_DESCRIPTION + IMAGE_QUALITY_SUFFIX)

    @pytest.mark.asyncio
    async def test_image_failure(self, mock_client):
        mock_client.generate_image.side_effect = GenerationError("Image generation returned no image")

        with pytest.raises(GenerationError, match="no image"):
            await clean_frame(mock_client, "ZnJhbWU=")


class TestWaitForOperation:
    """Test long-running operation polling."""

    @pytest.mark.asyncio
    async def test_one_check_per_interval(self, mock_client):
        mock_client.get_video_operation = AsyncMock(side_effect=[pending(), pending(), finished()])
        wait = AsyncMock(return_value=False)

        with patch(PATCH_WAIT, wait):
            operation = await wait_for_operation(mock_client, pending(), interval=5.0)

        assert operation.done
        assert mock_client.get_video_operation.await_count == 3
        assert wait.await_count == 3
        assert all(call.args[0] == 5.0 for call in wait.await_args_list)

    @pytest.mark.asyncio
    async def test_already_done_makes_no_checks(self, mock_client):
        mock_client.get_video_operation = AsyncMock()

        operation = await wait_for_operation(mock_client, finished())

        assert operation.done
        mock_client.get_video_operation.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_progress_before_each_poll(self, mock_client):
        mock_client.get_video_operation = AsyncMock(side_effect=[pending(), finished()])
        messages = []

        with patch(PATCH_WAIT, AsyncMock(return_value=False)):
            await wait_for_operation(mock_client, pending(), on_progress=messages.append)

        assert messages == ["Rendering video frames...", "Rendering video frames..."]

    @pytest.mark.asyncio
    async def test_cancel_stops_polling(self, mock_client):
        mock_client.get_video_operation = AsyncMock(return_value=pending())
        cancel_event = asyncio.Event()
        cancel_event.set()

        with pytest.raises(PipelineCancelledError):
            await wait_for_operation(mock_client, pending(), interval=0.01, cancel_event=cancel_event)

        mock_client.get_video_operation.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_during_wait(self, mock_client):
        mock_client.get_video_operation = AsyncMock(return_value=pending())
        cancel_event = asyncio.Event()

        async def cancel_soon():
            await asyncio.sleep(0.01)
            cancel_event.set()

        asyncio.get_running_loop().create_task(cancel_soon())
        with pytest.raises(PipelineCancelledError):
            await wait_for_operation(mock_client, pending(), interval=5.0, cancel_event=cancel_event)


class TestGenerateCleanVideo:
    """Test the generate stage."""

    @pytest.mark.asyncio
    async def test_success(self, mock_client):
        mock_client.get_video_operation = AsyncMock(side_effect=[pending(), finished()])
        messages = []

        with patch(PATCH_WAIT, AsyncMock(return_value=False)):
            result = await generate_clean_video(
                mock_client,
                GeneratedImage(data="Y2xlYW4="),
                "A person walks",
                on_progress=messages.append
            )

        assert result.video_uri == "https://genai.test/v.mp4"
        assert result.url == "https://genai.test/v.mp4?key=k"
        assert result.filename == "restored_video.mp4"
        assert mock_client.generate_video.await_args.args[0] == "A person walks" + VIDEO_QUALITY_SUFFIX
        assert mock_client.generate_video.await_args.args[1] == "Y2xlYW4="
        assert messages[0] == "Initializing generation model..."
        assert messages[1] == "Video generation started. This may take a moment..."
        assert messages.count("Rendering video frames...") == 2

    @pytest.mark.asyncio
    async def test_async_progress_callback(self, mock_client):
        mock_client.generate_video.return_value = finished()
        on_progress = AsyncMock()

        await generate_clean_video(mock_client, GeneratedImage(data="Y2xlYW4="), "p", on_progress=on_progress)

        assert on_progress.await_count == 2

    @pytest.mark.asyncio
    async def test_operation_error(self, mock_client):
        mock_client.generate_video.return_value = VideoOperation(
            name="operations/op1",
            done=True,
            error=OperationError(code=3, message="Prompt blocked by safety filters")
        )

        with pytest.raises(GenerationError, match="Prompt blocked by safety filters"):
            await generate_clean_video(mock_client, GeneratedImage(data="Y2xlYW4="), "p")

    @pytest.mark.asyncio
    async def test_no_uri(self, mock_client):
        mock_client.generate_video.return_value = VideoOperation(name="operations/op1", done=True)

        with pytest.raises(NoResultError, match="No video URI returned"):
            await generate_clean_video(mock_client, GeneratedImage(data="Y2xlYW4="), "p")
