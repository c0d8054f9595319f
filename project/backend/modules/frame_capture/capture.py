"""
Still frame extraction.

Decode one frame from a video with OpenCV and encode it as PNG.
"""

import asyncio
from typing import Optional

import cv2

from shared.errors import FrameCaptureError
from shared.logging import get_logger
from shared.models.video import CapturedFrame

logger = get_logger("frame_capture")


def open_video(source: str) -> cv2.VideoCapture:
    """
    Open a video file path or URL for decoding.

    Args:
        source: Local path or direct video URL

    Returns:
        Opened VideoCapture

    Raises:
        FrameCaptureError: If the media cannot be opened
    """
    if not source:
        raise FrameCaptureError("No video source to capture from")

    capture = cv2.VideoCapture(source)
    if not capture.isOpened():
        capture.release()
        raise FrameCaptureError(f"Could not open video source: {source}")
    return capture


def capture_frame(capture, position_ms: float = 0.0) -> Optional[CapturedFrame]:
    """
    Capture the frame at a playback position as a PNG image.

    Args:
        capture: Opened VideoCapture (or anything with get/set/read)
        position_ms: Playback position in milliseconds

    Returns:
        CapturedFrame, or None if the video has no decoded dimensions or
        no frame could be read and encoded
    """
    width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
    height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
    if width <= 0 or height <= 0:
        logger.warning("Video has no decoded dimensions")
        return None

    if position_ms > 0:
        capture.set(cv2.CAP_PROP_POS_MSEC, position_ms)

    ok, frame = capture.read()
    if not ok or frame is None or frame.size == 0:
        logger.warning(f"No frame decoded at {position_ms:.0f}ms")
        return None

    frame_height, frame_width = frame.shape[:2]
    if frame_width == 0 or frame_height == 0:
        return None

    encoded_ok, encoded = cv2.imencode(".png", frame)
    if not encoded_ok:
        logger.warning("PNG encoding of captured frame failed")
        return None

    return CapturedFrame(
        data=encoded.tobytes(),
        mime_type="image/png",
        width=frame_width,
        height=frame_height,
        position_ms=position_ms
    )


def _open_and_capture(source: str, position_ms: float) -> Optional[CapturedFrame]:
    capture = open_video(source)
    try:
        return capture_frame(capture, position_ms)
    finally:
        capture.release()


async def capture_video_frame(
    source: str,
    position_ms: float = 0.0,
    timeout: float = 30.0
) -> Optional[CapturedFrame]:
    """
    Wait for the media to load, then capture one frame.

    Decoding runs in the default executor so the event loop keeps serving
    other requests.

    Args:
        source: Local path or direct video URL
        position_ms: Playback position in milliseconds
        timeout: Seconds to wait for the media to load and decode

    Returns:
        CapturedFrame, or None if no frame could be produced

    Raises:
        FrameCaptureError: If the media cannot be opened in time
    """
    loop = asyncio.get_running_loop()
    try:
        frame = await asyncio.wait_for(
            loop.run_in_executor(None, _open_and_capture, source, position_ms),
            timeout=timeout
        )
    except asyncio.TimeoutError as e:
        raise FrameCaptureError(f"Video did not load within {timeout:.0f}s") from e

    if frame is not None:
        logger.info(
            f"Captured frame {frame.width}x{frame.height} at {position_ms:.0f}ms",
            extra={"frame_bytes": len(frame.data)}
        )
    return frame
