"""
Describe stage.

Ask the multimodal model what happens in the video.
"""

from typing import NamedTuple

from modules.genai_client.client import GenAIClient
from modules.restoration.prompts import ANALYSIS_PROMPT, DEFAULT_VIDEO_DESCRIPTION
from shared.logging import get_logger
from shared.models.video import CapturedFrame, VideoRecord

logger = get_logger("restoration")


class AnalysisInput(NamedTuple):
    data: str  # base64
    mime_type: str
    degraded: bool  # True when only the captured frame is analyzed


def select_analysis_input(video: VideoRecord, frame: CapturedFrame) -> AnalysisInput:
    """
    Pick what to send to the describe model.

    Uploaded videos are analyzed in full. Linked videos have no payload,
    so only the captured frame is analyzed and motion must be inferred
    from a single still.
    """
    if video.has_payload:
        return AnalysisInput(
            data=video.load_base64(),
            mime_type=video.mime_type or "video/mp4",
            degraded=False
        )

    logger.warning(
        "No video payload available, analyzing captured frame only",
        extra={"video_id": video.id, "source": video.source.value}
    )
    return AnalysisInput(data=frame.base64_data, mime_type=frame.mime_type, degraded=True)


async def analyze_video_content(client: GenAIClient, data_base64: str, mime_type: str) -> str:
    """
    Describe the video's content, movement and framing.

    Remote failures propagate unchanged.

    Returns:
        Non-empty description
    """
    description = await client.describe(data_base64, mime_type, ANALYSIS_PROMPT)
    if not description:
        logger.warning("Empty analysis response, using default description")
        return DEFAULT_VIDEO_DESCRIPTION

    logger.info(f"Video analysis complete ({len(description)} chars)")
    return description
