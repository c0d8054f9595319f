"""
Clean-frame stage.

Rebuild a watermark-free seed frame: describe the captured frame in
detail while ignoring overlays, then regenerate it from that description
with the text-to-image model. The image-editing endpoint does not reliably
return edited bytes, so the frame is regenerated rather than edited.
"""

from modules.genai_client.client import GenAIClient
from modules.restoration.prompts import (
    FRAME_RECONSTRUCTION_PROMPT,
    IMAGE_QUALITY_SUFFIX,
    DEFAULT_FRAME_DESCRIPTION,
)
from shared.errors import GenerationError
from shared.logging import get_logger
from shared.models.video import GeneratedImage

logger = get_logger("restoration")


async def clean_frame(
    client: GenAIClient,
    image_base64: str,
    mime_type: str = "image/png"
) -> GeneratedImage:
    """
    Produce a clean version of a frame.

    Args:
        client: Gemini client
        image_base64: Captured frame, base64
        mime_type: MIME type of the captured frame

    Returns:
        Regenerated frame

    Raises:
        GenerationError: If either remote call fails or no image comes back
    """
    # 1. Describe the dirty frame
    prompt = await client.describe(image_base64, mime_type, FRAME_RECONSTRUCTION_PROMPT)
    if not prompt:
        prompt = DEFAULT_FRAME_DESCRIPTION
    logger.info(f"Frame described for reconstruction ({len(prompt)} chars)")

    # 2. Regenerate it clean
    image = await client.generate_image(prompt + IMAGE_QUALITY_SUFFIX)
    if not image.data:
        raise GenerationError("Frame reconstruction returned an empty image")

    logger.info("Clean frame generated", extra={"mime_type": image.mime_type})
    return image
