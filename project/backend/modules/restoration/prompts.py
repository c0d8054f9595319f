"""
Fixed instructions and prompt qualifiers sent to the remote models.
"""

ANALYSIS_PROMPT = (
    "Describe the visual content, subject, movement, and camera angle of this video in high detail. "
    "Focus on the main action and scene description. "
    "Do not mention any watermarks or text overlays in the description."
)

FRAME_RECONSTRUCTION_PROMPT = (
    "Describe this image in extreme detail for reconstruction. "
    "Ignore any text or watermarks like 'Sora'."
)

IMAGE_QUALITY_SUFFIX = " high quality, photorealistic, no text, no watermarks, clear 8k."

VIDEO_QUALITY_SUFFIX = " cinematic, high quality, consistent motion."

DEFAULT_VIDEO_DESCRIPTION = "A cinematic video scene."

DEFAULT_FRAME_DESCRIPTION = "A clean video frame"
