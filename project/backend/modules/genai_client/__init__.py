"""
GenAI Client Module.

REST access to the Gemini description, Imagen and Veo endpoints.
"""

from modules.genai_client.client import GenAIClient, parse_video_operation

__all__ = [
    "GenAIClient",
    "parse_video_operation",
]
