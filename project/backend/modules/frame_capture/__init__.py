"""
Frame Capture Module.

Extract a single still frame from a video source.
"""

from modules.frame_capture.capture import open_video, capture_frame, capture_video_frame

__all__ = [
    "open_video",
    "capture_frame",
    "capture_video_frame",
]
