"""
Restoration Module.

The three remote stages of a restoration run: analyze the video, clean the
first frame, generate the clean video.
"""

from modules.restoration.analysis import analyze_video_content, select_analysis_input, AnalysisInput
from modules.restoration.frame_cleaner import clean_frame
from modules.restoration.video_generator import generate_clean_video, wait_for_operation

__all__ = [
    "analyze_video_content",
    "select_analysis_input",
    "AnalysisInput",
    "clean_frame",
    "generate_clean_video",
    "wait_for_operation",
]
