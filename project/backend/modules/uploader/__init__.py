"""
Uploader Module.

Accept videos by upload or direct link and keep them for the session.
"""

from modules.uploader.uploader import create_upload_record, create_link_record, read_upload
from modules.uploader.store import VideoStore, video_store

__all__ = [
    "create_upload_record",
    "create_link_record",
    "read_upload",
    "VideoStore",
    "video_store",
]
