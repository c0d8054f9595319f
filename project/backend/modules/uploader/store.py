"""
In-memory video store.

Holds the videos of the current session; nothing is persisted.
"""

import os
from typing import Dict, List, Optional

from shared.config import settings
from shared.errors import VideoNotFoundError
from shared.logging import get_logger
from shared.models.video import VideoRecord

logger = get_logger("uploader")


class VideoStore:
    """Session-scoped registry of VideoRecords."""

    def __init__(self, max_videos: Optional[int] = None):
        self._videos: Dict[str, VideoRecord] = {}
        self.max_videos = max_videos

    def __len__(self) -> int:
        return len(self._videos)

    def __contains__(self, video_id: str) -> bool:
        return video_id in self._videos

    def add(self, record: VideoRecord) -> List[str]:
        """
        Store a video, evicting the oldest ones once the store is full.

        Returns:
            IDs of the evicted videos (their local copies are already deleted)
        """
        self._videos[record.id] = record
        evicted = []
        if self.max_videos is not None:
            while len(self._videos) > self.max_videos:
                oldest = next(iter(self._videos))
                self.discard(oldest)
                evicted.append(oldest)
        if evicted:
            logger.info("Evicted oldest videos", extra={"evicted": evicted})
        return evicted

    def get(self, video_id: str) -> VideoRecord:
        """
        Get a video by ID.

        Raises:
            VideoNotFoundError: If the video is unknown or was discarded
        """
        record = self._videos.get(video_id)
        if record is None:
            raise VideoNotFoundError(f"Video not found: {video_id}", video_id=video_id)
        return record

    def records(self) -> List[VideoRecord]:
        return list(self._videos.values())

    def discard(self, video_id: str) -> bool:
        """
        Drop a video and its transient local copy.

        Returns:
            True if the video existed
        """
        record = self._videos.pop(video_id, None)
        if record is None:
            return False

        if record.local_path and os.path.exists(record.local_path):
            try:
                os.unlink(record.local_path)
                logger.debug(f"Deleted local copy: {record.local_path}")
            except OSError as e:
                logger.warning(f"Failed to delete local copy: {str(e)}", extra={"video_id": video_id})

        logger.info("Video discarded", extra={"video_id": video_id})
        return True


# Singleton instance
video_store = VideoStore(max_videos=settings.max_session_videos)
