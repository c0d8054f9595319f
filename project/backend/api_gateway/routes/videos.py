"""
Video endpoints.

Upload a video file or paste a direct link, inspect and discard videos.
"""

from fastapi import APIRouter, UploadFile, File, Depends, HTTPException, status
from fastapi.responses import FileResponse, RedirectResponse

from shared.config import settings
from shared.errors import ValidationError
from shared.logging import get_logger
from shared.models.video import VideoRecord
from modules.uploader import VideoStore, create_upload_record, create_link_record, read_upload
from api_gateway.dependencies import get_video, get_video_store
from api_gateway.schemas import LinkRequest, VideoResponse
from api_gateway.services import run_registry
from api_gateway.services.sse_manager import close_stream

logger = get_logger(__name__)

router = APIRouter()


async def _release(video_id: str) -> None:
    """Stop a video's run and end its streams."""
    await run_registry.discard_run(video_id)
    close_stream(video_id)


async def _load(record: VideoRecord, store: VideoStore) -> VideoResponse:
    run = await run_registry.register_video(record.id)
    for evicted_id in store.add(record):
        await _release(evicted_id)
    return VideoResponse.from_record(record, run.state.status)


@router.post("/videos", status_code=status.HTTP_201_CREATED, response_model=VideoResponse)
async def upload_video(
    video_file: UploadFile = File(...),
    store: VideoStore = Depends(get_video_store)
):
    """
    Upload a video file.

    Args:
        video_file: Video file (MP4/MOV/WebM, at most MAX_UPLOAD_MB)

    Returns:
        The loaded video, ready to process
    """
    content = await read_upload(video_file, settings.max_upload_mb)
    if not content:
        raise ValidationError("File is empty")

    record = create_upload_record(
        video_file.filename,
        content,
        content_type=video_file.content_type,
        upload_dir=settings.upload_dir,
        max_size_mb=settings.max_upload_mb
    )
    return await _load(record, store)


@router.post("/videos/link", status_code=status.HTTP_201_CREATED, response_model=VideoResponse)
async def link_video(
    body: LinkRequest,
    store: VideoStore = Depends(get_video_store)
):
    """
    Load a video from a direct link ending in .mp4, .webm or .mov.

    Rejected links leave any previously loaded video untouched.
    """
    record = create_link_record(body.url)
    return await _load(record, store)


@router.get("/videos/{video_id}", response_model=VideoResponse)
async def get_video_details(video: VideoRecord = Depends(get_video)):
    state = run_registry.get_state(video.id)
    return VideoResponse.from_record(video, state.status)


@router.delete("/videos/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_video(
    video: VideoRecord = Depends(get_video),
    store: VideoStore = Depends(get_video_store)
):
    """
    Discard a video (change video).

    Any in-flight run for it stops at its next state update or poll, and
    open streams receive a final ``discarded`` event.
    """
    await _release(video.id)
    store.discard(video.id)


@router.get("/videos/{video_id}/preview")
async def preview_video(video: VideoRecord = Depends(get_video)):
    """Serve the original video for playback."""
    if video.url:
        return RedirectResponse(video.url)

    if not video.local_path:
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail="Video file no longer available"
        )

    return FileResponse(
        video.local_path,
        media_type=video.mime_type or "video/mp4",
        filename=video.filename,
        content_disposition_type="inline"
    )
