"""
Health check endpoint.

Reports whether an API key is available and how busy the gateway is.
"""

import json
from datetime import datetime

from fastapi import APIRouter, Depends, Response

from shared.credentials import ApiKeyStore
from shared.logging import get_logger
from modules.uploader import VideoStore
from api_gateway.dependencies import get_credential_store, get_video_store
from api_gateway.services import run_registry

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(
    credentials: ApiKeyStore = Depends(get_credential_store),
    store: VideoStore = Depends(get_video_store)
):
    """
    Health check endpoint.

    Returns:
        Health status; "degraded" while no API key is selected
    """
    issues = []

    genai_configured = await credentials.has_selected_api_key()
    if not genai_configured:
        issues.append("no API key selected")

    response = {
        "status": "healthy" if not issues else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "runs": {
            "active": run_registry.active_run_count(),
            "videos": len(store)
        },
        "genai": "configured" if genai_configured else "missing_key",
        "key_selection_requested": credentials.selection_requested
    }

    if issues:
        response["issues"] = issues

    return Response(
        content=json.dumps(response),
        status_code=200,
        media_type="application/json"
    )
