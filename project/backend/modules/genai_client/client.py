"""
Gemini REST client.

Thin async wrapper over the Gemini API endpoints the pipeline uses:
multimodal generateContent, Imagen predict, and Veo predictLongRunning
with operation polling.
"""

from typing import Any, Dict, List, Optional

import httpx

from shared.config import settings
from shared.errors import GenerationError, CredentialMissingError
from shared.logging import get_logger
from shared.models.video import GeneratedImage, OperationError, VideoOperation

logger = get_logger("genai_client")


def _error_message(resp: httpx.Response) -> str:
    """Pull the remote error message out of a failed response."""
    try:
        body = resp.json()
    except ValueError:
        return f"Gemini API error {resp.status_code}: {resp.text[:500]}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return f"Gemini API error {resp.status_code}: {resp.text[:500]}"


def parse_video_operation(data: Dict[str, Any]) -> VideoOperation:
    """
    Build a VideoOperation from a long-running operation payload.

    Args:
        data: Operation JSON as returned by predictLongRunning or a poll

    Returns:
        VideoOperation
    """
    error = None
    if data.get("error"):
        raw = data["error"]
        error = OperationError(code=raw.get("code"), message=raw.get("message"))

    video_uri = None
    response = data.get("response") or {}
    samples = (response.get("generateVideoResponse") or {}).get("generatedSamples") or []
    if samples:
        video_uri = (samples[0].get("video") or {}).get("uri")

    return VideoOperation(
        name=data.get("name", ""),
        done=bool(data.get("done", False)),
        error=error,
        video_uri=video_uri
    )


class GenAIClient:
    """Async client for the Gemini REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize the client.

        Args:
            api_key: Gemini API key
            base_url: API root (default: settings.genai_base_url)
            timeout: Request timeout in seconds
            http_client: Preconfigured httpx client (tests inject a MockTransport here)
        """
        if not api_key:
            raise CredentialMissingError("GEMINI_API_KEY not set")

        self.api_key = api_key
        self.base_url = (base_url or settings.genai_base_url).rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout or settings.request_timeout_seconds,
            follow_redirects=True
        )

    async def __aenter__(self) -> "GenAIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _request(self, method: str, path: str, body: Optional[dict] = None) -> dict:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = await self._http.request(
                method,
                url,
                params={"key": self.api_key},
                json=body
            )
        except httpx.HTTPError as e:
            raise GenerationError(str(e)) from e

        if resp.status_code != 200:
            message = _error_message(resp)
            logger.error(
                "Gemini API error",
                extra={"status_code": resp.status_code, "path": path.split("?")[0]}
            )
            raise GenerationError(message, status_code=resp.status_code)

        return resp.json()

    async def generate_content(
        self,
        model: str,
        parts: List[dict],
        config: Optional[dict] = None
    ) -> dict:
        """Call the generateContent endpoint."""
        body: dict = {
            "contents": [{"parts": parts}],
        }
        if config:
            body["generationConfig"] = config
        return await self._request("POST", f"models/{model}:generateContent", body)

    async def describe(
        self,
        data_base64: str,
        mime_type: str,
        instruction: str,
        model: Optional[str] = None
    ) -> str:
        """
        Ask the multimodal model to describe inline media.

        Returns:
            The response text, or an empty string if the model produced none
        """
        parts = [
            {"inlineData": {"mimeType": mime_type, "data": data_base64}},
            {"text": instruction},
        ]
        result = await self.generate_content(model or settings.analysis_model, parts)

        candidates = result.get("candidates") or []
        if not candidates:
            return ""
        content_parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in content_parts).strip()

    async def generate_image(
        self,
        prompt: str,
        model: Optional[str] = None,
        aspect_ratio: Optional[str] = None,
        output_mime_type: str = "image/png"
    ) -> GeneratedImage:
        """
        Generate one image from a text prompt with Imagen.

        Raises:
            GenerationError: If the call fails or returns no image
        """
        body = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": 1,
                "aspectRatio": aspect_ratio or settings.aspect_ratio,
                "outputOptions": {"mimeType": output_mime_type},
            },
        }
        result = await self._request("POST", f"models/{model or settings.image_model}:predict", body)

        predictions = result.get("predictions") or []
        if not predictions or not predictions[0].get("bytesBase64Encoded"):
            raise GenerationError("Image generation returned no image")

        first = predictions[0]
        return GeneratedImage(
            data=first["bytesBase64Encoded"],
            mime_type=first.get("mimeType", output_mime_type)
        )

    async def generate_video(
        self,
        prompt: str,
        image_base64: str,
        image_mime_type: str = "image/png",
        model: Optional[str] = None,
        resolution: Optional[str] = None,
        aspect_ratio: Optional[str] = None
    ) -> VideoOperation:
        """
        Start a Veo image-to-video generation.

        Returns:
            Handle to the long-running operation
        """
        body = {
            "instances": [{
                "prompt": prompt,
                "image": {
                    "bytesBase64Encoded": image_base64,
                    "mimeType": image_mime_type,
                },
            }],
            "parameters": {
                "sampleCount": 1,
                "resolution": resolution or settings.video_resolution,
                "aspectRatio": aspect_ratio or settings.aspect_ratio,
            },
        }
        result = await self._request(
            "POST",
            f"models/{model or settings.video_model}:predictLongRunning",
            body
        )
        operation = parse_video_operation(result)
        if not operation.name:
            raise GenerationError("Video generation did not return an operation")

        logger.info(f"Video generation started: {operation.name}")
        return operation

    async def get_video_operation(self, operation: VideoOperation) -> VideoOperation:
        """Re-fetch a long-running operation by name."""
        result = await self._request("GET", operation.name)
        refreshed = parse_video_operation(result)
        if not refreshed.name:
            refreshed = refreshed.model_copy(update={"name": operation.name})
        return refreshed

    def with_credential(self, uri: str) -> str:
        """Append the API key so the result URI can be fetched directly."""
        separator = "&" if "?" in uri else "?"
        return f"{uri}{separator}key={self.api_key}"
