"""
Inference gateway client.

Packages one recording plus the model/language selection into a multipart
request, posts it to the speech-to-speech function and returns the
transcript, the reply audio URL and the client-measured latency.

One attempt per call. Every failure surfaces as ProcessingError (or
UnsupportedModel, which is raised before anything touches the network).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx

from voxbench.backends.router import is_supported_model
from voxbench.config import get_config
from voxbench.errors import ProcessingError, UnsupportedModel

logger = logging.getLogger(__name__)


@dataclass
class SubmitResult:
    """Outcome of one gateway round-trip."""
    transcript: str
    audio_url: str
    latency_ms: int
    model: str
    language: str
    backend_latency_ms: int | None = None


class InferenceGatewayClient:
    """Client for the speech-to-speech gateway endpoint."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        headers: dict | None = None,
    ):
        cfg = get_config() if url is None or timeout is None else {}
        gw_cfg = cfg.get("gateway", {})
        self.url = url or gw_cfg.get("url", "")
        self.timeout = timeout if timeout is not None else gw_cfg.get("timeout", 30)
        self.transport = transport
        self.headers = headers or {}

    async def submit(
        self,
        audio: bytes,
        model: str,
        language: str,
        mime_type: str = "audio/wav",
    ) -> SubmitResult:
        """Post one recording. Raises UnsupportedModel or ProcessingError."""
        if not is_supported_model(model):
            raise UnsupportedModel(model)

        files = {"audio": ("recording.wav", audio, mime_type)}
        data = {"model": model, "language": language}

        t0 = time.monotonic()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self.transport,
                headers=self.headers,
            ) as client:
                resp = await client.post(self.url, files=files, data=data)
        except httpx.TimeoutException as e:
            elapsed = (time.monotonic() - t0) * 1000
            logger.warning("Gateway request timed out after %.0fms", elapsed)
            raise ProcessingError(f"Gateway request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.warning("Gateway request failed: %s", e)
            raise ProcessingError(f"Gateway request failed: {e}") from e
        latency_ms = max(1, round((time.monotonic() - t0) * 1000))

        try:
            body = resp.json()
        except ValueError as e:
            raise ProcessingError(
                f"Gateway returned non-JSON response (HTTP {resp.status_code})"
            ) from e

        if resp.status_code != 200 or not isinstance(body, dict) or not body.get("success"):
            error = body.get("error") if isinstance(body, dict) else None
            message = error or f"HTTP {resp.status_code}"
            logger.warning("Gateway rejected request: %s", message)
            raise ProcessingError(f"Failed to process audio: {message}")

        transcript = body.get("transcript") or ""
        audio_url = body.get("audioUrl") or ""
        if not transcript or not audio_url:
            raise ProcessingError("Gateway response is missing transcript or audioUrl")

        logger.info("Gateway answered for model '%s' in %dms", model, latency_ms)
        return SubmitResult(
            transcript=transcript,
            audio_url=audio_url,
            latency_ms=latency_ms,
            model=body.get("model", model),
            language=body.get("language", language),
            backend_latency_ms=body.get("latency"),
        )
