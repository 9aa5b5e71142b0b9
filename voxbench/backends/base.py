"""
Base speech backend abstraction.
All backends implement this interface so the router can treat them uniformly.
"""

from __future__ import annotations

import abc
import asyncio
import logging
import random
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES = ("en", "ta", "es", "fr", "de")


@dataclass
class BackendResponse:
    """Standardized response from any speech backend."""
    ok: bool
    transcript: str = ""
    audio_url: str = ""
    backend_name: str = ""
    language: str = DEFAULT_LANGUAGE
    latency_ms: int = 0
    error: str = ""


class BaseSpeechBackend(abc.ABC):
    """
    Abstract base for speech-to-speech backends.
    One subclass per model name. The router never branches on the name;
    it looks the class up in PROVIDERS.
    """

    name: str = ""
    display_name: str = ""
    description: str = ""

    def __init__(self, audio_base_url: str = "https://mock-audio-storage.com"):
        self.audio_base_url = audio_base_url.rstrip("/")

    @abc.abstractmethod
    async def synthesize(self, audio: bytes, language: str) -> tuple[str, str]:
        """
        Turn one utterance into a reply.
        Returns (transcript, audio_url). Raise on failure.
        """
        ...

    async def process(self, audio: bytes, language: str) -> BackendResponse:
        """Run synthesize() and time it. Never raises."""
        t0 = time.monotonic()
        try:
            transcript, audio_url = await self.synthesize(audio, language)
        except Exception as e:
            latency = int((time.monotonic() - t0) * 1000)
            logger.warning("Speech backend '%s' failed: %s", self.name, e)
            return BackendResponse(
                ok=False, backend_name=self.name, language=language,
                latency_ms=latency, error=str(e) or e.__class__.__name__,
            )
        latency = int((time.monotonic() - t0) * 1000)
        return BackendResponse(
            ok=True,
            transcript=transcript,
            audio_url=audio_url,
            backend_name=self.name,
            language=language,
            latency_ms=latency,
        )

    def describe(self) -> dict:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description,
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class CannedSpeechBackend(BaseSpeechBackend):
    """
    Stub backend: sleeps for a randomized delay, then answers with a fixed
    greeting in the requested language (English if unsupported) and a
    mock audio URL. No audio is actually decoded or generated.
    """

    responses: dict[str, str] = {}
    min_delay_ms: int = 0
    max_delay_ms: int = 0

    def __init__(
        self,
        audio_base_url: str = "https://mock-audio-storage.com",
        min_delay_ms: int | None = None,
        max_delay_ms: int | None = None,
    ):
        super().__init__(audio_base_url=audio_base_url)
        if min_delay_ms is not None:
            self.min_delay_ms = min_delay_ms
        if max_delay_ms is not None:
            self.max_delay_ms = max_delay_ms
        if self.max_delay_ms < self.min_delay_ms:
            self.max_delay_ms = self.min_delay_ms

    def response_for(self, language: str) -> str:
        return self.responses.get(language) or self.responses[DEFAULT_LANGUAGE]

    def mock_audio_url(self, language: str) -> str:
        timestamp = int(time.time() * 1000)
        return f"{self.audio_base_url}/{self.name}/{language}/{timestamp}.wav"

    async def synthesize(self, audio: bytes, language: str) -> tuple[str, str]:
        logger.info("Processing with %s (%s) model", self.display_name, self.description)
        delay_ms = random.uniform(self.min_delay_ms, self.max_delay_ms)
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)
        return self.response_for(language), self.mock_audio_url(language)
