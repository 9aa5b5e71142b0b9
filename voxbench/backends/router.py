"""
Speech backend router: model name → backend instance.

Each model name is served by exactly one backend class registered in
PROVIDERS. Adding a model means adding a backend module and a line here;
nothing else branches on the name.
"""

from __future__ import annotations

import logging

from voxbench.backends.base import BaseSpeechBackend, BackendResponse
from voxbench.backends.moshi import MoshiBackend
from voxbench.backends.ultravox import UltravoxBackend
from voxbench.backends.spirit_lm import SpiritLMBackend
from voxbench.errors import UnsupportedModel

logger = logging.getLogger(__name__)

# Model name → backend class
PROVIDERS: dict[str, type[BaseSpeechBackend]] = {
    "moshi": MoshiBackend,
    "ultravox": UltravoxBackend,
    "spirit_lm": SpiritLMBackend,
}

MODEL_NAMES: tuple[str, ...] = tuple(PROVIDERS)


def is_supported_model(model: str) -> bool:
    return model in PROVIDERS


def display_name(model: str) -> str:
    """Human label for a model name; unknown names pass through."""
    cls = PROVIDERS.get(model)
    return cls.display_name if cls else model


class SpeechBackendRouter:
    """Holds one backend instance per registered model."""

    def __init__(self, models_config: dict | None = None, audio_base_url: str = "https://mock-audio-storage.com"):
        models_config = models_config or {}
        self.backends: dict[str, BaseSpeechBackend] = {}
        for name, cls in PROVIDERS.items():
            self.backends[name] = self._create_backend(cls, models_config.get(name) or {}, audio_base_url)

        logger.info("Speech router initialized: %s", ", ".join(self.backends))

    @staticmethod
    def _create_backend(cls: type[BaseSpeechBackend], cfg: dict, audio_base_url: str) -> BaseSpeechBackend:
        """Instantiate a backend from its config block."""
        kwargs: dict = {"audio_base_url": cfg.get("audio_base_url", audio_base_url)}
        if "min_delay_ms" in cfg:
            kwargs["min_delay_ms"] = int(cfg["min_delay_ms"])
        if "max_delay_ms" in cfg:
            kwargs["max_delay_ms"] = int(cfg["max_delay_ms"])
        return cls(**kwargs)

    def get_backend(self, model: str) -> BaseSpeechBackend:
        """Backend for a model name. Raises UnsupportedModel."""
        backend = self.backends.get(model)
        if backend is None:
            raise UnsupportedModel(model)
        return backend

    async def process(self, model: str, audio: bytes, language: str) -> BackendResponse:
        """Route one utterance to its model's backend."""
        backend = self.get_backend(model)
        logger.info("Processing with model: %s, language: %s", model, language)
        response = await backend.process(audio, language)
        if response.ok:
            logger.info("Processing completed in %dms", response.latency_ms)
        return response

    def list_models(self) -> list[dict]:
        return [b.describe() for b in self.backends.values()]
