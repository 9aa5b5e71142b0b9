"""
Speech backends for voxbench.
One backend per model name, looked up by the router.
"""
from voxbench.backends.router import SpeechBackendRouter, PROVIDERS, MODEL_NAMES
from voxbench.backends.base import BaseSpeechBackend, BackendResponse, CannedSpeechBackend
from voxbench.backends.moshi import MoshiBackend
from voxbench.backends.ultravox import UltravoxBackend
from voxbench.backends.spirit_lm import SpiritLMBackend

__all__ = [
    "SpeechBackendRouter",
    "PROVIDERS",
    "MODEL_NAMES",
    "BaseSpeechBackend",
    "BackendResponse",
    "CannedSpeechBackend",
    "MoshiBackend",
    "UltravoxBackend",
    "SpiritLMBackend",
]
