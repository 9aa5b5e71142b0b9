"""
Error taxonomy for voxbench.

Everything raised on purpose derives from VoxBenchError so the
orchestrator can catch it at the operation boundary and turn it into a
notification. Anything else is a bug and is allowed to propagate.
"""

from __future__ import annotations


class VoxBenchError(Exception):
    """Base class for all expected voxbench failures."""

    title = "Error"


# ─ Recording ────────────────────────────────────────────────────────────────

class PermissionDenied(VoxBenchError):
    """Microphone access was refused."""

    title = "Recording Error"


class DeviceUnavailable(VoxBenchError):
    """No usable audio input device."""

    title = "Recording Error"


class RecorderBusy(DeviceUnavailable):
    """start() was called while a recording is already holding the device."""


# ─ Request validation ───────────────────────────────────────────────────────

class UnsupportedModel(VoxBenchError):
    """Model name is not one of the registered speech backends."""

    title = "Unsupported Model"

    def __init__(self, model: str):
        self.model = model
        super().__init__(f"Unsupported model: {model}")


class MissingParameter(VoxBenchError):
    """A required gateway field was absent."""

    title = "Processing Error"

    def __init__(self, missing: list[str] | None = None):
        self.missing = missing or []
        super().__init__("Missing required parameters: audio, model, or language")


# ─ Processing ───────────────────────────────────────────────────────────────

class ProcessingError(VoxBenchError):
    """Gateway call failed: transport error, timeout, or backend failure."""

    title = "Processing Error"


# ─ Persistence ──────────────────────────────────────────────────────────────

class PersistenceError(VoxBenchError):
    """A create/read/update/delete against the store failed."""

    title = "Storage Error"


class PartialExchangeError(PersistenceError):
    """The user message was stored but the assistant message was not."""

    def __init__(self, message: str, user_message=None):
        self.user_message = user_message
        super().__init__(message)


class NotFound(VoxBenchError):
    """Record does not exist for this owner."""

    title = "Not Found"


class Forbidden(VoxBenchError):
    """Record exists but belongs to another owner."""

    title = "Forbidden"


# ─ Analytics ────────────────────────────────────────────────────────────────

class InvalidScore(VoxBenchError):
    """Quality or expressivity score outside [0, 5]."""

    title = "Invalid Score"


# ─ Session ──────────────────────────────────────────────────────────────────

class NotSignedIn(VoxBenchError):
    """No owner identity is available."""

    title = "Not Signed In"


class ExchangeInProgress(VoxBenchError):
    """A submit is already outstanding for this session."""

    title = "Busy"
