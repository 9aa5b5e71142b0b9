"""
Exchange orchestrator: the per-session controller.

Wires one exchange end to end:
  recorder → gateway client → session (persist pair) → aggregator (record + refold)

This is the operation boundary. Expected failures (VoxBenchError) are
logged and turned into a Notification; the session stays usable and
nothing is retried. Only one submit may be outstanding at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from voxbench.client import InferenceGatewayClient, SubmitResult
from voxbench.errors import ExchangeInProgress, VoxBenchError
from voxbench.performance import PerformanceAggregator, PlaceholderScorer
from voxbench.recorder import AudioClip, Recorder
from voxbench.session import ConversationSession
from voxbench.storage.models import Message, ModelStats

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """Non-blocking message for the user."""
    title: str
    description: str
    variant: str = "default"  # "default" or "destructive"


@dataclass
class ExchangeOutcome:
    """Everything one successful exchange produced."""
    conversation_id: str
    result: SubmitResult
    user_message: Message
    assistant_message: Message


class ExchangeOrchestrator:
    """Runs exchanges for one signed-in session."""

    def __init__(
        self,
        client: InferenceGatewayClient,
        session: ConversationSession,
        aggregator: PerformanceAggregator,
        recorder: Recorder | None = None,
        scorer: PlaceholderScorer | None = None,
        notify: Callable[[Notification], None] | None = None,
    ):
        self.client = client
        self.session = session
        self.aggregator = aggregator
        self.recorder = recorder
        self.scorer = scorer or PlaceholderScorer()
        self._notify_cb = notify
        self.notifications: list[Notification] = []
        self.stats: list[ModelStats] = []
        self.busy = False
        self.last_latency_ms: int | None = None

    # ─ Notifications ──────────────────────────────────────────────────────

    def _notify(self, title: str, description: str, variant: str = "default"):
        note = Notification(title=title, description=description, variant=variant)
        self.notifications.append(note)
        if self._notify_cb:
            self._notify_cb(note)

    def _fail(self, err: VoxBenchError, title: str | None = None):
        logger.warning("%s: %s", err.__class__.__name__, err)
        self._notify(title or err.title, str(err), variant="destructive")

    # ─ Recording ──────────────────────────────────────────────────────────

    def start_recording(self) -> bool:
        """Begin capturing. Refused while a submit is outstanding."""
        if self.recorder is None:
            raise RuntimeError("No recorder attached to this session")
        if self.busy:
            self._fail(ExchangeInProgress("Wait for the current exchange to finish"))
            return False
        try:
            self.recorder.start()
        except VoxBenchError as e:
            self._fail(e, title="Recording Error")
            return False
        return True

    async def stop_and_submit(self, model: str, language: str) -> ExchangeOutcome | None:
        """Stop capturing and run the exchange. None if nothing was recording."""
        if self.recorder is None:
            raise RuntimeError("No recorder attached to this session")
        clip = self.recorder.stop()
        if clip is None:
            return None
        return await self.submit_clip(clip, model, language)

    # ─ Exchange ───────────────────────────────────────────────────────────

    async def submit_clip(self, clip: AudioClip, model: str, language: str) -> ExchangeOutcome | None:
        """Submit one recording and persist the result. None on any failure."""
        if self.busy:
            self._fail(ExchangeInProgress("An exchange is already being processed"))
            return None

        self.busy = True
        try:
            outcome = await self._run_exchange(clip, model, language)
        except VoxBenchError as e:
            self._fail(e)
            return None
        finally:
            self.busy = False

        self.refresh_stats()
        return outcome

    async def _run_exchange(self, clip: AudioClip, model: str, language: str) -> ExchangeOutcome:
        result = await self.client.submit(clip.data, model, language, mime_type=clip.mime_type)
        self.last_latency_ms = result.latency_ms

        conversation_id = self.session.ensure_conversation(model, language)
        user_msg, ai_msg = self.session.record_exchange(
            conversation_id,
            result.transcript,
            result.audio_url,
            result.latency_ms,
            model,
        )

        quality, expressivity = self.scorer.score(result.transcript, result.audio_url)
        try:
            self.aggregator.record_outcome(model, language, result.latency_ms, quality, expressivity)
        except VoxBenchError as e:
            # Messages are already saved; only the analytics row is lost.
            self._fail(e, title="Analytics Error")

        self._notify("Processing Complete", f"Latency: {result.latency_ms}ms")
        return ExchangeOutcome(
            conversation_id=conversation_id,
            result=result,
            user_message=user_msg,
            assistant_message=ai_msg,
        )

    # ─ Stats ──────────────────────────────────────────────────────────────

    def refresh_stats(self) -> list[ModelStats]:
        """Refold stats. On failure keep the previous ones and carry on."""
        try:
            self.stats = self.aggregator.compute_stats()
        except VoxBenchError as e:
            logger.error("Error fetching model stats: %s", e)
        return self.stats
