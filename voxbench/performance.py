"""
Per-model performance analytics.

Every exchange appends one PerformanceRecord. Stats are never cached:
compute_stats() re-reads the owner's records and folds them from zero.
The fold keeps running sums and divides once at the end, so the result
doesn't depend on record order and doesn't accumulate rounding drift.

Quality and expressivity scores are NOT measured. PlaceholderScorer
draws them at random so the dashboard has something to show; swap in a
real evaluator before reading anything into those numbers.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Iterable

from voxbench.backends.router import is_supported_model
from voxbench.errors import InvalidScore, UnsupportedModel
from voxbench.storage.models import ModelStats, PerformanceRecord
from voxbench.storage.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)

MIN_SCORE = 0.0
MAX_SCORE = 5.0


def validate_score(name: str, value) -> float:
    """Return value as float if it's a finite number within [0, 5]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidScore(f"{name} must be a number, got {value!r}")
    if math.isnan(value) or not MIN_SCORE <= value <= MAX_SCORE:
        raise InvalidScore(f"{name} must be between {MIN_SCORE:g} and {MAX_SCORE:g}, got {value}")
    return float(value)


@dataclass
class _Accumulator:
    latency: float = 0.0
    quality: float = 0.0
    expressivity: float = 0.0
    count: int = 0


def fold_stats(records: Iterable[PerformanceRecord]) -> list[ModelStats]:
    """
    Reduce records to one ModelStats per model, in first-seen order.
    Missing scores count as 0.
    """
    totals: dict[str, _Accumulator] = {}
    for record in records:
        acc = totals.setdefault(record.model_name, _Accumulator())
        acc.latency += record.latency_ms
        acc.quality += record.quality_score or 0
        acc.expressivity += record.expressivity_score or 0
        acc.count += 1

    return [
        ModelStats(
            model_name=model,
            avg_latency=acc.latency / acc.count,
            avg_quality=acc.quality / acc.count,
            avg_expressivity=acc.expressivity / acc.count,
            usage_count=acc.count,
        )
        for model, acc in totals.items()
    ]


class PlaceholderScorer:
    """
    Stand-in for quality assessment: uniform random scores in [3, 5].
    There is no evaluation behind these values.
    """

    def __init__(self, low: float = 3.0, high: float = 5.0, rng: random.Random | None = None):
        self.low = low
        self.high = high
        self.rng = rng or random.Random()

    def score(self, transcript: str, audio_url: str) -> tuple[float, float]:
        """Return (quality, expressivity)."""
        return (
            round(self.rng.uniform(self.low, self.high), 2),
            round(self.rng.uniform(self.low, self.high), 2),
        )


class PerformanceAggregator:
    """Writes performance records and computes per-model stats for an owner."""

    def __init__(self, store: SQLiteStore, owner_id: str):
        self.store = store
        self.owner_id = owner_id

    def record_outcome(
        self,
        model: str,
        language: str,
        latency_ms: int,
        quality_score: float,
        expressivity_score: float,
    ) -> PerformanceRecord:
        """Validate and append one record. Raises InvalidScore / UnsupportedModel."""
        if not is_supported_model(model):
            raise UnsupportedModel(model)
        quality = validate_score("quality_score", quality_score)
        expressivity = validate_score("expressivity_score", expressivity_score)

        record = PerformanceRecord(
            user_id=self.owner_id,
            model_name=model,
            language=language,
            latency_ms=int(latency_ms),
            quality_score=quality,
            expressivity_score=expressivity,
        )
        return self.store.add_performance(record)

    def compute_stats(self, owner_id: str | None = None) -> list[ModelStats]:
        """Refold every record the owner has."""
        records = self.store.get_performance(owner_id or self.owner_id)
        stats = fold_stats(records)
        logger.debug("Computed stats over %d records for %d models", len(records), len(stats))
        return stats
