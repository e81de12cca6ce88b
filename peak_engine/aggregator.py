"""
Peak Aggregator for Peak Availability.

Turns the hourly score histogram into ranked peak periods and a
"next optimal time" recommendation.

Copyright (C) 2025 Peter Hirst (WU2C)
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .histogram import HourlyScoreHistogram
from .models import PeakEntry, OptimalTime, MAX_OBSERVATIONS_PER_HOUR, HOURS_PER_DAY

logger = logging.getLogger(__name__)


DEFAULT_PEAK_LIMIT = 6


# =============================================================================
# Ranking helpers (shared with the HTTP client)
# =============================================================================

def build_peak_entry(hour: int, scores: Sequence[float]) -> PeakEntry:
    """Summarize one non-empty bucket."""
    return PeakEntry(
        hour=hour,
        average_score=float(np.mean(scores)),
        confidence=min(len(scores) / MAX_OBSERVATIONS_PER_HOUR, 1.0),
        observation_count=len(scores),
    )


def rank_peaks(entries: Iterable[PeakEntry], limit: Optional[int] = None) -> List[PeakEntry]:
    """
    Sort entries by average score, highest first.

    Equal averages are ordered by ascending hour so the output is
    reproducible regardless of insertion order.
    """
    ranked = sorted(entries, key=lambda p: (-p.average_score, p.hour))
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


def hours_until(hour: int, current_hour: int) -> int:
    """Wall-clock hours from current_hour to the next start of hour."""
    if hour > current_hour:
        return hour - current_hour
    return (HOURS_PER_DAY - current_hour) + hour


def select_next_peak(peaks: Sequence[PeakEntry],
                     current_hour: int,
                     min_confidence: float = 0.0) -> Optional[PeakEntry]:
    """
    Pick the recommended peak from an already ranked list.

    The first peak later today wins (only those above min_confidence).
    When none is left today the nearest peak by wall-clock distance wins
    (usually tomorrow); peaks above min_confidence are preferred and ties
    keep rank order.

    Returns:
        The chosen peak, or None if peaks is empty
    """
    if not peaks:
        return None

    for peak in peaks:
        if peak.hour > current_hour and peak.confidence > min_confidence:
            return peak

    candidates = [p for p in peaks if p.confidence > min_confidence] or list(peaks)
    return min(candidates, key=lambda p: hours_until(p.hour, current_hour))


# =============================================================================
# Aggregator
# =============================================================================

class PeakAggregator:
    """
    Owns the hourly histogram and derives recommendations from it.

    The aggregator is Cold until the first observation and Warm afterwards.
    Only reset() moves it back to Cold.
    """

    def __init__(self):
        self._histogram = HourlyScoreHistogram()

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def record_observation(self, score: float, at: datetime):
        """
        Record score under the hour-of-day of at.

        Raises:
            ValueError: if score is negative, non-finite or not a number
        """
        if not isinstance(at, datetime):
            raise ValueError(f"Observation time must be a datetime, got {at!r}")
        self._histogram.record(at.hour, score)

    def reset(self):
        """Drop all observations (Warm -> Cold)."""
        self._histogram.clear()
        logger.info("Peak periods reset")

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def is_warm(self) -> bool:
        return len(self._histogram) > 0

    def observed_hours(self) -> FrozenSet[int]:
        return self._histogram.observed_hours()

    def scores_for(self, hour: int) -> Tuple[float, ...]:
        return self._histogram.scores_for(hour)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def peaks(self, limit: int = DEFAULT_PEAK_LIMIT) -> List[PeakEntry]:
        """
        Top peak periods by average score.

        Args:
            limit: Maximum number of entries to return

        Returns:
            Ranked PeakEntry list; empty when nothing has been recorded yet
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise ValueError(f"Peak limit must be a non-negative integer, got {limit!r}")

        snapshot = self._histogram.snapshot()
        entries = (build_peak_entry(hour, scores) for hour, scores in snapshot.items())
        return rank_peaks(entries, limit)

    def next_optimal_time(self, reference: datetime) -> Optional[OptimalTime]:
        """
        Nearest upcoming peak relative to reference.

        Returns:
            OptimalTime, or None when no data has been recorded

        Raises:
            ValueError: if reference is not a datetime
        """
        if not isinstance(reference, datetime):
            raise ValueError(f"Reference time must be a datetime, got {reference!r}")
        current_hour = reference.hour
        peak = select_next_peak(self.peaks(), current_hour)
        if peak is None:
            return None

        start = reference.replace(hour=peak.hour, minute=0, second=0, microsecond=0)
        if peak.hour <= current_hour:
            start += timedelta(days=1)

        return OptimalTime(
            peak=peak,
            hours_until=hours_until(peak.hour, current_hour),
            time=start,
        )

    # -------------------------------------------------------------------------
    # Persistence boundary
    # -------------------------------------------------------------------------

    def export_state(self) -> Dict[int, List[float]]:
        """Snapshot of every bucket, suitable for JSON storage."""
        return {hour: list(scores) for hour, scores in sorted(self._histogram.snapshot().items())}

    def import_state(self, state: Mapping):
        """
        Replace all observations with a previously exported snapshot.

        Keys may be integers or integer strings (as after a JSON round
        trip). Buckets longer than the bound keep their newest scores.

        Raises:
            ValueError: if any hour or score is invalid; state is unchanged
        """
        buckets = {}
        for key, scores in state.items():
            if isinstance(key, str):
                try:
                    key = int(key.strip())
                except ValueError as e:
                    raise ValueError(f"Invalid hour key {key!r}") from e
            if isinstance(scores, (str, bytes)) or not isinstance(scores, Iterable):
                raise ValueError(f"Scores for hour {key!r} must be a sequence")
            buckets[key] = list(scores)

        self._histogram.load(buckets)
        logger.info(f"Imported peak periods for {len(self._histogram)} hours")
