"""
Hourly score histogram for Peak Availability.

Keeps a bounded, oldest-first history of availability scores for each
hour-of-day bucket that has ever been observed.

Copyright (C) 2025 Peter Hirst (WU2C)
"""

import logging
import math
import threading
from collections import deque
from numbers import Real
from typing import Deque, Dict, FrozenSet, Mapping, Iterable, Tuple

from .models import MAX_OBSERVATIONS_PER_HOUR, HOURS_PER_DAY

logger = logging.getLogger(__name__)


def validate_hour(hour) -> int:
    """Return hour unchanged, or raise ValueError if it is not 0-23."""
    if isinstance(hour, bool) or not isinstance(hour, int):
        raise ValueError(f"Hour must be an integer, got {hour!r}")
    if not 0 <= hour < HOURS_PER_DAY:
        raise ValueError(f"Hour must be in 0-23, got {hour}")
    return hour


def validate_score(score) -> float:
    """Return score as float, or raise ValueError if non-finite or negative."""
    if isinstance(score, bool) or not isinstance(score, Real):
        raise ValueError(f"Score must be a real number, got {score!r}")
    score = float(score)
    if not math.isfinite(score):
        raise ValueError(f"Score must be finite, got {score}")
    if score < 0:
        raise ValueError(f"Score must not be negative, got {score}")
    return score


class HourlyScoreHistogram:
    """
    Bounded trailing score history per hour-of-day.

    Buckets are created on first record and never emptied by eviction,
    so the key set is exactly the set of observed hours. Every call holds
    a single lock for its whole duration.
    """

    def __init__(self):
        self._buckets: Dict[int, Deque[float]] = {}
        self._lock = threading.Lock()

    def record(self, hour: int, score: float):
        """
        Append a score to the bucket for hour.

        The oldest score is evicted once the bucket holds MAX_OBSERVATIONS_PER_HOUR scores.

        Raises:
            ValueError: on an invalid hour or score
        """
        hour = validate_hour(hour)
        score = validate_score(score)

        with self._lock:
            bucket = self._buckets.get(hour)
            if bucket is None:
                bucket = deque(maxlen=MAX_OBSERVATIONS_PER_HOUR)
                self._buckets[hour] = bucket
            bucket.append(score)

        logger.debug(f"Recorded {score:.1f} for hour {hour:02d}")

    def observed_hours(self) -> FrozenSet[int]:
        with self._lock:
            return frozenset(self._buckets)

    def scores_for(self, hour: int) -> Tuple[float, ...]:
        """Scores for hour, oldest first; empty if never observed."""
        with self._lock:
            return tuple(self._buckets.get(hour, ()))

    def snapshot(self) -> Dict[int, Tuple[float, ...]]:
        """Consistent copy of every bucket."""
        with self._lock:
            return {hour: tuple(scores) for hour, scores in self._buckets.items()}

    def load(self, buckets: Mapping[int, Iterable[float]]):
        """
        Replace all buckets.

        Everything is validated before the current state is touched, so a
        bad mapping leaves the histogram unchanged.
        """
        fresh: Dict[int, Deque[float]] = {}
        for hour, scores in buckets.items():
            hour = validate_hour(hour)
            bucket = deque((validate_score(s) for s in scores), maxlen=MAX_OBSERVATIONS_PER_HOUR)
            if bucket:
                fresh[hour] = bucket

        with self._lock:
            self._buckets = fresh

    def clear(self):
        with self._lock:
            self._buckets.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)
