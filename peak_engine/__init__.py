"""
Peak Availability Engine

Rolling per-hour availability history and the recommendations derived
from it:
- Hourly score histogram (last 7 observations per hour)
- Ranked peak periods with count-based confidence
- Next optimal time
- Heuristic availability scoring
- Optional JSON persistence

Copyright (C) 2025 Peter Hirst (WU2C)
"""

from .models import (
    # Enums
    AvailabilityStatus,

    # Peak models
    PeakEntry,
    OptimalTime,

    # Scoring models
    ScoringContext,
    AvailabilityReading,

    # Constants
    MAX_OBSERVATIONS_PER_HOUR,
)

from .histogram import HourlyScoreHistogram
from .aggregator import PeakAggregator, rank_peaks, select_next_peak, hours_until
from .scoring import AvailabilityScorer, FACTOR_WEIGHTS
from .store import PeakStore
from .engine import AvailabilityEngine

__all__ = [
    # Enums
    'AvailabilityStatus',

    # Peak models
    'PeakEntry',
    'OptimalTime',

    # Scoring models
    'ScoringContext',
    'AvailabilityReading',
    'MAX_OBSERVATIONS_PER_HOUR',

    # Histogram & aggregation
    'HourlyScoreHistogram',
    'PeakAggregator',
    'rank_peaks',
    'select_next_peak',
    'hours_until',

    # Scoring
    'AvailabilityScorer',
    'FACTOR_WEIGHTS',

    # Persistence
    'PeakStore',

    # Facade
    'AvailabilityEngine',
]
