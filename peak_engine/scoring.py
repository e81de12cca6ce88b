"""
Availability Scorer for Peak Availability.

Blends simple heuristic sub-factors into a single availability score.
Each factor is a plain function of the instant and the scoring context
returning a value in [0,1].

Copyright (C) 2025 Peter Hirst (WU2C)
"""

import logging
import random
from datetime import datetime
from typing import Dict, Optional

from .models import AvailabilityReading, AvailabilityStatus, ScoringContext

logger = logging.getLogger(__name__)


# Factor weights for the blended score
FACTOR_WEIGHTS = {
    'timeOfDay': 0.25,
    'dayOfWeek': 0.20,
    'location': 0.15,
    'connectivity': 0.10,
    'social': 0.10,
    'weather': 0.08,
    'device': 0.07,
    'legal': 0.03,
    'entertainment': 0.02,
}

# Business hours (inclusive) by timezone region
REGION_BUSINESS_HOURS = {
    'America': (8, 18),
    'Europe': (9, 17),
    'Asia': (9, 18),
}

# datetime.weekday(): Monday == 0
FRIDAY, SATURDAY, SUNDAY = 4, 5, 6


def get_season(month: int) -> str:
    if 3 <= month <= 5:
        return 'spring'
    if 6 <= month <= 8:
        return 'summer'
    if 9 <= month <= 11:
        return 'fall'
    return 'winter'


def time_of_day_factor(when: datetime) -> float:
    hour = when.hour
    if 9 <= hour <= 17:
        return 0.9  # Work hours
    if 18 <= hour <= 22:
        return 0.7  # Evening
    if 6 <= hour <= 8:
        return 0.5  # Early morning
    return 0.2  # Late night


def day_of_week_factor(when: datetime) -> float:
    day = when.weekday()
    if day < SATURDAY:
        return 0.8
    if day == SATURDAY:
        return 0.6
    return 0.4


def location_factor(when: datetime, context: ScoringContext) -> float:
    """Business hours differ by region; region comes from the timezone name."""
    timezone = context.timezone or ''
    for region, (start, end) in REGION_BUSINESS_HOURS.items():
        if region in timezone:
            return 0.8 if start <= when.hour <= end else 0.5
    return 0.6


def connectivity_factor(context: ScoringContext) -> float:
    if context.online is None:
        return 0.8
    return 0.9 if context.online else 0.1


def social_factor(when: datetime) -> float:
    hour = when.hour
    day = when.weekday()

    if day == FRIDAY and hour >= 18:
        return 0.3
    if day == SATURDAY and 10 <= hour <= 14:
        return 0.4
    if day == SUNDAY and 10 <= hour <= 16:
        return 0.4
    if 12 <= hour <= 13:
        return 0.5  # Lunch
    return 0.8


def weather_factor(when: datetime) -> float:
    hour = when.hour
    season = get_season(when.month)

    if season == 'winter' and (hour < 8 or hour > 18):
        return 0.6
    if season == 'summer' and 11 <= hour <= 15:
        return 0.7
    return 0.8


def device_factor(context: ScoringContext) -> float:
    if context.mobile is None:
        return 0.8
    return 0.7 if context.mobile else 0.9


def legal_factor(when: datetime, rng: random.Random) -> float:
    """Small chance of being tied up in court during weekday court hours."""
    if when.weekday() < SATURDAY and 9 <= when.hour <= 17:
        return 0.0 if rng.random() > 0.95 else 0.9
    return 0.9


def entertainment_factor(when: datetime, rng: random.Random) -> float:
    hour = when.hour
    day = when.weekday()

    # Prime time
    if 19 <= hour <= 23:
        return 0.2 if rng.random() > 0.7 else 0.8

    # Weekend afternoon
    if day in (SATURDAY, SUNDAY) and 14 <= hour <= 18:
        return 0.3 if rng.random() > 0.8 else 0.7

    return 0.9


class AvailabilityScorer:
    """
    Weighted blend of heuristic availability factors.

    Environment facts come from a ScoringContext and the random factors
    draw from an injectable Random, so a seeded scorer is reproducible.
    """

    def __init__(self,
                 context: ScoringContext = None,
                 rng: random.Random = None,
                 weights: Dict[str, float] = None):
        """
        Initialize scorer.

        Args:
            context: Hosting environment facts (all unknown by default)
            rng: Random source for the stochastic factors
            weights: Factor weights, defaults to FACTOR_WEIGHTS
        """
        self.context = context or ScoringContext()
        self.rng = rng or random.Random()
        self.weights = dict(weights or FACTOR_WEIGHTS)

        unknown = set(self.weights) - set(FACTOR_WEIGHTS)
        if unknown:
            raise ValueError(f"Unknown factor weights: {sorted(unknown)}")
        if sum(self.weights.values()) <= 0:
            raise ValueError("Factor weights must sum to a positive value")

    def calculate_factors(self, when: datetime) -> Dict[str, float]:
        """Evaluate every weighted factor at when."""
        all_factors = {
            'timeOfDay': lambda: time_of_day_factor(when),
            'dayOfWeek': lambda: day_of_week_factor(when),
            'location': lambda: location_factor(when, self.context),
            'connectivity': lambda: connectivity_factor(self.context),
            'social': lambda: social_factor(when),
            'weather': lambda: weather_factor(when),
            'device': lambda: device_factor(self.context),
            'legal': lambda: legal_factor(when, self.rng),
            'entertainment': lambda: entertainment_factor(when, self.rng),
        }
        return {name: all_factors[name]() for name in self.weights}

    def blend(self, factors: Dict[str, float]) -> float:
        """Weighted mean of factors, in [0,1]."""
        total_score = 0.0
        total_weight = 0.0
        for name, value in factors.items():
            weight = self.weights.get(name, 0.0)
            total_score += value * weight
            total_weight += weight
        return total_score / total_weight if total_weight else 0.0

    @staticmethod
    def factor_confidence(factors: Dict[str, Optional[float]]) -> int:
        """Mean of the known factor values as a percentage; 50 if none."""
        known = [v for v in factors.values() if v is not None]
        if not known:
            return 50
        return int(round(sum(known) / len(known) * 100))

    def score(self, when: datetime) -> AvailabilityReading:
        """
        Score a single instant.

        Args:
            when: Instant to score (local wall-clock time)

        Returns:
            AvailabilityReading with a 0-100 score
        """
        factors = self.calculate_factors(when)
        blended = self.blend(factors)

        reading = AvailabilityReading(
            timestamp=when,
            availability_score=int(round(blended * 100)),
            status=AvailabilityStatus.from_score(blended),
            confidence=self.factor_confidence(factors),
            factors=factors,
        )
        logger.debug(f"Scored {when:%Y-%m-%d %H:%M}: {reading.availability_score}% ({reading.status.value})")
        return reading
