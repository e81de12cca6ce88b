"""
Data models for the Peak Availability engine.

Peak Availability v1.0
Copyright (C) 2025 Peter Hirst (WU2C)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional


# Observations kept per hour bucket (roughly one per day over a week)
MAX_OBSERVATIONS_PER_HOUR = 7

HOURS_PER_DAY = 24


# =============================================================================
# Enums
# =============================================================================

class AvailabilityStatus(Enum):
    """Coarse status derived from a blended availability score."""
    HIGHLY_AVAILABLE = "highly_available"
    MODERATELY_AVAILABLE = "moderately_available"
    LOW_AVAILABILITY = "low_availability"

    @classmethod
    def from_score(cls, blended: float) -> 'AvailabilityStatus':
        """Map a blended score in [0,1] to a status."""
        if blended > 0.7:
            return cls.HIGHLY_AVAILABLE
        if blended > 0.4:
            return cls.MODERATELY_AVAILABLE
        return cls.LOW_AVAILABILITY


# =============================================================================
# Peak Models
# =============================================================================

def format_time_range(hour: int) -> str:
    """Render the clock interval [hour:00, hour+1:00) for display."""
    return f"{hour:02d}:00 - {(hour + 1) % HOURS_PER_DAY:02d}:00"


@dataclass(frozen=True)
class PeakEntry:
    """One ranked hour bucket."""
    hour: int
    average_score: float
    confidence: float  # 0.0 to 1.0, data sufficiency only
    observation_count: int = 0

    @property
    def time_range(self) -> str:
        return format_time_range(self.hour)

    def to_dict(self) -> Dict:
        """External JSON shape used by the HTTP endpoint."""
        return {
            'hour': self.hour,
            'averageScore': self.average_score,
            'confidence': self.confidence,
            'timeRange': self.time_range,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'PeakEntry':
        """
        Build an entry from its JSON shape.

        Raises:
            ValueError: if a required field is missing or malformed
        """
        try:
            hour = int(data['hour'])
            average = float(data['averageScore'])
            confidence = float(data.get('confidence', 0.0))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed peak entry {data!r}: {e}") from e

        if not 0 <= hour < HOURS_PER_DAY:
            raise ValueError(f"Peak hour out of range: {hour}")

        return cls(
            hour=hour,
            average_score=average,
            confidence=max(0.0, min(1.0, confidence)),
            observation_count=int(round(confidence * MAX_OBSERVATIONS_PER_HOUR)),
        )


@dataclass(frozen=True)
class OptimalTime:
    """Nearest upcoming peak and how far away it is."""
    peak: PeakEntry
    hours_until: int
    time: datetime  # Start of the peak hour, today or tomorrow

    @property
    def hour(self) -> int:
        return self.peak.hour

    @property
    def expected_score(self) -> int:
        return int(round(self.peak.average_score))

    @property
    def confidence(self) -> float:
        return self.peak.confidence

    def to_dict(self) -> Dict:
        return {
            'time': self.time.isoformat(),
            'hour': self.hour,
            'hoursUntil': self.hours_until,
            'expectedScore': self.expected_score,
            'confidence': self.confidence,
            'timeRange': self.peak.time_range,
        }


# =============================================================================
# Scoring Models
# =============================================================================

@dataclass
class ScoringContext:
    """
    Hosting environment facts the scorer may use.

    None means "unknown" and each factor falls back to its neutral value.
    """
    timezone: Optional[str] = None  # IANA name, e.g. "Europe/Berlin"
    online: Optional[bool] = None
    mobile: Optional[bool] = None


@dataclass
class AvailabilityReading:
    """A single scored instant."""
    timestamp: datetime
    availability_score: int  # 0 - 100
    status: AvailabilityStatus
    confidence: int  # 0 - 100, mean factor value
    factors: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            'timestamp': self.timestamp.isoformat(),
            'availabilityScore': self.availability_score,
            'status': self.status.value,
            'confidence': self.confidence,
            'factors': dict(self.factors),
        }
