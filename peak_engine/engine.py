"""
Availability Engine for Peak Availability.

Facade that scores "now", feeds the score into the peak aggregator and
keeps the optional store in sync. Also provides the short yes/no style
helpers assistants call before starting a long interaction.

Copyright (C) 2025 Peter Hirst (WU2C)
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .aggregator import PeakAggregator, DEFAULT_PEAK_LIMIT
from .models import AvailabilityReading
from .scoring import AvailabilityScorer
from .store import PeakStore

logger = logging.getLogger(__name__)


class AvailabilityEngine:
    """
    Local availability service.

    One engine owns one aggregator; construct it explicitly and pass it
    to whatever needs it.
    """

    # Thresholds on the 0-100 availability score
    AVAILABLE_THRESHOLD = 50
    DEFER_THRESHOLD = 30
    HIGH_THRESHOLD = 70
    MODERATE_THRESHOLD = 40

    # Peaks embedded in a reading
    READING_PEAK_COUNT = 3

    def __init__(self,
                 scorer: AvailabilityScorer = None,
                 aggregator: PeakAggregator = None,
                 store: PeakStore = None,
                 clock: Callable[[], datetime] = None):
        """
        Initialize engine.

        Args:
            scorer: Availability scorer (default context, unseeded)
            aggregator: Peak aggregator, a fresh one by default
            store: Optional persistence for the aggregator state
            clock: Returns "now"; datetime.now by default
        """
        self.scorer = scorer or AvailabilityScorer()
        self.aggregator = aggregator or PeakAggregator()
        self.store = store
        self.clock = clock or datetime.now

        self._restore()

    def _restore(self):
        if self.store is None:
            return

        state = self.store.load()
        if not state:
            return

        try:
            self.aggregator.import_state(state)
        except ValueError as e:
            logger.warning(f"Discarding stored peak periods: {e}")

    def _persist(self):
        if self.store is not None:
            self.store.save(self.aggregator.export_state())

    # -------------------------------------------------------------------------
    # Core calls
    # -------------------------------------------------------------------------

    def calculate_current_availability(self) -> AvailabilityReading:
        """Score the current instant without recording it."""
        return self.scorer.score(self.clock())

    def get_availability(self) -> Dict:
        """
        Score now, record the score and report.

        Returns:
            {'success': True, 'data': {...}} or {'success': False, 'error': str}
        """
        try:
            reading = self.calculate_current_availability()
            self.aggregator.record_observation(reading.availability_score, reading.timestamp)
            self._persist()
        except Exception as e:
            logger.exception("Availability calculation failed")
            return {'success': False, 'error': str(e)}

        optimal = self.aggregator.next_optimal_time(reading.timestamp)

        data = reading.to_dict()
        data['peakPeriods'] = [p.to_dict() for p in self.aggregator.peaks(self.READING_PEAK_COUNT)]
        data['nextOptimalTime'] = optimal.to_dict() if optimal else None

        logger.info(f"Availability {reading.availability_score}% ({reading.status.value})")
        return {'success': True, 'data': data}

    def get_peak_periods(self, limit: int = DEFAULT_PEAK_LIMIT) -> Dict:
        """Payload for a "top peak periods" response."""
        return {
            'peaks': [p.to_dict() for p in self.aggregator.peaks(limit)],
            'note': "Peak periods based on the last 7 observations of each hour",
        }

    def get_optimal_timing(self) -> Optional[Dict]:
        optimal = self.aggregator.next_optimal_time(self.clock())
        return optimal.to_dict() if optimal else None

    def reset(self):
        """Forget every observation, including the stored copy."""
        self.aggregator.reset()
        if self.store is not None:
            self.store.clear()

    # -------------------------------------------------------------------------
    # Assistant helpers
    # -------------------------------------------------------------------------

    def is_user_available(self) -> bool:
        result = self.get_availability()
        return result['success'] and result['data']['availabilityScore'] > self.AVAILABLE_THRESHOLD

    def should_defer_request(self) -> bool:
        result = self.get_availability()
        if not result['success']:
            return False
        return result['data']['availabilityScore'] < self.DEFER_THRESHOLD

    def get_availability_summary(self) -> str:
        result = self.get_availability()
        if not result['success']:
            return "Unable to determine availability"

        data = result['data']
        status = data['status'].replace('_', ' ')
        return (f"User is {status} ({data['availabilityScore']}% available). "
                f"Next optimal time: {self._format_optimal(data['nextOptimalTime'])}.")

    def get_recommendations(self) -> List[str]:
        """Human readable advice lines for the current moment."""
        result = self.get_availability()
        if not result['success']:
            return ["Unable to provide recommendations"]

        data = result['data']
        score = data['availabilityScore']
        recommendations = []

        if score > self.HIGH_THRESHOLD:
            recommendations.append("User is highly available - proceed with complex requests")
        elif score > self.MODERATE_THRESHOLD:
            recommendations.append("User is moderately available - simple requests recommended")
        else:
            recommendations.append("User has low availability - consider deferring non-urgent requests")

        if data['nextOptimalTime']:
            recommendations.append(f"Next optimal time: {self._format_optimal(data['nextOptimalTime'])}")

        return recommendations

    @staticmethod
    def _format_optimal(optimal: Optional[Dict]) -> str:
        if not optimal:
            return "Unknown"
        when = datetime.fromisoformat(optimal['time'])
        return when.strftime('%Y-%m-%d %H:%M')
