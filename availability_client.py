# Availability API Client
# Peak Availability v1.0
#
# Fetches peak periods from the remote availability endpoint and turns
# them into interaction advice: should we interact now, when is the next
# good time, what does the next day look like.

import time
import logging
import threading
import requests
from datetime import datetime
from typing import Callable, Dict, List, Optional

from peak_engine.aggregator import select_next_peak, hours_until
from peak_engine.models import PeakEntry

logger = logging.getLogger(__name__)


# Minimum current-hour average per interaction complexity
COMPLEXITY_THRESHOLDS = {
    'simple': 25,
    'normal': 45,
    'complex': 65,
    'critical': 80,
}
DEFAULT_COMPLEXITY_THRESHOLD = 45

# (minimum score, status, message), checked in order
STATUS_LEVELS = [
    (80, 'excellent', "Excellent time for any type of interaction"),
    (65, 'high', "High availability - good for complex interactions"),
    (45, 'moderate', "Moderate availability - suitable for normal interactions"),
    (25, 'low', "Low availability - consider simple interactions only"),
    (float('-inf'), 'very_low', "Very low availability - consider deferring non-urgent interactions"),
]

# Future peaks below this confidence are skipped for timing advice
TIMING_MIN_CONFIDENCE = 0.5


def categorize_availability(score: float) -> str:
    for minimum, status, _ in STATUS_LEVELS:
        if score >= minimum:
            return status
    return 'very_low'


class AvailabilityClient:
    """
    Client for the remote peak availability endpoint.

    Responses are cached per client and failed requests are retried with
    a linearly growing delay. Transport problems never raise; callers get
    a result dict with success=False instead.
    """

    DEFAULT_API_BASE = "https://availability.noisy-grass-1e0c.workers.dev"

    # Cache settings
    CACHE_TTL = 300  # 5 minutes

    # Request settings
    REQUEST_TIMEOUT = 10
    MAX_RETRIES = 3
    RETRY_DELAY = 1.0  # Seconds, multiplied by attempt number

    def __init__(self,
                 api_base: str = None,
                 cache_ttl: float = None,
                 timeout: float = None,
                 max_retries: int = None,
                 clock: Callable[[], datetime] = None):
        """
        Initialize client.

        Args:
            api_base: Endpoint base URL
            cache_ttl: Seconds a successful response stays fresh
            timeout: Per-request timeout in seconds
            max_retries: Attempts per fetch (at least 1)
            clock: Returns local "now" for hour-based advice
        """
        self.api_base = (api_base or self.DEFAULT_API_BASE).rstrip('/')
        self.cache_ttl = self.CACHE_TTL if cache_ttl is None else cache_ttl
        self.timeout = self.REQUEST_TIMEOUT if timeout is None else timeout
        self.max_retries = max(1, self.MAX_RETRIES if max_retries is None else max_retries)
        self.clock = clock or datetime.now

        self._cache: Optional[dict] = None  # {data, timestamp}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config) -> 'AvailabilityClient':
        """Build a client from a ConfigManager."""
        return cls(
            api_base=config.get('API', 'api_base', fallback=cls.DEFAULT_API_BASE),
            cache_ttl=config.getfloat('API', 'cache_duration', fallback=cls.CACHE_TTL),
            timeout=config.getfloat('API', 'request_timeout', fallback=cls.REQUEST_TIMEOUT),
            max_retries=config.getint('API', 'max_retries', fallback=cls.MAX_RETRIES),
        )

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    def _get_cached(self) -> Optional[dict]:
        """Get cached data if still valid."""
        with self._lock:
            if self._cache is None:
                return None
            age = time.time() - self._cache['timestamp']
            if age < self.cache_ttl:
                logger.debug(f"Cache hit (age: {age:.0f}s)")
                return self._cache['data']
        return None

    def _store_cache(self, data: dict):
        with self._lock:
            self._cache = {'data': data, 'timestamp': time.time()}

    def clear_cache(self):
        """Clear cached data."""
        with self._lock:
            self._cache = None

    def _fetch_with_retry(self, url: str) -> dict:
        """
        GET url as JSON, retrying on failure.

        Raises:
            requests.RequestException or ValueError from the last attempt
        """
        headers = {
            'User-Agent': 'Peak-Availability/1.0',
            'Accept': 'application/json'
        }
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = requests.get(url, headers=headers, timeout=self.timeout)
                if response.status_code != 200:
                    raise requests.HTTPError(
                        f"HTTP {response.status_code}: {response.reason}",
                        response=response
                    )
                return response.json()

            except (requests.RequestException, ValueError) as e:
                last_error = e
                logger.warning(f"Availability fetch attempt {attempt}/{self.max_retries} failed: {e}")
                if attempt < self.max_retries:
                    time.sleep(self.RETRY_DELAY * attempt)

        raise last_error

    def _parse_peaks(self, data: dict) -> List[PeakEntry]:
        """Parse peak entries from the endpoint's JSON."""
        raw_peaks = data.get('peaks')

        # Some deployments wrap the payload under 'data'
        if raw_peaks is None and isinstance(data.get('data'), dict):
            raw_peaks = data['data'].get('peaks')

        if not isinstance(raw_peaks, list):
            raw_peaks = []

        peaks = []
        for raw in raw_peaks:
            if not isinstance(raw, dict):
                continue
            try:
                peaks.append(PeakEntry.from_dict(raw))
            except ValueError as e:
                logger.debug(f"Skipping malformed peak: {e}")

        return peaks

    def get_availability_data(self, force: bool = False) -> Dict:
        """
        Fetch the ranked peak periods.

        Args:
            force: Skip the cache

        Returns:
            {'success': True, 'cached': bool, 'peaks': [PeakEntry, ...]} or
            {'success': False, 'error': str, 'fallback': True}
        """
        if not force:
            cached = self._get_cached()
            if cached is not None:
                return {'success': True, 'cached': True, 'peaks': list(cached['peaks'])}

        url = f"{self.api_base}/peaks"
        try:
            raw = self._fetch_with_retry(url)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Availability request failed: {e}")
            return {'success': False, 'error': str(e), 'fallback': True}

        if not isinstance(raw, dict):
            logger.error(f"Unexpected availability payload: {str(raw)[:200]}")
            return {'success': False, 'error': "Unexpected response format", 'fallback': True}

        if raw.get('success') is False:
            error = raw.get('error', "Endpoint reported failure")
            logger.error(f"Availability endpoint error: {error}")
            return {'success': False, 'error': error, 'fallback': True}

        data = {'peaks': self._parse_peaks(raw)}
        self._store_cache(data)

        logger.info(f"Fetched {len(data['peaks'])} peak periods")
        return {'success': True, 'cached': False, 'peaks': list(data['peaks'])}

    # -------------------------------------------------------------------------
    # Advice
    # -------------------------------------------------------------------------

    def _current_peak(self, peaks: List[PeakEntry], hour: int) -> Optional[PeakEntry]:
        return next((p for p in peaks if p.hour == hour), None)

    def should_interact(self, complexity: str = 'normal', now: datetime = None) -> Dict:
        """
        Decide whether an interaction of the given complexity should go ahead.

        Missing data never blocks: without a current-hour peak we proceed.
        """
        data = self.get_availability_data()
        if not data['success']:
            return {
                'proceed': True,
                'reason': "No availability data - proceeding with default behavior",
            }

        now = now or self.clock()
        current = self._current_peak(data['peaks'], now.hour)
        if current is None:
            return {
                'proceed': True,
                'reason': "No data for current hour - proceeding normally",
            }

        threshold = COMPLEXITY_THRESHOLDS.get(complexity, DEFAULT_COMPLEXITY_THRESHOLD)
        score = current.average_score
        proceed = score >= threshold

        if proceed:
            reason = f"Availability {score:.0f}% meets {complexity} threshold {threshold}%"
        else:
            reason = f"Availability {score:.0f}% below {complexity} threshold {threshold}%"

        return {
            'proceed': proceed,
            'current_score': score,
            'threshold': threshold,
            'confidence': current.confidence,
            'complexity': complexity,
            'reason': reason,
        }

    def get_optimal_timing(self, now: datetime = None) -> Dict:
        """Next good time to interact, preferring confident peaks."""
        data = self.get_availability_data()
        if not data['success']:
            return {
                'error': "Unable to determine optimal timing",
                'suggestion': "Try again later",
            }

        peaks = data['peaks']
        if not peaks:
            return {
                'error': "No peak data available",
                'suggestion': "Proceed with interaction",
            }

        now = now or self.clock()
        current_hour = now.hour
        top_peak = peaks[0]
        next_peak = select_next_peak(peaks, current_hour, min_confidence=TIMING_MIN_CONFIDENCE)
        wait = hours_until(next_peak.hour, current_hour)

        if wait <= 2:
            recommendation = f"Wait {wait} hour(s) for optimal time"
        else:
            recommendation = "Current time is acceptable"

        return {
            'optimal_time': next_peak.time_range,
            'hours_until': wait,
            'expected_score': next_peak.average_score,
            'confidence': next_peak.confidence,
            'is_now_optimal': current_hour == top_peak.hour,
            'all_peaks': peaks[:3],
            'recommendation': recommendation,
        }

    def get_current_status(self, now: datetime = None) -> Dict:
        data = self.get_availability_data()
        if not data['success']:
            return {
                'status': 'unknown',
                'score': None,
                'message': "Unable to determine current availability",
            }

        now = now or self.clock()
        current = self._current_peak(data['peaks'], now.hour)
        if current is None:
            return {
                'status': 'unknown',
                'score': None,
                'message': "No data available for current hour",
            }

        score = current.average_score
        status = categorize_availability(score)
        message = next(m for _, s, m in STATUS_LEVELS if s == status)

        return {
            'status': status,
            'score': score,
            'confidence': current.confidence,
            'message': message,
            'time_range': current.time_range,
        }

    def get_forecast(self, now: datetime = None) -> Dict:
        """
        Known peaks ordered by how soon they come around.

        The current hour counts as 0 hours from now.
        """
        data = self.get_availability_data()
        if not data['success']:
            return {'error': "Unable to generate forecast"}

        now = now or self.clock()
        current_hour = now.hour

        forecast = []
        for peak in data['peaks']:
            if peak.hour >= current_hour:
                hours_from_now = peak.hour - current_hour
            else:
                hours_from_now = (24 - current_hour) + peak.hour
            forecast.append({
                'hour': peak.hour,
                'time_range': peak.time_range,
                'availability': peak.average_score,
                'confidence': peak.confidence,
                'category': categorize_availability(peak.average_score),
                'hours_from_now': hours_from_now,
            })
        forecast.sort(key=lambda f: (f['hours_from_now'], f['hour']))

        return {
            'forecast': forecast,
            'best_times': [f for f in forecast if f['availability'] >= 70][:3],
            'avoid_times': [f for f in forecast if f['availability'] < 30],
        }

    def get_simple_recommendation(self, ai_system_name: str = 'Unknown AI', now: datetime = None) -> Dict:
        """Proceed/defer decision plus the status and timing behind it."""
        now = now or self.clock()
        status = self.get_current_status(now)
        optimal = self.get_optimal_timing(now)

        if status['status'] == 'unknown':
            recommendation = "Availability data unavailable - proceed normally"
            action = 'proceed'
        elif status['status'] in ('excellent', 'high'):
            recommendation = "Great time for interaction - proceed with confidence"
            action = 'proceed'
        elif status['status'] == 'moderate':
            recommendation = "Good time for normal interactions"
            action = 'proceed'
        else:
            recommendation = f"Consider waiting until {optimal.get('optimal_time', 'later')} for better availability"
            action = 'defer'

        logger.info(f"[{ai_system_name}] Availability check: {status['status']} ({status['score']}) - {action}")

        return {
            'action': action,
            'recommendation': recommendation,
            'current_status': status,
            'optimal_timing': optimal,
            'ai_system': ai_system_name,
            'timestamp': now.isoformat(),
        }
