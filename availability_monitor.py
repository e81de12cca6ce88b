# Peak Availability
# Copyright (C) 2025 [Peter Hirst/WU2C]

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class AvailabilityMonitor:
    """
    Polls an AvailabilityClient in a background thread and reports
    when the top peak's average moves by at least change_threshold.
    """

    DEFAULT_INTERVAL = 300  # 5 minutes
    DEFAULT_CHANGE_THRESHOLD = 15  # Score points

    def __init__(self, client, callback: Callable[[Dict], None],
                 interval: float = DEFAULT_INTERVAL,
                 change_threshold: float = DEFAULT_CHANGE_THRESHOLD):
        self.client = client
        self.callback = callback
        self.interval = interval
        self.change_threshold = change_threshold

        self.last_data: Optional[Dict] = None
        self._stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self.thread is not None and self.thread.is_alive() and not self._stop_event.is_set()

    def start(self):
        if self.running:
            return
        self._stop_event.clear()
        self.thread = threading.Thread(target=self._monitor_loop, name="availability-monitor", daemon=True)
        self.thread.start()
        logger.info(f"Availability monitor started (every {self.interval}s)")

    def stop(self, timeout: float = 5.0):
        self._stop_event.set()
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout)
        logger.info("Availability monitor stopped")

    def has_significant_change(self, old: Dict, new: Dict) -> bool:
        """Compare the top peak of two successful fetches."""
        old_peaks = old.get('peaks')
        new_peaks = new.get('peaks')
        if old_peaks is None or new_peaks is None:
            return False

        old_top = old_peaks[0].average_score if old_peaks else 0
        new_top = new_peaks[0].average_score if new_peaks else 0
        return abs(old_top - new_top) >= self.change_threshold

    def poll_once(self):
        """Single monitoring step; safe to call without the thread."""
        timestamp = datetime.now().isoformat()
        try:
            data = self.client.get_availability_data(force=True)

            if not data['success']:
                self._emit({
                    'type': 'monitoring_error',
                    'error': data.get('error', 'unknown error'),
                    'timestamp': timestamp,
                })
                return

            if self.last_data is not None and self.has_significant_change(self.last_data, data):
                self._emit({
                    'type': 'availability_change',
                    'previous': self.last_data,
                    'current': data,
                    'timestamp': timestamp,
                })

            self.last_data = data

        except Exception as e:
            # Keep the thread alive on bad data
            logger.error(f"Availability monitor error: {e}")
            self._emit({
                'type': 'monitoring_error',
                'error': str(e),
                'timestamp': timestamp,
            })

    def _emit(self, event: Dict):
        try:
            self.callback(event)
        except Exception as e:
            logger.error(f"Availability monitor callback failed: {e}")

    def _monitor_loop(self):
        while not self._stop_event.is_set():
            self.poll_once()
            self._stop_event.wait(self.interval)


def monitor_availability(client, callback: Callable[[Dict], None],
                         interval: float = AvailabilityMonitor.DEFAULT_INTERVAL,
                         change_threshold: float = AvailabilityMonitor.DEFAULT_CHANGE_THRESHOLD) -> Callable[[], None]:
    """
    Start monitoring and return a function that stops it.
    """
    monitor = AvailabilityMonitor(client, callback, interval, change_threshold)
    monitor.start()
    return monitor.stop
