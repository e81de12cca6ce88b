"""
Peak Store for Peak Availability.

Saves and restores aggregator snapshots as a small JSON document so the
rolling histogram survives restarts. Storage problems are logged and never
raised; the in-memory model stays correct without it.

Copyright (C) 2025 Peter Hirst (WU2C)
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


STORE_VERSION = 1


class PeakStore:
    """
    JSON file store for exported peak period state.

    Document layout:
        {"version": 1, "saved_at": "...", "peak_periods": {"9": [80, 75], ...}}
    """

    DEFAULT_FILENAME = 'peak_periods.json'

    def __init__(self, path: Path):
        """
        Initialize store.

        Args:
            path: File to read and write
        """
        self.path = Path(path)

    def load(self) -> Optional[Dict[str, List[float]]]:
        """
        Read the stored snapshot.

        Returns:
            Mapping of hour -> scores, or None if missing or unreadable
        """
        if not self.path.exists():
            logger.debug(f"No stored peak periods at {self.path}")
            return None

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load peak periods: {e}")
            return None

        if not isinstance(document, dict) or not isinstance(document.get('peak_periods'), dict):
            logger.warning(f"Ignoring malformed peak period file {self.path}")
            return None

        version = document.get('version')
        if version != STORE_VERSION:
            logger.warning(f"Ignoring peak period file with version {version!r}")
            return None

        return document['peak_periods']

    def save(self, state: Dict[int, List[float]]) -> bool:
        """
        Write a snapshot.

        Returns:
            True if written
        """
        document = {
            'version': STORE_VERSION,
            'saved_at': datetime.now().isoformat(),
            'peak_periods': {str(hour): list(scores) for hour, scores in state.items()},
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2)
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Could not save peak periods: {e}")
            return False

        logger.debug(f"Saved peak periods for {len(state)} hours to {self.path}")
        return True

    def clear(self):
        """Remove the stored snapshot if present."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove peak periods file: {e}")
