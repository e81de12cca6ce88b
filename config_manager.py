# Peak Availability
# Copyright (C) 2025 [Peter Hirst/WU2C]
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.


import configparser
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


APP_DIR_NAME = "Peak Availability"


def get_config_dir():
    """Get platform-appropriate config directory."""
    if sys.platform == "win32":
        # Windows: AppData/Roaming
        base = Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        # macOS: ~/Library/Application Support
        base = Path.home() / "Library" / "Application Support"
    else:
        # Linux: ~/.config
        base = Path.home() / ".config"

    config_dir = base / APP_DIR_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_file():
    return get_config_dir() / 'peak_availability.ini'


DEFAULT_CONFIG = {
    'API': {
        'api_base': 'https://availability.noisy-grass-1e0c.workers.dev',
        'cache_duration': '300',
        'request_timeout': '10',
        'max_retries': '3'
    },
    'ANALYSIS': {
        'peak_limit': '6',
        'history_file': ''  # Empty: peak_periods.json next to the config file
    },
    'MONITOR': {
        'interval': '300',
        'change_threshold': '15'
    },
    'CONTEXT': {
        'timezone': '',
        'online': '',
        'mobile': ''
    }
}

class ConfigManager:
    def __init__(self, config_file=None):
        self.config_file = Path(config_file) if config_file else get_config_file()
        self.config = configparser.ConfigParser()
        self.load_config()

    def load_config(self):
        if not self.config_file.exists():
            self.create_default_config()
        self.config.read(self.config_file)

        # Fill in sections/keys added since the file was written
        for section, options in DEFAULT_CONFIG.items():
            if section not in self.config:
                self.config.add_section(section)
            for key, value in options.items():
                self.config[section].setdefault(key, value)

    def create_default_config(self):
        for section, options in DEFAULT_CONFIG.items():
            self.config[section] = options
        self._write()
        logger.info(f"Created default config at {self.config_file}")

    def _write(self):
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w') as f:
            self.config.write(f)

    def save_setting(self, section, key, value):
        if section not in self.config:
            self.config.add_section(section)
        self.config[section][str(key)] = str(value)
        self._write()

    def get(self, section, key, fallback=None):
        return self.config.get(section, key, fallback=fallback)

    def getint(self, section, key, fallback=None):
        try:
            return self.config.getint(section, key, fallback=fallback)
        except ValueError:
            logger.warning(f"Invalid integer for [{section}] {key}, using {fallback}")
            return fallback

    def getfloat(self, section, key, fallback=None):
        try:
            return self.config.getfloat(section, key, fallback=fallback)
        except ValueError:
            logger.warning(f"Invalid number for [{section}] {key}, using {fallback}")
            return fallback

    def get_optional_bool(self, section, key):
        """Tri-state flag: empty means unknown (None)."""
        raw = self.config.get(section, key, fallback='').strip()
        if not raw:
            return None
        try:
            return self.config.getboolean(section, key)
        except ValueError:
            logger.warning(f"Invalid boolean for [{section}] {key}, treating as unknown")
            return None

    def get_history_file(self):
        path = self.config.get('ANALYSIS', 'history_file', fallback='').strip()
        if path:
            return Path(path).expanduser()
        return self.config_file.parent / 'peak_periods.json'
