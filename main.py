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

import argparse
import logging
import sys
import time

from config_manager import ConfigManager
from logging_config import setup_logging, set_debug_mode
from availability_client import AvailabilityClient
from availability_monitor import AvailabilityMonitor
from peak_engine import AvailabilityEngine, AvailabilityScorer, PeakStore, ScoringContext

logger = logging.getLogger(__name__)

DEFAULT_PEAK_LIMIT = 6


def non_negative_int(value: str) -> int:
    """argparse type for --limit."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {number}")
    return number


def configured_peak_limit(config: ConfigManager) -> int:
    limit = config.getint('ANALYSIS', 'peak_limit', fallback=DEFAULT_PEAK_LIMIT)
    if limit < 0:
        logger.warning(f"Ignoring negative peak_limit {limit}, using {DEFAULT_PEAK_LIMIT}")
        return DEFAULT_PEAK_LIMIT
    return limit


def build_engine(config: ConfigManager) -> AvailabilityEngine:
    context = ScoringContext(
        timezone=config.get('CONTEXT', 'timezone', fallback='') or None,
        online=config.get_optional_bool('CONTEXT', 'online'),
        mobile=config.get_optional_bool('CONTEXT', 'mobile'),
    )
    return AvailabilityEngine(
        scorer=AvailabilityScorer(context=context),
        store=PeakStore(config.get_history_file()),
    )


def run_local(config: ConfigManager, limit: int) -> int:
    engine = build_engine(config)
    result = engine.get_availability()
    if not result['success']:
        print(f"Availability check failed: {result['error']}")
        return 1

    data = result['data']
    print(f"Availability: {data['availabilityScore']}% ({data['status']})")

    peaks = engine.get_peak_periods(limit)['peaks']
    if not peaks:
        print("No peak data yet")
    for peak in peaks:
        print(f"  {peak['timeRange']}  avg {peak['averageScore']:5.1f}  confidence {peak['confidence']:.2f}")

    optimal = data['nextOptimalTime']
    if optimal:
        print(f"Next optimal time: {optimal['timeRange']} (in {optimal['hoursUntil']}h)")
    return 0


def run_remote(config: ConfigManager) -> int:
    client = AvailabilityClient.from_config(config)
    result = client.get_simple_recommendation('peak-availability-cli')
    print(f"Action: {result['action']}")
    print(result['recommendation'])
    return 0 if result['current_status']['status'] != 'unknown' else 1


def run_monitor(config: ConfigManager) -> int:
    client = AvailabilityClient.from_config(config)

    def report(event):
        if event['type'] == 'availability_change':
            print(f"{event['timestamp']}: top peak changed")
        else:
            print(f"{event['timestamp']}: monitoring error: {event['error']}")

    monitor = AvailabilityMonitor(
        client, report,
        interval=config.getfloat('MONITOR', 'interval', fallback=AvailabilityMonitor.DEFAULT_INTERVAL),
        change_threshold=config.getfloat('MONITOR', 'change_threshold',
                                         fallback=AvailabilityMonitor.DEFAULT_CHANGE_THRESHOLD),
    )
    monitor.start()
    try:
        while monitor.running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        monitor.stop()
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Peak availability checks")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--local', action='store_true', help="Score now and show local peak periods (default)")
    mode.add_argument('--remote', action='store_true', help="Ask the availability endpoint")
    mode.add_argument('--monitor', action='store_true', help="Watch the endpoint for changes")
    parser.add_argument('--limit', type=non_negative_int, default=None, help="Number of peak periods to show")
    parser.add_argument('--config', default=None, help="Path to config file")
    parser.add_argument('--debug', action='store_true', help="Verbose logging")
    parser.add_argument('--no-file-log', action='store_true', help="Log to console only")
    parser.add_argument('--log-file', default=None, help="Write the log here instead of the config directory")
    args = parser.parse_args(argv)

    setup_logging(console=True, file=not args.no_file_log, log_file=args.log_file)
    if args.debug:
        set_debug_mode(True)

    config = ConfigManager(args.config)

    if args.remote:
        return run_remote(config)
    if args.monitor:
        return run_monitor(config)

    limit = args.limit if args.limit is not None else configured_peak_limit(config)
    return run_local(config, limit)


if __name__ == "__main__":
    sys.exit(main())
