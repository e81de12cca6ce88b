"""
Tests for the remote availability client.
"""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
import requests
from availability_client import AvailabilityClient, categorize_availability


PEAKS_PAYLOAD = {
    'peaks': [
        {'hour': 9, 'averageScore': 88, 'confidence': 1.0, 'timeRange': "09:00 - 10:00"},
        {'hour': 15, 'averageScore': 70, 'confidence': 0.4, 'timeRange': "15:00 - 16:00"},
        {'hour': 17, 'averageScore': 66, 'confidence': 0.8, 'timeRange': "17:00 - 18:00"},
        {'hour': 12, 'averageScore': 40, 'confidence': 1.0, 'timeRange': "12:00 - 13:00"},
        {'hour': 2, 'averageScore': 20, 'confidence': 0.3, 'timeRange': "02:00 - 03:00"},
    ]
}


def ok_response(payload):
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = payload
    return response


def error_response(status=503):
    response = MagicMock()
    response.status_code = status
    response.reason = "Service Unavailable"
    return response


def at_hour(hour):
    return datetime(2025, 1, 6, hour, 10)


@pytest.fixture
def no_sleep():
    with patch('availability_client.time.sleep') as sleep:
        yield sleep


@pytest.fixture
def client():
    return AvailabilityClient(api_base="https://example.test/", cache_ttl=300, max_retries=3)


class TestFetching:

    def test_success_parses_peaks(self, client, no_sleep):
        with patch('availability_client.requests.get', return_value=ok_response(PEAKS_PAYLOAD)) as get:
            data = client.get_availability_data()

        assert data['success'] is True
        assert data['cached'] is False
        assert [p.hour for p in data['peaks']] == [9, 15, 17, 12, 2]
        assert get.call_args[0][0] == "https://example.test/peaks"
        assert get.call_args[1]['timeout'] == 10

    def test_second_call_is_cached(self, client, no_sleep):
        with patch('availability_client.requests.get', return_value=ok_response(PEAKS_PAYLOAD)) as get:
            client.get_availability_data()
            data = client.get_availability_data()

        assert data['cached'] is True
        assert get.call_count == 1

    def test_results_do_not_share_cached_list(self, client, no_sleep):
        with patch('availability_client.requests.get', return_value=ok_response(PEAKS_PAYLOAD)):
            fresh = client.get_availability_data()
            fresh['peaks'].clear()
            first = client.get_availability_data()
            first['peaks'].pop(0)
            second = client.get_availability_data()

        assert second['cached'] is True
        assert [p.hour for p in second['peaks']] == [9, 15, 17, 12, 2]

    def test_force_and_clear_bypass_cache(self, client, no_sleep):
        with patch('availability_client.requests.get', return_value=ok_response(PEAKS_PAYLOAD)) as get:
            client.get_availability_data()
            client.get_availability_data(force=True)
            client.clear_cache()
            client.get_availability_data()

        assert get.call_count == 3

    def test_expired_cache_refetches(self, no_sleep):
        client = AvailabilityClient(cache_ttl=0)
        with patch('availability_client.requests.get', return_value=ok_response(PEAKS_PAYLOAD)) as get:
            client.get_availability_data()
            client.get_availability_data()
        assert get.call_count == 2

    def test_retries_then_succeeds(self, client, no_sleep):
        responses = [requests.ConnectionError("down"), error_response(), ok_response(PEAKS_PAYLOAD)]
        with patch('availability_client.requests.get', side_effect=responses) as get:
            data = client.get_availability_data()

        assert data['success'] is True
        assert get.call_count == 3
        assert [c[0][0] for c in no_sleep.call_args_list] == [1.0, 2.0]

    def test_all_retries_fail(self, client, no_sleep):
        with patch('availability_client.requests.get', side_effect=requests.Timeout("slow")) as get:
            data = client.get_availability_data()

        assert data['success'] is False
        assert data['fallback'] is True
        assert 'slow' in data['error']
        assert get.call_count == 3
        assert no_sleep.call_count == 2

    def test_failure_not_cached(self, client, no_sleep):
        with patch('availability_client.requests.get', side_effect=requests.ConnectionError("down")):
            client.get_availability_data()
        with patch('availability_client.requests.get', return_value=ok_response(PEAKS_PAYLOAD)):
            assert client.get_availability_data()['cached'] is False

    def test_bad_json_counts_as_failure(self, client, no_sleep):
        response = ok_response(None)
        response.json.side_effect = ValueError("no json")
        with patch('availability_client.requests.get', return_value=response):
            data = client.get_availability_data()
        assert data['success'] is False

    def test_nested_payload_and_malformed_entries(self, client, no_sleep):
        payload = {'success': True, 'data': {'peaks': [
            {'hour': 9, 'averageScore': 80, 'confidence': 0.5},
            {'hour': 30, 'averageScore': 80},
            {'averageScore': 10},
            "junk",
        ]}}
        with patch('availability_client.requests.get', return_value=ok_response(payload)):
            data = client.get_availability_data()
        assert [p.hour for p in data['peaks']] == [9]

    def test_endpoint_reported_failure(self, client, no_sleep):
        payload = {'success': False, 'error': "maintenance"}
        with patch('availability_client.requests.get', return_value=ok_response(payload)):
            data = client.get_availability_data()
        assert data == {'success': False, 'error': "maintenance", 'fallback': True}

    def test_from_config(self, tmp_path):
        from config_manager import ConfigManager
        config = ConfigManager(tmp_path / "settings.ini")
        config.save_setting('API', 'api_base', "https://other.test")
        config.save_setting('API', 'max_retries', 5)

        client = AvailabilityClient.from_config(config)
        assert client.api_base == "https://other.test"
        assert client.max_retries == 5
        assert client.cache_ttl == 300


@pytest.fixture
def loaded_client(client):
    with patch('availability_client.requests.get', return_value=ok_response(PEAKS_PAYLOAD)):
        client.get_availability_data()
    return client


@pytest.fixture
def offline_client(no_sleep):
    client = AvailabilityClient(max_retries=1)
    with patch('availability_client.requests.get', side_effect=requests.ConnectionError("down")):
        yield client


class TestShouldInteract:

    @pytest.mark.parametrize("complexity,proceed", [
        ('simple', True), ('normal', True), ('complex', True), ('critical', True),
    ])
    def test_strong_hour(self, loaded_client, complexity, proceed):
        result = loaded_client.should_interact(complexity, now=at_hour(9))
        assert result['proceed'] is proceed

    @pytest.mark.parametrize("complexity,proceed", [
        ('simple', True), ('normal', False), ('complex', False), ('bogus', False),
    ])
    def test_weak_hour(self, loaded_client, complexity, proceed):
        result = loaded_client.should_interact(complexity, now=at_hour(12))
        assert result['proceed'] is proceed
        assert result['current_score'] == 40

    def test_unknown_complexity_uses_normal_threshold(self, loaded_client):
        assert loaded_client.should_interact('bogus', now=at_hour(12))['threshold'] == 45

    def test_no_data_for_hour_proceeds(self, loaded_client):
        result = loaded_client.should_interact(now=at_hour(4))
        assert result['proceed'] is True
        assert "current hour" in result['reason']

    def test_no_data_proceeds(self, offline_client):
        assert offline_client.should_interact(now=at_hour(9))['proceed'] is True


class TestOptimalTiming:

    def test_skips_low_confidence_peaks(self, loaded_client):
        result = loaded_client.get_optimal_timing(now=at_hour(10))
        # 15:00 ranks higher but only 17:00 is confident enough
        assert result['optimal_time'] == "17:00 - 18:00"
        assert result['hours_until'] == 7
        assert result['recommendation'] == "Current time is acceptable"
        assert result['is_now_optimal'] is False
        assert len(result['all_peaks']) == 3

    def test_wraps_to_top_peak(self, loaded_client):
        result = loaded_client.get_optimal_timing(now=at_hour(22))
        assert result['optimal_time'] == "09:00 - 10:00"
        assert result['hours_until'] == 11

    def test_soon_peak_recommends_waiting(self, loaded_client):
        result = loaded_client.get_optimal_timing(now=at_hour(16))
        assert result['hours_until'] == 1
        assert result['recommendation'] == "Wait 1 hour(s) for optimal time"

    def test_now_optimal(self, loaded_client):
        assert loaded_client.get_optimal_timing(now=at_hour(9))['is_now_optimal'] is True

    def test_empty_peaks(self, client, no_sleep):
        with patch('availability_client.requests.get', return_value=ok_response({'peaks': []})):
            result = client.get_optimal_timing(now=at_hour(9))
        assert result['error'] == "No peak data available"

    def test_offline(self, offline_client):
        assert offline_client.get_optimal_timing()['error'] == "Unable to determine optimal timing"


class TestStatusAndForecast:

    @pytest.mark.parametrize("score,category", [
        (95, 'excellent'), (80, 'excellent'), (65, 'high'), (45, 'moderate'), (25, 'low'), (24.9, 'very_low'),
    ])
    def test_categories(self, score, category):
        assert categorize_availability(score) == category

    def test_current_status(self, loaded_client):
        status = loaded_client.get_current_status(now=at_hour(9))
        assert status['status'] == 'excellent'
        assert status['time_range'] == "09:00 - 10:00"

        status = loaded_client.get_current_status(now=at_hour(12))
        assert status['status'] == 'low'
        assert status['message'] == "Low availability - consider simple interactions only"

    def test_current_status_unknown(self, loaded_client, offline_client):
        assert loaded_client.get_current_status(now=at_hour(4))['status'] == 'unknown'
        assert offline_client.get_current_status()['status'] == 'unknown'

    def test_forecast_order(self, loaded_client):
        result = loaded_client.get_forecast(now=at_hour(12))
        hours = [f['hour'] for f in result['forecast']]
        assert hours == [12, 15, 17, 2, 9]
        assert result['forecast'][0]['hours_from_now'] == 0
        assert [f['hour'] for f in result['best_times']] == [15, 9]
        assert [f['hour'] for f in result['avoid_times']] == [2]

    def test_forecast_offline(self, offline_client):
        assert 'error' in offline_client.get_forecast()


class TestSimpleRecommendation:

    def test_proceed(self, loaded_client):
        result = loaded_client.get_simple_recommendation('Tester', now=at_hour(9))
        assert result['action'] == 'proceed'
        assert result['ai_system'] == 'Tester'

    def test_defer_names_better_time(self, loaded_client):
        result = loaded_client.get_simple_recommendation(now=at_hour(2))
        assert result['action'] == 'defer'
        assert "09:00 - 10:00" in result['recommendation']

    def test_unknown_proceeds(self, offline_client):
        result = offline_client.get_simple_recommendation(now=at_hour(9))
        assert result['action'] == 'proceed'
        assert result['current_status']['status'] == 'unknown'
