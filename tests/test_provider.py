#!/usr/bin/env python3
"""
Test suite for iptvcore/provider.py: session cache, auth, preload, URLs
"""

import pytest
import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

sys.path.insert(0, str(Path(__file__).parent.parent))

from iptvcore.errors import AuthenticationError, FatalResponseError
from iptvcore.provider import ProviderClient


@pytest.fixture
def transport():
    transport = MagicMock()
    transport.request.return_value = []
    return transport


@pytest.fixture
def client(transport):
    return ProviderClient('http://provider.example:8080/', 'user', 'pass',
                          transport=transport, clock=lambda: 1_700_000_000)


def _actions(transport):
    return [call.args[1].get('action') for call in transport.request.call_args_list]


class TestCatalogCache:
    """Keyed by (kind, category id or '_all'), never invalidated"""

    def test_same_category_fetched_once(self, client, transport):
        transport.request.return_value = [{'stream_id': 1}]
        first = client.get_vod_streams(category_id='5')
        second = client.get_vod_streams(category_id='5')
        assert first == second == [{'stream_id': 1}]
        assert transport.request.call_count == 1

    def test_different_category_fetched_separately(self, client, transport):
        client.get_vod_streams(category_id='5')
        client.get_vod_streams(category_id='6')
        client.get_vod_streams()
        assert transport.request.call_count == 3
        assert ('vod_streams', '5') in client.cache
        assert ('vod_streams', '6') in client.cache
        assert ('vod_streams', '_all') in client.cache

    def test_request_parameters(self, client, transport):
        client.get_vod_streams(category_id='5')
        url, params = transport.request.call_args.args
        assert url == 'http://provider.example:8080/player_api.php'
        assert params == {'username': 'user', 'password': 'pass',
                          'action': 'get_vod_streams', 'category_id': '5'}

    def test_all_omits_category_id(self, client, transport):
        client.get_series()
        _, params = transport.request.call_args.args
        assert 'category_id' not in params

    def test_empty_payload_is_cached(self, client, transport):
        transport.request.return_value = []
        client.get_live_categories()
        client.get_live_categories()
        assert transport.request.call_count == 1

    def test_kinds_do_not_collide(self, client, transport):
        client.get_vod_categories()
        client.get_series_categories()
        client.get_live_categories()
        assert _actions(transport) == [
            'get_vod_categories', 'get_series_categories', 'get_live_categories'
        ]

    def test_errors_are_not_cached(self, client, transport):
        transport.request.side_effect = [FatalResponseError('HTTP 500', status_code=500), []]
        with pytest.raises(FatalResponseError):
            client.get_vod_streams()
        assert client.get_vod_streams() == []
        assert transport.request.call_count == 2

    def test_no_invalidation(self, client, transport):
        """A cached payload is served even after the provider changes"""
        transport.request.return_value = [{'stream_id': 1}]
        client.get_live_streams()
        transport.request.return_value = [{'stream_id': 2}]
        assert client.get_live_streams() == [{'stream_id': 1}]

    def test_no_single_flight(self, transport):
        """Interleaved misses for one key both hit the network; last write wins"""
        client = ProviderClient('http://p', 'u', 'p', transport=transport)
        responses = iter([['first'], ['second']])

        def nested_request(url, params):
            payload = next(responses)
            if payload == ['first']:
                # A second caller asks for the same key before the first stores it
                client.get_vod_streams()
            return payload

        transport.request.side_effect = nested_request
        assert client.get_vod_streams() == ['first']
        assert transport.request.call_count == 2
        assert client.cache[('vod_streams', '_all')] == ['first']

    def test_fetch_resource(self, client, transport):
        client.fetch_resource('series', '9')
        assert ('series', '9') in client.cache
        with pytest.raises(ValueError):
            client.fetch_resource('radio')

    def test_cache_stats(self, client):
        client.get_vod_streams()
        client.get_vod_streams()
        client.get_vod_streams('2')
        stats = client.get_cache_stats()
        assert stats['hits'] == 1
        assert stats['misses'] == 2
        assert stats['cache_size'] == 2
        assert round(stats['hit_rate']) == 33

    def test_item_lookups_not_cached(self, client, transport):
        client.get_series_info(42)
        client.get_series_info(42)
        client.get_vod_info(7)
        client.get_epg(3)
        client.get_short_epg(3)
        assert _actions(transport) == [
            'get_series_info', 'get_series_info', 'get_vod_info',
            'get_simple_data_table', 'get_short_epg',
        ]
        assert transport.request.call_args.args[1]['limit'] == 4
        assert client.cache == {}


class TestAuthentication:
    """Credential exchange and clock offset"""

    def test_offset_from_server_timestamp(self, client, transport):
        transport.request.return_value = {
            'user_info': {'username': 'user', 'status': 'Active'},
            'server_info': {'timestamp_now': 1_700_000_120},
        }
        client.authenticate()
        assert client.server_time_offset == 120
        assert client.server_time() == 1_700_000_120
        assert 'action' not in transport.request.call_args.args[1]

    def test_missing_user_info_is_fatal(self, client, transport):
        transport.request.return_value = {'server_info': {}}
        with pytest.raises(AuthenticationError):
            client.authenticate()
        assert client.auth_data is None

    def test_non_dict_response_is_fatal(self, client, transport):
        transport.request.return_value = []
        with pytest.raises(AuthenticationError):
            client.authenticate()

    def test_transport_errors_propagate(self, client, transport):
        transport.request.side_effect = FatalResponseError('HTTP 403', status_code=403)
        with pytest.raises(FatalResponseError):
            client.authenticate()

    def test_no_timestamp_means_zero_offset(self, client, transport):
        transport.request.return_value = {'user_info': {'username': 'user'}}
        client.authenticate()
        assert client.server_time_offset == 0


class TestPreload:
    """Cooperative preload with a distinct success/failure result"""

    def test_order_and_progress(self, client, transport):
        progress = []
        result = client.preload_cache(lambda *args: progress.append(args))
        assert result.ok
        assert result.completed == result.total == 3
        assert progress == [(1, 3, 'TV'), (2, 3, 'VOD'), (3, 3, 'Series'), (0, 0, None)]
        assert _actions(transport) == ['get_live_streams', 'get_vod_streams', 'get_series']

    def test_failure_still_sends_sentinel(self, client, transport):
        error = FatalResponseError('HTTP 500', status_code=500)
        transport.request.side_effect = [[], error]
        progress = []
        result = client.preload_cache(lambda *args: progress.append(args))
        assert not result.ok
        assert result.completed == 1
        assert result.error is error
        assert progress[-1] == (0, 0, None)

    def test_iter_preload_yields_around_each_fetch(self, client, transport):
        events = []
        for event in client.iter_preload():
            events.append((event.label, event.done, transport.request.call_count))
        assert events == [
            ('TV', False, 0), ('TV', True, 1),
            ('VOD', False, 1), ('VOD', True, 2),
            ('Series', False, 2), ('Series', True, 3),
        ]

    def test_preloaded_catalogs_served_from_cache(self, client, transport):
        client.preload_cache()
        client.get_live_streams()
        client.get_vod_streams()
        client.get_series()
        assert transport.request.call_count == 3


class TestStreamUrls:
    """Deterministic URL templates"""

    def test_stream_urls(self, client):
        assert client.get_live_stream_url(10) == 'http://provider.example:8080/live/user/pass/10.ts'
        assert client.get_vod_stream_url(11, 'mp4') == 'http://provider.example:8080/movie/user/pass/11.mp4'
        assert client.get_series_stream_url(12) == 'http://provider.example:8080/series/user/pass/12.mkv'

    def test_catchup_format_0(self, client):
        start = int(datetime(2024, 3, 1, 20, 30, tzinfo=timezone.utc).timestamp())
        url = client.get_catchup_url(10, start, 90, format=0, tz=timezone.utc)
        assert url == (
            'http://provider.example:8080/streaming/timeshift.php?username=user&password=pass'
            '&stream=10&start=2024-03-01:20-30&duration=90'
        )

    def test_catchup_format_1(self, client):
        url = client.get_catchup_url(10, 1_709_325_000, 90, format=1)
        assert url == 'http://provider.example:8080/timeshift/user/pass/90/1709325000/10.ts'

    def test_catchup_format_2(self, client):
        url = client.get_catchup_url(10, 1_709_325_000, 60, format=2)
        assert url == 'http://provider.example:8080/live/user/pass/10.ts?utc=1709325000&lutc=1709328600'

    def test_catchup_format_3(self, client):
        url = client.get_catchup_url(10, 1_709_325_000, 60, format=3)
        assert url == 'http://provider.example:8080/user/pass/10?utc=1709325000&lutc=1709328600'

    def test_unknown_format_uses_timeshift_php(self, client):
        url = client.get_catchup_url(10, 0, 30, format=9, tz=timezone.utc)
        assert 'timeshift.php' in url
        assert 'start=1970-01-01:00-00' in url
