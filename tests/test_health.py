# tests/test_health.py

import pytest
from django.test import override_settings

from apps.sync.channel import ChannelOptions, backoff_delay
from apps.sync.health import (
    TRANSITIONS,
    ConnectionHealth,
    ConnectionState,
    connection_quality,
)


@pytest.mark.parametrize('latency, quality', [
    (10, 'excellent'),
    (49, 'excellent'),
    (50, 'good'),
    (100, 'good'),
    (149, 'good'),
    (150, 'fair'),
    (200, 'fair'),
    (300, 'poor'),
    (500, 'poor'),
])
def test_connection_quality(latency, quality):
    assert connection_quality(latency) == quality


def test_health_starts_unknown():
    health = ConnectionHealth()

    assert health.as_dict() == {
        'is_connected': False,
        'last_error': None,
        'reconnect_attempts': 0,
        'latency': None,
        'connection_quality': 'unknown',
        'queued_messages': 0,
    }


def test_record_latency_updates_quality():
    health = ConnectionHealth()

    health.record_latency(120)

    assert health.latency == 120
    assert health.connection_quality == 'good'


def test_disconnected_only_goes_to_connecting():
    assert TRANSITIONS[ConnectionState.DISCONNECTED] == {ConnectionState.CONNECTING}
    assert ConnectionState.CONNECTED not in TRANSITIONS[ConnectionState.RECONNECTING]


def test_backoff_doubles_until_the_cap():
    options = ChannelOptions(reconnection_delay=1.0, reconnection_delay_max=5.0, randomization_factor=0)

    assert [backoff_delay(attempt, options) for attempt in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]


def test_backoff_jitter_stays_within_factor():
    options = ChannelOptions(reconnection_delay=1.0, reconnection_delay_max=100.0, randomization_factor=0.5)

    menor = backoff_delay(2, options, rand=lambda: 0.0)
    assert menor == 4.0

    valores = iter([1.0, 0.0])
    assert backoff_delay(2, options, rand=lambda: next(valores)) == 2.0

    valores = iter([1.0, 0.9])
    assert backoff_delay(2, options, rand=lambda: next(valores)) == 6.0


def test_backoff_never_exceeds_max_with_jitter():
    options = ChannelOptions(reconnection_delay=1.0, reconnection_delay_max=5.0, randomization_factor=0.5)

    assert backoff_delay(3, options, rand=lambda: 0.99) <= 5.0


def test_options_from_settings():
    client = {
        'url': 'ws://relay:4000/ws/board/',
        'reconnection_attempts': 3,
        'desconhecida': True,
    }
    with override_settings(KANBAN_CLIENT=client):
        options = ChannelOptions.from_settings(url=None, ping_interval=1.0)

    assert options.url == 'ws://relay:4000/ws/board/'
    assert options.reconnection_attempts == 3
    assert options.ping_interval == 1.0
    assert options.reconnection_delay == 1.0
