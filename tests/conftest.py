# tests/conftest.py

import os

import django

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.test')
django.setup()

import pytest
import pytest_asyncio
from channels.layers import channel_layers
from django.apps import apps

from apps.board.relay import BoardRelay
from apps.core.store import TaskIdGenerator, TaskStore

# Primeiro id gerado nos testes: 1700000000000
FIXED_NOW = 1_700_000_000.0


@pytest.fixture(autouse=True)
def fresh_channel_layer():
    """InMemoryChannelLayer novo por teste (cada teste tem seu event loop)"""
    channel_layers.backends = {}
    yield
    channel_layers.backends = {}


@pytest.fixture
def store():
    return TaskStore()


@pytest_asyncio.fixture
async def relay(store):
    relay = BoardRelay(store, id_factory=TaskIdGenerator(clock=lambda: FIXED_NOW))
    yield relay
    await relay.close()


@pytest_asyncio.fixture
async def app_relay(relay):
    """Coloca o relay do teste no lugar do relay do processo (views)"""
    config = apps.get_app_config('board')
    original, config.relay = config.relay, relay
    yield relay
    config.relay = original
