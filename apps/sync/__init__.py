# apps/sync/__init__.py

"""
Sync - Cliente do relay Kanban

Não é uma app Django: é a biblioteca que a interface usa para falar com o
relay (SyncChannel), com fila offline, reconexão e medição de latência.
"""

from .channel import ChannelOptions, SyncChannel, backoff_delay
from .health import ConnectionHealth, ConnectionState, connection_quality
from .state import BoardState
from .transport import AiohttpTransport, Transport, TransportClosed, TransportError

__all__ = [
    'AiohttpTransport',
    'BoardState',
    'ChannelOptions',
    'ConnectionHealth',
    'ConnectionState',
    'SyncChannel',
    'Transport',
    'TransportClosed',
    'TransportError',
    'backoff_delay',
    'connection_quality',
]
