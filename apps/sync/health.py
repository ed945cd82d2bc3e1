# apps/sync/health.py

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional


class ConnectionState(str, Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    RECONNECTING = 'reconnecting'


# Transições permitidas da máquina de estados do SyncChannel
TRANSITIONS = {
    ConnectionState.DISCONNECTED: {ConnectionState.CONNECTING},
    ConnectionState.CONNECTING: {
        ConnectionState.CONNECTED,
        ConnectionState.RECONNECTING,
        ConnectionState.DISCONNECTED,
    },
    ConnectionState.CONNECTED: {ConnectionState.RECONNECTING, ConnectionState.DISCONNECTED},
    ConnectionState.RECONNECTING: {ConnectionState.CONNECTING, ConnectionState.DISCONNECTED},
}


class InvalidTransition(RuntimeError):
    pass


# Limites em ms de cada faixa de qualidade
QUALITY_THRESHOLDS = (
    (50, 'excellent'),
    (150, 'good'),
    (300, 'fair'),
)


def connection_quality(latency_ms: float) -> str:
    """
    Classifica a latência medida: excellent < 50ms, good < 150ms,
    fair < 300ms, senão poor
    """
    for limite, qualidade in QUALITY_THRESHOLDS:
        if latency_ms < limite:
            return qualidade
    return 'poor'


@dataclass
class ConnectionHealth:
    """
    Telemetria da conexão exibida pela interface

    Uma conexão bem-sucedida limpa last_error e zera reconnect_attempts;
    latency e connection_quality mantêm a última medição até o próximo ack.
    """

    is_connected: bool = False
    last_error: Optional[str] = None
    reconnect_attempts: int = 0
    latency: Optional[int] = None
    connection_quality: str = 'unknown'
    queued_messages: int = 0

    def record_latency(self, latency_ms: int) -> None:
        self.latency = latency_ms
        self.connection_quality = connection_quality(latency_ms)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
