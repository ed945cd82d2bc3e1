# apps/sync/transport.py

import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from apps.core.events import dumps_frame

logger = logging.getLogger(__name__)

# Motivos de desconexão (mesmo vocabulário do socket.io)
REASON_TRANSPORT_CLOSE = 'transport close'
REASON_TRANSPORT_ERROR = 'transport error'
REASON_CLIENT_DISCONNECT = 'io client disconnect'


class TransportError(Exception):
    """Falha ao conectar ou enviar"""


class TransportClosed(TransportError):
    """Conexão encerrada; reason descreve o motivo"""

    def __init__(self, reason: str = REASON_TRANSPORT_CLOSE):
        super().__init__(reason)
        self.reason = reason


class Transport:
    """
    Interface usada pelo SyncChannel

    Uma instância por tentativa de conexão.
    """

    async def connect(self, url: str) -> None:
        raise NotImplementedError

    async def send(self, frame: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def receive(self) -> Dict[str, Any]:
        """Próximo frame recebido; TransportClosed quando a conexão cai"""
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError


class AiohttpTransport(Transport):
    """
    Transporte WebSocket sobre aiohttp

    Frames são objetos JSON em mensagens de texto.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None, heartbeat: Optional[float] = None):
        self._session = session
        self._owns_session = session is None
        self._heartbeat = heartbeat
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None

    async def connect(self, url: str) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession()

        try:
            self._ws = await self._session.ws_connect(url, heartbeat=self._heartbeat)
        except (aiohttp.ClientError, OSError) as e:
            await self._close_session()
            raise TransportError(str(e) or type(e).__name__) from e

    async def send(self, frame: Dict[str, Any]) -> None:
        if self._ws is None or self._ws.closed:
            raise TransportClosed(REASON_TRANSPORT_CLOSE)
        try:
            await self._ws.send_str(dumps_frame(frame))
        except (aiohttp.ClientError, ConnectionResetError) as e:
            raise TransportError(str(e)) from e

    async def receive(self) -> Dict[str, Any]:
        if self._ws is None:
            raise TransportClosed(REASON_TRANSPORT_CLOSE)

        while True:
            msg = await self._ws.receive()

            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    frame = json.loads(msg.data)
                except ValueError:
                    logger.warning("⚠️ Frame JSON inválido recebido do relay, ignorando")
                    continue
                if isinstance(frame, dict):
                    return frame
                logger.warning("⚠️ Frame sem formato de objeto recebido do relay, ignorando")

            elif msg.type == aiohttp.WSMsgType.ERROR:
                raise TransportClosed(REASON_TRANSPORT_ERROR)

            elif msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
                raise TransportClosed(REASON_TRANSPORT_CLOSE)

    async def close(self) -> None:
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        self._ws = None
        await self._close_session()

    async def _close_session(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
