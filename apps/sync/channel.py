# apps/sync/channel.py

import asyncio
import contextlib
import logging
import random
from collections import deque
from dataclasses import dataclass, fields
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from apps.core import events
from apps.core.events import encode_frame
from .health import TRANSITIONS, ConnectionHealth, ConnectionState, InvalidTransition
from .transport import (
    REASON_CLIENT_DISCONNECT,
    REASON_TRANSPORT_ERROR,
    AiohttpTransport,
    Transport,
    TransportClosed,
    TransportError,
)

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str, Any], None]
StateCallback = Callable[[ConnectionState, ConnectionState], None]


@dataclass
class ChannelOptions:
    """Parâmetros de conexão do cliente (tempos em segundos)"""

    url: str = 'ws://localhost:4000/ws/board/'
    auto_connect: bool = True
    reconnection_attempts: int = 10
    reconnection_delay: float = 1.0
    reconnection_delay_max: float = 5.0
    randomization_factor: float = 0.5
    timeout: float = 10.0
    ping_interval: float = 5.0
    manual_reconnect_delay: float = 0.5

    @classmethod
    def from_settings(cls, **overrides) -> 'ChannelOptions':
        """Lê settings.KANBAN_CLIENT; overrides com valor None são ignorados"""
        from django.conf import settings

        conhecidos = {f.name for f in fields(cls)}
        valores = {
            chave: valor
            for chave, valor in getattr(settings, 'KANBAN_CLIENT', {}).items()
            if chave in conhecidos
        }
        valores.update({chave: valor for chave, valor in overrides.items() if valor is not None})
        return cls(**valores)


def backoff_delay(attempt: int, options: ChannelOptions, rand: Callable[[], float] = random.random) -> float:
    """
    Espera antes de uma nova tentativa, como no cliente socket.io:
    reconnection_delay * 2^attempt com jitter, limitada a reconnection_delay_max
    """
    delay = options.reconnection_delay * (2 ** min(attempt, 31))
    if options.randomization_factor:
        desvio = rand() * options.randomization_factor * delay
        delay = delay - desvio if rand() < 0.5 else delay + desvio
    return min(delay, options.reconnection_delay_max)


class SyncChannel:
    """
    Conexão de um cliente com o relay do quadro

    Máquina de estados:
        disconnected -> connecting -> connected -> reconnecting -> connecting ...
        qualquer estado -> disconnected (close() ou tentativas esgotadas)

    - emit() envia na hora quando conectado; senão guarda numa fila FIFO
      que é esvaziada na ordem original assim que a conexão volta
    - mede a latência com ping/ack ao conectar e a cada ping_interval
    - erros ficam no health (last_error), nunca sobem para quem chamou

    Uso:
        async with SyncChannel(on_message, ChannelOptions(url=...)) as channel:
            channel.emit('task:create', {'title': 'X'})
    """

    def __init__(
            self,
            on_message: MessageCallback,
            options: Optional[ChannelOptions] = None,
            transport_factory: Optional[Callable[[], Transport]] = None,
            on_state_change: Optional[StateCallback] = None,
            clock: Optional[Callable[[], float]] = None,
    ):
        self.options = options or ChannelOptions()
        self.health = ConnectionHealth()
        self.state = ConnectionState.DISCONNECTED

        self._on_message = on_message
        self._on_state_change = on_state_change
        self._transport_factory = transport_factory or AiohttpTransport
        self._clock = clock

        self._queue: Deque[Tuple[str, Any]] = deque()
        self._outbox: Optional[asyncio.Queue] = None
        self._inflight: Optional[Dict[str, Any]] = None
        self._transport: Optional[Transport] = None

        self._run_task: Optional[asyncio.Task] = None
        self._writer_task: Optional[asyncio.Task] = None
        self._latency_task: Optional[asyncio.Task] = None
        self._restart_task: Optional[asyncio.Task] = None

        self._pending_pings: Dict[int, float] = {}
        self._ack_seq = 0
        self._closing = False

    async def __aenter__(self):
        if self.options.auto_connect:
            self.open()
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    # === Estado público ===

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def queued(self) -> List[Tuple[str, Any]]:
        return list(self._queue)

    @property
    def latency_timer_active(self) -> bool:
        return self._latency_task is not None and not self._latency_task.done()

    # === Operações ===

    def open(self) -> None:
        """Inicia o laço de conexão (precisa de um event loop rodando)"""
        self._closing = False
        if self._run_task is None or self._run_task.done():
            self._run_task = asyncio.get_running_loop().create_task(self._run())

    async def close(self) -> None:
        """Encerra a conexão; o canal fica em disconnected"""
        self._closing = True

        if self._restart_task is not None and not self._restart_task.done():
            self._restart_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._restart_task
        self._restart_task = None

        await self._stop_run()

    def emit(self, event: str, data: Any = None) -> bool:
        """
        Envia um evento para o relay

        Returns:
            True se foi enviado; False se ficou na fila (desconectado)
        """
        if self.is_connected and self._outbox is not None:
            self._outbox.put_nowait(encode_frame(event, data))
            return True

        self._queue.append((event, data))
        self.health.queued_messages = len(self._queue)
        self.health.last_error = f'Message queued - disconnected ({len(self._queue)} queued)'
        logger.debug(f"📥 {event} enfileirado ({len(self._queue)} na fila)")
        return False

    def reconnect(self) -> bool:
        """
        Derruba a conexão atual e tenta de novo após manual_reconnect_delay,
        ignorando o estado do backoff

        Returns:
            False se o canal foi fechado ou não há event loop rodando
        """
        if self._closing:
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("⚠️ reconnect() chamado sem event loop rodando")
            return False

        if self._restart_task is None or self._restart_task.done():
            self._restart_task = loop.create_task(self._restart())
        return True

    async def _restart(self) -> None:
        await self._stop_run()
        self.health.reconnect_attempts = 0
        await asyncio.sleep(self.options.manual_reconnect_delay)
        if not self._closing:
            self.open()

    async def _stop_run(self) -> None:
        task, self._run_task = self._run_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # === Máquina de estados ===

    def _set_state(self, new_state: ConnectionState) -> None:
        if new_state is self.state:
            return
        if new_state not in TRANSITIONS[self.state]:
            raise InvalidTransition(f'{self.state.value} -> {new_state.value}')

        old_state, self.state = self.state, new_state
        logger.debug(f"🔄 {old_state.value} -> {new_state.value}")

        if self._on_state_change is not None:
            try:
                self._on_state_change(old_state, new_state)
            except Exception:
                logger.exception("❌ Erro no callback de mudança de estado")

    async def _run(self) -> None:
        try:
            while True:
                self._set_state(ConnectionState.CONNECTING)
                transport = self._transport = self._transport_factory()

                try:
                    await asyncio.wait_for(transport.connect(self.options.url), self.options.timeout)
                except (TransportError, asyncio.TimeoutError) as e:
                    self._transport = None
                    await self._discard(transport)
                    if not self._connect_failed(str(e) or 'timeout'):
                        self._set_state(ConnectionState.DISCONNECTED)
                        return
                    self._set_state(ConnectionState.RECONNECTING)
                    await asyncio.sleep(backoff_delay(self.health.reconnect_attempts - 1, self.options))
                    continue

                self._enter_connected()

                reason = await self._read_until_closed(transport)

                self._leave_connected(reason)
                self._set_state(ConnectionState.RECONNECTING)
                self._transport = None
                await self._discard(transport)
                await asyncio.sleep(backoff_delay(0, self.options))
        finally:
            if self.state is ConnectionState.CONNECTED:
                self._leave_connected(REASON_CLIENT_DISCONNECT)
            if self._transport is not None:
                transport, self._transport = self._transport, None
                await self._discard(transport)
            self._set_state(ConnectionState.DISCONNECTED)

    def _connect_failed(self, erro: str) -> bool:
        """
        Registra a falha de conexão

        Returns:
            False quando as tentativas se esgotaram
        """
        self.health.last_error = erro
        self.health.reconnect_attempts += 1
        logger.warning(
            f"❌ Falha ao conectar em {self.options.url}: {erro} "
            f"(tentativa {self.health.reconnect_attempts}/{self.options.reconnection_attempts})"
        )

        if self.health.reconnect_attempts >= self.options.reconnection_attempts:
            self.health.last_error = f'Reconnection failed after {self.health.reconnect_attempts} attempts'
            logger.error(f"❌ {self.health.last_error}")
            return False
        return True

    def _enter_connected(self) -> None:
        self._set_state(ConnectionState.CONNECTED)
        self.health.is_connected = True
        self.health.last_error = None
        self.health.reconnect_attempts = 0

        loop = asyncio.get_running_loop()
        self._outbox = asyncio.Queue()
        self._inflight = None
        self._pending_pings.clear()
        self._writer_task = loop.create_task(self._write_loop(self._transport, self._outbox))

        # Mede a latência na hora e depois a cada ping_interval
        self._send_ping()
        self._latency_task = loop.create_task(self._latency_loop())

        self._flush_queue()
        logger.info(f"✅ Conectado ao relay {self.options.url}")

    def _leave_connected(self, reason: str) -> None:
        for task in (self._latency_task, self._writer_task):
            if task is not None:
                task.cancel()
        self._latency_task = None
        self._writer_task = None

        # O frame que estava sendo enviado vem antes dos que ficaram no outbox
        pendentes = [self._inflight] if self._inflight is not None else []
        if self._outbox is not None:
            pendentes += self._drain(self._outbox)
        self._requeue(pendentes)
        self._inflight = None
        self._outbox = None

        self._pending_pings.clear()
        self.health.is_connected = False
        self.health.last_error = f'Disconnected: {reason}'
        logger.warning(f"🔌 Desconectado do relay: {reason}")

    # === Fila de saída ===

    def _flush_queue(self) -> None:
        pendentes = list(self._queue)
        self._queue.clear()

        for event, data in pendentes:
            self._outbox.put_nowait(encode_frame(event, data))

        self.health.queued_messages = 0
        if pendentes:
            self.health.last_error = None
            logger.info(f"📤 {len(pendentes)} mensagem(ns) da fila reenviada(s)")

    def _requeue(self, frames: List[Dict[str, Any]]) -> None:
        """Devolve frames não enviados para o início da fila, na mesma ordem"""
        pares = [(frame['event'], frame.get('data')) for frame in frames if frame['event'] != events.PING]
        self._queue.extendleft(reversed(pares))
        self.health.queued_messages = len(self._queue)

    @staticmethod
    def _drain(outbox: asyncio.Queue) -> List[Dict[str, Any]]:
        frames = []
        while not outbox.empty():
            frames.append(outbox.get_nowait())
        return frames

    async def _write_loop(self, transport: Transport, outbox: asyncio.Queue) -> None:
        while True:
            frame = await outbox.get()
            self._inflight = frame
            try:
                await transport.send(frame)
            except TransportError as e:
                logger.warning(f"⚠️ Falha ao enviar {frame['event']}: {e}")
                self._inflight = None
                # Sem outbox, emit() passa a enfileirar atrás dos frames devolvidos
                self._outbox = None
                self._requeue([frame] + self._drain(outbox))
                # Fechar o transporte faz o laço de leitura perceber a queda
                await self._discard(transport)
                return
            self._inflight = None

    # === Leitura ===

    async def _read_until_closed(self, transport: Transport) -> str:
        while True:
            try:
                frame = await transport.receive()
            except TransportClosed as e:
                return e.reason
            except TransportError:
                return REASON_TRANSPORT_ERROR
            self._dispatch(frame)

    def _dispatch(self, frame: Dict[str, Any]) -> None:
        event = frame.get('event')

        if event == events.ACK:
            self._complete_ping(frame.get('ack'))
            return

        if not isinstance(event, str):
            logger.warning(f"⚠️ Frame sem evento ignorado: {frame!r}")
            return

        try:
            self._on_message(event, frame.get('data'))
        except Exception as e:
            logger.exception(f"❌ Erro no handler de mensagens ({event})")
            self.health.last_error = f'Message handler error: {e}'

    # === Latência ===

    def _now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return asyncio.get_running_loop().time()

    async def _latency_loop(self) -> None:
        while True:
            await asyncio.sleep(self.options.ping_interval)
            self._send_ping()

    def _send_ping(self) -> None:
        if self._outbox is None:
            return
        agora = self._now()

        # Pings sem resposta há mais de um timeout são descartados
        limite = agora - max(self.options.timeout, self.options.ping_interval)
        for ack, enviado_em in list(self._pending_pings.items()):
            if enviado_em < limite:
                del self._pending_pings[ack]

        self._ack_seq += 1
        self._pending_pings[self._ack_seq] = agora
        self._outbox.put_nowait(encode_frame(events.PING, None, ack=self._ack_seq))

    def _complete_ping(self, ack: Any) -> None:
        if not isinstance(ack, int):
            return
        enviado_em = self._pending_pings.pop(ack, None)
        if enviado_em is None:
            return
        self.health.record_latency(round((self._now() - enviado_em) * 1000))

    async def _discard(self, transport: Transport) -> None:
        try:
            await transport.close()
        except (TransportError, OSError) as e:
            logger.debug(f"Erro ao fechar transporte: {e}")
