# tests/fakes.py

import asyncio
import json
from typing import Any, Dict, List, Optional

from channels.testing import WebsocketCommunicator

from apps.core import events
from apps.sync.transport import Transport, TransportClosed, TransportError


async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.005) -> None:
    """Espera a condição ficar verdadeira sem travar o event loop"""
    loop = asyncio.get_running_loop()
    limite = loop.time() + timeout
    while not predicate():
        if loop.time() > limite:
            raise AssertionError('condição não foi atingida a tempo')
        await asyncio.sleep(interval)


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeTransport(Transport):
    """
    Transporte em memória

    - guarda os frames enviados
    - responde pings com ack (avançando o FakeClock, se houver)
    - push()/drop() simulam mensagens do relay e queda da rede
    """

    def __init__(self, clock: Optional[FakeClock] = None, ack_delay: float = 0.0, fail_connect: Optional[str] = None):
        self.clock = clock
        self.ack_delay = ack_delay
        self.fail_connect = fail_connect
        self.fail_sends = 0
        self.sent: List[Dict[str, Any]] = []
        self.inbox: asyncio.Queue = asyncio.Queue()
        self.connected = False
        self.closed = False

    async def connect(self, url: str) -> None:
        if self.fail_connect:
            raise TransportError(self.fail_connect)
        self.url = url
        self.connected = True

    async def send(self, frame: Dict[str, Any]) -> None:
        if self.closed:
            raise TransportClosed()
        if self.fail_sends:
            self.fail_sends -= 1
            raise TransportError('write EPIPE')

        self.sent.append(frame)
        if frame['event'] == events.PING:
            if self.clock is not None:
                self.clock.now += self.ack_delay
            self.inbox.put_nowait({'event': events.ACK, 'ack': frame['ack']})

    async def receive(self) -> Dict[str, Any]:
        item = await self.inbox.get()
        if isinstance(item, TransportClosed):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True
        self.inbox.put_nowait(TransportClosed('io client disconnect'))

    def push(self, event: str, data: Any = None) -> None:
        self.inbox.put_nowait({'event': event, 'data': data})

    def drop(self, reason: str = 'transport close') -> None:
        self.inbox.put_nowait(TransportClosed(reason))

    @property
    def events(self) -> List[str]:
        return [frame['event'] for frame in self.sent if frame['event'] != events.PING]

    @property
    def pings(self) -> List[Dict[str, Any]]:
        return [frame for frame in self.sent if frame['event'] == events.PING]


class SlowCloseTransport(FakeTransport):
    """O leitor só percebe a queda um tempo depois do close()"""

    async def close(self) -> None:
        await asyncio.sleep(0.05)
        await super().close()


class SlowSendTransport(FakeTransport):
    """Eventos de tarefa demoram para sair; pings saem na hora"""

    async def send(self, frame: Dict[str, Any]) -> None:
        if frame['event'] != events.PING:
            await asyncio.sleep(0.2)
        await super().send(frame)


class FakeTransportFactory:
    """Cria um transporte fake por tentativa; as primeiras `failures` falham"""

    def __init__(
            self,
            failures: int = 0,
            error: str = 'xhr poll error',
            transport_class: type = FakeTransport,
            **kwargs,
    ):
        self.failures = failures
        self.error = error
        self.transport_class = transport_class
        self.kwargs = kwargs
        self.created: List[FakeTransport] = []

    def __call__(self) -> FakeTransport:
        falhar = len(self.created) < self.failures
        transport = self.transport_class(fail_connect=self.error if falhar else None, **self.kwargs)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


class RelayNetwork:
    """
    Liga SyncChannels a uma aplicação ASGI do relay via WebsocketCommunicator

    go_offline() derruba todas as conexões e faz novas tentativas falharem
    até go_online().
    """

    def __init__(self, application, path: str = '/ws/board/'):
        self.application = application
        self.path = path
        self.online = True
        self.transports: List['CommunicatorTransport'] = []

    def transport(self) -> 'CommunicatorTransport':
        transport = CommunicatorTransport(self)
        self.transports.append(transport)
        return transport

    def go_offline(self) -> None:
        self.online = False
        for transport in self.transports:
            transport.drop()

    def go_online(self) -> None:
        self.online = True


class CommunicatorTransport(Transport):

    def __init__(self, network: RelayNetwork):
        self.network = network
        self.communicator: Optional[WebsocketCommunicator] = None
        self._dropped = asyncio.Event()

    async def connect(self, url: str) -> None:
        if not self.network.online:
            raise TransportError('xhr poll error')

        self.communicator = WebsocketCommunicator(self.network.application, self.network.path)
        connected, _ = await self.communicator.connect()
        if not connected:
            raise TransportError('websocket error')

    async def send(self, frame: Dict[str, Any]) -> None:
        if self._dropped.is_set() or self.communicator is None:
            raise TransportClosed()
        await self.communicator.send_json_to(frame)

    async def receive(self) -> Dict[str, Any]:
        if self._dropped.is_set():
            raise TransportClosed()

        mensagem = asyncio.ensure_future(self.communicator.output_queue.get())
        queda = asyncio.ensure_future(self._dropped.wait())
        try:
            done, _ = await asyncio.wait({mensagem, queda}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            mensagem.cancel()
            queda.cancel()

        if mensagem not in done:
            raise TransportClosed()

        output = mensagem.result()
        if output['type'] != 'websocket.send':
            raise TransportClosed('io server disconnect')
        return json.loads(output['text'])

    async def close(self) -> None:
        self._dropped.set()
        if self.communicator is not None:
            communicator, self.communicator = self.communicator, None
            await communicator.disconnect()

    def drop(self) -> None:
        self._dropped.set()
