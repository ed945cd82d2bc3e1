# apps/board/consumers.py

import logging

from channels.generic.websocket import AsyncWebsocketConsumer

from apps.core import events
from apps.core.events import Ping, SnapshotRequest, decode_intent, dumps_frame, encode_frame, loads_frame
from apps.core.exceptions import MalformedEvent
from .relay import Reply

logger = logging.getLogger(__name__)


def get_board_relay():
    """Relay do processo, criado pela BoardConfig"""
    from django.apps import apps

    return apps.get_app_config('board').relay


class TaskRelayConsumer(AsyncWebsocketConsumer):
    """
    Consumer WebSocket do quadro Kanban

    Funcionalidades:
    - Envia todas as tarefas para quem acabou de conectar
    - Encaminha create/update/move/delete para o BoardRelay
    - Repassa os broadcasts do relay para o cliente
    - Responde ping com ack (medição de latência do cliente)
    """

    def __init__(self, *args, relay=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.relay = relay if relay is not None else get_board_relay()

    async def connect(self):
        """
        Entra no grupo do quadro e envia o estado atual só para esta conexão
        """
        self.board_group_name = self.relay.group_name

        await self.channel_layer.group_add(
            self.board_group_name,
            self.channel_name
        )

        await self.accept()
        self.relay.register(self.channel_name)

        outcome = await self.relay.submit(SnapshotRequest())
        await self.send_event(outcome.event, outcome.data)

        logger.info(f"✅ Cliente conectado: {self.channel_name}")

    async def disconnect(self, close_code):
        """
        Sai do grupo e libera o registro da conexão
        """
        if hasattr(self, 'board_group_name'):
            await self.channel_layer.group_discard(
                self.board_group_name,
                self.channel_name
            )
            self.relay.unregister(self.channel_name)

        logger.info(f"🔌 Cliente desconectado: {self.channel_name} (code={close_code})")

    async def receive(self, text_data=None, bytes_data=None):
        """
        Decodifica o frame e despacha o intent
        Erros de formato voltam só para quem enviou
        """
        if text_data is None:
            await self.send_error('Malformed message')
            return

        try:
            intent = decode_intent(loads_frame(text_data))
        except MalformedEvent as e:
            logger.warning(f"❌ Frame inválido de {self.channel_name}: {e.message}")
            await self.send_error(e.message)
            return

        if isinstance(intent, Ping):
            if intent.ack is not None:
                await self.send(text_data=dumps_frame({'event': events.ACK, 'ack': intent.ack}))
            return

        outcome = await self.relay.submit(intent)

        # Broadcast já foi enviado ao grupo pelo relay
        if isinstance(outcome, Reply):
            await self.send_event(outcome.event, outcome.data)

    # === Handlers do channel layer ===

    async def task_broadcast(self, event):
        """
        Repassa a mudança aplicada no store para este cliente
        """
        await self.send_event(event['event'], event['data'])

    # === Métodos auxiliares ===

    async def send_event(self, event_name, data):
        await self.send(text_data=dumps_frame(encode_frame(event_name, data)))

    async def send_error(self, message):
        await self.send_event(events.ERROR, {'message': message})
