# apps/board/relay.py

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set

from channels.layers import get_channel_layer, DEFAULT_CHANNEL_LAYER

from apps.core import events
from apps.core.events import (
    CreateTask,
    DeleteTask,
    Intent,
    MoveTask,
    SnapshotRequest,
    UpdateTask,
)
from apps.core.exceptions import InvalidTask, RelayError, TaskNotFound
from apps.core.store import TaskIdGenerator, TaskStore
from apps.core.utils import build_task, merge_task, validate_task

logger = logging.getLogger(__name__)

DEFAULT_BOARD_GROUP = 'kanban_board'

# Verbo usado na mensagem de erro genérica de cada intent
VERBOS = {
    CreateTask: 'create',
    UpdateTask: 'update',
    MoveTask: 'move',
    DeleteTask: 'delete',
    SnapshotRequest: 'load',
}


@dataclass(frozen=True)
class Broadcast:
    """Evento enviado para todas as conexões do quadro (inclusive a de origem)"""

    event: str
    data: Any


@dataclass(frozen=True)
class Reply:
    """Evento enviado só para a conexão que fez o pedido"""

    event: str
    data: Any


class BoardRelay:
    """
    Dono do TaskStore e único ponto de escrita nele

    Todos os intents entram numa fila e são aplicados um de cada vez por
    uma única task. O broadcast acontece dentro dessa mesma task, então a
    ordem dos broadcasts é a ordem em que o store foi alterado.

    Uso:
        relay = BoardRelay(TaskStore())
        outcome = await relay.submit(CreateTask({'title': 'X'}))
    """

    def __init__(
            self,
            store: Optional[TaskStore] = None,
            group_name: str = DEFAULT_BOARD_GROUP,
            channel_layer_alias: str = DEFAULT_CHANNEL_LAYER,
            id_factory: Optional[Callable[[], str]] = None,
            strict_validation: bool = True,
    ):
        self.store = store if store is not None else TaskStore()
        self.group_name = group_name
        self.channel_layer_alias = channel_layer_alias
        self.strict_validation = strict_validation
        self._new_id = id_factory or TaskIdGenerator()
        self._connections: Set[str] = set()
        self._inbox: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls) -> 'BoardRelay':
        from django.conf import settings

        store = TaskStore.with_sample_task() if settings.KANBAN_SEED_SAMPLE_TASK else TaskStore()
        return cls(
            store=store,
            group_name=settings.KANBAN_BOARD_GROUP,
            strict_validation=settings.KANBAN_STRICT_VALIDATION,
        )

    # === Conexões ===

    def register(self, channel_name: str) -> None:
        self._connections.add(channel_name)

    def unregister(self, channel_name: str) -> None:
        self._connections.discard(channel_name)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def snapshot(self) -> List[Dict]:
        return self.store.snapshot()

    # === Fila de intents ===

    async def submit(self, intent: Intent):
        """
        Enfileira um intent e espera o resultado

        Returns:
            Broadcast (já enviado ao grupo) ou Reply (para quem pediu)
        """
        self._ensure_worker()
        future = asyncio.get_running_loop().create_future()
        self._inbox.put_nowait((intent, future))
        return await future

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._inbox = asyncio.Queue()
            self._worker = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            intent, future = await self._inbox.get()
            outcome = self._apply_safely(intent)

            if isinstance(outcome, Broadcast):
                await self._broadcast(outcome)

            if not future.done():
                future.set_result(outcome)

    async def close(self) -> None:
        """Para a task da fila (usado em testes e no desligamento)"""
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None

    async def _broadcast(self, outcome: Broadcast) -> None:
        channel_layer = get_channel_layer(self.channel_layer_alias)
        try:
            await channel_layer.group_send(
                self.group_name,
                {
                    'type': 'task.broadcast',
                    'event': outcome.event,
                    'data': outcome.data,
                }
            )
        except Exception as e:
            logger.error(f"❌ Falha no broadcast de {outcome.event}: {str(e)}")

    # === Aplicação dos intents ===

    def _apply_safely(self, intent: Intent):
        try:
            return self.apply(intent)
        except RelayError as e:
            logger.warning(f"⚠️ {type(intent).__name__} rejeitado: {e.message}")
            return Reply(events.ERROR, {'message': e.message})
        except Exception:
            verbo = VERBOS.get(type(intent), 'process')
            logger.exception(f"❌ Erro inesperado ao aplicar {type(intent).__name__}")
            return Reply(events.ERROR, {'message': f'Failed to {verbo} task'})

    def apply(self, intent: Intent):
        """
        Aplica um intent no store e devolve o evento resultante

        Raises:
            RelayError: id inexistente, payload inválido ou tarefa inválida
        """
        if isinstance(intent, SnapshotRequest):
            return Reply(events.TASKS_ALL, self.store.snapshot())

        elif isinstance(intent, CreateTask):
            task = build_task(intent.fields, self._next_id())
            self._check(task)
            self.store.insert(task)
            logger.info(f"✅ Tarefa criada: {task.id}")
            return Broadcast(events.TASK_CREATED, task.to_dict())

        elif isinstance(intent, UpdateTask):
            index = self._index_of(intent.task_id)
            task = merge_task(self.store.get_at(index), intent.fields)
            self._check(task)
            self.store.replace_at(index, task)
            logger.info(f"✏️ Tarefa atualizada: {task.id}")
            return Broadcast(events.TASK_UPDATED, task.to_dict())

        elif isinstance(intent, MoveTask):
            index = self._index_of(intent.task_id)
            task = merge_task(self.store.get_at(index), {'status': intent.new_status})
            self._check(task)
            self.store.replace_at(index, task)
            logger.info(f"➡️ Tarefa movida: {task.id} para {task.status}")
            return Broadcast(events.TASK_UPDATED, task.to_dict())

        elif isinstance(intent, DeleteTask):
            index = self._index_of(intent.task_id)
            self.store.remove_at(index)
            logger.info(f"🗑️ Tarefa removida: {intent.task_id}")
            return Broadcast(events.TASK_DELETED, {'id': intent.task_id})

        raise TypeError(f'Intent sem tratamento no relay: {intent!r}')

    # === Métodos auxiliares ===

    def _next_id(self) -> str:
        task_id = self._new_id()
        while task_id in self.store:
            task_id = self._new_id()
        return task_id

    def _index_of(self, task_id: str) -> int:
        index = self.store.find_index(task_id)
        if index == TaskStore.NOT_FOUND:
            raise TaskNotFound(task_id)
        return index

    def _check(self, task) -> None:
        if not self.strict_validation:
            return
        valid, error = validate_task(task)
        if not valid:
            raise InvalidTask(error)
