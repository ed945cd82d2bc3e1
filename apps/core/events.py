# apps/core/events.py

"""
Contratos dos eventos trocados entre relay e clientes

Frame (mensagem de texto JSON):
- {"event": "task:create", "data": {...}}
- pedido com confirmação: {"event": "ping", "data": null, "ack": 3}
- confirmação: {"event": "ack", "ack": 3}

Os frames recebidos pelo relay são decodificados aqui num conjunto fechado
de intents. Qualquer coisa fora dele vira MalformedEvent.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .exceptions import MalformedEvent

# === CLIENTE -> RELAY ===

TASK_CREATE = 'task:create'
TASK_UPDATE = 'task:update'
TASK_MOVE = 'task:move'
TASK_DELETE = 'task:delete'
PING = 'ping'

# === RELAY -> CLIENTE ===

TASKS_ALL = 'tasks:all'
TASK_CREATED = 'task:created'
TASK_UPDATED = 'task:updated'
TASK_DELETED = 'task:deleted'
ERROR = 'error'
ACK = 'ack'

CLIENT_EVENTS = (TASK_CREATE, TASK_UPDATE, TASK_MOVE, TASK_DELETE, PING)
RELAY_EVENTS = (TASKS_ALL, TASK_CREATED, TASK_UPDATED, TASK_DELETED, ERROR)


# === INTENTS ===

@dataclass(frozen=True)
class CreateTask:
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UpdateTask:
    task_id: str
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MoveTask:
    task_id: str
    new_status: str


@dataclass(frozen=True)
class DeleteTask:
    task_id: str


@dataclass(frozen=True)
class Ping:
    ack: Optional[int] = None


@dataclass(frozen=True)
class SnapshotRequest:
    """Pedido interno do relay quando um cliente conecta"""


Intent = Union[CreateTask, UpdateTask, MoveTask, DeleteTask, Ping, SnapshotRequest]


# === FRAMES ===

def encode_frame(event: str, data: Any = None, ack: Optional[int] = None) -> Dict[str, Any]:
    frame = {'event': event, 'data': data}
    if ack is not None:
        frame['ack'] = ack
    return frame


def dumps_frame(frame: Dict[str, Any]) -> str:
    return json.dumps(frame)


def loads_frame(text: str) -> Dict[str, Any]:
    """
    Converte texto recebido em frame

    Raises:
        MalformedEvent: JSON inválido ou frame que não é objeto com 'event'
    """
    try:
        frame = json.loads(text)
    except (TypeError, ValueError):
        raise MalformedEvent('Malformed message')

    if not isinstance(frame, dict) or not isinstance(frame.get('event'), str):
        raise MalformedEvent('Malformed message')
    return frame


def decode_intent(frame: Dict[str, Any]) -> Intent:
    """
    Traduz um frame do cliente para o intent correspondente

    Raises:
        MalformedEvent: evento desconhecido ou payload fora do contrato
    """
    event = frame.get('event')
    data = frame.get('data')

    if event == TASK_CREATE:
        return CreateTask(fields=dict(_payload(data, 'create')))

    elif event == TASK_UPDATE:
        payload = _payload(data, 'update')
        fields = {k: v for k, v in payload.items() if k != 'id'}
        return UpdateTask(task_id=_task_id(payload), fields=fields)

    elif event == TASK_MOVE:
        payload = _payload(data, 'move')
        new_status = payload.get('newStatus')
        if not isinstance(new_status, str):
            raise MalformedEvent('Failed to move task: newStatus is required')
        return MoveTask(task_id=_task_id(payload), new_status=new_status)

    elif event == TASK_DELETE:
        return DeleteTask(task_id=_task_id(_payload(data, 'delete')))

    elif event == PING:
        ack = frame.get('ack')
        return Ping(ack=ack if isinstance(ack, int) else None)

    raise MalformedEvent(f'Unknown event: {event}')


def _payload(data: Any, verbo: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise MalformedEvent(f'Failed to {verbo} task: payload must be an object')
    return data


def _task_id(payload: Dict[str, Any]) -> str:
    task_id = payload.get('id')
    if not isinstance(task_id, str) or not task_id:
        raise MalformedEvent('Task id must be a non-empty string')
    return task_id
