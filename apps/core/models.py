# apps/core/models.py

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List

from django.db import models


# === ENUMERAÇÕES ===
# TextChoices funcionam sem banco de dados: servem apenas como conjunto
# fechado de valores aceitos no quadro.

class TaskStatus(models.TextChoices):
    TODO = 'todo', 'To Do'
    IN_PROGRESS = 'in-progress', 'In Progress'
    DONE = 'done', 'Done'


class TaskPriority(models.TextChoices):
    LOW = 'Low', 'Low'
    MEDIUM = 'Medium', 'Medium'
    HIGH = 'High', 'High'


class TaskCategory(models.TextChoices):
    BUG = 'Bug', 'Bug'
    FEATURE = 'Feature', 'Feature'
    ENHANCEMENT = 'Enhancement', 'Enhancement'


# Campos que um cliente pode enviar (o id é sempre do relay)
TASK_FIELDS = ('title', 'description', 'status', 'priority', 'category', 'attachments')


@dataclass
class Attachment:
    """Anexo de uma tarefa (apenas nome e URL, sem upload)"""

    name: str
    url: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Attachment':
        return cls(name=str(data.get('name', '')), url=str(data.get('url', '')))


@dataclass
class Task:
    """
    Tarefa do quadro Kanban

    Existe apenas na memória do relay enquanto o processo roda.
    A ordem de inserção é preservada, mas não existe campo de ordenação.
    """

    id: str
    title: str
    description: str = ''
    status: str = TaskStatus.TODO.value
    priority: str = TaskPriority.MEDIUM.value
    category: str = TaskCategory.FEATURE.value
    attachments: List[Attachment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Formato enviado pela rede"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Task':
        attachments = [
            item if isinstance(item, Attachment) else Attachment.from_dict(item)
            for item in data.get('attachments') or []
        ]
        return cls(
            id=str(data['id']),
            title=data.get('title', ''),
            description=data.get('description') or '',
            status=data.get('status') or TaskStatus.TODO.value,
            priority=data.get('priority') or TaskPriority.MEDIUM.value,
            category=data.get('category') or TaskCategory.FEATURE.value,
            attachments=attachments,
        )

    def __str__(self):
        return f"{self.title} [{self.status}]"
