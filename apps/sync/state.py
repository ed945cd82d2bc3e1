# apps/sync/state.py

import logging
from typing import Any, Dict, List, Optional

from apps.core import events
from apps.core.models import Task, TaskStatus
from apps.core.utils import filter_tasks, get_tasks_by_status, task_stats

logger = logging.getLogger(__name__)


class BoardState:
    """
    Lista local de tarefas de um cliente, montada a partir dos eventos do relay

    Aplicar o mesmo evento duas vezes não muda o resultado: o relay manda o
    broadcast também para quem originou a mudança.
    Pode ser passada direto como on_message do SyncChannel.
    """

    def __init__(self):
        self.tasks: List[Task] = []

    def __call__(self, event: str, data: Any) -> None:
        self.apply(event, data)

    def apply(self, event: str, data: Any) -> None:
        if event == events.TASKS_ALL:
            self.tasks = [Task.from_dict(item) for item in data or []]

        elif event in (events.TASK_CREATED, events.TASK_UPDATED):
            task = Task.from_dict(data)
            index = self._index_of(task.id)
            if index is not None:
                self.tasks[index] = task
            elif event == events.TASK_CREATED:
                self.tasks.append(task)

        elif event == events.TASK_DELETED:
            self.tasks = [task for task in self.tasks if task.id != data['id']]

        elif event == events.ERROR:
            logger.warning(f"⚠️ Relay respondeu com erro: {(data or {}).get('message')}")

    def get(self, task_id: str) -> Optional[Task]:
        index = self._index_of(task_id)
        return self.tasks[index] if index is not None else None

    def by_status(self) -> Dict[str, List[Task]]:
        """Colunas do quadro"""
        return {status: get_tasks_by_status(self.tasks, status) for status in TaskStatus.values}

    def filtered(self, **filtros) -> List[Task]:
        return filter_tasks(self.tasks, **filtros)

    def stats(self) -> Dict[str, Any]:
        return task_stats(self.tasks)

    def _index_of(self, task_id: str) -> Optional[int]:
        for index, task in enumerate(self.tasks):
            if task.id == task_id:
                return index
        return None
