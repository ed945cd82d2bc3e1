# apps/core/store.py

import time
from typing import Callable, Dict, Iterable, List, Optional

from .models import Task, TaskCategory, TaskPriority, TaskStatus


# Tarefa de exemplo carregada quando KANBAN_SEED_SAMPLE_TASK está ligado
SAMPLE_TASK = {
    'id': '1',
    'title': 'Sample Task',
    'description': 'This is a sample task',
    'status': TaskStatus.TODO.value,
    'priority': TaskPriority.MEDIUM.value,
    'category': TaskCategory.FEATURE.value,
    'attachments': [],
}


class TaskIdGenerator:
    """
    Gera ids no formato de timestamp em milissegundos ("1700000000000")

    Os valores são estritamente crescentes: se o relógio não andou desde o
    último id, usa o último + 1.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0

    def __call__(self) -> str:
        agora = int(self._clock() * 1000)
        self._last = agora if agora > self._last else self._last + 1
        return str(self._last)


class TaskStore:
    """
    Sequência ordenada de tarefas do quadro, apenas em memória

    Só o BoardRelay escreve aqui. Buscas são lineares.
    """

    NOT_FOUND = -1

    def __init__(self, tasks: Optional[Iterable[Task]] = None):
        self._tasks: List[Task] = list(tasks or [])

    @classmethod
    def with_sample_task(cls) -> 'TaskStore':
        return cls([Task.from_dict(SAMPLE_TASK)])

    def __len__(self):
        return len(self._tasks)

    def __iter__(self):
        return iter(list(self._tasks))

    def __contains__(self, task_id):
        return self.find_index(task_id) != self.NOT_FOUND

    def insert(self, task: Task) -> None:
        self._tasks.append(task)

    def find_index(self, task_id: str) -> int:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        return self.NOT_FOUND

    def find(self, task_id: str) -> Optional[Task]:
        index = self.find_index(task_id)
        return self._tasks[index] if index != self.NOT_FOUND else None

    def get_at(self, index: int) -> Task:
        return self._tasks[index]

    def replace_at(self, index: int, task: Task) -> None:
        self._tasks[index] = task

    def remove_at(self, index: int) -> Task:
        return self._tasks.pop(index)

    def snapshot(self) -> List[Dict]:
        """Cópia serializável de todas as tarefas na ordem de inserção"""
        return [task.to_dict() for task in self._tasks]

    def clear(self) -> None:
        self._tasks = []
