# apps/core/utils.py

from dataclasses import replace
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .exceptions import MalformedEvent
from .models import (
    TASK_FIELDS,
    Attachment,
    Task,
    TaskCategory,
    TaskPriority,
    TaskStatus,
)


def normalizar_campos(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Filtra e normaliza os campos de tarefa recebidos de um cliente

    Chaves desconhecidas (e o 'id') são descartadas. Só checa a estrutura;
    a checagem de valores fica em validate_task.
    """
    normalizados = {}

    for nome in TASK_FIELDS:
        if nome not in fields:
            continue
        valor = fields[nome]

        if nome == 'attachments':
            normalizados[nome] = _normalizar_anexos(valor)
        elif nome == 'description' and valor is None:
            normalizados[nome] = ''
        elif not isinstance(valor, str):
            raise MalformedEvent(f'Task {nome} must be a string')
        else:
            normalizados[nome] = valor

    return normalizados


def _normalizar_anexos(valor: Any) -> List[Attachment]:
    if valor is None:
        return []
    if not isinstance(valor, list):
        raise MalformedEvent('Task attachments must be a list')

    anexos = []
    for item in valor:
        if not isinstance(item, dict) or 'name' not in item or 'url' not in item:
            raise MalformedEvent('Attachments must have a name and a url')
        anexos.append(Attachment.from_dict(item))
    return anexos


def build_task(fields: Dict[str, Any], task_id: str) -> Task:
    """
    Cria uma tarefa a partir de campos parciais aplicando os valores padrão
    (status=todo, priority=Medium, category=Feature, sem anexos)
    """
    campos = normalizar_campos(fields)

    return Task(
        id=task_id,
        title=campos.get('title', ''),
        description=campos.get('description', ''),
        status=campos.get('status') or TaskStatus.TODO.value,
        priority=campos.get('priority') or TaskPriority.MEDIUM.value,
        category=campos.get('category') or TaskCategory.FEATURE.value,
        attachments=campos.get('attachments', []),
    )


def merge_task(task: Task, fields: Dict[str, Any]) -> Task:
    """
    Merge raso dos campos informados sobre a tarefa existente

    O id nunca muda. Aplicar o mesmo merge duas vezes dá o mesmo resultado.
    """
    return replace(task, **normalizar_campos(fields))


def validate_task(task: Task) -> Tuple[bool, Optional[str]]:
    """
    Valida título e enumerações

    Returns:
        (True, None) ou (False, mensagem de erro)
    """
    if not task.title or not task.title.strip():
        return False, 'Title is required'
    if task.status not in TaskStatus.values:
        return False, 'Invalid status'
    if task.priority not in TaskPriority.values:
        return False, 'Invalid priority'
    if task.category not in TaskCategory.values:
        return False, 'Invalid category'
    return True, None


def get_tasks_by_status(tasks: Iterable[Task], status: str) -> List[Task]:
    return [task for task in tasks if task.status == status]


def filter_tasks(
        tasks: Iterable[Task],
        status: Optional[str] = None,
        search: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
) -> List[Task]:
    """
    Filtros do quadro: busca em título/descrição (sem diferenciar
    maiúsculas), prioridade e categoria. 'all' ou vazio desliga o filtro.
    """
    termo = (search or '').strip().lower()
    resultado = []

    for task in tasks:
        if status and status != 'all' and task.status != status:
            continue
        if priority and priority != 'all' and task.priority != priority:
            continue
        if category and category != 'all' and task.category != category:
            continue
        if termo and termo not in task.title.lower() and termo not in (task.description or '').lower():
            continue
        resultado.append(task)

    return resultado


def task_stats(tasks: Iterable[Task]) -> Dict[str, Any]:
    """
    Contagem por coluna e taxa de conclusão (usado pelo gráfico do quadro)
    """
    tasks = list(tasks)

    todo_count = len(get_tasks_by_status(tasks, TaskStatus.TODO))
    in_progress_count = len(get_tasks_by_status(tasks, TaskStatus.IN_PROGRESS))
    done_count = len(get_tasks_by_status(tasks, TaskStatus.DONE))
    total_count = len(tasks)

    return {
        'todo_count': todo_count,
        'in_progress_count': in_progress_count,
        'done_count': done_count,
        'total_count': total_count,
        'completion_rate': (done_count / total_count * 100) if total_count > 0 else 0,
        'chart': [
            {'name': TaskStatus.TODO.label, 'count': todo_count},
            {'name': TaskStatus.IN_PROGRESS.label, 'count': in_progress_count},
            {'name': TaskStatus.DONE.label, 'count': done_count},
        ],
    }


def export_filename(dia: date) -> str:
    return f"kanban-export-{dia.isoformat()}.json"
