# apps/board/views.py

import json

from django.http import HttpResponse, JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET

from apps.core.models import Task
from apps.core.utils import export_filename, filter_tasks, task_stats
from .consumers import get_board_relay


# As views rodam no event loop do ASGI (async), o mesmo do BoardRelay,
# então leem o store sem disputar com a fila de escrita.

def _tarefas(relay):
    return [Task.from_dict(item) for item in relay.snapshot()]


@require_GET
async def listar_tarefas(request):
    """
    Lista as tarefas do quadro (para filtros e pesquisa)
    """
    tarefas = filter_tasks(
        _tarefas(get_board_relay()),
        status=request.GET.get('status'),
        search=request.GET.get('q', ''),
        priority=request.GET.get('priority'),
        category=request.GET.get('category'),
    )

    return JsonResponse({
        'tasks': [task.to_dict() for task in tarefas],
        'total': len(tarefas)
    })


@require_GET
async def estatisticas_tarefas(request):
    """
    Distribuição por coluna e taxa de conclusão (gráfico do quadro)
    """
    return JsonResponse(task_stats(_tarefas(get_board_relay())))


@require_GET
async def exportar_tarefas(request):
    """
    Exporta todas as tarefas como arquivo JSON
    """
    conteudo = json.dumps(get_board_relay().snapshot(), indent=2)
    nome_arquivo = export_filename(timezone.localdate())

    response = HttpResponse(conteudo, content_type='application/json')
    response['Content-Disposition'] = f'attachment; filename="{nome_arquivo}"'
    return response


@require_GET
async def health(request):
    relay = get_board_relay()
    return JsonResponse({
        'status': 'ok',
        'tasks': len(relay.store),
        'connections': relay.connection_count,
    })
