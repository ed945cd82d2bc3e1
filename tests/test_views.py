# tests/test_views.py

import json

import pytest
from django.test import AsyncClient
from django.utils import timezone

from apps.core.models import Task


@pytest.fixture
def client():
    return AsyncClient()


@pytest.fixture
def quadro(store):
    store.insert(Task(id='1', title='Login quebrado', category='Bug'))
    store.insert(Task(id='2', title='Exportar CSV', status='done', priority='High'))
    store.insert(Task(id='3', title='Tema escuro', status='in-progress'))
    return store


@pytest.mark.asyncio
async def test_list_tasks(client, app_relay, quadro):
    response = await client.get('/api/tasks/')

    assert response.status_code == 200
    body = response.json()
    assert body['total'] == 3
    assert [task['id'] for task in body['tasks']] == ['1', '2', '3']


@pytest.mark.asyncio
async def test_list_tasks_with_filters(client, app_relay, quadro):
    response = await client.get('/api/tasks/', {'q': 'csv', 'priority': 'High', 'category': 'all'})

    assert [task['id'] for task in response.json()['tasks']] == ['2']


@pytest.mark.asyncio
async def test_list_tasks_only_accepts_get(client, app_relay):
    response = await client.post('/api/tasks/', {'title': 'X'})

    assert response.status_code == 405


@pytest.mark.asyncio
async def test_stats(client, app_relay, quadro):
    stats = (await client.get('/api/tasks/stats/')).json()

    assert stats['total_count'] == 3
    assert stats['done_count'] == 1
    assert stats['chart'][1] == {'name': 'In Progress', 'count': 1}


@pytest.mark.asyncio
async def test_export_is_json_attachment(client, app_relay, quadro):
    response = await client.get('/api/tasks/export/')

    nome = f'kanban-export-{timezone.localdate().isoformat()}.json'
    assert response['Content-Type'] == 'application/json'
    assert response['Content-Disposition'] == f'attachment; filename="{nome}"'
    assert json.loads(response.content) == quadro.snapshot()


@pytest.mark.asyncio
async def test_health(client, app_relay, quadro):
    app_relay.register('specific..abc')

    response = await client.get('/health/')

    assert response.json() == {'status': 'ok', 'tasks': 3, 'connections': 1}
