# apps/board/urls.py

from django.urls import path
from . import views

app_name = 'board'

urlpatterns = [
    # Tarefas (somente leitura - mudanças só pelo WebSocket)
    path('tasks/', views.listar_tarefas, name='tarefas'),
    path('tasks/stats/', views.estatisticas_tarefas, name='estatisticas'),
    path('tasks/export/', views.exportar_tarefas, name='exportar'),
]
