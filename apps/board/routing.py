# apps/board/routing.py

from django.urls import re_path
from . import consumers

# Rotas WebSocket para a aplicação board
websocket_urlpatterns = [
    # Canal único do quadro - sincronização das tarefas em tempo real
    re_path(r'ws/board/$', consumers.TaskRelayConsumer.as_asgi()),
]
