# config/asgi.py

import os
from django.core.asgi import get_asgi_application
from channels.routing import ProtocolTypeRouter, URLRouter
from channels.security.websocket import OriginValidator

# Configurar Django settings
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

# Importar rotas de WebSocket depois de configurar Django
django_asgi_app = get_asgi_application()

from django.conf import settings  # noqa: E402
from apps.board.routing import websocket_urlpatterns  # noqa: E402

# Configuração ASGI
application = ProtocolTypeRouter({
    # HTTP tradicional (API somente leitura)
    "http": django_asgi_app,

    # WebSocket sem autenticação, restrito às origens do frontend
    "websocket": OriginValidator(
        URLRouter(websocket_urlpatterns),
        settings.KANBAN_ALLOWED_ORIGINS,
    ),
})
