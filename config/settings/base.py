# config/settings/base.py

import environ
from pathlib import Path

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Configuração do django-environ
env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, []),
)

# Lê o arquivo .env se existir
environ.Env.read_env(BASE_DIR / '.env')

# === CONFIGURAÇÕES BÁSICAS ===

SECRET_KEY = env('SECRET_KEY', default='django-insecure-CHANGE-ME-IN-PRODUCTION')

DEBUG = env('DEBUG', default=False)

ALLOWED_HOSTS = env('ALLOWED_HOSTS', default=['localhost', '127.0.0.1'])

# === APLICAÇÕES ===

THIRD_PARTY_APPS = [
    # Servidor ASGI (runserver com suporte a WebSocket)
    'daphne',

    # Async/WebSocket
    'channels',
]

LOCAL_APPS = [
    'apps.core',
    'apps.board',
]

INSTALLED_APPS = THIRD_PARTY_APPS + LOCAL_APPS

# === MIDDLEWARE ===

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

# === ASGI ===

ASGI_APPLICATION = 'config.asgi.application'

# Porta padrão do relay (mesma usada pelo frontend)
PORT = env.int('PORT', default=4000)

# === BANCO DE DADOS ===

# Sem persistência: as tarefas vivem apenas na memória do relay
DATABASES = {}

# === CHANNELS (WebSocket) ===

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels.layers.InMemoryChannelLayer'
    },
}

# === INTERNACIONALIZAÇÃO ===

LANGUAGE_CODE = 'pt-br'
TIME_ZONE = 'America/Sao_Paulo'
USE_I18N = True
USE_TZ = True

# === LOGGING ===

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'file': {
            'level': 'INFO',
            'class': 'logging.FileHandler',
            'filename': BASE_DIR / 'logs' / 'kanban.log',
            'formatter': 'verbose',
        },
        'console': {
            'level': 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['file'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console', 'file'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}

# Criar pasta de logs se não existir
(BASE_DIR / 'logs').mkdir(exist_ok=True)

# === CONFIGURAÇÕES DO KANBAN ===

# Origens aceitas no WebSocket (frontend Vite em desenvolvimento)
KANBAN_ALLOWED_ORIGINS = env.list('KANBAN_ALLOWED_ORIGINS', default=['http://localhost:5173'])

# Grupo do channel layer onde ficam todas as conexões do quadro
KANBAN_BOARD_GROUP = env('KANBAN_BOARD_GROUP', default='kanban_board')

# Rejeita título vazio e status/prioridade/categoria fora das enumerações
KANBAN_STRICT_VALIDATION = env.bool('KANBAN_STRICT_VALIDATION', default=True)

# Começa com a tarefa de exemplo ("Sample Task", id "1")
KANBAN_SEED_SAMPLE_TASK = env.bool('KANBAN_SEED_SAMPLE_TASK', default=True)

# Opções do SyncChannel (cliente)
KANBAN_CLIENT = {
    'url': env('KANBAN_RELAY_URL', default=f'ws://localhost:{PORT}/ws/board/'),
    'auto_connect': env.bool('KANBAN_AUTO_CONNECT', default=True),
    'reconnection_attempts': env.int('KANBAN_RECONNECTION_ATTEMPTS', default=10),
    'reconnection_delay': env.float('KANBAN_RECONNECTION_DELAY', default=1.0),
    'reconnection_delay_max': env.float('KANBAN_RECONNECTION_DELAY_MAX', default=5.0),
    'timeout': env.float('KANBAN_CONNECT_TIMEOUT', default=10.0),
    'ping_interval': env.float('KANBAN_PING_INTERVAL', default=5.0),
}
