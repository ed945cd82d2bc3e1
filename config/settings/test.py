# config/settings/test.py

from .base import *

# === TESTES ===

DEBUG = False

ALLOWED_HOSTS = ['testserver', 'localhost']

KANBAN_ALLOWED_ORIGINS = ['*']

# Quadro começa vazio nos testes
KANBAN_SEED_SAMPLE_TASK = False
KANBAN_STRICT_VALIDATION = True

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels.layers.InMemoryChannelLayer'
    }
}

# Sem arquivo de log em testes
LOGGING['handlers'] = {
    'console': {
        'level': 'WARNING',
        'class': 'logging.StreamHandler',
        'formatter': 'simple',
    },
}
LOGGING['root']['handlers'] = ['console']
LOGGING['loggers'] = {}
