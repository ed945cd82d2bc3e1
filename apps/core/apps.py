# apps/core/apps.py

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Configuração da app Core (domínio das tarefas, sem banco de dados)"""

    name = 'apps.core'
    verbose_name = 'Core - Tarefas'
