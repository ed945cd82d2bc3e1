# apps/board/apps.py

import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class BoardConfig(AppConfig):
    """Configuração da app Board"""

    name = 'apps.board'
    verbose_name = 'Board - Relay Kanban'

    relay = None

    def ready(self):
        """
        Inicialização da app
        Cria o BoardRelay dono das tarefas em memória deste processo
        """
        from .relay import BoardRelay

        self.relay = BoardRelay.from_settings()

        logger.info(
            f"🔌 Board App inicializada - relay com {len(self.relay.store)} tarefa(s), "
            f"validação estrita={'on' if self.relay.strict_validation else 'off'}"
        )
