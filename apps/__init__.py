# apps/__init__.py

"""
Kanban Sync - Aplicações

Este pacote contém:
- core: Tarefas, TaskStore em memória e contratos dos eventos
- board: Relay WebSocket (Channels) e API somente leitura
- sync: Cliente do relay (SyncChannel) usado pela interface
"""

__version__ = '0.1.0'
__author__ = 'Equipe Kanban Sync'
