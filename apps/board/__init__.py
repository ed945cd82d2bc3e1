# apps/board/__init__.py

"""
Board - Relay do quadro Kanban

Funcionalidades:
- WebSocket que mantém a lista de tarefas sincronizada entre clientes
- Fila única de escrita (BoardRelay) sobre o TaskStore em memória
- Endpoints HTTP somente leitura (tarefas, estatísticas, exportação)
- Comando board_client para testar o relay pelo terminal
"""
