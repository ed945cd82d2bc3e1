# apps/core/__init__.py

"""
Core - Domínio das tarefas

Modelos (Task, enumerações), helpers de tarefas, TaskStore em memória
e os contratos dos eventos trocados com os clientes.
"""
