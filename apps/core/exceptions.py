# apps/core/exceptions.py


class RelayError(Exception):
    """
    Erro recuperável do relay

    A mensagem é enviada ao cliente que causou o erro como evento 'error'.
    Nunca derruba a conexão nem o processo.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedEvent(RelayError):
    """Frame ou payload que não pode ser decodificado"""


class TaskNotFound(RelayError):
    """Id de tarefa inexistente no update/move/delete"""

    def __init__(self, task_id: str):
        super().__init__('Task not found')
        self.task_id = task_id


class InvalidTask(RelayError):
    """Tarefa com título vazio ou valores fora das enumerações"""
