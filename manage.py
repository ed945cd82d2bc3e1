#!/usr/bin/env python
"""
Django's command-line utility for administrative tasks.

Kanban Sync - relay em tempo real do quadro Kanban
"""

import os
import sys


def main():
    """Run administrative tasks."""

    # Configuração padrão para desenvolvimento
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc

    # Comandos customizados do Kanban Sync
    if len(sys.argv) > 1:
        command = sys.argv[1]

        # Sobe o relay com daphne na porta configurada
        if command == 'serve':
            porta = os.environ.get('PORT', '4000')
            print(f"🚀 Subindo relay em ws://0.0.0.0:{porta}/ws/board/")
            exit_code = os.system(f'daphne -b 0.0.0.0 -p {porta} config.asgi:application')
            if exit_code != 0:
                print("❌ Erro ao subir o relay. O daphne está instalado?")
            return

    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
