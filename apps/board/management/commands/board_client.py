# apps/board/management/commands/board_client.py

import asyncio
import json

from django.core.management.base import BaseCommand

from apps.core import events
from apps.sync import BoardState, ChannelOptions, SyncChannel


class Command(BaseCommand):
    help = 'Conecta no relay pelo terminal e mostra os eventos do quadro em tempo real'

    def add_arguments(self, parser):
        parser.add_argument(
            '--url',
            help='Endereço WebSocket do relay (padrão: KANBAN_CLIENT["url"])'
        )
        parser.add_argument(
            '--create',
            metavar='TITULO',
            help='Cria uma tarefa com este título depois de conectar'
        )
        parser.add_argument(
            '--duration',
            type=float,
            help='Segundos até desconectar (sem isso, roda até Ctrl+C)'
        )

    def handle(self, *args, **options):
        """
        Abre um SyncChannel e imprime cada evento recebido
        """
        channel_options = ChannelOptions.from_settings(url=options['url'])

        self.stdout.write(f'🔌 Conectando em {channel_options.url}...')

        try:
            asyncio.run(self._executar(channel_options, options['create'], options['duration']))
        except KeyboardInterrupt:
            self.stdout.write(self.style.WARNING('\n⏹️  Interrompido'))

    async def _executar(self, channel_options, titulo, duracao):
        board = BoardState()

        def on_message(event, data):
            board.apply(event, data)
            self.stdout.write(f'📨 {event} {json.dumps(data, ensure_ascii=False)}')

        async with SyncChannel(on_message, channel_options) as channel:
            if titulo:
                enviado = channel.emit(events.TASK_CREATE, {'title': titulo})
                self.stdout.write(
                    f'📝 task:create "{titulo}" ' + ('enviado' if enviado else 'na fila até conectar')
                )

            if duracao is not None:
                await asyncio.sleep(duracao)
            else:
                await asyncio.Event().wait()

            self._resumo(channel, board)

    def _resumo(self, channel, board):
        stats = board.stats()
        self.stdout.write(
            self.style.SUCCESS(
                '\n✅ Sessão encerrada\n'
                f'  • Estado: {channel.state.value}\n'
                f'  • Saúde: {json.dumps(channel.health.as_dict())}\n'
                f"  • Tarefas: {stats['total_count']} "
                f"(todo={stats['todo_count']}, in-progress={stats['in_progress_count']}, done={stats['done_count']})"
            )
        )
