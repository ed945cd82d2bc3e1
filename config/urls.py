# config/urls.py

from django.urls import path, include

from apps.board import views as board_views

urlpatterns = [
    # API somente leitura do quadro
    path('api/', include('apps.board.urls')),

    # Health check
    path('health/', board_views.health, name='health'),
]
