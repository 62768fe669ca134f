"""Serveur Socket.IO asynchrone partagé par les handlers d'événements."""

from __future__ import annotations

import socketio

from .settings import settings

# Async Server pour ASGI
sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=settings.CORS_ORIGINS)
