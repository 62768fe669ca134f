"""Application ASGI combinée (Socket.IO + FastAPI)."""

import socketio

from . import events  # noqa: F401  (enregistre les handlers @sio.event)
from .http import create_http_app
from .sockets import sio

fastapi_app = create_http_app()
app = socketio.ASGIApp(sio, fastapi_app)
