"""
Viva Transport Layer

Connects clients to session actors:
- Channel: abstract outbound pipe the actor talks to
- WebSocketChannel / handle_connection: FastAPI WebSocket binding

Usage:
    from viva.transport import handle_connection

    @app.websocket("/ws/session")
    async def ws_session(websocket: WebSocket):
        await handle_connection(websocket, registry)
"""

from viva.transport.base import Channel
from viva.transport.websocket import WebSocketChannel, handle_connection

__all__ = [
    "Channel",
    "WebSocketChannel",
    "handle_connection",
]
