"""
WebSocket Transport — one FastAPI WebSocket per voice session.

handle_connection() is the whole lifecycle:
  1. Accept the socket and create a session in the registry
  2. Send `ready` with the voice catalog
  3. Feed every inbound frame to VoiceSession.handle_message()
  4. Close the session when the client goes away

No pipeline logic lives here.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

import viva.core.config as config_module
from viva.core.metrics import metrics
from viva.session import protocol
from viva.transport.base import Channel
from viva.voices import available_voices

if TYPE_CHECKING:
    from viva.session.registry import SessionRegistry

logger = logging.getLogger(__name__)


class WebSocketChannel(Channel):
    """JSON-over-WebSocket channel with a per-send timeout.

    Sends are serialized with a lock so the receive loop (interrupts,
    acks) and the pipeline task (audio) never interleave frames.
    """

    def __init__(self, websocket: WebSocket, send_timeout: float | None = None) -> None:
        self.websocket = websocket
        self.send_timeout = (
            send_timeout
            if send_timeout is not None
            else config_module.config.server.ws_send_timeout
        )
        self._lock = asyncio.Lock()
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open and self.websocket.client_state == WebSocketState.CONNECTED

    async def send(self, message: dict) -> bool:
        if not self.is_open:
            return False
        try:
            async with self._lock:
                await asyncio.wait_for(
                    self.websocket.send_text(json.dumps(message)),
                    timeout=self.send_timeout,
                )
            metrics.inc("ws.messages_out")
            return True
        except asyncio.TimeoutError:
            logger.warning("WS send timed out after %.1fs; closing channel", self.send_timeout)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug("WS send on closed socket: %s", e)
        self._open = False
        return False

    async def close(self) -> None:
        if not self._open:
            return
        self._open = False
        if self.websocket.client_state == WebSocketState.CONNECTED:
            try:
                await self.websocket.close()
            except RuntimeError as e:
                logger.debug("WS close failed: %s", e)


async def handle_connection(websocket: WebSocket, registry: "SessionRegistry") -> None:
    """Serve one voice session over an accepted WebSocket until it closes."""
    await websocket.accept()
    channel = WebSocketChannel(websocket)
    session = registry.create(channel)
    logger.info("WS connected: session=%s", session.session_id)

    await channel.send(protocol.ready(session.session_id, available_voices()))

    try:
        while True:
            msg = await websocket.receive()
            if msg["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(msg.get("code", 1000))
            # Binary frames go through the same parser; undecodable ones get an error reply.
            raw = msg["text"] if msg.get("text") is not None else msg.get("bytes") or b""
            metrics.inc("ws.messages_in")
            logger.debug("← WS IN (%s): %r", session.session_id, raw[:200])
            await session.handle_message(raw)
    except WebSocketDisconnect:
        logger.info("WS disconnected: session=%s", session.session_id)
    except Exception as e:
        logger.error("WS error: %s", e, exc_info=True)
    finally:
        await registry.close(session.session_id)
        await channel.close()
        logger.info("WS cleaned up: session=%s", session.session_id)
