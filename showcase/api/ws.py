"""WebSocket echo — each message is bound to a User and sent back as binary JSON."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from showcase.config import settings
from showcase.types import User

_logger = logging.getLogger(__name__)

router = APIRouter()

# RFC 6455 close code for a payload the server cannot interpret
CLOSE_INVALID_PAYLOAD = 1007


def _negotiate(offered: list[str]) -> str | None:
    allowed = [p.strip() for p in settings.ws_subprotocols.split(",") if p.strip()]
    return next((p for p in offered if p in allowed), None)


@router.websocket("/ws")
async def ws_echo(websocket: WebSocket) -> None:
    await websocket.accept(subprotocol=_negotiate(websocket.scope.get("subprotocols", [])))
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("bytes") or message.get("text") or ""
            try:
                user = User.model_validate_json(raw)
            except ValidationError as e:
                _logger.error("Error binding message: %s", e)
                await websocket.close(code=CLOSE_INVALID_PAYLOAD)
                return

            _logger.info("Received message: %s", user.name)
            await websocket.send_bytes(user.model_dump_json(exclude_none=True).encode())
    except WebSocketDisconnect:
        pass
