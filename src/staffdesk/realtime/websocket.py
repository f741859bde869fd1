"""WebSocket endpoint — real-time event delivery to frontend clients.

Learn: Each client connects to /ws. The handler:
1. Authenticates via the session cookie or ?token= (required outside development)
2. Subscribes to the shared Redis events channel
3. Forwards every Redis message to the WebSocket client
4. Handles client disconnection gracefully
"""

import asyncio
import json

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from staffdesk.auth.jwt import TokenError, verify_session_token
from staffdesk.config import settings
from staffdesk.realtime.pubsub import EVENTS_CHANNEL, ProfileNotifier

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def events_websocket(websocket: WebSocket):
    """WebSocket endpoint for real-time profile events.

    Learn: Two concurrent tasks run:
    1. Redis listener — reads from pub/sub, sends to WebSocket
    2. Client listener — answers pings, notices disconnects

    When either side finishes, the other is cancelled.
    """
    # ── Authentication ──────────────────────────────────────
    token = websocket.cookies.get(settings.session_cookie_name) or websocket.query_params.get(
        "token"
    )

    if not token and settings.environment != "development":
        await websocket.close(code=4001, reason="Authentication required")
        return

    if token:
        try:
            verify_session_token(token)
        except TokenError:
            await websocket.close(code=4001, reason="Invalid or expired token")
            return

    notifier: ProfileNotifier = websocket.app.state.notifier
    if not await notifier.ping():
        await websocket.close(code=1011, reason="Real-time events unavailable")
        return

    # ── Connection accepted ─────────────────────────────────
    await websocket.accept()

    pubsub = notifier.redis.pubsub()
    await pubsub.subscribe(EVENTS_CHANNEL)
    logger.info("ws.connected", client=str(websocket.client))

    async def redis_listener():
        """Forward Redis messages to the WebSocket client."""
        try:
            async for message in pubsub.listen():
                if message["type"] == "message":
                    await websocket.send_text(message["data"])
        except asyncio.CancelledError:
            pass

    async def client_listener():
        """Handle incoming WebSocket messages (ping only)."""
        try:
            while True:
                data = await websocket.receive_text()
                try:
                    msg = json.loads(data)
                    if msg.get("type") == "ping":
                        await websocket.send_text(json.dumps({"type": "pong"}))
                except json.JSONDecodeError:
                    pass
        except (WebSocketDisconnect, asyncio.CancelledError):
            pass

    redis_task = asyncio.create_task(redis_listener())
    client_task = asyncio.create_task(client_listener())

    try:
        done, pending = await asyncio.wait(
            [redis_task, client_task],
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.warning("ws.listener_failed", error=str(task.exception()))
    finally:
        redis_task.cancel()
        client_task.cancel()
        logger.info("ws.disconnected", client=str(websocket.client))
        await pubsub.unsubscribe(EVENTS_CHANNEL)
        await pubsub.aclose()
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()
