"""Redis pub/sub — fire-and-forget broadcast of profile changes.

Learn: Redis pub/sub is fire-and-forget. If no one is listening, the message
is lost. That's fine for real-time UI updates (the frontend can always query
the API to catch up).

All listeners share one channel: every connected client hears every
`profileUpdated` event, there is no per-user targeting.
"""

import asyncio
import json
from typing import Any, Optional

import redis.asyncio as aioredis
import structlog
from fastapi import Request

from staffdesk.config import Settings

logger = structlog.get_logger()

EVENTS_CHANNEL = "staffdesk:events"
PROFILE_UPDATED = "profileUpdated"


def encode_event(event_type: str, data: dict[str, Any]) -> str:
    return json.dumps({"type": event_type, **data})


class ProfileNotifier:
    """Publishes change events without ever blocking or failing the caller.

    Learn: `notify_profile_updated` schedules the publish as a background
    task and returns immediately. Strong references to in-flight tasks are
    kept in `_pending` so the loop doesn't garbage-collect them mid-send.
    """

    def __init__(self, redis: Optional[aioredis.Redis] = None):
        self.redis = redis
        self._pending: set[asyncio.Task] = set()

    @classmethod
    async def connect(cls, settings: Settings) -> "ProfileNotifier":
        """Open the Redis pool.

        Learn: the client is kept even when the first ping fails. redis-py
        reconnects on the next command, so broadcasts resume by themselves
        once Redis is back; until then publish() logs and drops events.
        """
        client = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        notifier = cls(client)
        if not await notifier.ping():
            logger.warning("notifier.redis_unavailable")
        return notifier

    async def ping(self) -> bool:
        """Live reachability check (False when Redis is down or not configured)."""
        if self.redis is None:
            return False
        try:
            return bool(await self.redis.ping())
        except Exception as e:
            logger.debug("notifier.ping_failed", error=str(e))
            return False

    async def publish(self, event_type: str, data: dict[str, Any]) -> None:
        """Publish one event. Errors are logged and swallowed."""
        if self.redis is None:
            logger.debug("notifier.dropped", event=event_type, reason="no_redis")
            return
        try:
            await self.redis.publish(EVENTS_CHANNEL, encode_event(event_type, data))
        except Exception as e:
            logger.warning("notifier.publish_failed", event=event_type, error=str(e))

    def notify_profile_updated(self, user_id: int) -> None:
        """Schedule a `profileUpdated` broadcast for `user_id`."""
        task = asyncio.create_task(self.publish(PROFILE_UPDATED, {"userId": user_id}))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def close(self) -> None:
        """Let in-flight publishes finish, then close the Redis pool."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None


def get_notifier(request: Request) -> ProfileNotifier:
    """FastAPI dependency — the process-wide notifier built in the lifespan."""
    return request.app.state.notifier
