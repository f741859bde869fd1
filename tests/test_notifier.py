"""Fire-and-forget profile change broadcasts."""

import json

import pytest

from staffdesk.config import settings
from staffdesk.realtime import pubsub as pubsub_module
from staffdesk.realtime.pubsub import EVENTS_CHANNEL, ProfileNotifier


class FakeRedis:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.published: list[tuple[str, str]] = []
        self.closed = False

    async def ping(self):
        if self.fail:
            raise ConnectionError("redis went away")
        return True

    async def publish(self, channel, message):
        if self.fail:
            raise ConnectionError("redis went away")
        self.published.append((channel, message))
        return 1

    async def aclose(self):
        self.closed = True


@pytest.mark.asyncio
async def test_profile_updated_event_payload():
    redis = FakeRedis()
    notifier = ProfileNotifier(redis)

    notifier.notify_profile_updated(7)
    await notifier.close()

    assert redis.published == [
        (EVENTS_CHANNEL, json.dumps({"type": "profileUpdated", "userId": 7}))
    ]
    assert redis.closed


@pytest.mark.asyncio
async def test_publish_failure_is_swallowed():
    notifier = ProfileNotifier(FakeRedis(fail=True))

    notifier.notify_profile_updated(7)
    # Must not raise.
    await notifier.close()


@pytest.mark.asyncio
async def test_disconnected_notifier_drops_events():
    notifier = ProfileNotifier(None)
    assert not await notifier.ping()

    notifier.notify_profile_updated(7)
    await notifier.close()


@pytest.mark.asyncio
async def test_connect_keeps_client_when_redis_is_down_at_startup(monkeypatch):
    """Redis down at boot → client kept, broadcasts resume once it's back."""
    redis = FakeRedis(fail=True)
    monkeypatch.setattr(pubsub_module.aioredis, "from_url", lambda *a, **kw: redis)

    notifier = await ProfileNotifier.connect(settings)
    assert notifier.redis is redis
    assert not redis.closed
    assert not await notifier.ping()

    redis.fail = False
    assert await notifier.ping()
    await notifier.publish("profileUpdated", {"userId": 7})
    assert redis.published == [
        (EVENTS_CHANNEL, json.dumps({"type": "profileUpdated", "userId": 7}))
    ]
    await notifier.close()
