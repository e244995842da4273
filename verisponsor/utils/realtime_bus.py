import asyncio
import json
from typing import Awaitable, Callable, Optional

import redis.asyncio as redis
from loguru import logger

from verisponsor.config import get_settings
from verisponsor.schemas.chat import Message
from verisponsor.utils.websocket_manager import get_manager


def user_channel(user_id: str) -> str:
    return f"user:{user_id}"


def message_event(message: Message) -> str:
    return json.dumps({"type": "message", "message": message.model_dump(mode="json")})


class NoopBus:
    """Used when no REDIS_URL is configured; delivery stays in-process."""

    enabled = False

    async def publish(self, channel: str, message: str) -> None:
        return

    async def subscribe(self, channel: str, on_message: Callable[[str], Awaitable[None]]):
        return NoopSubscription()

    async def close(self) -> None:
        return


class NoopSubscription:

    async def run(self) -> None:
        await asyncio.Future()

    async def cancel(self) -> None:
        return


class RedisSubscription:

    def __init__(self, pubsub, channel: str, on_message: Callable[[str], Awaitable[None]]) -> None:
        self._pubsub = pubsub
        self._channel = channel
        self._on_message = on_message
        self._running = True

    async def run(self) -> None:
        while self._running:
            try:
                msg = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            except redis.RedisError as exc:
                logger.warning("Redis subscription on {} failed: {}", self._channel, exc)
                await asyncio.sleep(0.5)
                continue
            if msg and msg.get("type") == "message":
                data = msg.get("data")
                if isinstance(data, bytes):
                    data = data.decode("utf-8")
                await self._on_message(data)

    async def cancel(self) -> None:
        self._running = False
        await self._pubsub.unsubscribe(self._channel)
        await self._pubsub.aclose()


class RedisBus:

    enabled = True

    def __init__(self, url: str) -> None:
        self._redis = redis.from_url(url)

    async def publish(self, channel: str, message: str) -> None:
        await self._redis.publish(channel, message)

    async def subscribe(self, channel: str, on_message: Callable[[str], Awaitable[None]]) -> RedisSubscription:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(channel)
        return RedisSubscription(pubsub, channel, on_message)

    async def close(self) -> None:
        await self._redis.aclose()


_bus = None


async def get_bus():
    global _bus
    if _bus is not None:
        return _bus
    url: Optional[str] = get_settings().redis_url
    if not url:
        _bus = NoopBus()
    else:
        logger.info("Realtime fan-out through Redis pub/sub")
        _bus = RedisBus(url)
    return _bus


async def close_bus() -> None:
    global _bus
    if _bus is not None:
        await _bus.close()
        _bus = None


async def deliver_to_user(user_id: str, payload: str) -> None:
    """Push a serialized event to every live connection of ``user_id``."""

    bus = await get_bus()
    if bus.enabled:
        try:
            await bus.publish(user_channel(user_id), payload)
        except redis.RedisError as exc:
            logger.warning("Could not publish event for user {}: {}", user_id, exc)
    else:
        await get_manager().send_personal_message(user_id, payload)
