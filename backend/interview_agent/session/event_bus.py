from __future__ import annotations

import json
import logging
import time
from typing import Awaitable, Callable, Protocol

from core.config import INTERVIEW_EVENT_BUS_ENABLED, REDIS_URL

logger = logging.getLogger("interview_agent.session.event_bus")

EventHandler = Callable[[dict], Awaitable[None]]


class SessionEventBus(Protocol):
    async def publish(self, payload: dict) -> None:
        ...

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        ...


class LocalSessionEventBus:
    """In-process fan-out. Delivery is fire-and-forget: a failing observer never reaches the publisher."""

    def __init__(self):
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _unsubscribe

    async def publish(self, payload: dict) -> None:
        for handler in list(self._handlers):
            try:
                await handler(dict(payload))
            except Exception as exc:
                logger.warning("Event observer failed | type=%s err=%s", payload.get("type"), exc)


class RedisSessionEventBus(LocalSessionEventBus):
    """Local fan-out plus a Redis pub/sub channel for observers in other processes."""

    CHANNEL = "interview:events"

    def __init__(self, redis_url: str, instance_id: str = "interview-agent"):
        super().__init__()
        try:
            import redis.asyncio as redis_async  # type: ignore
        except Exception as exc:
            raise RuntimeError("redis package not installed; install 'redis' to enable the interview event bus") from exc

        self._redis = redis_async.from_url(redis_url, decode_responses=True)
        self._instance_id = str(instance_id or "interview-agent")

    async def publish(self, payload: dict) -> None:
        await super().publish(payload)
        envelope = {
            "source_instance": self._instance_id,
            "published_at": time.time(),
            "payload": dict(payload or {}),
        }
        try:
            await self._redis.publish(self.CHANNEL, json.dumps(envelope, default=str))
        except Exception as exc:
            logger.warning("Redis publish failed | type=%s err=%s", payload.get("type"), exc)


def build_session_event_bus() -> SessionEventBus:
    if not INTERVIEW_EVENT_BUS_ENABLED:
        return LocalSessionEventBus()

    if not REDIS_URL:
        raise RuntimeError("INTERVIEW_EVENT_BUS_ENABLED=true requires REDIS_URL")

    return RedisSessionEventBus(REDIS_URL)
