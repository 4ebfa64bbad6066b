from __future__ import annotations

import asyncio
import logging
from typing import Any

from core.logger import log_event
from interview_agent.session.event_bus import SessionEventBus
from interview_agent.session.models import Session
from interview_agent.session.store import SessionStore

logger = logging.getLogger("interview_agent.session.handle")


class SessionHandle:
    """
    Owns the single Session aggregate. Every mutation happens under `lock`.

    `generation` increases whenever the aggregate is replaced (reset or a fresh
    upload); background work captures it before suspending and drops its result
    if the session was replaced meanwhile.
    """

    def __init__(self, store: SessionStore, bus: SessionEventBus, session: Session | None = None):
        self.store = store
        self.bus = bus
        self.session = session or Session()
        self.lock = asyncio.Lock()
        self.generation = 0

    def replace(self, session: Session) -> int:
        self.session = session
        self.generation += 1
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    async def restore(self) -> Session:
        snapshot = await self.store.load()
        async with self.lock:
            if snapshot:
                try:
                    self.replace(Session.from_dict(snapshot))
                except (TypeError, ValueError) as exc:
                    logger.warning("Discarding incompatible session snapshot | err=%s", exc)
                    self.replace(Session())
            log_event("session", "restored", self.session.session_id, phase=self.session.phase.value)
            return self.session

    async def persist(self) -> None:
        try:
            await self.store.save(self.session.to_dict())
        except Exception:
            logger.exception("Failed to persist session snapshot | phase=%s", self.session.phase.value)

    async def emit(self, event_type: str, **payload: Any) -> None:
        await self.bus.publish({"type": event_type, **payload})
