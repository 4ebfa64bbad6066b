from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Protocol

from core.config import SESSION_STORE_PATH, USE_FILE_SESSION_STORE

logger = logging.getLogger("interview_agent.session.store")


class SessionStore(Protocol):
    async def load(self) -> dict[str, Any] | None:
        ...

    async def save(self, snapshot: dict[str, Any]) -> None:
        ...


class LocalSessionStore:
    def __init__(self):
        self._lock = asyncio.Lock()
        self._snapshot: dict[str, Any] | None = None
        self.save_count = 0

    async def load(self) -> dict[str, Any] | None:
        async with self._lock:
            return json.loads(json.dumps(self._snapshot)) if self._snapshot is not None else None

    async def save(self, snapshot: dict[str, Any]) -> None:
        async with self._lock:
            self._snapshot = json.loads(json.dumps(snapshot, default=str))
            self.save_count += 1


class FileSessionStore:
    """JSON snapshot on disk, replaced atomically via a temp file. Disk I/O runs in a worker thread."""

    def __init__(self, path: Path):
        self._path = Path(path)
        self._lock = asyncio.Lock()

    def _read(self) -> dict[str, Any] | None:
        if not self._path.exists():
            return None
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Session snapshot unreadable, starting fresh | path=%s err=%s", self._path, exc)
            return None
        return payload if isinstance(payload, dict) else None

    def _write(self, serialized: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_suffix(".tmp")
        temp_path.write_text(serialized, encoding="utf-8")
        temp_path.replace(self._path)

    async def load(self) -> dict[str, Any] | None:
        async with self._lock:
            return await asyncio.to_thread(self._read)

    async def save(self, snapshot: dict[str, Any]) -> None:
        serialized = json.dumps(snapshot, ensure_ascii=False, default=str)
        async with self._lock:
            await asyncio.to_thread(self._write, serialized)


def build_session_store() -> SessionStore:
    if not USE_FILE_SESSION_STORE:
        return LocalSessionStore()
    return FileSessionStore(SESSION_STORE_PATH)
