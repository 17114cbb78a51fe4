"""Local entry cache — append-only backup trail of every submitted entry.

One named slot holds a JSON array of entries in insertion order. Every
submission attempt does read-modify-append on it, whatever the delivery
outcome. Reads and appends are not locked: callers run on one event loop.
"""

from __future__ import annotations

import json
import pathlib
from abc import ABC, abstractmethod
from typing import Optional

import redis.asyncio as redis
import structlog
from pydantic import TypeAdapter, ValidationError

from credupi.config import settings
from credupi.schemas.waitlist import WaitlistEntry

logger = structlog.get_logger()

_entries_adapter = TypeAdapter(list[WaitlistEntry])


def _encode(entries: list[WaitlistEntry]) -> str:
    return json.dumps([entry.to_wire() for entry in entries])


class EntryCache(ABC):
    """Best-effort local store; write failures are logged, never raised."""

    def __init__(self, slot: str):
        self.slot = slot

    @abstractmethod
    async def _read(self) -> Optional[str]:
        ...

    @abstractmethod
    async def _write(self, payload: str) -> None:
        ...

    @abstractmethod
    async def _quarantine(self, payload: str) -> str:
        """Keep an unreadable payload next to the slot; returns where it went."""
        ...

    async def load(self, quarantine: bool = False) -> list[WaitlistEntry]:
        """Read every cached entry.

        An unreadable slot loads as empty. With `quarantine`, its payload is
        first copied aside so the next write does not erase it.
        """
        raw = await self._read()
        if not raw:
            return []
        try:
            return _entries_adapter.validate_json(raw)
        except ValidationError as e:
            moved_to = await self._quarantine(raw) if quarantine else None
            logger.warning("entry_cache_corrupt", slot=self.slot, moved_to=moved_to, error=str(e))
            return []

    async def append(self, entry: WaitlistEntry) -> bool:
        """Append one entry to the slot.

        Returns:
            True if the slot was written
        """
        try:
            entries = await self.load(quarantine=True)
            entries.append(entry)
            await self._write(_encode(entries))
        except Exception as e:
            logger.error("entry_cache_write_failed", slot=self.slot, error=str(e))
            return False

        logger.debug("entry_cached", slot=self.slot, size=len(entries))
        return True

    async def aclose(self) -> None:
        return None


class JsonFileEntryCache(EntryCache):
    """Slot stored as `<directory>/<slot>.json`."""

    def __init__(self, directory: str | pathlib.Path, slot: str):
        super().__init__(slot)
        self.path = pathlib.Path(directory) / f"{slot}.json"
        self.corrupt_path = self.path.with_name(f"{slot}.corrupt")

    async def _read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    async def _write(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(payload, encoding="utf-8")

    async def _quarantine(self, payload: str) -> str:
        with self.corrupt_path.open("a", encoding="utf-8") as f:
            f.write(payload + "\n")
        return str(self.corrupt_path)


class RedisEntryCache(EntryCache):
    """Slot stored as a single Redis string key."""

    def __init__(self, redis_client: redis.Redis, slot: str, owns_client: bool = False):
        super().__init__(slot)
        self.redis = redis_client
        self.owns_client = owns_client

    def _key(self) -> str:
        return f"waitlist_cache:{self.slot}"

    async def _read(self) -> Optional[str]:
        return await self.redis.get(self._key())

    async def _write(self, payload: str) -> None:
        await self.redis.set(self._key(), payload)

    async def _quarantine(self, payload: str) -> str:
        key = f"{self._key()}:corrupt"
        await self.redis.rpush(key, payload)
        return key

    async def aclose(self) -> None:
        if self.owns_client:
            await self.redis.aclose()


def get_entry_cache() -> EntryCache:
    """Build the cache backend selected in settings."""
    if settings.cache_backend == "redis":
        client = redis.from_url(settings.redis_url, decode_responses=True)
        return RedisEntryCache(client, settings.cache_slot, owns_client=True)
    return JsonFileEntryCache(settings.cache_dir, settings.cache_slot)
