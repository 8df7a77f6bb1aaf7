import asyncio
import json
import logging
import os
from typing import Callable, Dict, List, Optional

import aiofiles

from ..schemas.quick_session import QuickSessionRecord

logger = logging.getLogger(__name__)


class QuickSessionStore:
    """
    In-memory map of anonymous practice sessions, mirrored to a JSON snapshot file.

    Mutations only mark the store dirty. A single writer task drains the dirty
    flag, so at most one snapshot write is in flight per process.
    """

    def __init__(self, path: str):
        self.path = path
        self._records: Dict[str, QuickSessionRecord] = {}
        self._loaded = False
        self._load_lock = asyncio.Lock()
        self._dirty = False
        self._writer: Optional[asyncio.Task] = None

    async def _ensure_loaded(self):
        if self._loaded:
            return
        async with self._load_lock:
            if self._loaded:
                return
            try:
                async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                    raw = json.loads(await f.read() or "{}")
                for session_id, data in raw.items():
                    self._records[session_id] = QuickSessionRecord.model_validate(data)
                logger.info(f"Loaded {len(self._records)} quick sessions from {self.path}")
            except FileNotFoundError:
                pass
            except Exception as e:
                logger.error(f"Failed to load session store {self.path}, starting empty: {e}")
                self._records = {}
            self._loaded = True

    def _schedule_write(self):
        self._dirty = True
        if self._writer is None or self._writer.done():
            self._writer = asyncio.create_task(self._write_loop())

    async def _write_loop(self):
        while self._dirty:
            self._dirty = False
            try:
                await self._write_snapshot()
            except Exception as e:
                logger.error(f"Failed to persist session store {self.path}: {e}")

    async def _write_snapshot(self):
        snapshot = {
            session_id: record.model_dump(mode="json")
            for session_id, record in self._records.items()
        }
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(snapshot))
        os.replace(tmp_path, self.path)

    async def flush(self):
        """Wait until every pending mutation is on disk."""
        while self._writer is not None and not self._writer.done():
            await self._writer

    async def get(self, session_id: str) -> Optional[QuickSessionRecord]:
        await self._ensure_loaded()
        return self._records.get(session_id)

    async def set(self, record: QuickSessionRecord) -> QuickSessionRecord:
        await self._ensure_loaded()
        self._records[record.session_id] = record
        self._schedule_write()
        return record

    async def update(
        self,
        session_id: str,
        fn: Callable[[QuickSessionRecord], Optional[QuickSessionRecord]],
    ) -> Optional[QuickSessionRecord]:
        """Replace the record with fn(current). fn returning None deletes it."""
        await self._ensure_loaded()
        current = self._records.get(session_id)
        if current is None:
            return None
        updated = fn(current)
        if updated is None:
            self._records.pop(session_id, None)
        else:
            self._records[session_id] = updated
        self._schedule_write()
        return updated

    async def delete(self, session_id: str) -> bool:
        await self._ensure_loaded()
        if self._records.pop(session_id, None) is None:
            return False
        self._schedule_write()
        return True

    async def list(self) -> List[QuickSessionRecord]:
        await self._ensure_loaded()
        return sorted(self._records.values(), key=lambda r: r.updated_at, reverse=True)
