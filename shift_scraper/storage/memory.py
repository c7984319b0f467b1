"""
In-memory record store.

Used for dry runs and tests. Contents live only as long as the
process (or as long as the caller keeps the instance).
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from shift_scraper.core.models import PersistedRecord

from .base import RecordStore


class MemoryRecordStore(RecordStore):
    """Dict-backed store with read-after-write consistency."""

    def __init__(self, records: Optional[dict[str, PersistedRecord]] = None):
        super().__init__()
        self.records: dict[str, PersistedRecord] = dict(records or {})
        self.writes = 0

    async def exists(self, key: str) -> bool:
        return key in self.records

    async def upsert(self, key: str, record: PersistedRecord) -> datetime:
        saved_at = datetime.now(timezone.utc)
        self.records[key] = replace(record, saved_at=saved_at)
        self.writes += 1
        self.logger.debug("record_stored", key=key[:8])
        return saved_at

    async def get(self, key: str) -> Optional[PersistedRecord]:
        return self.records.get(key)

    def __len__(self) -> int:
        return len(self.records)
