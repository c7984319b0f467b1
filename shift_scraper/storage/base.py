"""
Base class for record stores.

A store is a key-value collection of PersistedRecords keyed by their
identity hash. Both calls are fallible and are wrapped in retries by
the caller.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

import structlog

from shift_scraper.core.models import PersistedRecord

logger = structlog.get_logger(__name__)


class RecordStore(ABC):
    """
    Abstract base class for record stores.

    Implementations:
    - MemoryRecordStore: process-local dict (tests, dry runs)
    - JsonFileRecordStore: single JSON file on disk
    - FirestoreRecordStore: Cloud Firestore collection
    """

    def __init__(self):
        self.logger = logger.bind(store=self.__class__.__name__)

    async def __aenter__(self) -> "RecordStore":
        """Enter async context."""
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        await self.close()

    async def open(self) -> None:
        """Acquire connections or load state. No-op by default."""

    async def close(self) -> None:
        """Release resources. No-op by default."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """
        Check whether a record is stored under ``key``.

        Args:
            key: Identity hash

        Returns:
            True if present
        """

    @abstractmethod
    async def upsert(self, key: str, record: PersistedRecord) -> datetime:
        """
        Create or merge the record stored under ``key``.

        Args:
            key: Identity hash
            record: Record to write

        Returns:
            Save timestamp (UTC)
        """

    async def get(self, key: str) -> Optional[PersistedRecord]:
        """Fetch a stored record. Optional for stores used write-only."""
        raise NotImplementedError(f"{self.__class__.__name__} does not support get()")
