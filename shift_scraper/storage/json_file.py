"""
JSON file record store.

Keeps every persisted record in one JSON object keyed by identity
hash. The file is loaded on open and rewritten atomically after each
upsert, so an interrupted run never leaves a truncated file behind.
"""

import json
import os
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from shift_scraper.core.errors import StoreError
from shift_scraper.core.models import PersistedRecord

from .base import RecordStore


class JsonFileRecordStore(RecordStore):
    """
    File-backed store for local runs without Firestore.

    Usage:
        async with JsonFileRecordStore("output/jobs.json") as store:
            await store.exists(job_id)
    """

    def __init__(self, path: str):
        """
        Initialize store.

        Args:
            path: JSON file path (created on first write)
        """
        super().__init__()
        self.path = Path(path)
        self._documents: dict[str, dict] = {}
        self._loaded = False

    async def open(self) -> None:
        """Load existing documents from disk."""
        if self.path.exists():
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise StoreError(f"Failed loading record store {self.path}: {e}") from e

            if not isinstance(data, dict):
                raise StoreError(f"Record store {self.path} must contain a JSON object")
            self._documents = data

        self._loaded = True
        self.logger.info("json_store_loaded", path=str(self.path), records=len(self._documents))

    async def exists(self, key: str) -> bool:
        self._ensure_loaded()
        return key in self._documents

    async def upsert(self, key: str, record: PersistedRecord) -> datetime:
        self._ensure_loaded()
        saved_at = datetime.now(timezone.utc)

        document = {**self._documents.get(key, {}), **record.to_document()}
        document["savedAt"] = saved_at.isoformat()
        self._documents[key] = document
        self._write()

        return saved_at

    async def get(self, key: str) -> Optional[PersistedRecord]:
        self._ensure_loaded()
        document = self._documents.get(key)
        if document is None:
            return None
        return replace(PersistedRecord.from_document(document), job_id=key)

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            raise RuntimeError("Store not opened. Use 'async with' context.")

    def _write(self) -> None:
        """Write all documents through a temp file and rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._documents, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreError(f"Failed writing record store {self.path}: {e}") from e

    def __len__(self) -> int:
        return len(self._documents)
