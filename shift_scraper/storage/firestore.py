"""
Cloud Firestore record store.

Each record is a document in one collection, keyed by identity hash.
The Firebase Admin SDK is synchronous, so every call runs in a worker
thread to keep the event loop free.

Credentials come from either:
- a service account JSON string, or
- a path to a service account JSON file (relative to the working directory)
"""

import asyncio
import json
import os
from datetime import datetime, timezone
from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, firestore

from shift_scraper.core.errors import ConfigurationError, StoreError
from shift_scraper.core.models import PersistedRecord

from .base import RecordStore

APP_NAME = "shift-scraper"


def load_service_account(
    service_account_json: Optional[str] = None,
    service_account_path: Optional[str] = None,
) -> dict:
    """
    Load service account credentials.

    Args:
        service_account_json: Credentials as a JSON string
        service_account_path: Path to a credentials file

    Returns:
        Parsed service account dict

    Raises:
        ConfigurationError: If neither source is given or parsing fails
    """
    if service_account_json:
        try:
            return json.loads(service_account_json)
        except json.JSONDecodeError as e:
            raise ConfigurationError("firebase_service_account is not valid JSON.") from e

    if service_account_path:
        resolved = os.path.abspath(service_account_path)
        try:
            with open(resolved, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f'Failed loading service account JSON from path "{resolved}": {e}'
            ) from e

    raise ConfigurationError(
        "Either firebase_service_account (JSON string) or "
        "firebase_service_account_path must be provided."
    )


def init_firestore_client(project_id: str, service_account: dict) -> Any:
    """Initialize (or reuse) the named Firebase app and return its Firestore client."""
    if not project_id:
        raise ConfigurationError("firebase_project_id is required for the firestore store.")

    try:
        app = firebase_admin.get_app(APP_NAME)
    except ValueError:
        app = firebase_admin.initialize_app(
            credentials.Certificate(service_account),
            {"projectId": project_id},
            name=APP_NAME,
        )

    return firestore.client(app)


class FirestoreRecordStore(RecordStore):
    """
    Firestore-backed store.

    Usage:
        store = FirestoreRecordStore(project_id="my-project", service_account_path="sa.json")
        async with store:
            await store.upsert(job_id, record)
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        collection: str = "jobs",
        service_account_json: Optional[str] = None,
        service_account_path: Optional[str] = None,
        client: Any = None,
    ):
        """
        Initialize store.

        Args:
            project_id: Firebase project id
            collection: Collection holding the records
            service_account_json: Credentials as a JSON string
            service_account_path: Path to a credentials file
            client: Pre-built Firestore client (skips SDK initialization)
        """
        super().__init__()
        self.project_id = project_id
        self.collection = collection
        self.service_account_json = service_account_json
        self.service_account_path = service_account_path
        self._client = client

    async def open(self) -> None:
        """Initialize the Firebase app unless a client was injected."""
        if self._client is None:
            service_account = load_service_account(
                self.service_account_json,
                self.service_account_path,
            )
            self._client = init_firestore_client(self.project_id, service_account)
            self.logger.info("firestore_initialized", project_id=self.project_id)

    def _document(self, key: str):
        if self._client is None:
            raise RuntimeError("Store not opened. Use 'async with' context.")
        return self._client.collection(self.collection).document(key)

    async def exists(self, key: str) -> bool:
        document = self._document(key)
        try:
            snapshot = await asyncio.to_thread(document.get)
        except Exception as e:
            raise StoreError(f"Firestore read failed for {key[:8]}: {e}") from e
        return bool(snapshot.exists)

    async def upsert(self, key: str, record: PersistedRecord) -> datetime:
        data = record.to_document()
        data["savedAt"] = firestore.SERVER_TIMESTAMP

        document = self._document(key)
        try:
            await asyncio.to_thread(document.set, data, merge=True)
        except Exception as e:
            raise StoreError(f"Firestore write failed for {key[:8]}: {e}") from e

        self.logger.debug("record_stored", key=key[:8], collection=self.collection)
        return datetime.now(timezone.utc)

    async def get(self, key: str) -> Optional[PersistedRecord]:
        snapshot = await asyncio.to_thread(self._document(key).get)
        if not snapshot.exists:
            return None
        return PersistedRecord.from_document({"jobId": key, **snapshot.to_dict()})
