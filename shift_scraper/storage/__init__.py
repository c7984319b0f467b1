"""
Record stores for persisted shifts.

Stores:
- MemoryRecordStore: in-process dict
- JsonFileRecordStore: local JSON file
- FirestoreRecordStore: Cloud Firestore collection

Firestore is imported lazily by ``create_store`` so local runs and
tests do not need the Firebase SDK configured.
"""

from .base import RecordStore
from .memory import MemoryRecordStore
from .json_file import JsonFileRecordStore

__all__ = [
    "RecordStore",
    "MemoryRecordStore",
    "JsonFileRecordStore",
    "create_store",
]


def create_store(settings) -> RecordStore:
    """
    Build the store selected in settings.

    Args:
        settings: ScraperSettings

    Returns:
        Unopened RecordStore
    """
    if settings.store == "memory":
        return MemoryRecordStore()

    if settings.store == "json":
        return JsonFileRecordStore(settings.json_store_path)

    from .firestore import FirestoreRecordStore

    return FirestoreRecordStore(
        project_id=settings.firebase_project_id,
        collection=settings.collection,
        service_account_json=settings.firebase_service_account,
        service_account_path=settings.firebase_service_account_path,
    )
