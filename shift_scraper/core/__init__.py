"""
Core layer - stable foundation for the scraping system.

Components:
- models: RowContext, CandidateRecord, PersistedRecord, RunResult
- normalizer: free-text date normalization, row recognition helpers
- table_walker: date -> event -> role state machine over table rows
- deduplicator: content hashing and create-once persistence
- retry: exponential backoff around fallible calls
- http_client: retrying httpx client
"""

from .models import CandidateRecord, PersistedRecord, RawRow, RowContext, RunResult
from .normalizer import UNPARSEABLE, normalize_date, is_date_heading, is_time_range
from .table_walker import TableWalker, WalkResult, RowKind, walk_rows
from .deduplicator import Deduplicator, generate_content_hash
from .retry import RetryPolicy, retry_async
from .errors import (
    ShiftScraperError,
    ConfigurationError,
    RowSourceError,
    StoreError,
    NotificationError,
)

__all__ = [
    "CandidateRecord",
    "PersistedRecord",
    "RawRow",
    "RowContext",
    "RunResult",
    "UNPARSEABLE",
    "normalize_date",
    "is_date_heading",
    "is_time_range",
    "TableWalker",
    "WalkResult",
    "RowKind",
    "walk_rows",
    "Deduplicator",
    "generate_content_hash",
    "RetryPolicy",
    "retry_async",
    "ShiftScraperError",
    "ConfigurationError",
    "RowSourceError",
    "StoreError",
    "NotificationError",
]
