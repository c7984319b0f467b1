"""
Record deduplication using content hashing.

Implements the create-once persistence protocol: every candidate is
hashed, checked against the record store, and written only when its
identity has never been seen, so repeated runs record and report each
shift exactly once.
"""

import hashlib
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

import structlog

from .models import UNKNOWN, CandidateRecord, PersistedRecord
from .normalizer import collapse_whitespace, normalize_date
from .retry import RetryPolicy, retry_async

logger = structlog.get_logger(__name__)

FIELD_SEPARATOR = "|"


def normalize_identity_field(value: Optional[str]) -> str:
    """Lower-case and whitespace-collapse one identity field."""
    return collapse_whitespace(value).lower()


def generate_content_hash(fields: Sequence[Optional[str]]) -> str:
    """
    Generate SHA-256 hash used as both dedupe key and storage key.

    Fields are normalized (missing -> "", lower-cased, whitespace
    collapsed) and joined with ``|`` so field boundaries stay
    significant: ("a", "bc") and ("ab", "c") hash differently.

    Args:
        fields: Ordered semantic fields, e.g. [date, event, holder]

    Returns:
        SHA-256 hex digest
    """
    content = FIELD_SEPARATOR.join(normalize_identity_field(f) for f in fields)
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class Deduplicator:
    """
    Store-backed deduplicator.

    Candidates are processed strictly in order, one store call at a
    time. Hashes found in the store or written during the run are also
    tracked in memory, so duplicates within one table never reach the
    store twice even when the store is not read-after-write consistent.
    A write that fails is not tracked and is attempted again when the
    candidate is processed again.
    """

    def __init__(
        self,
        store,
        retry_policy: Optional[RetryPolicy] = None,
        role: str = "",
        reference: Optional[datetime] = None,
        dry_run: bool = False,
    ):
        """
        Initialize deduplicator.

        Args:
            store: RecordStore with ``exists`` and ``upsert``
            retry_policy: Retry settings for store calls
            role: Target role label stored with each record
            reference: Reference instant for date normalization
            dry_run: Check existence but never write
        """
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy()
        self.role = role
        self.reference = reference
        self.dry_run = dry_run

        self._seen_hashes: set[str] = set()
        self.persisted: list[PersistedRecord] = []
        self.stats = {
            "checked": 0,
            "skipped_unresolved": 0,
            "skipped_existing": 0,
            "skipped_in_run": 0,
            "persisted": 0,
        }

    async def process(self, candidates: Iterable[CandidateRecord]) -> list[PersistedRecord]:
        """
        Persist the candidates whose identity has not been stored yet.

        Args:
            candidates: Candidate records in table order

        Returns:
            Newly persisted records, in input order

        Raises:
            Exception: The last store error once retries are exhausted.
                Records persisted before the failure stay in ``persisted``.
        """
        new_records: list[PersistedRecord] = []

        for candidate in candidates:
            record = await self.process_one(candidate)
            if record is not None:
                new_records.append(record)

        logger.info("deduplication_complete", **self.stats)
        return new_records

    async def process_one(self, candidate: CandidateRecord) -> Optional[PersistedRecord]:
        """Run one candidate through check-then-write. Returns it when new."""
        self.stats["checked"] += 1

        if not candidate.date or candidate.date.strip().lower() == UNKNOWN:
            self.stats["skipped_unresolved"] += 1
            logger.debug("candidate_skipped_unresolved", event_name=candidate.event_name)
            return None

        job_id = generate_content_hash(candidate.identity_fields)

        if job_id in self._seen_hashes:
            self.stats["skipped_in_run"] += 1
            logger.debug("candidate_skipped_duplicate", hash=job_id[:8])
            return None

        exists = await retry_async(
            lambda: self.store.exists(job_id),
            policy=self.retry_policy,
            operation_name="store_exists",
        )

        if exists:
            self._seen_hashes.add(job_id)
            self.stats["skipped_existing"] += 1
            logger.debug("candidate_already_recorded", hash=job_id[:8])
            return None

        record = PersistedRecord.from_candidate(
            candidate,
            job_id=job_id,
            role=self.role,
            normalized_date=normalize_date(candidate.date, self.reference),
        )

        if not self.dry_run:
            saved_at = await retry_async(
                lambda: self.store.upsert(job_id, record),
                policy=self.retry_policy,
                operation_name="store_upsert",
            )
            record = replace(record, saved_at=saved_at)

        self._seen_hashes.add(job_id)
        self.persisted.append(record)
        self.stats["persisted"] += 1

        logger.info(
            "record_persisted",
            hash=job_id[:8],
            date=record.date,
            event_name=record.event_name,
            holder=record.role_holder_name,
            vacancy=record.is_vacancy,
            dry_run=self.dry_run,
        )
        return record

    def __len__(self) -> int:
        """Return number of identities seen this run."""
        return len(self._seen_hashes)
