"""Tests for deduplicator functions."""

import pytest

from shift_scraper.core.deduplicator import Deduplicator, generate_content_hash
from shift_scraper.core.models import CandidateRecord
from shift_scraper.core.retry import RetryPolicy
from shift_scraper.storage.memory import MemoryRecordStore


NO_WAIT = RetryPolicy(attempts=3, base_delay=0)


class FlakyStore(MemoryRecordStore):
    """Memory store whose calls fail a fixed number of times."""

    def __init__(self, exists_failures=0, upsert_failures=0):
        super().__init__()
        self.exists_failures = exists_failures
        self.upsert_failures = upsert_failures
        self.exists_calls = 0

    async def exists(self, key):
        self.exists_calls += 1
        if self.exists_failures > 0:
            self.exists_failures -= 1
            raise ConnectionError("store unavailable")
        return await super().exists(key)

    async def upsert(self, key, record):
        if self.upsert_failures > 0:
            self.upsert_failures -= 1
            raise ConnectionError("write rejected")
        return await super().upsert(key, record)


class TestGenerateContentHash:
    """Tests for generate_content_hash function."""

    def test_stable(self):
        """Test same fields produce same hash."""
        fields = ["Mon 1 Jan", "Ward Round", "Dr. A"]
        assert generate_content_hash(fields) == generate_content_hash(list(fields))

    def test_hex_digest(self):
        """Test hash is SHA-256 hex."""
        result = generate_content_hash(["a", "b", "c"])
        assert len(result) == 64
        assert all(c in "0123456789abcdef" for c in result)

    def test_different_holder(self):
        """Test holder is part of the identity."""
        h1 = generate_content_hash(["Mon 1 Jan", "Ward Round", "Dr. A"])
        h2 = generate_content_hash(["Mon 1 Jan", "Ward Round", "Dr. B"])
        assert h1 != h2

    def test_field_boundaries_matter(self):
        """Test fields are not simply concatenated."""
        assert generate_content_hash(["a", "bc", ""]) != generate_content_hash(["ab", "c", ""])

    def test_case_and_whitespace_normalized(self):
        """Test cosmetic differences do not change the hash."""
        h1 = generate_content_hash(["Mon 1 Jan", "Ward  Round", "Dr. A"])
        h2 = generate_content_hash(["  mon 1 jan", "WARD ROUND", "dr. a "])
        assert h1 == h2

    def test_none_treated_as_empty(self):
        """Test missing fields hash like empty ones."""
        assert generate_content_hash(["a", None, "c"]) == generate_content_hash(["a", "", "c"])


class TestDeduplicator:
    """Tests for Deduplicator class."""

    def create_candidate(self, date="Mon 1 Jan", event="Ward Round", holder="Dr. A"):
        """Helper to create a candidate record."""
        return CandidateRecord(date=date, event_name=event, role_holder_name=holder)

    @pytest.mark.asyncio
    async def test_new_candidates_persisted(self):
        """Test unseen candidates are written."""
        store = MemoryRecordStore()
        dedup = Deduplicator(store, retry_policy=NO_WAIT, role="Doctor")

        records = await dedup.process([
            self.create_candidate(holder="Dr. A"),
            self.create_candidate(holder="Dr. B"),
        ])

        assert [r.role_holder_name for r in records] == ["Dr. A", "Dr. B"]
        assert len(store) == 2
        assert records[0].role == "Doctor"
        assert records[0].saved_at is not None

    @pytest.mark.asyncio
    async def test_second_run_creates_nothing(self):
        """Test identical input against the same store is idempotent."""
        store = MemoryRecordStore()
        candidates = [self.create_candidate(), self.create_candidate(holder="Dr. B")]

        first = await Deduplicator(store, retry_policy=NO_WAIT).process(candidates)
        second = await Deduplicator(store, retry_policy=NO_WAIT).process(candidates)

        assert len(first) == 2
        assert second == []
        assert store.writes == 2

    @pytest.mark.asyncio
    async def test_in_run_duplicates_written_once(self):
        """Test repeated candidates within one run."""
        store = MemoryRecordStore()
        dedup = Deduplicator(store, retry_policy=NO_WAIT)

        records = await dedup.process([self.create_candidate(), self.create_candidate()])

        assert len(records) == 1
        assert store.writes == 1
        assert dedup.stats["skipped_in_run"] == 1

    @pytest.mark.asyncio
    async def test_unknown_date_skipped(self):
        """Test candidates without a resolved date never reach the store."""
        store = FlakyStore()
        dedup = Deduplicator(store, retry_policy=NO_WAIT)

        records = await dedup.process([
            self.create_candidate(date="unknown"),
            self.create_candidate(date=""),
        ])

        assert records == []
        assert store.exists_calls == 0
        assert dedup.stats["skipped_unresolved"] == 2

    @pytest.mark.asyncio
    async def test_vacancy_and_normalized_date(self):
        """Test derived fields on persisted records."""
        dedup = Deduplicator(MemoryRecordStore(), retry_policy=NO_WAIT)

        records = await dedup.process([
            self.create_candidate(date="Dec 20, 2025 at 3pm", holder="Unassigned"),
        ])

        assert records[0].is_vacancy is True
        assert records[0].normalized_date == "Dec 20, 2025"

    @pytest.mark.asyncio
    async def test_job_id_is_content_hash(self):
        """Test storage key equals the identity hash."""
        store = MemoryRecordStore()
        candidate = self.create_candidate()

        records = await Deduplicator(store, retry_policy=NO_WAIT).process([candidate])

        expected = generate_content_hash(["Mon 1 Jan", "Ward Round", "Dr. A"])
        assert records[0].job_id == expected
        assert expected in store.records

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self):
        """Test dry run reports new records without writing."""
        store = MemoryRecordStore()
        dedup = Deduplicator(store, retry_policy=NO_WAIT, dry_run=True)

        records = await dedup.process([self.create_candidate()])

        assert len(records) == 1
        assert records[0].saved_at is None
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_transient_store_errors_retried(self):
        """Test recoverable failures on both calls."""
        store = FlakyStore(exists_failures=2, upsert_failures=1)
        dedup = Deduplicator(store, retry_policy=NO_WAIT)

        records = await dedup.process([self.create_candidate()])

        assert len(records) == 1
        assert store.exists_calls == 3
        assert store.writes == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries_propagate(self):
        """Test the store error surfaces and earlier records are kept."""
        store = FlakyStore()
        dedup = Deduplicator(store, retry_policy=NO_WAIT)
        await dedup.process([self.create_candidate(holder="Dr. A")])

        store.upsert_failures = 3
        with pytest.raises(ConnectionError):
            await dedup.process([self.create_candidate(holder="Dr. B")])

        assert [r.role_holder_name for r in dedup.persisted] == ["Dr. A"]
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_failed_write_attempted_again(self):
        """Test a candidate whose write failed is written when processed again."""
        store = FlakyStore(upsert_failures=3)
        dedup = Deduplicator(store, retry_policy=NO_WAIT)
        candidate = self.create_candidate()

        with pytest.raises(ConnectionError):
            await dedup.process([candidate])

        records = await dedup.process([candidate])

        assert len(records) == 1
        assert len(store) == 1
        assert dedup.stats["skipped_in_run"] == 0
