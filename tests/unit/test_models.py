"""Tests for data models."""

from datetime import datetime, timezone

import pytest

from shift_scraper.core.models import (
    CandidateRecord,
    PersistedRecord,
    RowContext,
    RunResult,
    holder_is_vacant,
)


class TestRowContext:
    """Tests for RowContext."""

    def test_starts_unresolved(self):
        """Test default context has no date or event."""
        context = RowContext()
        assert context.has_date is False
        assert context.is_resolved is False

    def test_with_date_clears_event(self):
        """Test entering a date resets the event."""
        context = RowContext("Mon 1 Jan", "Clinic").with_date("Tue 2 Jan")
        assert context == RowContext("Tue 2 Jan", None)

    def test_with_event_keeps_date(self):
        """Test setting an event keeps the date."""
        context = RowContext("Mon 1 Jan").with_event("Clinic")
        assert context.is_resolved is True
        assert context.date_label == "Mon 1 Jan"

    def test_literal_unknown_label_is_resolved(self):
        """Test a heading reading 'unknown' still counts as a label."""
        assert RowContext("unknown", "unknown").is_resolved is True

    def test_describe_uses_sentinel(self):
        """Test unresolved levels are logged as 'unknown'."""
        assert RowContext("Mon 1 Jan").describe() == {
            "date_label": "Mon 1 Jan",
            "event_label": "unknown",
        }

    def test_frozen(self):
        """Test contexts are immutable."""
        with pytest.raises(AttributeError):
            RowContext().date_label = "Mon 1 Jan"


class TestVacancy:
    """Tests for vacancy detection."""

    @pytest.mark.parametrize("holder", ["Unassigned", "UNASSIGNED", "unassigned (cover)"])
    def test_vacant(self, holder):
        """Test holder text mentioning 'unassigned'."""
        assert holder_is_vacant(holder) is True

    @pytest.mark.parametrize("holder", ["Dr. A", "", None])
    def test_not_vacant(self, holder):
        """Test named or missing holders."""
        assert holder_is_vacant(holder) is False


class TestPersistedRecord:
    """Tests for PersistedRecord."""

    def create_record(self, **overrides):
        """Helper to create a record."""
        candidate = CandidateRecord("Mon 1 Jan", "Ward Round", overrides.pop("holder", "Dr. A"))
        return PersistedRecord.from_candidate(
            candidate, job_id="abc123", role="Doctor", normalized_date="unparseable"
        )

    def test_from_candidate(self):
        """Test fields copied from the candidate."""
        record = self.create_record()
        assert record.job_id == "abc123"
        assert record.event_name == "Ward Round"
        assert record.saved_at is None

    def test_to_document(self):
        """Test stored document schema."""
        document = self.create_record(holder="Unassigned").to_document()
        assert document == {
            "jobId": "abc123",
            "date": "Mon 1 Jan",
            "normalizedDate": "unparseable",
            "eventName": "Ward Round",
            "roleHolderName": "Unassigned",
            "role": "Doctor",
            "isVacancy": True,
        }

    def test_from_document_parses_saved_at(self):
        """Test ISO savedAt strings are parsed."""
        saved_at = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
        document = {**self.create_record().to_document(), "savedAt": saved_at.isoformat()}

        record = PersistedRecord.from_document(document)

        assert record.saved_at == saved_at
        assert record.role_holder_name == "Dr. A"


class TestRunResult:
    """Tests for RunResult."""

    def test_processed_counts_new_records(self):
        """Test processed equals the number of new records."""
        record = PersistedRecord("a", "Mon 1 Jan", "Clinic", "Dr. A")
        assert RunResult(success=True, new_records=[record, record]).processed == 2
        assert RunResult(success=False).processed == 0
