"""
Data models for the shift scraper.

Covers every stage of a run:
- RawRow: trimmed cell texts of one source table row
- RowContext: date/event state carried across a table walk
- CandidateRecord: an extracted, not yet deduplicated role occurrence
- PersistedRecord: a candidate stored under its identity hash
- RunResult: outcome of a whole run
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

# One row of the source table, cell texts in document order.
RawRow = list[str]

UNKNOWN = "unknown"
UNASSIGNED = "Unassigned"
VACANCY_TOKEN = "unassigned"


@dataclass(frozen=True)
class RowContext:
    """
    Hierarchical context threaded through a table walk.

    ``None`` marks an unresolved level, so a heading that literally
    reads "unknown" is still a resolved label.
    """

    date_label: Optional[str] = None
    event_label: Optional[str] = None

    @property
    def has_date(self) -> bool:
        return self.date_label is not None

    @property
    def is_resolved(self) -> bool:
        """True when both date and event are known."""
        return self.date_label is not None and self.event_label is not None

    def with_date(self, label: str) -> "RowContext":
        """Enter a new date section. The event context always resets."""
        return RowContext(date_label=label, event_label=None)

    def with_event(self, label: Optional[str]) -> "RowContext":
        return RowContext(date_label=self.date_label, event_label=label)

    def describe(self) -> dict:
        """Log-friendly view using the ``unknown`` sentinel for unresolved levels."""
        return {
            "date_label": self.date_label if self.date_label is not None else UNKNOWN,
            "event_label": self.event_label if self.event_label is not None else UNKNOWN,
        }


@dataclass(frozen=True)
class CandidateRecord:
    """Role occurrence extracted from the table under a resolved context."""

    date: str  # heading text, not date-normalized
    event_name: str
    role_holder_name: str

    @property
    def identity_fields(self) -> list[str]:
        return [self.date, self.event_name, self.role_holder_name]


def holder_is_vacant(role_holder_name: Optional[str]) -> bool:
    """A role is vacant when its holder text mentions ``unassigned``."""
    return VACANCY_TOKEN in (role_holder_name or "").lower()


@dataclass(frozen=True)
class PersistedRecord:
    """
    Candidate stored under its identity hash.

    Created once per distinct ``job_id`` and never mutated afterwards.
    """

    job_id: str
    date: str
    event_name: str
    role_holder_name: str
    role: str = ""
    normalized_date: str = "unparseable"
    saved_at: Optional[datetime] = None

    @property
    def is_vacancy(self) -> bool:
        return holder_is_vacant(self.role_holder_name)

    @classmethod
    def from_candidate(
        cls,
        candidate: CandidateRecord,
        job_id: str,
        role: str = "",
        normalized_date: str = "unparseable",
    ) -> "PersistedRecord":
        return cls(
            job_id=job_id,
            date=candidate.date,
            event_name=candidate.event_name,
            role_holder_name=candidate.role_holder_name,
            role=role,
            normalized_date=normalized_date,
        )

    def to_document(self) -> dict[str, Any]:
        """Convert to the stored document schema (timestamps left to the store)."""
        return {
            "jobId": self.job_id,
            "date": self.date,
            "normalizedDate": self.normalized_date,
            "eventName": self.event_name,
            "roleHolderName": self.role_holder_name,
            "role": self.role,
            "isVacancy": self.is_vacancy,
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "PersistedRecord":
        saved_at = data.get("savedAt")
        if isinstance(saved_at, str):
            saved_at = datetime.fromisoformat(saved_at)
        return cls(
            job_id=data["jobId"],
            date=data.get("date", ""),
            event_name=data.get("eventName", ""),
            role_holder_name=data.get("roleHolderName", ""),
            role=data.get("role", ""),
            normalized_date=data.get("normalizedDate", "unparseable"),
            saved_at=saved_at if isinstance(saved_at, datetime) else None,
        )


@dataclass
class RunResult:
    """Outcome of one scraper run."""

    success: bool
    rows: int = 0
    candidates: int = 0
    new_records: list[PersistedRecord] = field(default_factory=list)
    duration_seconds: float = 0.0
    error: Optional[str] = None

    @property
    def processed(self) -> int:
        return len(self.new_records)
