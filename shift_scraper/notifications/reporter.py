"""
Change reporter: turns newly persisted shifts into a digest message.

Vacant shifts are listed before assigned ones; within each group
records keep their table order. Delivery is best-effort: a failed
send is logged and never fails the run.
"""

from typing import Optional, Sequence

import structlog

from shift_scraper.core.models import PersistedRecord

from .base import Notifier

logger = structlog.get_logger(__name__)

VACANCY_LABEL = "VACANT"
ASSIGNED_LABEL = "Filled"


def order_records(records: Sequence[PersistedRecord]) -> list[PersistedRecord]:
    """Vacancies first. ``sorted`` is stable, so ties keep input order."""
    return sorted(records, key=lambda r: not r.is_vacancy)


def format_record(record: PersistedRecord) -> str:
    """Format one record as a labeled line."""
    label = VACANCY_LABEL if record.is_vacancy else ASSIGNED_LABEL
    date_text = record.date
    if record.normalized_date and record.normalized_date not in ("unparseable", record.date):
        date_text = f"{record.date} ({record.normalized_date})"
    return f"[{label}] {date_text} | {record.event_name} | {record.role_holder_name}"


def format_digest(records: Sequence[PersistedRecord], role: Optional[str] = None) -> str:
    """
    Build the digest text.

    Args:
        records: New records in table order
        role: Role label for the header

    Returns:
        Header line followed by one line per record
    """
    ordered = order_records(records)
    vacancies = sum(1 for r in ordered if r.is_vacancy)

    noun = "shift" if len(ordered) == 1 else "shifts"
    header = f"{len(ordered)} new {role + ' ' if role else ''}{noun}"
    if vacancies:
        header += f" ({vacancies} vacant)"

    return "\n".join([header + ":"] + [format_record(r) for r in ordered])


class ChangeReporter:
    """Sends the digest of new records through a notifier."""

    def __init__(self, notifier: Notifier, role: Optional[str] = None):
        self.notifier = notifier
        self.role = role

    async def report(self, new_records: Sequence[PersistedRecord]) -> bool:
        """
        Send the digest for ``new_records``.

        Args:
            new_records: Records persisted this run

        Returns:
            True if a message was sent
        """
        if not new_records:
            logger.info("no_new_records_to_report")
            return False

        text = format_digest(new_records, self.role)
        try:
            await self.notifier.send(text)
        except Exception as e:
            logger.error("report_failed", records=len(new_records), error=str(e))
            return False

        logger.info("report_sent", records=len(new_records))
        return True
