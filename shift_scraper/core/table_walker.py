"""
Table walker: rebuilds date -> event -> role structure from flat rows.

The rota is rendered as a flat report. Hierarchy is only implied by
row order and cell content:

    ["Mon 1 Jan"]                                          date heading
    ["09:00 - 10:00", "Ward Round", "Doctor", "", "Dr. A"] event (time range)
    ["Doctor", "Dr. B"]                                    role row

The walk is a fold over the rows. ``step`` takes the current
RowContext and one row and returns the next context plus at most one
CandidateRecord. Rows are classified in a fixed order: date heading,
then time range, then role match. Anything else is ignored.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

import structlog

from .models import UNASSIGNED, CandidateRecord, RawRow, RowContext
from .normalizer import collapse_whitespace, is_date_heading, is_time_range, strip_time_range

logger = structlog.get_logger(__name__)

DEFAULT_TARGET_ROLE = "Doctor"


class RowKind(str, Enum):
    """Classification of a single table row."""
    EMPTY = "empty"
    DATE_HEADING = "date_heading"
    TIME_RANGE = "time_range"
    ROLE_MATCH = "role_match"
    OTHER = "other"


@dataclass
class WalkResult:
    """Final context and records emitted by a walk."""
    context: RowContext
    records: list[CandidateRecord] = field(default_factory=list)
    row_counts: dict = field(default_factory=dict)


def _cell(row: RawRow, index: int) -> Optional[str]:
    """Return the trimmed cell at ``index`` or None when absent."""
    if index < len(row):
        return collapse_whitespace(row[index])
    return None


class TableWalker:
    """
    Finite state machine over rota rows.

    States are implied by the context: no date (seeking date), date
    without event (seeking event), date and event (emitting). Rows
    that arrive before their context is resolved are dropped.
    """

    def __init__(
        self,
        target_role: str = DEFAULT_TARGET_ROLE,
        role_column: int = 2,
        time_range_holder_column: int = 4,
        role_row_holder_column: int = 1,
    ):
        """
        Initialize walker.

        Args:
            target_role: Role label to extract (exact match)
            role_column: Cell holding the role label on time-range rows
            time_range_holder_column: Cell holding the holder on time-range rows
            role_row_holder_column: Cell holding the holder on role rows
        """
        self.target_role = target_role.strip()
        self.role_column = role_column
        self.time_range_holder_column = time_range_holder_column
        self.role_row_holder_column = role_row_holder_column

    def classify(self, row: RawRow) -> RowKind:
        """Classify a row. The first matching rule wins."""
        if not row:
            return RowKind.EMPTY

        first = collapse_whitespace(row[0])
        if is_date_heading(first):
            return RowKind.DATE_HEADING
        if is_time_range(first):
            return RowKind.TIME_RANGE
        if first == self.target_role:
            return RowKind.ROLE_MATCH
        return RowKind.OTHER

    def step(
        self,
        context: RowContext,
        row: RawRow,
    ) -> tuple[RowContext, Optional[CandidateRecord]]:
        """
        Advance the walk by one row.

        Args:
            context: Context before this row
            row: Cell texts of the row

        Returns:
            (context after this row, emitted record or None)
        """
        kind = self.classify(row)

        if kind is RowKind.DATE_HEADING:
            return context.with_date(collapse_whitespace(row[0])), None

        if kind is RowKind.TIME_RANGE:
            context = context.with_event(self._event_label(row))
            if _cell(row, self.role_column) == self.target_role:
                return context, self._emit(
                    context, row, self.time_range_holder_column
                )
            return context, None

        if kind is RowKind.ROLE_MATCH:
            return context, self._emit(context, row, self.role_row_holder_column)

        if kind is RowKind.OTHER:
            logger.debug("row_ignored", first_cell=row[0][:40])
        return context, None

    def walk(
        self,
        rows: Iterable[RawRow],
        context: Optional[RowContext] = None,
    ) -> WalkResult:
        """
        Fold all rows into candidate records.

        Args:
            rows: Rows in document order
            context: Starting context (defaults to unresolved)

        Returns:
            WalkResult with the final context and emitted records
        """
        result = WalkResult(context=context or RowContext())
        counts = {kind.value: 0 for kind in RowKind}

        for row in rows:
            counts[self.classify(row).value] += 1
            result.context, record = self.step(result.context, row)
            if record is not None:
                result.records.append(record)

        result.row_counts = counts
        logger.info(
            "table_walk_complete",
            rows=sum(counts.values()),
            records=len(result.records),
            target_role=self.target_role,
            **counts,
        )
        return result

    def _event_label(self, row: RawRow) -> Optional[str]:
        """Event name from the second cell, minus its time range."""
        raw = _cell(row, 1)
        if not raw:
            return None
        return strip_time_range(raw) or raw

    def _emit(
        self,
        context: RowContext,
        row: RawRow,
        holder_column: int,
    ) -> Optional[CandidateRecord]:
        """Build a record from the context, or drop the row if unresolved."""
        if not context.is_resolved:
            logger.debug(
                "row_dropped_unresolved_context",
                first_cell=row[0][:40],
                **context.describe(),
            )
            return None

        holder = _cell(row, holder_column) or UNASSIGNED
        return CandidateRecord(
            date=context.date_label,
            event_name=context.event_label,
            role_holder_name=holder,
        )


def walk_rows(rows: Iterable[RawRow], target_role: str = DEFAULT_TARGET_ROLE) -> list[CandidateRecord]:
    """Convenience wrapper returning only the emitted records."""
    return TableWalker(target_role=target_role).walk(rows).records
