"""
Orchestrator for the shift scraping pipeline.

Coordinates one run, strictly in sequence:
- Row extraction from the rota page
- Table walk into candidate records
- Deduplication and persistence against the record store
- Digest of new records and run summary notifications
"""

import time
from datetime import datetime
from typing import Optional

import structlog

from .config.loader import ScraperSettings
from .core.deduplicator import Deduplicator
from .core.models import PersistedRecord, RunResult
from .core.retry import RetryPolicy
from .core.table_walker import TableWalker
from .navigators import RowSource, create_row_source
from .notifications import ChangeReporter, Notifier, create_notifier
from .storage import RecordStore, create_store

logger = structlog.get_logger(__name__)


class ShiftScraper:
    """
    Runs the rota pipeline once.

    Collaborators are built from settings unless passed in, which is
    how tests swap in an in-memory store and a recording notifier.
    """

    def __init__(
        self,
        settings: ScraperSettings,
        row_source: Optional[RowSource] = None,
        store: Optional[RecordStore] = None,
        notifier: Optional[Notifier] = None,
        dry_run: bool = False,
        reference: Optional[datetime] = None,
    ):
        """
        Initialize scraper.

        Args:
            settings: Validated scraper settings
            row_source: Source of table rows
            store: Record store
            notifier: Notification channel
            dry_run: Check the store but never write or notify
            reference: Reference instant for date normalization (defaults to now)
        """
        self.settings = settings
        self.row_source = row_source if row_source is not None else create_row_source(settings)
        self.store = store if store is not None else create_store(settings)
        self.notifier = notifier if notifier is not None else create_notifier(settings)
        self.dry_run = dry_run
        self.reference = reference

        self.walker = TableWalker(
            target_role=settings.target_role,
            role_column=settings.role_column,
            time_range_holder_column=settings.time_range_holder_column,
            role_row_holder_column=settings.role_row_holder_column,
        )
        self.reporter = ChangeReporter(self.notifier, role=settings.target_role)
        self.deduplicator: Optional[Deduplicator] = None

    async def run(self) -> RunResult:
        """
        Run the pipeline.

        Failures inside the pipeline are caught, reported on a
        best-effort basis and returned as ``RunResult(success=False)``.

        Returns:
            RunResult
        """
        start = time.monotonic()
        result = RunResult(success=False)

        logger.info(
            "scraper_starting",
            url=self.settings.scrape_url,
            role=self.settings.target_role,
            row_source=self.row_source.get_strategy_name(),
            store=self.store.__class__.__name__,
            dry_run=self.dry_run,
        )

        # Credentials and store files are checked before any scraping.
        await self.store.open()

        try:
            rows = await self.row_source.fetch_rows()
            result.rows = len(rows)

            walk = self.walker.walk(rows)
            result.candidates = len(walk.records)

            self.deduplicator = Deduplicator(
                self.store,
                retry_policy=RetryPolicy(
                    attempts=self.settings.retry_attempts,
                    base_delay=self.settings.retry_base_delay,
                ),
                role=self.settings.target_role,
                reference=self.reference or datetime.now(),
                dry_run=self.dry_run,
            )
            result.new_records = await self.deduplicator.process(walk.records)

            result.success = True

        except Exception as e:
            result.error = str(e) or e.__class__.__name__
            logger.exception("scrape_failed", error=result.error)

        finally:
            await self.store.close()

        result.duration_seconds = round(time.monotonic() - start, 1)

        if result.success:
            await self._finish(result)
        else:
            await self._fail(result)

        return result

    async def _finish(self, result: RunResult) -> None:
        logger.info(
            "scrape_complete",
            rows=result.rows,
            candidates=result.candidates,
            new_records=result.processed,
            duration=result.duration_seconds,
        )

        if self.dry_run:
            logger.info("dry_run_notifications_skipped", new_records=result.processed)
            return

        await self.reporter.report(result.new_records)

        if self.settings.send_summary:
            await self.notify(
                f"Scraper finished successfully. {result.processed} new jobs. "
                f"Duration: {result.duration_seconds}s."
            )

    async def _fail(self, result: RunResult) -> None:
        # Records written before the failure will not be reported by the next run.
        persisted = self._persisted_so_far()
        result.new_records = persisted
        if persisted and not self.dry_run:
            await self.reporter.report(persisted)

        await self.notify(f"Scraper failed: {result.error}")

    def _persisted_so_far(self) -> list[PersistedRecord]:
        if self.deduplicator is None:
            return []
        return list(self.deduplicator.persisted)

    async def notify(self, text: str) -> None:
        """Send a message, logging instead of raising on failure."""
        if self.dry_run:
            logger.info("dry_run_notification_skipped", text=text[:80])
            return
        try:
            await self.notifier.send(text)
        except Exception as e:
            logger.warning("notification_failed", error=str(e))


async def run_scraper(
    settings: ScraperSettings,
    dry_run: bool = False,
) -> RunResult:
    """
    Convenience function to run the scraper.

    Args:
        settings: Validated settings
        dry_run: Check the store but never write or notify

    Returns:
        RunResult
    """
    scraper = ShiftScraper(settings, dry_run=dry_run)
    return await scraper.run()
