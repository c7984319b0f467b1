"""
Browser row source: headless Chromium via Playwright.

For rota pages whose table is rendered client-side. Navigation and
the container wait are retried; a container that never appears is
tolerated and rows are read best-effort from the whole page.
"""

from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from shift_scraper.core.errors import RowSourceError
from shift_scraper.core.models import RawRow
from shift_scraper.core.retry import RetryPolicy, retry_async

from .base import RowSource, TableSource, clean_row

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-zygote",
]

# Runs in the page: each row becomes the trimmed inner text of its cells.
EXTRACT_ROWS_JS = """
rows => rows.map(row =>
    Array.from(row.querySelectorAll('th, td')).map(cell => (cell.innerText || '').trim())
)
"""


class BrowserRowSource(RowSource):
    """
    Row source backed by a headless browser.

    Usage:
        source = BrowserRowSource(TableSource(url="https://example.com/rota"))
        rows = await source.fetch_rows()
    """

    def __init__(
        self,
        source: TableSource,
        headless: bool = True,
        navigation_timeout: float = 60.0,
        selector_timeout: float = 8.0,
        navigation_policy: Optional[RetryPolicy] = None,
        selector_policy: Optional[RetryPolicy] = None,
    ):
        """
        Initialize browser row source.

        Args:
            source: Table location and selectors
            headless: Run Chromium without a window
            navigation_timeout: Seconds allowed per page load
            selector_timeout: Seconds allowed per container wait
            navigation_policy: Retries for page navigation
            selector_policy: Retries for the container wait
        """
        super().__init__(source)
        self.headless = headless
        self.navigation_timeout = navigation_timeout
        self.selector_timeout = selector_timeout
        self.navigation_policy = navigation_policy or RetryPolicy(attempts=3, base_delay=1.0)
        self.selector_policy = selector_policy or RetryPolicy(attempts=2, base_delay=0.5)

    async def fetch_rows(self) -> list[RawRow]:
        """Launch Chromium, load the page and read the table rows."""
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=self.headless, args=CHROMIUM_ARGS)
            try:
                page = await browser.new_page()
                page.set_default_navigation_timeout(self.navigation_timeout * 1000)

                await self._navigate(page)
                await self._wait_for_table(page)
                rows = await self._extract_rows(page)
            finally:
                try:
                    await browser.close()
                    self.logger.info("browser_closed")
                except PlaywrightError as e:
                    self.logger.warning("browser_close_failed", error=str(e))

        self.logger.info("rows_extracted", url=self.source.url, count=len(rows))
        return rows

    async def _navigate(self, page: Page) -> None:
        self.logger.info("navigating", url=self.source.url)
        try:
            await retry_async(
                lambda: page.goto(
                    self.source.url,
                    wait_until="networkidle",
                    timeout=self.navigation_timeout * 1000,
                ),
                policy=self.navigation_policy,
                operation_name="page_goto",
            )
        except PlaywrightError as e:
            raise RowSourceError(f"Navigation to {self.source.url} failed: {e}") from e

    async def _wait_for_table(self, page: Page) -> bool:
        """Wait for the table container. Missing containers are not fatal."""
        selector = self.source.table_selector
        try:
            await retry_async(
                lambda: page.wait_for_selector(selector, timeout=self.selector_timeout * 1000),
                policy=self.selector_policy,
                operation_name="wait_for_selector",
            )
            return True
        except PlaywrightError as e:
            self.logger.warning(
                "table_container_not_found",
                selector=selector,
                error=str(e),
            )
            return False

    async def _extract_rows(self, page: Page) -> list[RawRow]:
        """Read rows inside the first matching container, else from the whole page."""
        try:
            container = await page.query_selector(self.source.table_selector)
            scope = container if container is not None else page
            raw_rows = await scope.eval_on_selector_all(self.source.row_selector, EXTRACT_ROWS_JS)
        except PlaywrightError as e:
            raise RowSourceError(f"Row extraction failed: {e}") from e
        return [clean_row(cells) for cells in raw_rows]
