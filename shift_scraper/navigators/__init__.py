"""
Row sources for rota extraction.

Row sources handle the extraction phase - turning the rota page into
a flat list of rows of cell text.

Strategies:
- BrowserRowSource: headless Chromium (JavaScript-rendered tables)
- StaticRowSource: plain HTTP + HTML parsing (server-rendered tables)

The browser strategy is imported lazily so the static path works
without Playwright browsers installed.
"""

from shift_scraper.core.retry import RetryPolicy

from .base import RowSource, TableSource
from .static import StaticRowSource

__all__ = [
    "RowSource",
    "TableSource",
    "StaticRowSource",
    "create_row_source",
]


def create_row_source(settings) -> RowSource:
    """
    Build the row source selected in settings.

    Args:
        settings: ScraperSettings

    Returns:
        RowSource ready to fetch
    """
    source = TableSource(
        url=settings.scrape_url,
        table_selector=settings.table_selector,
        row_selector=settings.row_selector,
    )

    if settings.row_source == "static":
        return StaticRowSource(source)

    from .browser import BrowserRowSource

    return BrowserRowSource(
        source,
        headless=settings.headless,
        navigation_timeout=settings.navigation_timeout,
        selector_timeout=settings.selector_timeout,
        navigation_policy=RetryPolicy(
            attempts=settings.retry_attempts,
            base_delay=settings.navigation_retry_base_delay,
        ),
        selector_policy=RetryPolicy(
            attempts=settings.selector_attempts,
            base_delay=settings.retry_base_delay,
        ),
    )
