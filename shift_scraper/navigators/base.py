"""
Base class for row sources.

Row sources handle the extraction phase - loading the rota page and
returning every table row as a list of trimmed cell texts. They know
nothing about dates, events or roles.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog

from shift_scraper.core.models import RawRow
from shift_scraper.core.normalizer import collapse_whitespace

logger = structlog.get_logger(__name__)

DEFAULT_TABLE_SELECTOR = ".job-listing, .results, #results, table"
DEFAULT_ROW_SELECTOR = "tr"


@dataclass
class TableSource:
    """Where the rota table lives and how to find its rows."""

    url: str
    table_selector: str = DEFAULT_TABLE_SELECTOR
    row_selector: str = DEFAULT_ROW_SELECTOR


def clean_row(cells: list) -> RawRow:
    """Trim and whitespace-collapse raw cell texts."""
    return [collapse_whitespace(c) if isinstance(c, str) else "" for c in cells]


class RowSource(ABC):
    """
    Abstract base class for row sources.

    Strategies:
    - BrowserRowSource: Playwright, for pages rendered with JavaScript
    - StaticRowSource: httpx + BeautifulSoup, for server-rendered tables
    """

    def __init__(self, source: TableSource):
        """
        Initialize row source.

        Args:
            source: Table location and selectors
        """
        self.source = source
        self.logger = logger.bind(row_source=self.__class__.__name__)

    @abstractmethod
    async def fetch_rows(self) -> list[RawRow]:
        """
        Load the page and extract every row.

        Returns:
            Rows in document order, each a list of trimmed cell texts

        Raises:
            RowSourceError: If the page cannot be loaded after retries
        """
        pass

    def get_strategy_name(self) -> str:
        """Return human-readable strategy name."""
        return self.__class__.__name__
