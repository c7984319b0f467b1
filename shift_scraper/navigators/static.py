"""
Static row source: server-rendered rota tables.

For pages that ship the whole table in the initial HTML, so no
browser is needed. Fetches with the shared HttpClient and parses
with BeautifulSoup.
"""

from typing import Optional

import httpx
from bs4 import BeautifulSoup

from shift_scraper.core.errors import RowSourceError
from shift_scraper.core.http_client import HttpClient
from shift_scraper.core.models import RawRow

from .base import RowSource, TableSource, clean_row


def extract_rows(html: str, source: TableSource) -> list[RawRow]:
    """
    Extract table rows from HTML.

    Args:
        html: Page HTML
        source: Selectors for the container and its rows

    Returns:
        Rows in document order
    """
    soup = BeautifulSoup(html, "lxml")
    container = soup.select_one(source.table_selector) or soup

    rows = []
    for tr in container.select(source.row_selector):
        cells = [cell.get_text(" ", strip=True) for cell in tr.find_all(["th", "td"])]
        rows.append(clean_row(cells))

    return rows


class StaticRowSource(RowSource):
    """
    Row source for static HTML.

    Uses the given HttpClient or opens its own for the duration of
    one fetch.
    """

    def __init__(self, source: TableSource, http_client: Optional[HttpClient] = None):
        super().__init__(source)
        self.http_client = http_client

    async def fetch_rows(self) -> list[RawRow]:
        self.logger.info("fetching_static_table", url=self.source.url)

        try:
            if self.http_client is not None:
                html = await self.http_client.get_text(self.source.url)
            else:
                async with HttpClient() as client:
                    html = await client.get_text(self.source.url)
        except httpx.HTTPError as e:
            raise RowSourceError(f"Fetching {self.source.url} failed: {e}") from e

        rows = extract_rows(html, self.source)
        self.logger.info("rows_extracted", url=self.source.url, count=len(rows))
        return rows
