"""
Typed failures raised by the scraping pipeline.

Parse and classification anomalies are never raised: offending rows
are dropped and logged. Everything here aborts the current run.
"""


class ShiftScraperError(Exception):
    """Base class for all scraper failures."""


class ConfigurationError(ShiftScraperError):
    """Missing or invalid settings or credentials. Raised before scraping starts."""


class RowSourceError(ShiftScraperError):
    """The source table could not be loaded or read."""


class StoreError(ShiftScraperError):
    """The record store rejected or failed an operation."""


class NotificationError(ShiftScraperError):
    """The notification channel refused a message."""
