"""
Shift Scraper - rota watcher that records and reports new shifts once.

Architecture:
- core/: Stable foundation (models, date normalizer, table walker, dedupe, retry)
- navigators/: Row extraction strategies (browser, static HTML)
- storage/: Record stores (Firestore, JSON file, memory)
- notifications/: Notification channels and the change reporter
- config/: YAML-driven settings
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
