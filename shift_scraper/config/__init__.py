"""
Configuration module for the shift scraper.

Provides:
- YAML settings loading with environment variable substitution
- ScraperSettings with validation
"""

from .loader import ConfigLoader, ScraperSettings, load_settings, substitute_env_vars

__all__ = ["ConfigLoader", "ScraperSettings", "load_settings", "substitute_env_vars"]
