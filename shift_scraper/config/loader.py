"""
YAML settings loader with validation.

Loads scraper settings from YAML files with:
- Environment variable substitution in string values
- Type coercion for substituted values
- Validation of required settings and credentials
"""

import os
import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from shift_scraper.core.errors import ConfigurationError
from shift_scraper.navigators.base import DEFAULT_ROW_SELECTOR, DEFAULT_TABLE_SELECTOR

logger = structlog.get_logger(__name__)

ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")

ROW_SOURCES = ("browser", "static")
STORES = ("firestore", "json", "memory")
TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off", "")


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variables in text.

    Supports formats:
    - ${VAR_NAME} - empty string if unset
    - ${VAR_NAME:-default} - optional with default

    Args:
        text: Text with env var placeholders

    Returns:
        Text with substituted values
    """
    def replace_match(match):
        var_expr = match.group(1)
        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.getenv(var_name) or default
        value = os.getenv(var_expr)
        if value is None:
            logger.debug("env_var_not_set", var=var_expr)
            return ""
        return value

    return ENV_VAR_RE.sub(replace_match, text)


def _substitute(value: Any) -> Any:
    """Apply env substitution to every string in a parsed YAML tree."""
    if isinstance(value, str):
        return substitute_env_vars(value)
    if isinstance(value, dict):
        return {k: _substitute(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute(v) for v in value]
    return value


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _as_number(name: str, value: Any, kind: type):
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be {kind.__name__}, got {value!r}") from e


def _as_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class ScraperSettings:
    """Settings for one scraper deployment."""

    scrape_url: Optional[str] = None
    target_role: str = "Doctor"

    # Row extraction
    row_source: str = "browser"
    table_selector: str = DEFAULT_TABLE_SELECTOR
    row_selector: str = DEFAULT_ROW_SELECTOR
    headless: bool = True
    navigation_timeout: float = 60.0
    selector_timeout: float = 8.0

    # Table columns
    role_column: int = 2
    time_range_holder_column: int = 4
    role_row_holder_column: int = 1

    # Retries
    retry_attempts: int = 3
    retry_base_delay: float = 0.5
    navigation_retry_base_delay: float = 1.0
    selector_attempts: int = 2

    # Persistence
    store: str = "firestore"
    collection: str = "jobs"
    json_store_path: str = "output/jobs.json"
    firebase_project_id: Optional[str] = None
    firebase_service_account: Optional[str] = None
    firebase_service_account_path: Optional[str] = None

    # Notifications
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    send_summary: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "ScraperSettings":
        """
        Create from dictionary (e.g., from YAML), coercing value types.

        Unknown keys are ignored with a warning. Empty values fall back
        to defaults.
        """
        known = {f.name: f for f in fields(cls)}
        defaults = cls()
        values = {}

        for key, raw in data.items():
            if key not in known:
                logger.warning("unknown_setting", key=key)
                continue

            default = getattr(defaults, key)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                values[key] = default
            elif isinstance(default, bool):
                values[key] = _as_bool(key, raw)
            elif isinstance(default, int):
                values[key] = _as_number(key, raw, int)
            elif isinstance(default, float):
                values[key] = _as_number(key, raw, float)
            elif default is None:
                values[key] = _as_optional_str(raw)
            else:
                values[key] = str(raw).strip()

        return cls(**values)

    def with_overrides(self, **overrides) -> "ScraperSettings":
        """Return a copy with non-None overrides applied (CLI flags)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self) -> "ScraperSettings":
        """
        Check settings before any scraping starts.

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: On the first invalid setting
        """
        if not self.scrape_url:
            raise ConfigurationError("scrape_url is required (set SCRAPE_URL).")
        if not self.target_role.strip():
            raise ConfigurationError("target_role must not be empty.")
        if self.row_source not in ROW_SOURCES:
            raise ConfigurationError(
                f"row_source must be one of {', '.join(ROW_SOURCES)}, got {self.row_source!r}"
            )
        if self.store not in STORES:
            raise ConfigurationError(
                f"store must be one of {', '.join(STORES)}, got {self.store!r}"
            )
        if self.retry_attempts < 1 or self.selector_attempts < 1:
            raise ConfigurationError("retry_attempts and selector_attempts must be >= 1.")
        if min(self.retry_base_delay, self.navigation_retry_base_delay) < 0:
            raise ConfigurationError("Retry delays must not be negative.")
        if min(self.role_column, self.time_range_holder_column, self.role_row_holder_column) < 0:
            raise ConfigurationError("Column indexes must not be negative.")

        if self.store == "firestore":
            if not self.firebase_project_id:
                raise ConfigurationError(
                    "firebase_project_id is required for the firestore store (set FIREBASE_PROJECT_ID)."
                )
            if not (self.firebase_service_account or self.firebase_service_account_path):
                raise ConfigurationError(
                    "Either FIREBASE_SERVICE_ACCOUNT (JSON string) or "
                    "FIREBASE_SERVICE_ACCOUNT_PATH must be provided."
                )

        return self

    @property
    def telegram_configured(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


class ConfigLoader:
    """
    Settings loader.

    Loads YAML settings files from a directory and builds
    ScraperSettings from them.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            config_dir: Directory containing config files
                       (defaults to package config directory)
        """
        if config_dir:
            self.config_dir = Path(config_dir)
        else:
            self.config_dir = Path(__file__).parent

    def load_file(self, filename: str) -> dict:
        """
        Load YAML config file.

        Args:
            filename: Config file name (relative to config_dir)

        Returns:
            Parsed config dict with env vars substituted
        """
        filepath = self.config_dir / filename

        if not filepath.exists():
            raise ConfigurationError(f"Config file not found: {filepath}")

        logger.info("loading_config", file=str(filepath))

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {filepath}: {e}") from e

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {filepath} must contain a mapping")

        return _substitute(config)

    def load_settings(self, filename: str = "settings.yml") -> ScraperSettings:
        """
        Load scraper settings from YAML.

        Args:
            filename: Settings file name

        Returns:
            ScraperSettings (not yet validated)
        """
        return ScraperSettings.from_dict(self.load_file(filename))


def load_settings(config_path: Optional[str] = None) -> ScraperSettings:
    """
    Convenience function to load settings.

    Args:
        config_path: Optional path to a settings YAML file

    Returns:
        ScraperSettings (not yet validated)
    """
    if config_path:
        path = Path(config_path)
        return ConfigLoader(str(path.parent)).load_settings(path.name)
    return ConfigLoader().load_settings()
