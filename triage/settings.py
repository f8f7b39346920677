"""
Runtime settings for the reading triage system, loaded from YAML.
"""

from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from triage.constants import (
    DB_NAME,
    DEFAULT_PAGE_SIZE,
    MODULE_ROOT,
    SETTINGS_PATH,
    SYNC_INTERVAL_SECONDS,
)
from util.logging_util import setup_logger

logger = setup_logger(__name__)


@dataclass
class TriageSettings:
    """Tunable settings. Every field has a usable default."""
    database_path: str = str(MODULE_ROOT.parent / "data" / DB_NAME)
    sync_interval_seconds: int = SYNC_INTERVAL_SECONDS
    page_size: int = DEFAULT_PAGE_SIZE
    summary_model: str = "gemini-3-flash-preview"
    summary_temperature: float = 0.3
    reader_mcp_url: str = "https://mcp2.readwise.io/mcp"
    request_timeout_seconds: float = 30.0


def load_settings(config_path: Path = SETTINGS_PATH) -> TriageSettings:
    """Load settings from a YAML file, falling back to defaults."""
    if not config_path.exists():
        logger.warning(f"Settings file not found at {config_path}, using defaults")
        return TriageSettings()

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file {config_path} must contain a mapping")

    known = {f.name for f in fields(TriageSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(f"Ignoring unknown settings in {config_path}: {', '.join(unknown)}")

    settings = TriageSettings(**{key: value for key, value in data.items() if key in known})
    if settings.page_size <= 0:
        raise ValueError(f"page_size must be positive, got {settings.page_size}")
    if settings.sync_interval_seconds <= 0:
        raise ValueError(
            f"sync_interval_seconds must be positive, got {settings.sync_interval_seconds}"
        )
    return settings
