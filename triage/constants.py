"""
Constants for the reading triage system.
"""

from pathlib import Path

MODULE_ROOT = Path(__file__).parent

PROMPTS_DIR = MODULE_ROOT / "prompts"

SETTINGS_PATH = MODULE_ROOT / "data" / "settings.yaml"

DB_NAME = "triage.db"

# Remote collections mirrored locally, in sync order
SYNC_LOCATIONS = ("new", "later", "shortlist")

# Fields requested from the remote listing
SYNC_FIELDS = [
    "title",
    "author",
    "category",
    "summary",
    "source_url",
    "image_url",
    "word_count",
    "reading_time",
    "saved_at",
    "tags",
]

DEFAULT_PAGE_SIZE = 100

# How often the background sync runs (in seconds)
SYNC_INTERVAL_SECONDS = 15 * 60  # 15 minutes

# Summaries only see the start of long articles
MAX_SUMMARY_CONTENT_CHARS = 12_000

RECENT_READS_LIMIT = 20

SYNC_BUSY_MESSAGE = "Sync already in progress"
NOTHING_TO_UNDO_MESSAGE = "Nothing to undo"
