"""
Boundary surface of the triage core.

Every operation returns a JSON-ready dict. Errors from the core come back
as {"ok": False, "error": message} instead of being raised.
"""

import functools
from concurrent.futures import Executor
from dataclasses import asdict
from typing import Optional

from triage.constants import RECENT_READS_LIMIT
from triage.database import init_db
from triage.db_engine import create_triage_engine, set_engine
from triage.errors import TriageError
from triage.models import Document, ReadLogEntry
from triage.reader_client import ReaderClient
from triage.scheduler import SyncScheduler
from triage.settings import TriageSettings, load_settings
from triage.summarizer import get_or_create_summary
from triage.sync import SyncEngine
from triage.triage_queue import TriageQueue
from util.logging_util import setup_logger
from util.secrets import MissingSecretError

logger = setup_logger(__name__)


def document_to_dict(document: Document) -> dict:
    data = asdict(document)
    data["location"] = document.location.value
    data["tags"] = sorted(document.tags)
    return data


def read_to_dict(entry: ReadLogEntry) -> dict:
    return {
        "id": entry.id,
        "documentId": entry.document_id,
        "title": entry.title,
        "sourceUrl": entry.source_url,
        "readAt": entry.read_at,
    }


def _structured_errors(method):
    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except (TriageError, MissingSecretError) as e:
            logger.warning(f"{method.__name__} failed: {e}")
            return {"ok": False, "error": str(e)}
    return wrapper


class TriageService:
    """Wires the store, remote client, sync engine, queue and scheduler together."""

    def __init__(
        self,
        settings: Optional[TriageSettings] = None,
        client: Optional[ReaderClient] = None,
        executor: Optional[Executor] = None,
    ):
        self.settings = settings or TriageSettings()
        self.client = client or ReaderClient(
            mcp_url=self.settings.reader_mcp_url,
            timeout=self.settings.request_timeout_seconds,
        )
        self.sync_engine = SyncEngine(self.client, page_size=self.settings.page_size)
        self.queue = TriageQueue(self.client, executor=executor)
        self.scheduler = SyncScheduler(self.sync_engine, self.settings.sync_interval_seconds)

    @classmethod
    def from_settings(cls, settings: Optional[TriageSettings] = None) -> "TriageService":
        """Build a service backed by the configured database file."""
        settings = settings or load_settings()
        set_engine(create_triage_engine(settings.database_path))
        init_db()
        return cls(settings=settings)

    def start(self):
        """Start background syncing. The first sync runs immediately."""
        self.scheduler.start()

    def stop(self):
        self.scheduler.stop()
        self.queue.close()

    @_structured_errors
    def next_document(self, offset: int = 0) -> dict:
        position = self.queue.next(offset)
        return {
            "ok": True,
            "doc": document_to_dict(position.document) if position.document else None,
            "remaining": position.remaining,
        }

    @_structured_errors
    def swipe(self, document_id: str, action: str) -> dict:
        self.queue.swipe(document_id, action)
        return {"ok": True}

    @_structured_errors
    def undo(self) -> dict:
        restored = self.queue.undo()
        return {"ok": True, "title": restored.title}

    @_structured_errors
    def record_read(self, document_id: str, title: Optional[str], source_url: Optional[str]) -> dict:
        self.queue.record_read(document_id, title, source_url)
        return {"ok": True}

    @_structured_errors
    def recent_reads(self, limit: int = RECENT_READS_LIMIT) -> dict:
        return {"ok": True, "reads": [read_to_dict(entry) for entry in self.queue.recent_reads(limit)]}

    @_structured_errors
    def summarize(self, document_id: str, title: Optional[str]) -> dict:
        summary = get_or_create_summary(
            self.client,
            document_id,
            title,
            model_name=self.settings.summary_model,
            temperature=self.settings.summary_temperature,
        )
        return {"ok": True, "summary": summary.summary, "keyPoints": summary.key_points}

    def sync_now(self) -> dict:
        result = self.sync_engine.sync_library()
        response = {
            "ok": result.error is None,
            "updated": result.updated,
            "incremental": result.incremental,
        }
        if result.error:
            response["error"] = result.error
        return response

    def sync_status(self) -> dict:
        status = self.sync_engine.status()
        return {
            "inProgress": status.in_progress,
            "lastSyncAt": status.last_sync_at,
            "lastSyncCount": status.last_sync_count,
            "lastError": status.last_error,
        }
