"""
Library sync: mirrors the remote reading library into the local store.
"""

import threading
import time
from typing import Iterable, Optional, Tuple

from triage.constants import DEFAULT_PAGE_SIZE, SYNC_BUSY_MESSAGE, SYNC_FIELDS, SYNC_LOCATIONS
from triage.database import get_sync_watermark, upsert_document
from triage.errors import ConcurrencyBusyError, RemoteTransportError
from triage.models import Location, SyncResult, SyncStatus
from triage.reader_client import ReaderClient, record_to_document
from util.logging_util import setup_logger

logger = setup_logger(__name__)


class SyncEngine:
    """Reconciles each remote collection into the store.

    At most one sync runs at a time per engine. A run that finds another
    one in progress returns immediately without syncing anything.
    """

    def __init__(
        self,
        client: ReaderClient,
        page_size: int = DEFAULT_PAGE_SIZE,
        locations: Iterable[str] = SYNC_LOCATIONS,
        fields: Iterable[str] = SYNC_FIELDS,
    ):
        self._client = client
        self._page_size = page_size
        self._locations = [Location(location) for location in locations]
        self._fields = list(fields)

        self._running = threading.Lock()
        self._last_sync_at: Optional[float] = None
        self._last_sync_count = 0
        self._last_error: Optional[str] = None

    @property
    def in_progress(self) -> bool:
        return self._running.locked()

    def status(self) -> SyncStatus:
        return SyncStatus(
            in_progress=self.in_progress,
            last_sync_at=self._last_sync_at,
            last_sync_count=self._last_sync_count,
            last_error=self._last_error,
        )

    def _acquire(self):
        if not self._running.acquire(blocking=False):
            raise ConcurrencyBusyError(SYNC_BUSY_MESSAGE)

    def sync_library(self) -> SyncResult:
        """Sync every collection, incrementally when the store has a watermark.

        Returns:
            How many records were written, whether the run was incremental,
            and the failures of any collections that could not be fully synced.
        """
        try:
            self._acquire()
        except ConcurrencyBusyError as e:
            logger.warning(f"Skipping sync: {e}")
            return SyncResult(updated=0, incremental=False, error=str(e))

        try:
            result = self._sync_all()
            self._last_sync_at = time.time()
            self._last_sync_count = result.updated
            self._last_error = result.error
            return result
        finally:
            self._running.release()

    def _sync_all(self) -> SyncResult:
        watermark = get_sync_watermark()
        incremental = watermark is not None
        logger.info(f"Syncing Readwise library ({'incremental' if incremental else 'full'})")

        total = 0
        errors = []
        for location in self._locations:
            synced, error = self._sync_location(location, watermark)
            total += synced
            if error:
                errors.append(error)

        if errors:
            logger.warning(f"Sync finished with errors. {total} documents indexed.")
        else:
            logger.info(f"Sync complete. {total} documents indexed.")

        return SyncResult(
            updated=total,
            incremental=incremental,
            error="; ".join(errors) if errors else None,
        )

    def _sync_location(self, location: Location, watermark: Optional[float]) -> Tuple[int, Optional[str]]:
        """Page through one collection, upserting every record.

        A failure stops this collection only. Records already written stay.

        Returns:
            (records synced, error message or None)
        """
        synced = 0
        cursor = None
        seen_cursors = set()

        try:
            while True:
                page = self._client.list_documents(
                    location,
                    limit=self._page_size,
                    cursor=cursor,
                    fields=self._fields,
                    updated_after=watermark,
                )

                for record in page.records:
                    upsert_document(record_to_document(record, location))
                    synced += 1

                cursor = page.next_cursor
                logger.info(f"  {location.value}: synced {synced} docs{', fetching more...' if cursor else ''}")
                if not cursor:
                    break
                if cursor in seen_cursors:
                    raise RemoteTransportError(f"Cursor {cursor} returned twice")
                seen_cursors.add(cursor)
        except RemoteTransportError as e:
            logger.error(f"Sync of {location.value} failed after {synced} docs: {e}")
            return synced, f"{location.value}: {e}"
        except Exception as e:
            logger.exception(f"Unexpected error syncing {location.value} after {synced} docs")
            return synced, f"{location.value}: {e}"

        return synced, None
