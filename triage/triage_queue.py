"""
Triage queue: serves undecided documents and records keep/dismiss decisions.

Decisions are mirrored to the remote library as moves (keep -> shortlist,
dismiss -> archive, undo -> new). Mirroring runs in the background after
the local write has committed and its failures are only logged.
"""

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from typing import List, Optional, Set, Union

from triage.constants import NOTHING_TO_UNDO_MESSAGE, RECENT_READS_LIMIT
from triage.database import (
    count_undecided,
    delete_swipe,
    get_latest_swipe,
    get_recent_reads,
    get_undecided_document,
    insert_read,
    upsert_swipe,
)
from triage.errors import NotFoundError, ValidationError
from triage.models import Location, QueuePosition, ReadLogEntry, SwipeAction, SwipeDecision
from triage.reader_client import ReaderClient
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def parse_action(action: Union[str, SwipeAction]) -> SwipeAction:
    """Validate a swipe action. Only 'keep' and 'dismiss' are accepted."""
    if isinstance(action, SwipeAction):
        return action
    try:
        return SwipeAction(action)
    except ValueError:
        raise ValidationError(
            f"Invalid action {action!r}: expected 'keep' or 'dismiss'"
        ) from None


class TriageQueue:
    """Keep/dismiss triage over the documents in the store.

    Undo always targets the most recent decision in the whole store, not
    per document or per caller. Only one level is kept: once a decision is
    undone, older decisions stay put until a newer decision is made. That
    limit lives in this instance, so a fresh process can undo one more
    decision.
    """

    def __init__(self, client: ReaderClient, executor: Optional[Executor] = None):
        self._client = client
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="relocate")
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()
        self._undo_lock = threading.Lock()
        # swiped_at of the last undone decision
        self._undone_at: Optional[float] = None

    def next(self, offset: int = 0) -> QueuePosition:
        """The undecided document at `offset`, newest saved first.

        `document` is None once the offset runs past the end of the queue.
        Positions can shift if a sync adds documents between calls.
        """
        if offset < 0:
            raise ValidationError(f"Offset must be non-negative, got {offset}")
        document = get_undecided_document(offset)
        return QueuePosition(document=document, remaining=count_undecided())

    def swipe(self, document_id: str, action: Union[str, SwipeAction]) -> SwipeDecision:
        """Record a decision for a document and mirror it to the remote library.

        Swiping an already decided document replaces its decision.
        """
        swipe_action = parse_action(action)
        decision = upsert_swipe(document_id, swipe_action)
        logger.info(f"Swiped {document_id}: {swipe_action.value}")

        self._dispatch_relocation(document_id, swipe_action.target_location)
        return decision

    def undo(self) -> SwipeDecision:
        """Remove the most recent decision and return the document to the queue.

        Returns:
            The removed decision, including the document's title.

        Raises:
            NotFoundError: No decision has been recorded.
        """
        with self._undo_lock:
            last = get_latest_swipe()
            if last is None or (self._undone_at is not None and last.swiped_at <= self._undone_at):
                raise NotFoundError(NOTHING_TO_UNDO_MESSAGE)

            delete_swipe(last.document_id)
            self._undone_at = last.swiped_at
        logger.info(f"Undid {last.action.value} on {last.document_id}")

        self._dispatch_relocation(last.document_id, Location.NEW)
        return last

    def record_read(self, document_id: str, title: Optional[str], source_url: Optional[str]) -> int:
        """Append to the read log. Returns the entry id."""
        return insert_read(document_id, title, source_url)

    def recent_reads(self, limit: int = RECENT_READS_LIMIT) -> List[ReadLogEntry]:
        if limit <= 0:
            raise ValidationError(f"Limit must be positive, got {limit}")
        return get_recent_reads(limit)

    def _relocate(self, document_id: str, location: Location) -> bool:
        try:
            self._client.move_document(document_id, location)
        except Exception as e:
            logger.error(f"Failed to move {document_id} to {location.value}: {e}")
            return False
        logger.info(f"Moved {document_id} to {location.value}")
        return True

    def _dispatch_relocation(self, document_id: str, location: Location) -> Optional[Future]:
        try:
            future = self._executor.submit(self._relocate, document_id, location)
        except RuntimeError as e:
            logger.error(f"Failed to move {document_id} to {location.value}: {e}")
            return None
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future):
        with self._pending_lock:
            self._pending.discard(future)

    def wait_for_relocations(self, timeout: Optional[float] = None) -> bool:
        """Block until every dispatched relocation has finished.

        Returns False if the timeout expired first.
        """
        with self._pending_lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self):
        self._executor.shutdown(wait=True)
