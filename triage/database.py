"""
Database operations for the reading triage system.

Uses SQLAlchemy ORM for database access. The public API uses dataclass models
from models.py, with conversion to/from ORM models handled internally.
Each function runs in its own transaction.
"""

import time
from typing import List, Optional

from sqlalchemy import exists, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from triage.db_engine import get_engine, get_session
from triage.errors import ConflictError, TriageError, ValidationError
from triage.models import (
    Document,
    ReadLogEntry,
    Summary,
    SwipeAction,
    SwipeDecision,
)
from triage.orm_models import (
    Base,
    DocumentORM,
    ReadORM,
    SummaryORM,
    SwipeORM,
    document_orm_to_dataclass,
    document_to_row,
    read_orm_to_dataclass,
    summary_orm_to_dataclass,
    swipe_orm_to_dataclass,
)


def _now() -> float:
    return time.time()


def _integrity_error(e: IntegrityError, document_id: str) -> TriageError:
    """Map a store constraint violation onto the triage error taxonomy."""
    message = str(e.orig) if e.orig is not None else str(e)
    if "CHECK constraint" in message:
        return ValidationError(f"Invalid value for document {document_id}: {message}")
    return ConflictError(f"Unknown document: {document_id}")


def init_db():
    """Initialize the database schema."""
    engine = get_engine()
    Base.metadata.create_all(engine)


# Documents


def upsert_document(document: Document) -> None:
    """Insert a document, or overwrite every field of an existing one.

    synced_at is set to the current time but never moves backwards.
    """
    row = document_to_row(document, _now())
    stmt = sqlite_insert(DocumentORM).values(**row)
    updates = {
        column: getattr(stmt.excluded, column)
        for column in row
        if column not in ("id", "synced_at")
    }
    updates["synced_at"] = func.max(DocumentORM.synced_at, stmt.excluded.synced_at)
    stmt = stmt.on_conflict_do_update(index_elements=[DocumentORM.id], set_=updates)

    try:
        with get_session() as session:
            session.execute(stmt)
    except IntegrityError as e:
        raise _integrity_error(e, document.id) from e


def get_document(document_id: str) -> Optional[Document]:
    """Get a document by its id."""
    with get_session() as session:
        orm = session.get(DocumentORM, document_id)
        if orm is None:
            return None
        return document_orm_to_dataclass(orm)


def document_exists(document_id: str) -> bool:
    """Check if a document is in the store."""
    with get_session() as session:
        stmt = select(exists().where(DocumentORM.id == document_id))
        return session.execute(stmt).scalar()


def count_documents() -> int:
    with get_session() as session:
        return session.execute(select(func.count()).select_from(DocumentORM)).scalar_one()


def get_sync_watermark() -> Optional[float]:
    """Latest local write time across all documents, or None for an empty store."""
    with get_session() as session:
        return session.execute(select(func.max(DocumentORM.synced_at))).scalar()


# Triage queue


def _undecided_documents():
    return (
        select(DocumentORM)
        .outerjoin(SwipeORM, SwipeORM.document_id == DocumentORM.id)
        .where(SwipeORM.document_id.is_(None))
    )


def get_undecided_document(offset: int = 0) -> Optional[Document]:
    """Get the undecided document at a position in newest-saved-first order."""
    with get_session() as session:
        stmt = (
            _undecided_documents()
            .order_by(DocumentORM.saved_at.desc(), DocumentORM.id.asc())
            .limit(1)
            .offset(offset)
        )
        orm = session.execute(stmt).scalar_one_or_none()
        if orm is None:
            return None
        return document_orm_to_dataclass(orm)


def count_undecided() -> int:
    """Count documents that have no swipe decision."""
    with get_session() as session:
        stmt = select(func.count()).select_from(_undecided_documents().subquery())
        return session.execute(stmt).scalar_one()


def upsert_swipe(document_id: str, action: SwipeAction) -> SwipeDecision:
    """Record a decision for a document, replacing any earlier one."""
    swiped_at = _now()
    stmt = sqlite_insert(SwipeORM).values(
        document_id=document_id,
        action=action.value,
        swiped_at=swiped_at,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[SwipeORM.document_id],
        set_={"action": stmt.excluded.action, "swiped_at": stmt.excluded.swiped_at},
    )

    try:
        with get_session() as session:
            session.execute(stmt)
    except IntegrityError as e:
        raise _integrity_error(e, document_id) from e

    return SwipeDecision(document_id=document_id, action=action, swiped_at=swiped_at)


def get_swipe(document_id: str) -> Optional[SwipeDecision]:
    """Get the decision recorded for a document."""
    with get_session() as session:
        orm = session.get(SwipeORM, document_id)
        if orm is None:
            return None
        return swipe_orm_to_dataclass(orm)


def get_latest_swipe() -> Optional[SwipeDecision]:
    """Get the most recent decision in the whole store, with its document title."""
    with get_session() as session:
        stmt = (
            select(SwipeORM, DocumentORM.title)
            .join(DocumentORM, DocumentORM.id == SwipeORM.document_id)
            .order_by(SwipeORM.swiped_at.desc())
            .limit(1)
        )
        row = session.execute(stmt).first()
        if row is None:
            return None
        orm, title = row
        return swipe_orm_to_dataclass(orm, title=title)


def delete_swipe(document_id: str) -> bool:
    """Delete the decision for a document.

    Returns True if a decision was deleted.
    """
    with get_session() as session:
        orm = session.get(SwipeORM, document_id)
        if orm is None:
            return False
        session.delete(orm)
        return True


def count_swipes() -> int:
    with get_session() as session:
        return session.execute(select(func.count()).select_from(SwipeORM)).scalar_one()


# Summary cache


def get_summary(document_id: str) -> Optional[Summary]:
    """Get the cached summary for a document."""
    with get_session() as session:
        orm = session.get(SummaryORM, document_id)
        if orm is None:
            return None
        return summary_orm_to_dataclass(orm)


def save_summary(document_id: str, summary: Summary) -> Summary:
    """Cache a summary for a document, replacing any earlier one."""
    created_at = _now()
    stmt = sqlite_insert(SummaryORM).values(
        document_id=document_id,
        summary=summary.summary,
        key_points=summary.key_points,
        created_at=created_at,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[SummaryORM.document_id],
        set_={
            "summary": stmt.excluded.summary,
            "key_points": stmt.excluded.key_points,
            "created_at": stmt.excluded.created_at,
        },
    )

    try:
        with get_session() as session:
            session.execute(stmt)
    except IntegrityError as e:
        raise _integrity_error(e, document_id) from e

    return Summary(
        document_id=document_id,
        summary=summary.summary,
        key_points=list(summary.key_points),
        created_at=created_at,
    )


# Read log


def insert_read(document_id: str, title: Optional[str], source_url: Optional[str]) -> int:
    """Append an entry to the read log.

    Returns the entry id.
    """
    orm = ReadORM(
        document_id=document_id,
        title=title,
        source_url=source_url,
        read_at=_now(),
    )

    try:
        with get_session() as session:
            session.add(orm)
            session.flush()
            return orm.id
    except IntegrityError as e:
        raise _integrity_error(e, document_id) from e


def get_recent_reads(limit: int) -> List[ReadLogEntry]:
    """Get the most recent read log entries, newest first."""
    with get_session() as session:
        stmt = (
            select(ReadORM)
            .order_by(ReadORM.read_at.desc(), ReadORM.id.desc())
            .limit(limit)
        )
        orms = session.execute(stmt).scalars().all()
        return [read_orm_to_dataclass(orm) for orm in orms]
