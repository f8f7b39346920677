"""
SQLAlchemy ORM models for the reading triage system.

These models are internal to the database layer. The public interface
uses the dataclass models from models.py.
"""

import json
from typing import Iterable, List, Optional, Set

from sqlalchemy import (
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from triage.models import (
    Document,
    Location,
    ReadLogEntry,
    Summary,
    SwipeAction,
    SwipeDecision,
)


def encode_tags(tags: Optional[Iterable[str]]) -> str:
    return json.dumps(sorted(set(tags or ())))


def decode_tags(value: Optional[str]) -> Set[str]:
    """Decode a stored tag blob.

    Accepts a JSON array of names or a JSON object keyed by name (the
    remote's own tag format). Anything unreadable means no tags.
    """
    if not value:
        return set()
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError):
        return set()
    if isinstance(decoded, (list, dict)):
        return {name for name in decoded if isinstance(name, str)}
    return set()


class JSONEncodedTagSet(TypeDecorator):
    """Represents a set of tag names as a JSON-encoded string."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Optional[Iterable[str]], dialect) -> str:
        return encode_tags(value)

    def process_result_value(self, value: Optional[str], dialect) -> Set[str]:
        return decode_tags(value)


class JSONEncodedList(TypeDecorator):
    """Represents a list as a JSON-encoded string."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Optional[List], dialect) -> str:
        return json.dumps(list(value or []))

    def process_result_value(self, value: Optional[str], dialect) -> List:
        if value is None:
            return []
        try:
            decoded = json.loads(value)
        except ValueError:
            return []
        return decoded if isinstance(decoded, list) else []


class Base(DeclarativeBase):
    pass


class DocumentORM(Base):
    """SQLAlchemy model for documents table."""

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    author: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    word_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reading_time: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    saved_at: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[Set[str]] = mapped_column(JSONEncodedTagSet, nullable=True)
    synced_at: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "location IN ('new', 'later', 'shortlist', 'archive')",
            name="ck_documents_location",
        ),
        Index("idx_documents_saved_at", "saved_at"),
        Index("idx_documents_synced_at", "synced_at"),
    )


class SwipeORM(Base):
    """SQLAlchemy model for swipes table."""

    __tablename__ = "swipes"

    document_id: Mapped[str] = mapped_column(
        Text, ForeignKey("documents.id"), primary_key=True
    )
    action: Mapped[str] = mapped_column(Text, nullable=False)
    swiped_at: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        CheckConstraint("action IN ('keep', 'dismiss')", name="ck_swipes_action"),
        Index("idx_swipes_swiped_at", "swiped_at"),
    )


class SummaryORM(Base):
    """SQLAlchemy model for summaries table."""

    __tablename__ = "summaries"

    document_id: Mapped[str] = mapped_column(
        Text, ForeignKey("documents.id"), primary_key=True
    )
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    key_points: Mapped[List[str]] = mapped_column(JSONEncodedList, nullable=True)
    created_at: Mapped[float] = mapped_column(Float, nullable=False)


class ReadORM(Base):
    """SQLAlchemy model for reads table."""

    __tablename__ = "reads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[str] = mapped_column(
        Text, ForeignKey("documents.id"), nullable=False
    )
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    read_at: Mapped[float] = mapped_column(Float, nullable=False)


# Conversion functions between ORM models and dataclasses


def document_orm_to_dataclass(orm: DocumentORM) -> Document:
    """Convert a DocumentORM instance to a Document dataclass."""
    return Document(
        id=orm.id,
        location=Location(orm.location),
        title=orm.title,
        author=orm.author,
        category=orm.category,
        summary=orm.summary,
        source_url=orm.source_url,
        image_url=orm.image_url,
        word_count=orm.word_count,
        reading_time=orm.reading_time,
        saved_at=orm.saved_at,
        tags=set(orm.tags or ()),
        synced_at=orm.synced_at,
    )


def document_to_row(document: Document, synced_at: float) -> dict:
    """Column values for inserting or overwriting a document row."""
    return {
        "id": document.id,
        "title": document.title,
        "author": document.author,
        "category": document.category,
        "summary": document.summary,
        "source_url": document.source_url,
        "image_url": document.image_url,
        "word_count": document.word_count,
        "reading_time": document.reading_time,
        "saved_at": document.saved_at,
        "location": document.location.value,
        "tags": document.tags,
        "synced_at": synced_at,
    }


def swipe_orm_to_dataclass(orm: SwipeORM, title: Optional[str] = None) -> SwipeDecision:
    """Convert a SwipeORM instance to a SwipeDecision dataclass."""
    return SwipeDecision(
        document_id=orm.document_id,
        action=SwipeAction(orm.action),
        swiped_at=orm.swiped_at,
        title=title,
    )


def summary_orm_to_dataclass(orm: SummaryORM) -> Summary:
    """Convert a SummaryORM instance to a Summary dataclass."""
    return Summary(
        document_id=orm.document_id,
        summary=orm.summary,
        key_points=list(orm.key_points or []),
        created_at=orm.created_at,
    )


def read_orm_to_dataclass(orm: ReadORM) -> ReadLogEntry:
    """Convert a ReadORM instance to a ReadLogEntry dataclass."""
    return ReadLogEntry(
        id=orm.id,
        document_id=orm.document_id,
        title=orm.title,
        source_url=orm.source_url,
        read_at=orm.read_at,
    )
