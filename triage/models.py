"""
Data models for the reading triage system.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set


class Location(Enum):
    NEW = "new"
    LATER = "later"
    SHORTLIST = "shortlist"
    ARCHIVE = "archive"


class SwipeAction(Enum):
    KEEP = "keep"
    DISMISS = "dismiss"

    @property
    def target_location(self) -> Location:
        """Where the remote copy of a document goes after this decision."""
        if self is SwipeAction.DISMISS:
            return Location.ARCHIVE
        return Location.SHORTLIST


@dataclass
class Document:
    """A remote library item mirrored into the local store."""
    id: str
    location: Location
    title: Optional[str] = None
    author: Optional[str] = None
    category: Optional[str] = None
    summary: Optional[str] = None
    source_url: Optional[str] = None
    image_url: Optional[str] = None
    word_count: Optional[int] = None
    reading_time: Optional[str] = None
    saved_at: Optional[str] = None
    tags: Set[str] = field(default_factory=set)
    synced_at: Optional[float] = None


@dataclass
class SwipeDecision:
    """A keep/dismiss verdict on one document."""
    document_id: str
    action: SwipeAction
    swiped_at: float
    title: Optional[str] = None


@dataclass
class Summary:
    """Summarizer output, cached per document."""
    summary: str
    key_points: List[str] = field(default_factory=list)
    document_id: Optional[str] = None
    created_at: Optional[float] = None


@dataclass
class ReadLogEntry:
    """One entry in the append-only read log."""
    document_id: str
    read_at: float
    title: Optional[str] = None
    source_url: Optional[str] = None
    id: Optional[int] = None


@dataclass
class DocumentPage:
    """One page of a remote collection listing."""
    records: List[dict] = field(default_factory=list)
    next_cursor: Optional[str] = None


@dataclass
class QueuePosition:
    """The undecided document at an offset, and how many remain undecided."""
    document: Optional[Document]
    remaining: int


@dataclass
class SyncResult:
    """Outcome of one sync run."""
    updated: int
    incremental: bool
    error: Optional[str] = None


@dataclass
class SyncStatus:
    in_progress: bool
    last_sync_at: Optional[float] = None
    last_sync_count: int = 0
    last_error: Optional[str] = None
