"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to the Miniflux JSON payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

STATUS_UNREAD = "unread"
STATUS_READ = "read"
STATUS_REMOVED = "removed"


@dataclass(frozen=True)
class Feed:
    """Feed metadata attached to an entry (or listed on its own)."""

    id: int
    title: str
    site_url: str = ""


@dataclass(frozen=True)
class Entry:
    """Minimal entry view used by the matcher and processor."""

    id: int
    title: str = ""
    author: str = ""
    content: str = ""
    feed: Optional[Feed] = None

    @property
    def feed_title(self) -> str:
        # Feedless entries behave as if the feed title were empty.
        if self.feed is None:
            return ""
        return self.feed.title


@dataclass(frozen=True)
class EntryPage:
    """One page of entries plus the total count across all pages."""

    entries: List[Entry]
    total: int


@dataclass
class ProcessStats:
    """Counters accumulated during a single processing run."""

    total_entries: int = 0
    matched_entries: int = 0
    marked_read: int = 0
    removed: int = 0
    errors: int = 0

    def summary(self) -> str:
        return (
            f"{self.total_entries} entries checked, {self.matched_entries} matched, "
            f"{self.marked_read} marked read, {self.removed} removed, {self.errors} errors"
        )
