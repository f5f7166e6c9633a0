"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contract for the remote entry source so that the
core can be reused with the Miniflux adapter or an in-memory fake.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from core.models import EntryPage, Feed


class SourceError(Exception):
    """Raised by source adapters when the remote service call fails."""


class EntrySourcePort(Protocol):
    """Remote operations required by the processor."""

    def fetch_page(self, status: Optional[str], limit: int, offset: int) -> EntryPage:
        ...

    def update_status(self, entry_ids: Sequence[int], status: str) -> None:
        ...

    def list_feeds(self) -> List[Feed]:
        ...
