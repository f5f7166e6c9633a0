"""Miniflux-to-core mapping adapter.

This keeps Miniflux JSON details out of the core pipeline. Miniflux omits
or nulls optional fields freely, so every lookup tolerates missing keys.
"""

from __future__ import annotations

from typing import Any, Optional

from core.models import Entry, EntryPage, Feed


def _text(payload: dict, key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    return str(value)


def build_feed(payload: Optional[dict]) -> Optional[Feed]:
    """Build a core Feed from a Miniflux feed object (None stays None)."""

    if not isinstance(payload, dict) or not payload:
        return None
    return Feed(
        id=int(payload.get("id") or 0),
        title=_text(payload, "title"),
        site_url=_text(payload, "site_url"),
    )


def build_entry(payload: dict) -> Entry:
    """Build a core Entry from a Miniflux entry object."""

    return Entry(
        id=int(payload["id"]),
        title=_text(payload, "title"),
        author=_text(payload, "author"),
        content=_text(payload, "content"),
        feed=build_feed(payload.get("feed")),
    )


def build_entry_page(payload: Any) -> EntryPage:
    """Build an EntryPage from the ``GET /v1/entries`` response body."""

    if not isinstance(payload, dict):
        raise ValueError("entries response must be a JSON object")
    raw_entries = payload.get("entries") or []
    entries = [build_entry(item) for item in raw_entries]
    total = int(payload.get("total") or 0)
    return EntryPage(entries=entries, total=total)
