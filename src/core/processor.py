"""Core entry processing loop.

This module is integration-agnostic. It only relies on the source port for
fetching and updating entries, so the Miniflux adapter can be swapped for a
fake in tests without changes here.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.models import STATUS_READ, STATUS_REMOVED, STATUS_UNREAD, Entry, ProcessStats
from core.ports import EntrySourcePort, SourceError
from core.rules_engine import Matcher, MatchResult

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = 100

ACTION_STATUSES = {
    "read": STATUS_READ,
    "remove": STATUS_REMOVED,
}

_DRY_RUN_VERBS = {
    "read": "mark read",
    "remove": "remove",
}


class ProcessingAborted(RuntimeError):
    """A page fetch failed; ``stats`` holds what was counted before it."""

    def __init__(self, message: str, stats: ProcessStats) -> None:
        super().__init__(message)
        self.stats = stats


class EntryProcessor:
    """Pages through remote entries and applies the first matching rule."""

    def __init__(self, source: EntrySourcePort, matcher: Matcher, dry_run: bool = False) -> None:
        self._source = source
        self._matcher = matcher
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def process(self) -> ProcessStats:
        """Run one full pass over the remote entries.

        Live runs only fetch unread entries; dry runs fetch every entry so the
        report also covers items a live run already handled. Raises
        ProcessingAborted when a page cannot be fetched.
        """

        stats = ProcessStats()
        status_filter: Optional[str] = None if self._dry_run else STATUS_UNREAD

        offset = 0
        while True:
            try:
                page = self._source.fetch_page(status_filter, PAGE_SIZE, offset)
            except SourceError as exc:
                LOGGER.error("Failed to fetch entries at offset %s: %s", offset, exc)
                raise ProcessingAborted(f"failed to fetch entries: {exc}", stats) from exc

            if not page.entries:
                break

            for entry in page.entries:
                stats.total_entries += 1
                self._handle_entry(entry, stats)

            offset += len(page.entries)
            # A short page ends the run even if the reported total disagrees.
            if offset >= page.total or len(page.entries) < PAGE_SIZE:
                break

        LOGGER.info("Processing complete: %s", stats.summary())
        return stats

    def _handle_entry(self, entry: Entry, stats: ProcessStats) -> None:
        result = self._matcher.match(entry)
        if not result.matched:
            return

        stats.matched_entries += 1
        LOGGER.info(
            "Rule '%s' matched entry %s: [%s] %s",
            result.rule.name,
            entry.id,
            entry.feed_title,
            entry.title,
        )

        status = self._resolve_status(result, stats)
        if status is None:
            return

        if self._dry_run:
            LOGGER.info(
                "Dry run: would %s entry %s [%s] %s",
                _DRY_RUN_VERBS[result.action],
                entry.id,
                entry.feed_title,
                entry.title,
            )
            return

        try:
            self._source.update_status([entry.id], status)
        except SourceError as exc:
            LOGGER.warning("Failed to update entry %s: %s", entry.id, exc)
            stats.errors += 1
            return

        LOGGER.info("Applied action '%s' to entry %s", result.action, entry.id)

    @staticmethod
    def _resolve_status(result: MatchResult, stats: ProcessStats) -> Optional[str]:
        status = ACTION_STATUSES.get(result.action)
        if status is None:
            LOGGER.warning("Unknown action '%s' for rule '%s'", result.action, result.rule.name)
            stats.errors += 1
            return None

        # Counters track the decided action, so dry and live runs report alike.
        if status == STATUS_READ:
            stats.marked_read += 1
        else:
            stats.removed += 1
        return status
