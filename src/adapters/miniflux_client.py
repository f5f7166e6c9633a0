"""Miniflux REST API adapter.

Implements the core EntrySourcePort over the Miniflux ``/v1`` API using
blocking HTTP calls, which matches the sequential processing loop.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, List, Optional, Sequence

from adapters.miniflux_mapper import build_entry_page, build_feed
from core.models import EntryPage, Feed
from core.ports import SourceError

LOGGER = logging.getLogger(__name__)

USER_AGENT = "miniflux-rules"


class MinifluxClient:
    """Thin HTTP wrapper that satisfies the EntrySourcePort contract."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 30) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout

    def _endpoint(self, path: str, query: Optional[dict] = None) -> str:
        url = f"{self._base_url}/v1/{path.lstrip('/')}"
        if query:
            url = f"{url}?{urllib.parse.urlencode(query)}"
        return url

    def _request(self, method: str, path: str, query: Optional[dict] = None, body: Any = None) -> Any:
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
        request = urllib.request.Request(self._endpoint(path, query), data=data, method=method)
        request.add_header("X-Auth-Token", self._api_key)
        request.add_header("Accept", "application/json")
        request.add_header("User-Agent", USER_AGENT)
        if data is not None:
            request.add_header("Content-Type", "application/json")

        LOGGER.debug("%s %s", method, request.full_url)
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                raw = response.read()
        except urllib.error.HTTPError as e:
            detail = e.read().decode("utf-8", errors="replace")
            raise SourceError(f"Miniflux API error {e.code} on {method} /v1/{path}: {detail}") from e
        except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
            raise SourceError(f"Miniflux request failed on {method} /v1/{path}: {e}") from e

        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise SourceError(f"Miniflux returned invalid JSON on {method} /v1/{path}") from e

    def fetch_page(self, status: Optional[str], limit: int, offset: int) -> EntryPage:
        """Fetch one page of entries, oldest first for stable offsets."""

        query = {
            "limit": limit,
            "offset": offset,
            "order": "id",
            "direction": "asc",
        }
        if status:
            query["status"] = status
        payload = self._request("GET", "entries", query=query)
        try:
            return build_entry_page(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise SourceError(f"Unexpected entries payload: {e}") from e

    def update_status(self, entry_ids: Sequence[int], status: str) -> None:
        """Set ``status`` on all ``entry_ids`` in a single request."""

        self._request(
            "PUT",
            "entries",
            body={"entry_ids": [int(entry_id) for entry_id in entry_ids], "status": status},
        )

    def list_feeds(self) -> List[Feed]:
        payload = self._request("GET", "feeds") or []
        if not isinstance(payload, list):
            raise SourceError("Unexpected feeds payload: expected a list")
        return [feed for feed in (build_feed(item) for item in payload) if feed is not None]
