"""SharePoint list access over Graph: list-id lookup and item CRUD."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from workback.config import runtime_config
from workback.sharepoint.graph_client import AppTokenProvider, GraphClient, GraphConfigError, TokenCache

logger = logging.getLogger(__name__)

ITEMS_PAGE_SIZE = 200


class ListNotFoundError(LookupError):
    pass


class ListIdCache:
    """Display-name -> list-id map with a per-entry time to live."""

    def __init__(self, ttl_seconds: float = 3600.0, clock: Callable[[], float] = time.time) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        list_id, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return list_id

    def put(self, key: str, list_id: str) -> None:
        self._entries[key] = (list_id, self._clock() + self.ttl_seconds)

    def clear(self) -> None:
        self._entries.clear()


class SharePointLists:
    def __init__(self, graph: GraphClient, site_id: Optional[str], list_cache: Optional[ListIdCache] = None) -> None:
        if not site_id:
            raise GraphConfigError("Missing SP_SITE_ID")
        self.graph = graph
        self.site_id = site_id
        self.list_cache = list_cache or ListIdCache()

    @classmethod
    def from_env(
        cls,
        token_cache: Optional[TokenCache] = None,
        list_cache: Optional[ListIdCache] = None,
    ) -> "SharePointLists":
        graph = GraphClient(AppTokenProvider.from_env(cache=token_cache))
        return cls(
            graph,
            runtime_config.get_sp_site_id(),
            list_cache or ListIdCache(ttl_seconds=runtime_config.get_list_id_cache_ttl()),
        )

    def list_id(self, display_name: str) -> str:
        key = f"{self.site_id}::{display_name}"
        cached = self.list_cache.get(key)
        if cached:
            return cached
        for entry in self.graph.iter_pages(f"/sites/{self.site_id}/lists"):
            if str(entry.get("displayName")) == str(display_name):
                self.list_cache.put(key, entry["id"])
                return entry["id"]
        raise ListNotFoundError(f"List not found: {display_name}")

    def _items_path(self, list_name: str) -> str:
        return f"/sites/{self.site_id}/lists/{self.list_id(list_name)}/items"

    def iter_items(self, list_name: str) -> Iterator[Dict[str, Any]]:
        yield from self.graph.iter_pages(f"{self._items_path(list_name)}?$expand=fields&$top={ITEMS_PAGE_SIZE}")

    def iter_fields(self, list_name: str) -> Iterator[Dict[str, Any]]:
        for item in self.iter_items(list_name):
            yield item.get("fields") or {}

    def find_item_by_title(self, list_name: str, title: str) -> Optional[Dict[str, Any]]:
        for item in self.iter_items(list_name):
            if (item.get("fields") or {}).get("Title", "") == title:
                return item
        return None

    def create_item(self, list_name: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self.graph.post(self._items_path(list_name), {"fields": fields})

    def update_item_fields(self, list_name: str, item_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self.graph.patch(f"{self._items_path(list_name)}/{item_id}/fields", fields)
