"""Whole-document state storage with dated backups.

Every backend replaces the stored document on write (last write wins); there
is no versioning or compare-and-swap.
"""
from __future__ import annotations

import copy
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Tuple

from azure.core.exceptions import ResourceExistsError
from azure.storage.blob import BlobServiceClient, ContainerClient, ContentSettings

from workback.config import runtime_config
from workback.sharepoint.lists import SharePointLists

logger = logging.getLogger(__name__)

STATE_ITEM_TITLE = "STATE"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_document(text: Optional[str], source: str) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    try:
        data = json.loads(text)
    except ValueError as exc:
        logger.warning("Stored state in %s is not valid JSON: %s", source, exc)
        return None
    return data if isinstance(data, dict) else None


class StateRepository(Protocol):
    def read_state(self) -> Optional[Dict[str, Any]]: ...
    def write_state(self, state: Dict[str, Any]) -> None: ...
    def append_backup(self, state: Dict[str, Any], date_iso: str) -> str: ...


class InMemoryStateRepository:
    def __init__(self, state: Optional[Dict[str, Any]] = None) -> None:
        self._state = copy.deepcopy(state) if state is not None else None
        self.backups: List[Tuple[str, Dict[str, Any]]] = []

    def read_state(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._state) if self._state is not None else None

    def write_state(self, state: Dict[str, Any]) -> None:
        self._state = copy.deepcopy(state)

    def append_backup(self, state: Dict[str, Any], date_iso: str) -> str:
        title = f"backup-{date_iso}"
        self.backups.append((title, copy.deepcopy(state)))
        return title


class SharePointStateRepository:
    """State as a single `STATE` item (DataJson column); backups as list items."""

    def __init__(
        self,
        lists: SharePointLists,
        state_list: Optional[str] = None,
        backups_list: Optional[str] = None,
    ) -> None:
        self._lists = lists
        self._state_list = state_list or runtime_config.get_sp_list_state()
        self._backups_list = backups_list or runtime_config.get_sp_list_backups()

    def read_state(self) -> Optional[Dict[str, Any]]:
        item = self._lists.find_item_by_title(self._state_list, STATE_ITEM_TITLE)
        if not item:
            return None
        return _parse_document((item.get("fields") or {}).get("DataJson"), self._state_list)

    def write_state(self, state: Dict[str, Any]) -> None:
        fields = {
            "Title": STATE_ITEM_TITLE,
            "DataJson": json.dumps(state),
            "LastSavedUtc": _utc_now_iso(),
        }
        item = self._lists.find_item_by_title(self._state_list, STATE_ITEM_TITLE)
        if item is None:
            self._lists.create_item(self._state_list, fields)
            logger.info("Created state item in %s", self._state_list)
            return
        self._lists.update_item_fields(self._state_list, item["id"], fields)

    def append_backup(self, state: Dict[str, Any], date_iso: str) -> str:
        title = f"backup-{date_iso}"
        self._lists.create_item(
            self._backups_list,
            {
                "Title": title,
                "DataJson": json.dumps(state),
                "CreatedUtc": _utc_now_iso(),
            },
        )
        return title


class BlobStateRepository:
    """State as one JSON blob; backups as dated copies under a prefix."""

    def __init__(
        self,
        container: ContainerClient,
        blob_name: Optional[str] = None,
        backup_prefix: Optional[str] = None,
    ) -> None:
        self._container = container
        self._blob_name = blob_name or runtime_config.get_state_blob_name()
        self._backup_prefix = backup_prefix or runtime_config.get_backup_prefix()
        self._container_ready = False

    @classmethod
    def from_env(cls) -> "BlobStateRepository":
        conn = runtime_config.get_storage_connection_string()
        if not conn:
            raise RuntimeError("AzureWebJobsStorage is not set")
        service = BlobServiceClient.from_connection_string(conn)
        return cls(service.get_container_client(runtime_config.get_state_container()))

    def _ensure_container(self) -> None:
        if self._container_ready:
            return
        try:
            self._container.create_container()
        except ResourceExistsError:
            pass
        self._container_ready = True

    def _upload(self, blob_name: str, state: Dict[str, Any]) -> None:
        self._ensure_container()
        self._container.get_blob_client(blob_name).upload_blob(
            json.dumps(state),
            overwrite=True,
            content_settings=ContentSettings(content_type="application/json"),
        )

    def read_state(self) -> Optional[Dict[str, Any]]:
        self._ensure_container()
        blob = self._container.get_blob_client(self._blob_name)
        if not blob.exists():
            return None
        text = blob.download_blob().readall()
        if isinstance(text, bytes):
            text = text.decode("utf-8")
        return _parse_document(text, self._blob_name)

    def write_state(self, state: Dict[str, Any]) -> None:
        self._upload(self._blob_name, state)

    def append_backup(self, state: Dict[str, Any], date_iso: str) -> str:
        name = f"{self._backup_prefix}state-{date_iso}.json"
        self._upload(name, state)
        logger.info("Stored blob backup %s", name)
        return name


def build_state_repository(backend: Optional[str] = None) -> StateRepository:
    backend = (backend or runtime_config.get_state_backend()).lower()
    if backend == "sharepoint":
        return SharePointStateRepository(SharePointLists.from_env())
    if backend == "blob":
        return BlobStateRepository.from_env()
    if backend == "memory":
        return InMemoryStateRepository()
    raise RuntimeError(f"Unsupported STATE_BACKEND='{backend}'. Use 'memory', 'sharepoint', or 'blob'.")
