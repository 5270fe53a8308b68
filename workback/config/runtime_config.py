"""Runtime configuration helpers for the workback engines."""
from __future__ import annotations

import os
from typing import Optional

DEFAULT_DAYS_REQ_TO_STATUS_A = 14
DEFAULT_DAYS_STATUS_A_TO_FIRST_ISSUE = 28


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def _get_int(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_env() -> Optional[str]:
    return _get_env("ENV") or _get_env("APP_ENV")


def is_dev_env() -> bool:
    env = (get_env() or "dev").lower()
    return env in {"dev", "local"}


# --- persistence backends ---


def get_state_backend() -> str:
    return (_get_env("STATE_BACKEND") or "memory").lower()


def get_permissions_backend() -> str:
    return (_get_env("PERMISSIONS_BACKEND") or get_state_backend()).lower()


# --- SharePoint / Graph ---


def get_sp_site_id() -> Optional[str]:
    return _get_env("SP_SITE_ID")


def get_sp_list_state() -> str:
    return _get_env("SP_LIST_STATE") or "WorkbackState"


def get_sp_list_permissions() -> str:
    return _get_env("SP_LIST_PERMISSIONS") or "WorkbackPermissions"


def get_sp_list_backups() -> str:
    return _get_env("SP_LIST_BACKUPS") or "WorkbackBackups"


def get_aad_tenant_id() -> Optional[str]:
    return _get_env("AAD_TENANT_ID")


def get_aad_client_id() -> Optional[str]:
    return _get_env("AAD_CLIENT_ID")


def get_aad_client_secret() -> Optional[str]:
    return _get_env("AAD_CLIENT_SECRET")


def get_list_id_cache_ttl() -> int:
    return _get_int("LIST_ID_CACHE_TTL_SECONDS", 3600)


# --- Azure Blob ---


def get_storage_connection_string() -> Optional[str]:
    return _get_env("AzureWebJobsStorage") or _get_env("AZURE_STORAGE_CONNECTION_STRING")


def get_state_container() -> str:
    return _get_env("STATE_CONTAINER") or "workback"


def get_state_blob_name() -> str:
    return _get_env("STATE_BLOB_NAME") or "state.json"


def get_backup_prefix() -> str:
    return _get_env("BACKUP_PREFIX") or "backups/"


# --- chat ---


def get_openai_api_key() -> Optional[str]:
    return _get_env("OPENAI_API_KEY")


def get_openai_model() -> str:
    return _get_env("OPENAI_MODEL") or "gpt-4o-mini"


def get_openai_base_url() -> str:
    return _get_env("OPENAI_BASE_URL") or "https://api.openai.com/v1"


# --- schedule defaults ---


def get_default_days_req_to_status_a() -> int:
    return _get_int("WORKBACK_DAYS_REQ_TO_STATUS_A", DEFAULT_DAYS_REQ_TO_STATUS_A)


def get_default_days_status_a_to_first_issue() -> int:
    return _get_int("WORKBACK_DAYS_STATUS_A_TO_FIRST_ISSUE", DEFAULT_DAYS_STATUS_A_TO_FIRST_ISSUE)


def config_snapshot() -> dict:
    """Return a snapshot of env-driven config with secrets redacted."""
    return {
        "env": get_env(),
        "state_backend": get_state_backend(),
        "permissions_backend": get_permissions_backend(),
        "sp_site_id": get_sp_site_id(),
        "sp_list_state": get_sp_list_state(),
        "sp_list_permissions": get_sp_list_permissions(),
        "sp_list_backups": get_sp_list_backups(),
        "aad_client_secret_set": bool(get_aad_client_secret()),
        "state_container": get_state_container(),
        "state_blob_name": get_state_blob_name(),
        "backup_prefix": get_backup_prefix(),
        "openai_api_key_set": bool(get_openai_api_key()),
        "openai_model": get_openai_model(),
    }
