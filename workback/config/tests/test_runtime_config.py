from workback.config import runtime_config


def test_defaults(monkeypatch):
    for name in (
        "STATE_BACKEND",
        "PERMISSIONS_BACKEND",
        "SP_LIST_STATE",
        "STATE_CONTAINER",
        "OPENAI_MODEL",
        "WORKBACK_DAYS_REQ_TO_STATUS_A",
        "WORKBACK_DAYS_STATUS_A_TO_FIRST_ISSUE",
    ):
        monkeypatch.delenv(name, raising=False)
    assert runtime_config.get_state_backend() == "memory"
    assert runtime_config.get_permissions_backend() == "memory"
    assert runtime_config.get_sp_list_state() == "WorkbackState"
    assert runtime_config.get_state_container() == "workback"
    assert runtime_config.get_openai_model() == "gpt-4o-mini"
    assert runtime_config.get_default_days_req_to_status_a() == 14
    assert runtime_config.get_default_days_status_a_to_first_issue() == 28


def test_permissions_backend_follows_state_backend(monkeypatch):
    monkeypatch.delenv("PERMISSIONS_BACKEND", raising=False)
    monkeypatch.setenv("STATE_BACKEND", "SharePoint")
    assert runtime_config.get_permissions_backend() == "sharepoint"
    monkeypatch.setenv("PERMISSIONS_BACKEND", "memory")
    assert runtime_config.get_permissions_backend() == "memory"


def test_offset_defaults_ignore_garbage(monkeypatch):
    monkeypatch.setenv("WORKBACK_DAYS_REQ_TO_STATUS_A", "ten")
    monkeypatch.setenv("WORKBACK_DAYS_STATUS_A_TO_FIRST_ISSUE", "21")
    assert runtime_config.get_default_days_req_to_status_a() == 14
    assert runtime_config.get_default_days_status_a_to_first_issue() == 21


def test_snapshot_redacts_secrets(monkeypatch):
    monkeypatch.setenv("AAD_CLIENT_SECRET", "shh")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-secret")
    snapshot = runtime_config.config_snapshot()
    assert snapshot["aad_client_secret_set"] is True
    assert snapshot["openai_api_key_set"] is True
    assert "shh" not in str(snapshot.values())
    assert "sk-secret" not in str(snapshot.values())
