import pytest
from fastapi import HTTPException

from workback.common.error_envelope import build_error_envelope, error_response, forbidden_error


def test_build_error_envelope_defaults():
    envelope = build_error_envelope("project.not_found", "project p9 not found", 404, "project")
    assert envelope.model_dump() == {
        "error": {
            "code": "project.not_found",
            "message": "project p9 not found",
            "http_status": 404,
            "resource_kind": "project",
            "details": {},
        }
    }


def test_error_response_raises_envelope():
    with pytest.raises(HTTPException) as excinfo:
        error_response("row_tick.row_not_found", "row x not found", status_code=404, resource_kind="row")
    assert excinfo.value.status_code == 404
    assert excinfo.value.detail["error"]["code"] == "row_tick.row_not_found"
    assert excinfo.value.detail["error"]["details"] == {}


def test_forbidden_error():
    with pytest.raises(HTTPException) as excinfo:
        forbidden_error("save", "viewer")
    assert excinfo.value.status_code == 403
    assert excinfo.value.detail["error"]["code"] == "state.forbidden"


def test_forbidden_error_names_role_and_action():
    with pytest.raises(HTTPException) as excinfo:
        forbidden_error("tick", "viewer", resource_kind="row")
    assert excinfo.value.status_code == 403
    error = excinfo.value.detail["error"]
    assert error["code"] == "row.forbidden"
    assert error["details"] == {"role": "viewer", "action": "tick"}
