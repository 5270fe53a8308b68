from fastapi.testclient import TestClient

from workback.server import create_app


def test_health():
    client = TestClient(create_app())
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "status": "ok", "version": "0.1.0"}


def test_routes_mounted():
    paths = create_app().openapi()["paths"]
    for path in (
        "/api/health",
        "/api/bootstrap",
        "/api/save",
        "/api/rows/{row_id}/tick",
        "/api/state",
        "/api/schedule/dates",
        "/api/summary",
        "/api/summary.csv",
        "/api/projects/{project_id}/programme",
        "/api/chat",
    ):
        assert path in paths
