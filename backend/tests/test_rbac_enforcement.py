"""
RBAC Enforcement Tests

Tests that verify role-based access control is properly enforced
across the report, auction and reference endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from auction_reports.api import deps
from auction_reports.core.security import create_access_token_for_subject
from auction_reports.main import app
from auction_reports.models import RoleName


def _stub_user(role_name: RoleName):
    """Create a stub user with the given role for testing."""
    return deps.CurrentUser(id=f"{role_name.value}-1", role=role_name)


@pytest.fixture
def client():
    """Create test client after database setup."""
    return TestClient(app)


def _bearer(role: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token_for_subject('user-1', role)}"}


def test_missing_token_is_rejected(client):
    r = client.get("/api/auctions")
    assert r.status_code == 401


def test_garbage_token_is_rejected(client):
    r = client.get("/api/auctions", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_viewer_token_can_list_auctions(client):
    r = client.get("/api/auctions", headers=_bearer("viewer"))
    assert r.status_code == 200
    assert r.json() == []


def test_unknown_role_in_token_is_forbidden(client):
    r = client.get("/api/auctions", headers=_bearer("farmer"))
    assert r.status_code == 403


def test_viewer_cannot_save_drafts(client, make_report):
    app.dependency_overrides[deps.get_current_user] = lambda: _stub_user(RoleName.viewer)
    r = client.post("/api/reports/draft", json=make_report().model_dump(mode="json"))
    assert r.status_code == 403


def test_viewer_can_validate(client, make_report):
    app.dependency_overrides[deps.get_current_user] = lambda: _stub_user(RoleName.viewer)
    r = client.post("/api/reports/validate", json=make_report().model_dump(mode="json"))
    assert r.status_code == 200
    assert r.json() == {"valid": True, "errors": {}}


def test_editor_cannot_delete_auctions(client):
    app.dependency_overrides[deps.get_current_user] = lambda: _stub_user(RoleName.editor)
    assert client.delete("/api/auctions/some-id").status_code == 403
    assert client.get("/api/auctions/some-id/deletion-preflight").status_code == 403


def test_admin_passes_every_role_gate(client):
    app.dependency_overrides[deps.get_current_user] = lambda: _stub_user(RoleName.admin)
    # Gate passes; the auction simply does not exist.
    assert client.delete("/api/auctions/some-id").status_code == 404
    assert client.post("/api/auctions/some-id/archive").status_code == 404


def test_viewer_cannot_create_reference_rows(client):
    app.dependency_overrides[deps.get_current_user] = lambda: _stub_user(RoleName.viewer)
    r = client.post("/api/reference/buyers", json={"name": "New Buyer"})
    assert r.status_code == 403


def test_only_admin_creates_seasons(client):
    payload = {"season_year": "2026/27", "start_date": "2026-08-01", "end_date": "2027-06-30"}
    app.dependency_overrides[deps.get_current_user] = lambda: _stub_user(RoleName.editor)
    assert client.post("/api/reference/seasons", json=payload).status_code == 403

    app.dependency_overrides[deps.get_current_user] = lambda: _stub_user(RoleName.admin)
    assert client.post("/api/reference/seasons", json=payload).status_code == 201
    assert client.post("/api/reference/seasons", json=payload).status_code == 409
