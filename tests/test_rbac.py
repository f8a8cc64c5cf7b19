import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from apps.helpdesk.core.config import Settings
from apps.helpdesk.dependencies.auth import parse_claim, resolve_claim_from_token, role_required
from apps.helpdesk.main import create_app
from apps.helpdesk.tickets.models import CallerClaim, Role

TOKENS = {"admin-token": "ADMIN:1", "tech-token": "technician:3", "broken-token": "ADMIN"}


@pytest.mark.asyncio
async def test_role_required_allows_authorized_caller():
    dependency = role_required(Role.ADMIN, Role.TECHNICIAN)
    caller = CallerClaim(subject_id=3, role=Role.TECHNICIAN)
    result = await dependency(caller)  # type: ignore[arg-type]
    assert result is caller


@pytest.mark.asyncio
async def test_role_required_rejects_unauthorized_caller():
    dependency = role_required(Role.ADMIN)
    caller = CallerClaim(subject_id=2, role=Role.CLIENT)
    with pytest.raises(HTTPException) as exc:
        await dependency(caller)  # type: ignore[arg-type]

    assert exc.value.status_code == 403
    assert exc.value.detail == "Role CLIENT is not allowed to perform this action"


def test_parse_claim_normalises_role():
    assert parse_claim("technician:3") == CallerClaim(subject_id=3, role=Role.TECHNICIAN)


@pytest.mark.parametrize("raw", ["ADMIN", "ADMIN:abc", "OWNER:1", "CLIENT:0"])
def test_parse_claim_rejects_malformed_values(raw):
    with pytest.raises(ValueError):
        parse_claim(raw)


def test_resolve_claim_without_token_is_anonymous():
    assert resolve_claim_from_token(None, TOKENS) is None


@pytest.mark.parametrize("token", ["unknown-token", "broken-token"])
def test_resolve_claim_rejects_bad_tokens(token):
    with pytest.raises(HTTPException) as exc:
        resolve_claim_from_token(token, TOKENS)
    assert exc.value.status_code == 401


@pytest.fixture
def token_client(monkeypatch):
    settings = Settings(auth_tokens=TOKENS)
    monkeypatch.setattr("apps.helpdesk.middleware.rbac.get_settings", lambda: settings)
    monkeypatch.setattr("apps.helpdesk.dependencies.auth.get_settings", lambda: settings)
    return TestClient(create_app())


def test_secure_ping_resolves_bearer_token(token_client):
    response = token_client.get("/ping/secure", headers={"Authorization": "Bearer tech-token"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "role": "TECHNICIAN", "subject_id": "3"}


def test_secure_ping_requires_token(token_client):
    response = token_client.get("/ping/secure")

    assert response.status_code == 401
    assert response.json()["detail"] == "Token not provided"


def test_middleware_rejects_unknown_token(token_client):
    response = token_client.get("/ping", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_middleware_rejects_non_bearer_scheme(token_client):
    response = token_client.get("/ping", headers={"Authorization": "Basic YWRtaW46YWRtaW4="})
    assert response.status_code == 401
