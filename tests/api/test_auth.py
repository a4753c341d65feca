"""Bearer token validation on protected routes."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient

from lms.services import token_service
from tests.conftest import ORG_A, auth, mint_token


def _signed(**overrides) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": "learner",
        "iss": token_service.ISSUER,
        "aud": token_service.AUDIENCE,
        "iat": now,
        "exp": now + timedelta(minutes=5),
        "jti": str(uuid.uuid4()),
        "roles": ["staff"],
        "org_id": str(ORG_A),
    }
    payload.update(overrides)
    return jwt.encode(payload, token_service._private_key, algorithm="ES256")


def test_missing_token_is_401(client: TestClient) -> None:
    resp = client.get("/v1/courses")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not authenticated"
    assert resp.headers["www-authenticate"] == "Bearer"


def test_garbage_token_is_401(client: TestClient) -> None:
    resp = client.get("/v1/courses", headers=auth("not-a-jwt"))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token"


def test_expired_token_is_401_and_logged(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    token = _signed(exp=datetime.now(UTC) - timedelta(minutes=1))
    with caplog.at_level(logging.WARNING, logger="lms.api.dependencies"):
        resp = client.get("/v1/courses", headers=auth(token))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token expired"
    assert "Expired token rejected" in caplog.text


def test_wrong_audience_is_401(client: TestClient) -> None:
    resp = client.get("/v1/courses", headers=auth(_signed(aud="someone-else")))
    assert resp.status_code == 401


def test_token_signed_with_other_key_is_401(client: TestClient) -> None:
    other_key = ec.generate_private_key(ec.SECP256R1())
    now = datetime.now(UTC)
    token = jwt.encode(
        {
            "sub": "x",
            "iss": token_service.ISSUER,
            "aud": token_service.AUDIENCE,
            "iat": now,
            "exp": now + timedelta(minutes=5),
            "jti": "j",
        },
        other_key,
        algorithm="ES256",
    )
    assert client.get("/v1/courses", headers=auth(token)).status_code == 401


def test_malformed_org_id_is_401(client: TestClient) -> None:
    resp = client.get("/v1/courses", headers=auth(_signed(org_id="not-a-uuid")))
    assert resp.status_code == 401


def test_valid_token_without_roles_defaults_to_staff(client: TestClient) -> None:
    token = _signed(roles=[])
    assert client.get("/v1/courses", headers=auth(token)).status_code == 200
    assert client.post(
        "/v1/courses", json={"title": "Nope"}, headers=auth(token)
    ).status_code == 403


def test_unknown_role_is_logged_and_grants_nothing(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    token = mint_token(roles=["janitor"])
    with caplog.at_level(logging.WARNING, logger="lms.api.dependencies"):
        resp = client.get("/v1/courses", headers=auth(token))
    assert resp.status_code == 403
    assert "unknown roles ['janitor']" in caplog.text


def test_minted_token_round_trips() -> None:
    claims = token_service.decode_access_token(
        mint_token(username="round-trip", roles=["admin"])
    )
    assert claims["sub"] == "round-trip"
    assert claims["roles"] == ["admin"]
    assert uuid.UUID(claims["org_id"])


@pytest.mark.parametrize("roles", [["staff"], ["admin"], ["provider_admin"]])
def test_tenant_roles_without_org_are_403(
    client: TestClient, caplog: pytest.LogCaptureFixture, roles: list[str]
) -> None:
    token = mint_token(username="stray", roles=roles, org_id=None)
    with caplog.at_level(logging.WARNING, logger="lms.api.dependencies"):
        resp = client.get("/v1/courses", headers=auth(token))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Token carries no organization"
    assert "Token without org_id rejected for user=stray" in caplog.text


def test_operator_without_org_is_accepted(client: TestClient) -> None:
    token = mint_token(username="operator", roles=["super_admin"], org_id=None)
    assert client.get("/v1/courses", headers=auth(token)).status_code == 200
