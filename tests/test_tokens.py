from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from errors import Unauthenticated
from models import Role
from services.tokens import TokenService


def test_issue_and_verify():
    svc = TokenService("secret-a")
    claims = svc.verify(svc.issue(42, Role.ADMIN))
    assert claims.id == 42
    assert claims.role is Role.ADMIN


def test_expiry_is_thirty_days():
    svc = TokenService("secret-a")
    now = datetime.now(UTC)
    payload = jwt.get_unverified_claims(svc.issue(1, Role.USER, now=now))
    assert payload["exp"] - payload["iat"] == 30 * 24 * 3600


def test_other_secret_rejected():
    token = TokenService("secret-a").issue(1, Role.USER)
    with pytest.raises(Unauthenticated):
        TokenService("secret-b").verify(token)


def test_expired_token_rejected():
    svc = TokenService("secret-a")
    token = svc.issue(1, Role.USER, now=datetime.now(UTC) - timedelta(days=31))
    with pytest.raises(Unauthenticated):
        svc.verify(token)


def test_malformed_token_rejected():
    with pytest.raises(Unauthenticated):
        TokenService("secret-a").verify("not-a-jwt")


def test_payload_without_id_rejected():
    token = jwt.encode(
        {"role": "user", "exp": datetime.now(UTC) + timedelta(days=1)}, "secret-a", algorithm="HS256"
    )
    with pytest.raises(Unauthenticated):
        TokenService("secret-a").verify(token)


def test_unknown_role_rejected():
    token = jwt.encode(
        {"id": 1, "role": "root", "exp": datetime.now(UTC) + timedelta(days=1)},
        "secret-a",
        algorithm="HS256",
    )
    with pytest.raises(Unauthenticated):
        TokenService("secret-a").verify(token)


def test_missing_secret_is_a_config_error():
    with pytest.raises(RuntimeError):
        TokenService("")
