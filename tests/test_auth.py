from __future__ import annotations

import time

import pytest
from jose import jwt

from edulink.auth.identity import Identity
from edulink.core import config as app_config
from edulink.core.security import get_token_subject


def _token(claims: dict, secret: str | None = None) -> str:
    secret = secret or app_config.settings.AUTH_JWT_SECRET
    return jwt.encode(claims, secret, algorithm="HS256")


def _claims(**overrides) -> dict:
    now = int(time.time())
    claims = {
        "sub": "22222222-2222-2222-2222-222222222222",
        "aud": "authenticated",
        "email": "Sam@Example.com",
        "iat": now,
        "exp": now + 3600,
        "user_metadata": {"full_name": "Sam Student", "role": "Student", "avatar_url": "https://img/x.png"},
    }
    claims.update(overrides)
    return claims


def test_get_token_subject_accepts_valid_token():
    sub, claims = get_token_subject(_token(_claims()))
    assert sub == "22222222-2222-2222-2222-222222222222"
    assert claims["aud"] == "authenticated"


@pytest.mark.parametrize(
    "claims,secret",
    [
        (_claims(exp=int(time.time()) - 10), None),
        (_claims(aud="someone-else"), None),
        (_claims(), "wrong-secret"),
        (_claims(sub=""), None),
    ],
)
def test_get_token_subject_rejects_bad_tokens(claims, secret):
    with pytest.raises(ValueError):
        get_token_subject(_token(claims, secret))


def test_identity_from_claims_reads_user_metadata():
    identity = Identity.from_claims("abc", _claims())
    assert identity.user_id == "abc"
    assert identity.email == "sam@example.com"
    assert identity.name == "Sam Student"
    assert identity.role_hint == "student"
    assert identity.avatar_url == "https://img/x.png"


def test_identity_from_claims_without_metadata():
    identity = Identity.from_claims("abc", {"sub": "abc"})
    assert identity.email is None
    assert identity.name is None
    assert identity.role_hint is None


def test_bearer_token_resolves_profile(client, student):
    resp = client.get("/profiles/me", headers={"Authorization": f"Bearer {_token(_claims())}"})
    assert resp.status_code == 200
    assert resp.json()["id"] == student.id


def test_signup_with_real_token_uses_metadata_role(client, db_session):
    claims = _claims(sub="55555555-5555-5555-5555-555555555555")
    claims["user_metadata"]["role"] = "educator"
    resp = client.post(
        "/profiles/complete-signup",
        json={},
        headers={"Authorization": f"Bearer {_token(claims)}"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["profile"]["role"] == "educator"
    assert body["profile"]["name"] == "Sam Student"
    assert body["profile"]["email"] == "sam@example.com"


def test_expired_token_is_unauthorized(client, student):
    token = _token(_claims(exp=int(time.time()) - 10))
    resp = client.get("/profiles/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid or expired token"
