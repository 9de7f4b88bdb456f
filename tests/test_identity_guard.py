from datetime import datetime, timedelta, timezone

import jwt
import pytest
from bson import ObjectId

from taskboard.core.config import settings
from taskboard.core.exceptions import AuthError
from taskboard.repositories import user_repo
from taskboard.services.auth_validator import resolve_account
from taskboard.services.token_service import create_access_token


def _claims(user, **overrides):
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user["_id"]),
        "token_version": user.get("token_version", 0),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=1)).timestamp()),
    }
    claims.update(overrides)
    return {k: v for k, v in claims.items() if v is not None}


def _kind(header):
    with pytest.raises(AuthError) as info:
        resolve_account(header)
    return info.value.kind


def test_valid_token_resolves_account(user):
    token = create_access_token(user=user)
    assert resolve_account(f"Bearer {token}")["_id"] == user["_id"]


@pytest.mark.parametrize("header", [None, "", "   "])
def test_missing_header(db, header):
    assert _kind(header) == AuthError.MISSING


@pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer   ", "bearer abc", "abc"])
def test_malformed_header(db, header):
    assert _kind(header) == AuthError.MALFORMED


def test_undecodable_token_is_malformed(db):
    assert _kind("Bearer not.a.jwt") == AuthError.MALFORMED


def test_expired_token(user):
    token = create_access_token(user=user, expires_in=timedelta(seconds=-10))
    assert _kind(f"Bearer {token}") == AuthError.EXPIRED


def test_foreign_signature_is_invalid(user):
    token = jwt.encode(_claims(user), "someone-elses-secret", algorithm="HS256")
    assert _kind(f"Bearer {token}") == AuthError.INVALID


def test_wrong_audience_is_invalid(user):
    token = jwt.encode(_claims(user, aud="other-app"), settings.jwt_secret, algorithm="HS256")
    assert _kind(f"Bearer {token}") == AuthError.INVALID


def test_missing_subject_is_invalid(user):
    token = jwt.encode(_claims(user, sub=None), settings.jwt_secret, algorithm="HS256")
    assert _kind(f"Bearer {token}") == AuthError.INVALID


def test_unknown_account(db):
    ghost = {"_id": ObjectId(), "token_version": 0}
    token = create_access_token(user=ghost)
    assert _kind(f"Bearer {token}") == AuthError.ACCOUNT_NOT_FOUND


def test_revoked_token(user):
    token = create_access_token(user=user)
    user_repo.increment_token_version(user["_id"])
    with pytest.raises(AuthError) as info:
        resolve_account(f"Bearer {token}")
    assert info.value.kind == AuthError.INVALID
    assert "revoked" in info.value.message


def test_deactivated_account(make_user):
    user = make_user(email="off@example.com", is_active=False)
    token = create_access_token(user=user)
    assert _kind(f"Bearer {token}") == AuthError.ACCOUNT_DEACTIVATED
