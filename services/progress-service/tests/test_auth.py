"""
Tests for Cognito token verification

Tokens are signed with a throwaway RSA key whose JWK replaces the
downloaded pool keys.
"""
import json
import time

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import HTTPException

from chemquest.config import get_settings
from chemquest.middleware import auth

KID = "test-key"


@pytest.fixture(scope="module")
def private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(autouse=True)
def pool_keys(private_key, monkeypatch):
    jwk = json.loads(jwt.algorithms.RSAAlgorithm.to_jwk(private_key.public_key()))
    jwk["kid"] = KID
    monkeypatch.setattr(auth, "get_cognito_public_keys", lambda: {KID: jwk})


@pytest.fixture
def make_token(private_key):
    def _make(kid=KID, **claims):
        payload = {
            "sub": "user-1",
            "client_id": get_settings().COGNITO_CLIENT_ID,
            "token_use": "access",
            "exp": int(time.time()) + 3600,
        }
        payload.update(claims)
        return jwt.encode(payload, private_key, algorithm="RS256", headers={"kid": kid})
    return _make


def test_valid_token(make_token):
    payload = auth.verify_cognito_token(make_token())
    assert payload["sub"] == "user-1"


def test_expired_token(make_token):
    with pytest.raises(HTTPException) as exc:
        auth.verify_cognito_token(make_token(exp=int(time.time()) - 10))
    assert exc.value.status_code == 401
    assert exc.value.detail == "Token has expired"


def test_unknown_key(make_token):
    with pytest.raises(HTTPException) as exc:
        auth.verify_cognito_token(make_token(kid="other"))
    assert exc.value.status_code == 401


def test_wrong_client(make_token):
    with pytest.raises(HTTPException) as exc:
        auth.verify_cognito_token(make_token(client_id="someone-else"))
    assert exc.value.status_code == 401


def test_garbage_token():
    with pytest.raises(HTTPException) as exc:
        auth.verify_cognito_token("not-a-jwt")
    assert exc.value.status_code == 401


def test_tampered_token(make_token):
    header, payload, signature = make_token().split(".")
    forged = jwt.utils.base64url_encode(json.dumps({"sub": "admin"}).encode()).decode()
    with pytest.raises(HTTPException):
        auth.verify_cognito_token(".".join([header, forged, signature]))


@pytest.mark.parametrize("groups,role", [
    ([], "student"),
    (["teacher"], "teacher"),
    (["teacher", "admin"], "admin"),
])
def test_role_from_groups(groups, role):
    user = auth.user_from_claims({"sub": "user-1", "cognito:groups": groups})
    assert user.role == role


def test_subscription_tier_claim():
    user = auth.user_from_claims({"sub": "user-1", "custom:subscription_tier": "premium"})
    assert user.subscriptionTier == "premium"
    assert auth.user_from_claims({"sub": "user-1"}).subscriptionTier == "free"
