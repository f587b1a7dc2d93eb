import time

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import HTTPException
from jose import jwk, jwt

from shifo_api.domain.patients import google

CLIENT_ID = "client-id.apps.googleusercontent.com"


@pytest.fixture(scope="module")
def signing_key():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, serialization.NoEncryption()
    )
    public_pem = private_key.public_key().public_bytes(
        serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
    )
    public_jwk = {**jwk.construct(public_pem, "RS256").to_dict(), "kid": "key-1", "use": "sig"}
    return private_pem, public_jwk


@pytest.fixture
def jwks(monkeypatch, signing_key):
    fetches = []

    def fake_keys(force_refresh=False):
        fetches.append(force_refresh)
        return {"keys": [signing_key[1]]}

    monkeypatch.setattr(google, "get_google_public_keys", fake_keys)
    return fetches


def make_token(private_pem, kid="key-1", **overrides):
    now = int(time.time())
    claims = {
        "iss": "https://accounts.google.com",
        "aud": CLIENT_ID,
        "sub": "1234567890",
        "email": "aziza@gmail.com",
        "email_verified": True,
        "iat": now,
        "exp": now + 3600,
        **overrides,
    }
    return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": kid})


def test_valid_token_returns_claims(signing_key, jwks):
    claims = google.verify_id_token(make_token(signing_key[0], at_hash="abc"), CLIENT_ID)
    assert claims["sub"] == "1234567890"
    assert jwks == [False]


def test_short_issuer_form_is_accepted(signing_key, jwks):
    assert google.verify_id_token(make_token(signing_key[0], iss="accounts.google.com"), CLIENT_ID)


@pytest.mark.parametrize(
    "overrides",
    [{"aud": "someone-else"}, {"iss": "https://evil.example.com"}, {"exp": int(time.time()) - 60}],
)
def test_bad_claims_are_unauthorized(signing_key, jwks, overrides):
    with pytest.raises(HTTPException) as exc:
        google.verify_id_token(make_token(signing_key[0], **overrides), CLIENT_ID)
    assert exc.value.status_code == 401


def test_unknown_key_id_refetches_once(signing_key, jwks):
    with pytest.raises(HTTPException) as exc:
        google.verify_id_token(make_token(signing_key[0], kid="rotated"), CLIENT_ID)
    assert exc.value.status_code == 401
    assert jwks == [False, True]


def test_garbage_token_is_unauthorized(jwks):
    with pytest.raises(HTTPException) as exc:
        google.verify_id_token("not-a-jwt", CLIENT_ID)
    assert exc.value.status_code == 401
