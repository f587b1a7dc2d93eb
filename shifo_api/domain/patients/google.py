"""Google ID token verification against Google's published JWKS"""

import logging
from typing import Optional

import httpx
from jose import JWTError, jwt

from ...errors import service_unavailable, unauthorized

logger = logging.getLogger(__name__)

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("https://accounts.google.com", "accounts.google.com")

# Cache for Google's public keys
_cached_keys: Optional[dict] = None


def get_google_public_keys(force_refresh: bool = False) -> dict:
    """Fetch Google's JWKS (cached in-process)"""
    global _cached_keys
    if _cached_keys and not force_refresh:
        logger.debug("✅ Using cached Google public keys")
        return _cached_keys

    try:
        response = httpx.get(GOOGLE_CERTS_URL, timeout=10.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching Google public keys: {e}")
        raise service_unavailable("Google sign-in is temporarily unavailable") from e

    _cached_keys = response.json()
    logger.info(f"✅ Fetched {len(_cached_keys.get('keys', []))} Google public keys")
    return _cached_keys


def _find_key(jwks: dict, kid: Optional[str]) -> Optional[dict]:
    return next((key for key in jwks.get("keys", []) if key.get("kid") == kid), None)


def verify_id_token(id_token: str, client_id: str) -> dict:
    """Verify signature, issuer, audience and expiry of a Google ID token and return its claims"""
    try:
        header = jwt.get_unverified_header(id_token)
    except JWTError as e:
        raise unauthorized("Invalid Google token") from e

    kid = header.get("kid")
    key = _find_key(get_google_public_keys(), kid)
    if key is None:
        # Google rotates keys; refetch once before giving up
        key = _find_key(get_google_public_keys(force_refresh=True), kid)
    if key is None:
        logger.warning(f"❌ Google token signed with unknown key id {kid}")
        raise unauthorized("Invalid Google token")

    try:
        return jwt.decode(
            id_token,
            key,
            algorithms=[key.get("alg", "RS256")],
            audience=client_id,
            issuer=GOOGLE_ISSUERS,
            # ID tokens may carry at_hash but no access token is sent with them
            options={"verify_at_hash": False},
        )
    except JWTError as e:
        logger.warning(f"❌ Google token verification failed: {e}")
        raise unauthorized("Invalid Google token") from e
