"""
Authentication middleware for Progress Service

Validates JWT access tokens from AWS Cognito and resolves the caller.
"""
import jwt
import requests
from typing import Dict, Any
from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import logging
from functools import lru_cache

from chemquest.config import get_settings
from chemquest.schemas import CurrentUser

settings = get_settings()
logger = logging.getLogger(__name__)

security = HTTPBearer()

ADMIN_GROUP = "admin"
TEACHER_GROUP = "teacher"


def jwks_url() -> str:
    return (
        f"https://cognito-idp.{settings.COGNITO_REGION}.amazonaws.com/"
        f"{settings.COGNITO_USER_POOL_ID}/.well-known/jwks.json"
    )


@lru_cache()
def get_cognito_public_keys() -> Dict[str, Any]:
    """
    Download and cache Cognito public keys (JWKS)

    Returns:
        Dictionary with public keys indexed by 'kid'
    """
    try:
        response = requests.get(jwks_url(), timeout=10)
        response.raise_for_status()
        keys = response.json()['keys']
        return {key['kid']: key for key in keys}
    except requests.RequestException as e:
        logger.error(f"Error downloading Cognito public keys: {e}")
        raise HTTPException(
            status_code=503,
            detail="Unable to validate authentication tokens"
        )


def verify_cognito_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a Cognito JWT token

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        HTTPException: 401 if the token is invalid or expired
    """
    try:
        kid = jwt.get_unverified_header(token).get('kid')
        public_keys = get_cognito_public_keys()

        if kid not in public_keys:
            raise HTTPException(status_code=401, detail="Invalid token: Unknown key ID")

        public_key = jwt.algorithms.RSAAlgorithm.from_jwk(public_keys[kid])

        payload = jwt.decode(
            token,
            public_key,
            algorithms=['RS256'],
            options={'verify_exp': True, 'verify_aud': False}
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")

    # Access tokens carry client_id instead of aud
    client_id = payload.get('client_id', payload.get('aud'))
    if client_id != settings.COGNITO_CLIENT_ID:
        logger.warning(f"Token issued for another client: {client_id}")
        raise HTTPException(status_code=401, detail="Invalid token: wrong client")

    return payload


def user_from_claims(payload: Dict[str, Any]) -> CurrentUser:
    """Map Cognito claims to CurrentUser (highest group wins for role)"""
    groups = payload.get('cognito:groups', [])
    if ADMIN_GROUP in groups:
        role = "admin"
    elif TEACHER_GROUP in groups:
        role = "teacher"
    else:
        role = "student"

    return CurrentUser(
        id=payload['sub'],
        role=role,
        subscriptionTier=payload.get('custom:subscription_tier', 'free'),
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> CurrentUser:
    """
    Dependency to get the authenticated caller from the Bearer token

    Usage:
        @router.get("/progress/me")
        async def me(user: CurrentUser = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    payload = verify_cognito_token(credentials.credentials)
    if not payload.get('sub'):
        raise HTTPException(status_code=401, detail="Invalid token: missing subject")
    return user_from_claims(payload)
