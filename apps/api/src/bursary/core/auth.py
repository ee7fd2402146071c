"""
Authentication Dependencies

Builds one ``Session`` per request from the optional bearer token. The
session's admin flag comes from the ``admin_users`` allow-list through the
data gateway, never from token claims.

Anonymous requests get an empty session: workflows decide whether they
need a principal (and raise ``AuthRequiredError`` when they do).
"""

import logging
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bursary.core.redis import is_token_revoked
from bursary.core.result import Ok
from bursary.core.security import ACCESS_TOKEN_TYPE, decode_token
from bursary.core.session import Principal, Session
from bursary.modules.applications.gateway import DataGateway, get_gateway

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=False,
    description="JWT Bearer token for authentication",
)


def _invalid_token(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def principal_from_token(token: str) -> tuple[Principal, dict]:
    """
    Validate an access token and extract the principal.

    Returns:
        The principal and the raw claims

    Raises:
        HTTPException 401: If the token is invalid, expired, revoked or not an access token
    """
    payload = decode_token(token)
    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _invalid_token("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _invalid_token("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    jti = payload.get("jti")
    if jti and await is_token_revoked(jti):
        raise _invalid_token("TOKEN_REVOKED", "This session has been signed out.")

    try:
        principal = Principal(
            id=UUID(payload["sub"]),
            email=payload.get("email", ""),
            full_name=payload.get("name"),
        )
    except (ValueError, KeyError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _invalid_token(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e

    return principal, payload


def admin_lookup_for(gateway: DataGateway):
    """Adapt the gateway's allow-list lookup to the session's lookup signature."""

    async def lookup(user_id: UUID) -> bool:
        result = await gateway.is_admin(user_id)
        if isinstance(result, Ok):
            return result.value
        logger.warning(f"Admin allow-list lookup failed ({result.kind.value}): {result.detail}")
        return False

    return lookup


async def get_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    gateway: DataGateway = Depends(get_gateway),
) -> Session:
    """
    FastAPI dependency returning the request's session.

    Usage:
        @router.get("/applications/mine")
        async def mine(session: Session = Depends(get_session)):
            if session.principal is None: ...
    """
    session = Session(admin_lookup=admin_lookup_for(gateway))
    if credentials is None:
        return session

    principal, _ = await principal_from_token(credentials.credentials)
    await session.restore(principal)
    logger.debug(f"Authenticated {principal} (admin={session.is_admin})")
    return session


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    """
    Claims of a required bearer token.

    Raises:
        HTTPException 401: If no valid access token is present
    """
    if credentials is None:
        raise _invalid_token("AUTH_REQUIRED", "Please sign in to continue.")
    _, claims = await principal_from_token(credentials.credentials)
    return claims


__all__ = [
    "admin_lookup_for",
    "get_session",
    "get_token_claims",
    "principal_from_token",
]
