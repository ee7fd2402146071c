"""
Authentication Service

Account creation, credential checks and token issuance. Passwords are only
ever stored as bcrypt hashes.
"""

import logging
import time

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bursary.core.exceptions import DuplicateAccountError, InvalidCredentialsError
from bursary.core.redis import revoke_token
from bursary.core.security import (
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
)
from bursary.core.session import Principal
from bursary.modules.auth.schemas import SignUpRequest, TokenResponse
from bursary.modules.users.models import User
from bursary.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


def principal_for(user: User) -> Principal:
    return Principal(id=user.id, email=user.email, full_name=user.full_name)


def issue_tokens(user: User) -> TokenResponse:
    """Access and refresh tokens for ``user``."""
    additional_claims = {
        "email": user.email,
        "name": user.full_name,
    }
    return TokenResponse(
        access_token=create_access_token(subject=str(user.id), additional_claims=additional_claims),
        refresh_token=create_refresh_token(subject=str(user.id)),
    )


async def sign_up(db: AsyncSession, data: SignUpRequest) -> User:
    """
    Create an account.

    Raises:
        DuplicateAccountError: The email is already registered
    """
    email = data.email.lower()
    if await UserRepository.email_exists(db, email):
        logger.warning(f"Sign-up rejected, email already registered: {email}")
        raise DuplicateAccountError()

    try:
        user = await UserRepository.create(
            db,
            email=email,
            password_hash=hash_password(data.password),
            full_name=data.full_name.strip(),
        )
        await db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent sign-up for the same email
        await db.rollback()
        raise DuplicateAccountError() from e

    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """
    Check credentials.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
    """
    user = await UserRepository.get_by_email(db, email)

    if not user:
        logger.warning(f"Sign-in attempt for non-existent email: {email}")
        raise InvalidCredentialsError()

    if not verify_password(password, user.password_hash):
        logger.warning(f"Invalid password for user: {email}")
        raise InvalidCredentialsError()

    logger.info(f"User signed in: {user.email}")
    return user


async def sign_out(claims: dict) -> bool:
    """
    Revoke the access token described by ``claims`` until it expires.

    Returns:
        True if the revocation was recorded (False without Redis)
    """
    jti = claims.get("jti")
    if not jti:
        return False
    ttl_seconds = int(claims.get("exp", 0)) - int(time.time())
    try:
        revoked = await revoke_token(jti, ttl_seconds)
    except Exception as e:
        logger.warning(f"Could not revoke token for {claims.get('sub')}: {e}")
        revoked = False
    logger.info(f"User signed out: {claims.get('sub')} (token revoked={revoked})")
    return revoked
