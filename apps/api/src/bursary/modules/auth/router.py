"""
Authentication Router

Endpoints:
- POST /auth/sign-up - Create an account
- POST /auth/sign-in - Sign in (optionally finishing a paused submission)
- POST /auth/sign-out - Revoke the current access token
- GET  /auth/me - The signed-in principal
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from bursary.core.auth import admin_lookup_for, get_session, get_token_claims
from bursary.core.database import get_db
from bursary.core.exceptions import PortalError
from bursary.core.rate_limit import client_ip, enforce_rate_limit
from bursary.core.session import Session
from bursary.modules.applications.drafts import DraftStore, get_draft_store
from bursary.modules.applications.gateway import DataGateway, get_gateway
from bursary.modules.applications.router import submission_to_response
from bursary.modules.applications.submission import SubmissionWorkflow
from bursary.modules.auth import service
from bursary.modules.auth.schemas import (
    AuthResponse,
    MessageResponse,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_SIGN_IN = (10, 300)  # 10 attempts per 5 minutes per IP
RATE_LIMIT_SIGN_UP = (5, 3600)  # 5 accounts per hour per IP


def _handle_service_error(e: PortalError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(status_code=e.status_code, detail=e.to_detail()) from e


@router.post(
    "/sign-up",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Email already registered"}},
)
async def sign_up(
    data: SignUpRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """
    Create an account and return JWT tokens.

    Raises:
        HTTPException 409: Email already registered
        HTTPException 429: Too many sign-ups from this address
    """
    await enforce_rate_limit(f"auth:sign_up:{client_ip(request)}", *RATE_LIMIT_SIGN_UP)
    try:
        user = await service.sign_up(db, data)
    except PortalError as e:
        _handle_service_error(e)

    tokens = service.issue_tokens(user)
    return AuthResponse(
        **tokens.model_dump(),
        user=UserResponse(id=user.id, email=user.email, full_name=user.full_name, is_admin=False),
    )


@router.post(
    "/sign-in",
    response_model=SignInResponse,
    responses={401: {"description": "Invalid email or password"}},
)
async def sign_in(
    data: SignInRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: DataGateway = Depends(get_gateway),
    store: DraftStore = Depends(get_draft_store),
) -> SignInResponse:
    """
    Authenticate and return JWT tokens.

    With ``resume_draft_id`` naming a draft that is waiting for sign-in,
    the submission completes as part of this request and its result (or
    error) is included in the response.
    """
    await enforce_rate_limit(f"auth:sign_in:{client_ip(request)}", *RATE_LIMIT_SIGN_IN)
    try:
        user = await service.authenticate(db, data.email, data.password)
    except PortalError as e:
        _handle_service_error(e)

    session = Session(admin_lookup=admin_lookup_for(gateway))
    workflow: SubmissionWorkflow | None = None

    if data.resume_draft_id is not None:
        draft = await store.load_for(data.resume_draft_id, user.id)
        if draft is not None and draft.awaiting_auth:
            workflow = SubmissionWorkflow(gateway, store, session)
            workflow.resume_after_sign_in(draft.id)
        else:
            logger.info(f"Nothing to resume for draft {data.resume_draft_id}")

    await session.sign_in(service.principal_for(user))

    response = SignInResponse(
        **service.issue_tokens(user).model_dump(),
        user=UserResponse(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            is_admin=session.is_admin,
        ),
    )
    if workflow is not None:
        if workflow.resume_outcome is not None:
            response.resumed_submission = submission_to_response(workflow.resume_outcome)
        elif workflow.resume_error is not None:
            response.resume_error = workflow.resume_error.to_detail()
    return response


@router.post("/sign-out", response_model=MessageResponse)
async def sign_out(claims: dict = Depends(get_token_claims)) -> MessageResponse:
    """Revoke the caller's access token."""
    await service.sign_out(claims)
    return MessageResponse(message="Signed out.")


@router.get("/me", response_model=UserResponse)
async def me(session: Session = Depends(get_session)) -> UserResponse:
    """The principal behind the bearer token, with the admin flag."""
    if session.principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "AUTH_REQUIRED", "message": "Please sign in to continue."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    principal = session.principal
    return UserResponse(
        id=principal.id,
        email=principal.email,
        full_name=principal.full_name,
        is_admin=session.is_admin,
    )
