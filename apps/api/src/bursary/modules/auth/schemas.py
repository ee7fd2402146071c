"""Authentication schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from bursary.modules.applications.schemas import SubmissionResponse


class SignUpRequest(BaseModel):
    """Sign-up request schema."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=200)


class SignInRequest(BaseModel):
    """Sign-in request schema."""

    email: EmailStr
    password: str
    resume_draft_id: UUID | None = Field(
        None,
        description="Draft whose submission was paused for sign-in; it is submitted on success",
    )


class TokenResponse(BaseModel):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """The signed-in principal."""

    id: UUID
    email: str
    full_name: str | None = None
    is_admin: bool = False


class AuthResponse(TokenResponse):
    """Tokens plus the principal they belong to."""

    user: UserResponse


class SignInResponse(AuthResponse):
    """Sign-in result, including a resumed submission when one was requested."""

    resumed_submission: SubmissionResponse | None = None
    resume_error: dict | None = None


class MessageResponse(BaseModel):
    message: str
