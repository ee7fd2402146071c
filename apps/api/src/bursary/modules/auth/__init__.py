"""Authentication module."""

from bursary.modules.auth.router import router
from bursary.modules.auth.schemas import AuthResponse, SignInRequest, SignUpRequest, TokenResponse

__all__ = ["router", "AuthResponse", "SignInRequest", "SignUpRequest", "TokenResponse"]
