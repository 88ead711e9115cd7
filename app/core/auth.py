"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- Access / refresh token creation and verification
- FastAPI dependencies for protected routes (the session verifier)
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import get_settings
from app.core.errors import (
    AuthenticationError,
    ForbiddenError,
    TokenConfigurationError,
    ValidationError,
)
from app.core.result import Err, Ok, Result, unwrap
from app.services.mongo_service import UserStore, public_user

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor; missing header is handled here, not by FastAPI
bearer_scheme = HTTPBearer(auto_error=False)

BCRYPT_MAX_BYTES = 72
ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def check_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValidationError("Password too long (bcrypt max 72 bytes)")


def hash_password(password: str) -> str:
    """Hash password with bcrypt (salted)."""
    check_password_length(password)
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password against hash. A mismatch or unusable hash is False, never an error."""
    if not plain_password or not hashed_password:
        return False
    if len(plain_password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("Stored password hash could not be parsed")
        return False


# ============================================================
# TOKENS
# ============================================================

def _secret(kind: str) -> str:
    settings = get_settings()
    secret = settings.access_token_secret if kind == "access" else settings.refresh_token_secret
    if not secret:
        logger.error("%s token secret is not configured", kind)
        raise TokenConfigurationError("Server configuration error")
    return secret


def _encode(claims: dict, kind: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = claims.copy()
    # jti keeps two tokens minted in the same second distinct
    to_encode.update({"iat": now, "exp": now + expires_delta, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, _secret(kind), algorithm=get_settings().jwt_algorithm)


def create_access_token(user: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Short-lived token carrying the user's identity claims."""
    settings = get_settings()
    claims = {
        "sub": str(user["_id"]),
        "email": user.get("email"),
        "fullName": user.get("full_name"),
    }
    return _encode(
        claims, "access",
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(user: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Long-lived token carrying only the user id."""
    settings = get_settings()
    return _encode(
        {"sub": str(user["_id"])}, "refresh",
        expires_delta or timedelta(days=settings.refresh_token_expire_days),
    )


def _decode(token: str, kind: str) -> Optional[dict]:
    secret = _secret(kind)
    try:
        return jwt.decode(token, secret, algorithms=[get_settings().jwt_algorithm])
    except JWTError:
        return None


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify an access token. Expired and malformed both give None."""
    return _decode(token, "access")


def decode_refresh_token(token: str) -> Optional[dict]:
    """Decode and verify a refresh token. Expired and malformed both give None."""
    return _decode(token, "refresh")


# ============================================================
# SESSION VERIFIER
# ============================================================

def extract_access_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    """Authorization header first, then the accessToken cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_COOKIE) or None


def verify_access_token(token: Optional[str], users: UserStore) -> Result[dict]:
    """Resolve an access token to the public user record. Read-only."""
    if not token:
        return Err(AuthenticationError("Unauthenticated: no token provided"))

    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return Err(AuthenticationError("Unauthenticated: invalid token"))

    user = users.find_by_id(payload["sub"])
    if user is None:
        return Err(AuthenticationError("Unauthenticated: user not found"))

    return Ok(public_user(user))


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @router.get("/protected")
        def route(user: dict = Depends(get_current_user)):
            return user
    """
    token = extract_access_token(request, credentials)
    return unwrap(verify_access_token(token, UserStore()))


def get_current_student(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require student role."""
    if user["role"] != "student":
        raise ForbiddenError("Students only")
    return user


def get_current_recruiter(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require recruiter role."""
    if user["role"] != "recruiter":
        raise ForbiddenError("Recruiters only")
    return user
