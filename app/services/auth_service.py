"""
Auth Service - credential verification and the session lifecycle.

FLOW:
1. register / login  -> verify credentials -> issue_token_pair (refresh token persisted)
2. protected request -> app.core.auth.get_current_user (signature + expiry + user lookup)
3. refresh           -> presented refresh token must equal the stored one -> new pair
4. logout            -> stored refresh token cleared
5. forgot / validate / reset password -> single-use, time-limited reset token

Expected failures (wrong password, stale refresh token, expired reset token)
come back as Err(...) results; routes unwrap them at the HTTP boundary.
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from app.core.auth import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from app.core.config import Settings, get_settings
from app.core.errors import (
    AuthenticationError,
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from app.core.logging_config import redact_email
from app.core.result import Err, Ok, Result
from app.services.email_service import EmailService, get_email_service
from app.services.mongo_service import UserStore, public_user, utcnow

logger = logging.getLogger(__name__)

# 32 random bytes, hex encoded (64 chars)
RESET_TOKEN_BYTES = 32


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class AuthSession:
    """A logged-in user (public fields only) and the tokens just issued."""
    user: dict
    tokens: TokenPair


def digest_reset_token(token: str) -> str:
    """Reset tokens are stored as SHA-256 digests; the raw token is only emailed."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def default_profile(bio: str = "", avatar: Optional[str] = None, cover_image: Optional[str] = None) -> dict:
    return {
        "bio": bio,
        "skills": [],
        "resume": "",
        "resume_original_name": None,
        "company": None,
        "avatar": avatar or "",
        "cover_image": cover_image or "",
        "location": {"city": "", "country": "", "address": ""},
        "education": [],
        "experience": [],
        "languages": [],
        "certifications": [],
        "social_links": {"linkedin": "", "github": "", "portfolio": "", "twitter": ""},
        "interests": [],
        "preferred_job_types": [],
        "expected_salary": {"amount": None, "currency": "USD"},
    }


class AuthService:
    """
    Owns every mutation of a user's session state:
    refresh_token, reset_password_token / reset_password_expiry, password.
    """

    def __init__(
        self,
        users: Optional[UserStore] = None,
        mailer: Optional[EmailService] = None,
        settings: Optional[Settings] = None,
    ):
        self.users = users or UserStore()
        self.mailer = mailer or get_email_service()
        self.settings = settings or get_settings()

    # ============================================================
    # TOKEN ISSUER
    # ============================================================

    def issue_token_pair(self, user: dict) -> TokenPair:
        """
        Mint access + refresh tokens and persist the refresh token on the user,
        overwriting (and so revoking) whatever refresh token was stored before.
        """
        access_token = create_access_token(user)
        refresh_token = create_refresh_token(user)
        self.users.set_refresh_token(user["_id"], refresh_token)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    # ============================================================
    # REGISTER / LOGIN / LOGOUT
    # ============================================================

    def register(
        self,
        *,
        full_name: str,
        email: str,
        password: str,
        phone_number: str,
        role: str,
        bio: str = "",
        avatar: Optional[str] = None,
        cover_image: Optional[str] = None,
    ) -> Result[AuthSession]:
        """Create the user (password hashed once, here) and log them straight in."""
        email = email.strip().lower()
        phone_number = phone_number.strip()

        taken = self.users.find_conflict(email, phone_number)
        if taken:
            return Err(ConflictError(f"User already exists with this {taken}"))

        try:
            user = self.users.create({
                "full_name": full_name.strip(),
                "email": email,
                "phone_number": phone_number,
                "password": hash_password(password),
                "role": role,
                "profile": default_profile(bio.strip(), avatar, cover_image),
            })
        except ConflictError as e:
            return Err(e)

        try:
            tokens = self.issue_token_pair(user)
        except Exception:
            # Undo the insert so the same identity can register again
            self.users.delete(user["_id"])
            raise
        logger.info("Registered %s user %s", role, user["_id"])
        return Ok(AuthSession(user=public_user(user), tokens=tokens))

    def login(self, identifier: str, password: str, role: str) -> Result[AuthSession]:
        """Email or phone number, password, and the role the account was registered with."""
        user = self.users.find_by_identifier(identifier, role)
        if user is None:
            return Err(AuthenticationError(f"No {role} account found with these credentials"))

        if not verify_password(password, user.get("password")):
            logger.info("Failed login for user %s", user["_id"])
            return Err(AuthenticationError("Invalid password"))

        tokens = self.issue_token_pair(user)

        # Advisory only
        now = utcnow()
        self.users.touch_last_login(user["_id"], now)
        user["last_login_at"] = now

        logger.info("User %s logged in", user["_id"])
        return Ok(AuthSession(user=public_user(user), tokens=tokens))

    def logout(self, user_id: str) -> None:
        """Forget the stored refresh token. Issued access tokens run until they expire."""
        self.users.clear_refresh_token(user_id)
        logger.info("User %s logged out", user_id)

    # ============================================================
    # REFRESH / ROTATION
    # ============================================================

    def refresh(self, presented: Optional[str]) -> Result[TokenPair]:
        """
        Exchange a refresh token for a new pair. The presented token must equal
        the stored one, and the swap is a compare-and-swap, so each stored
        token can be redeemed at most once even under concurrent requests.

        Invalid, orphaned or superseded tokens are 401 here, where the original
        client contract answered 400; only a missing token stays 400.
        """
        if not presented:
            return Err(ValidationError("Refresh token required"))

        payload = decode_refresh_token(presented)
        if not payload or not payload.get("sub"):
            return Err(AuthenticationError("Unauthenticated: invalid refresh token"))

        user = self.users.find_by_id(payload["sub"])
        if user is None:
            return Err(AuthenticationError("Unauthenticated: user not found"))

        superseded = AuthenticationError("Unauthenticated: refresh token expired or superseded")
        if user.get("refresh_token") != presented:
            logger.warning("Rejected stale refresh token for user %s", user["_id"])
            return Err(superseded)

        access_token = create_access_token(user)
        refresh_token = create_refresh_token(user)
        if not self.users.swap_refresh_token(user["_id"], presented, refresh_token):
            # Lost the race against another refresh (or a login) for this user
            logger.warning("Concurrent refresh lost for user %s", user["_id"])
            return Err(superseded)

        return Ok(TokenPair(access_token=access_token, refresh_token=refresh_token))

    # ============================================================
    # PASSWORDS
    # ============================================================

    def change_password(self, user_id: str, old_password: str, new_password: str) -> Result[None]:
        user = self.users.find_by_id(user_id)
        if user is None:
            return Err(AuthenticationError("Unauthenticated: user not found"))

        if not verify_password(old_password, user.get("password")):
            return Err(AuthenticationError("Old password is incorrect"))

        self.users.update_password(user["_id"], hash_password(new_password))
        logger.info("User %s changed password", user["_id"])
        return Ok(None)

    def forgot_password(self, email: str) -> Result[None]:
        """
        Store a fresh reset token (digest + expiry together) and email the raw
        token. If the email cannot be delivered the token is withdrawn again.
        """
        user = self.users.find_by_email(email)
        if user is None:
            return Err(NotFoundError("User not found"))

        token = secrets.token_hex(RESET_TOKEN_BYTES)
        digest = digest_reset_token(token)
        minutes = self.settings.reset_token_expire_minutes
        self.users.set_reset_token(user["_id"], digest, utcnow() + timedelta(minutes=minutes))

        try:
            sent = self.mailer.send_password_reset(user["email"], user.get("full_name", ""), token, minutes)
        except Exception:
            self.users.clear_reset_token(user["_id"], digest)
            raise

        if not sent:
            self.users.clear_reset_token(user["_id"], digest)
            logger.error("Reset email to %s failed, token withdrawn", redact_email(user["email"]))
            return Err(DependencyError("Email delivery failed. Please try again later."))

        logger.info("Password reset requested for user %s", user["_id"])
        return Ok(None)

    def validate_reset_token(self, token: Optional[str]) -> Result[bool]:
        """Read-only check used to gate the reset form; never consumes the token."""
        if not token:
            return Err(ValidationError("Token is required"))
        if self.users.find_by_reset_token(digest_reset_token(token), utcnow()) is None:
            return Err(ValidationError("Invalid or expired reset token"))
        return Ok(True)

    def reset_password(self, token: Optional[str], new_password: str) -> Result[None]:
        """Consume the reset token: set the new password and clear both reset fields in one update."""
        if not token:
            return Err(ValidationError("Token is required"))

        invalid = ValidationError("Invalid or expired reset token")
        digest = digest_reset_token(token)
        # Cheap read first so unknown tokens never cost a bcrypt hash
        if self.users.find_by_reset_token(digest, utcnow()) is None:
            return Err(invalid)

        user = self.users.consume_reset_token(digest, utcnow(), hash_password(new_password))
        if user is None:
            return Err(invalid)

        logger.info("Password reset completed for user %s", user["_id"])
        return Ok(None)


def get_auth_service() -> AuthService:
    """Get auth service instance."""
    return AuthService()
