"""Unit tests for the auth core and service.

Tests for:
- Password hashing and verification
- Access / refresh token creation and decoding
- The session verifier
- Refresh rotation and reset tokens at the service level
"""

from datetime import timedelta

import pytest
from bson import ObjectId

from app.core import auth
from app.core.config import get_settings
from app.core.errors import (
    AuthenticationError,
    ConflictError,
    TokenConfigurationError,
    ValidationError,
)
from app.core.result import Err, Ok, unwrap
from app.services.auth_service import AuthService, digest_reset_token
from app.services.mongo_service import UserStore, utcnow


@pytest.fixture
def users():
    return UserStore()


@pytest.fixture
def service(users, mailer):
    return AuthService(users=users, mailer=mailer)


@pytest.fixture
def account(service):
    session = unwrap(service.register(
        full_name="Asha Verma",
        email="Asha@Workify.io",
        password="secret123",
        phone_number="9876543210",
        role="student",
    ))
    return session


class TestPasswordHashing:

    def test_hash_is_salted_and_verifiable(self):
        first = auth.hash_password("secret123")
        second = auth.hash_password("secret123")
        assert first != "secret123"
        assert first != second
        assert auth.verify_password("secret123", first)
        assert not auth.verify_password("secret124", first)

    def test_over_72_bytes_rejected(self):
        with pytest.raises(ValidationError):
            auth.hash_password("a" * 73)
        assert not auth.verify_password("a" * 73, auth.hash_password("a" * 72))

    def test_empty_or_unusable_hash_is_false(self):
        assert not auth.verify_password("", auth.hash_password("secret123"))
        assert not auth.verify_password("secret123", None)
        assert not auth.verify_password("secret123", "not-a-bcrypt-hash")


class TestTokens:

    def test_access_token_claims(self):
        user = {"_id": ObjectId(), "email": "a@workify.io", "full_name": "A"}
        payload = auth.decode_access_token(auth.create_access_token(user))
        assert payload["sub"] == str(user["_id"])
        assert payload["email"] == "a@workify.io"
        assert payload["fullName"] == "A"
        assert "jti" in payload

    def test_access_and_refresh_secrets_are_separate(self):
        user = {"_id": ObjectId()}
        assert auth.decode_refresh_token(auth.create_access_token(user)) is None
        assert auth.decode_access_token(auth.create_refresh_token(user)) is None

    def test_tokens_minted_together_differ(self):
        user = {"_id": ObjectId()}
        assert auth.create_refresh_token(user) != auth.create_refresh_token(user)

    def test_expired_token_decodes_to_none(self):
        token = auth.create_access_token({"_id": ObjectId()}, expires_delta=timedelta(seconds=-5))
        assert auth.decode_access_token(token) is None

    def test_missing_secret_is_configuration_error(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "access_token_secret", "")
        with pytest.raises(TokenConfigurationError):
            auth.create_access_token({"_id": ObjectId()})


class TestVerifier:

    def test_no_token(self, users):
        result = auth.verify_access_token(None, users)
        assert isinstance(result, Err)
        assert result.error.message == "Unauthenticated: no token provided"

    def test_invalid_token(self, users):
        result = auth.verify_access_token("garbage", users)
        assert isinstance(result, Err)
        assert result.error.message == "Unauthenticated: invalid token"

    def test_unknown_user(self, users):
        token = auth.create_access_token({"_id": ObjectId()})
        result = auth.verify_access_token(token, users)
        assert isinstance(result, Err)
        assert result.error.message == "Unauthenticated: user not found"

    def test_resolves_public_user(self, users, account):
        result = auth.verify_access_token(account.tokens.access_token, users)
        assert isinstance(result, Ok)
        assert result.value["email"] == "asha@workify.io"
        for field in ("password", "refresh_token", "reset_password_token", "reset_password_expiry"):
            assert field not in result.value


class TestRegisterAndLogin:

    def test_register_normalizes_and_persists_refresh_token(self, users, account):
        stored = users.find_by_email("asha@workify.io")
        assert stored["email"] == "asha@workify.io"
        assert stored["password"] != "secret123"
        assert stored["refresh_token"] == account.tokens.refresh_token

    def test_duplicate_phone_is_conflict(self, service, account):
        result = service.register(
            full_name="Other", email="other@workify.io", password="secret123",
            phone_number="9876543210", role="student",
        )
        assert isinstance(result, Err)
        assert isinstance(result.error, ConflictError)
        assert result.error.message == "User already exists with this phone number"

    def test_login_requires_matching_role(self, service, account):
        result = service.login("asha@workify.io", "secret123", "recruiter")
        assert isinstance(result, Err)
        assert result.error.message == "No recruiter account found with these credentials"

    def test_login_by_phone_sets_last_login(self, service, users, account):
        session = unwrap(service.login("9876543210", "secret123", "student"))
        assert session.user["last_login_at"] is not None
        assert users.find_by_email("asha@workify.io")["last_login_at"] is not None

    def test_login_wrong_password(self, service, account):
        result = service.login("asha@workify.io", "nope123", "student")
        assert isinstance(result.error, AuthenticationError)
        assert result.error.message == "Invalid password"

    def test_register_rolls_back_when_tokens_cannot_be_issued(self, service, users, monkeypatch):
        monkeypatch.setattr(get_settings(), "refresh_token_secret", "")
        with pytest.raises(TokenConfigurationError):
            service.register(
                full_name="Asha Verma", email="asha@workify.io", password="secret123",
                phone_number="9876543210", role="student",
            )
        assert users.find_by_email("asha@workify.io") is None


class TestRefreshRotation:

    def test_rotation_is_single_use(self, service, account):
        first = unwrap(service.refresh(account.tokens.refresh_token))
        replay = service.refresh(account.tokens.refresh_token)
        assert isinstance(replay, Err)
        assert replay.error.message == "Unauthenticated: refresh token expired or superseded"
        assert isinstance(service.refresh(first.refresh_token), Ok)

    def test_losing_the_swap_is_superseded(self, service, users, account, monkeypatch):
        monkeypatch.setattr(users, "swap_refresh_token", lambda *args: False)
        result = service.refresh(account.tokens.refresh_token)
        assert isinstance(result, Err)
        assert result.error.status_code == 401

    def test_missing_token_is_bad_request(self, service):
        result = service.refresh(None)
        assert isinstance(result.error, ValidationError)
        assert result.error.message == "Refresh token required"

    def test_access_token_is_not_a_refresh_token(self, service, account):
        result = service.refresh(account.tokens.access_token)
        assert result.error.message == "Unauthenticated: invalid refresh token"

    def test_logout_revokes_refresh_token(self, service, account):
        service.logout(account.user["_id"])
        assert isinstance(service.refresh(account.tokens.refresh_token), Err)


class TestResetTokens:

    def test_token_stored_as_digest_with_expiry(self, service, users, mailer, account):
        unwrap(service.forgot_password("asha@workify.io"))
        stored = users.find_by_email("asha@workify.io")
        assert stored["reset_password_token"] == digest_reset_token(mailer.last_token)
        assert stored["reset_password_token"] != mailer.last_token
        assert stored["reset_password_expiry"] > utcnow()
        assert stored["reset_password_expiry"] <= utcnow() + timedelta(minutes=10)

    def test_consumed_once(self, service, mailer, account):
        unwrap(service.forgot_password("asha@workify.io"))
        token = mailer.last_token
        assert isinstance(service.reset_password(token, "newpass1"), Ok)
        second = service.reset_password(token, "newpass2")
        assert second.error.message == "Invalid or expired reset token"
        assert isinstance(service.login("asha@workify.io", "newpass1", "student"), Ok)

    def test_new_request_replaces_old_token(self, service, mailer, account):
        unwrap(service.forgot_password("asha@workify.io"))
        old = mailer.last_token
        unwrap(service.forgot_password("asha@workify.io"))
        assert isinstance(service.validate_reset_token(old), Err)
        assert isinstance(service.validate_reset_token(mailer.last_token), Ok)

    def test_mailer_exception_withdraws_token(self, service, users, mailer, account):
        mailer.error = RuntimeError("smtp down")
        with pytest.raises(RuntimeError):
            service.forgot_password("asha@workify.io")
        stored = users.find_by_email("asha@workify.io")
        assert stored["reset_password_token"] is None
        assert stored["reset_password_expiry"] is None

    def test_unknown_email(self, service):
        result = service.forgot_password("nobody@workify.io")
        assert result.error.status_code == 404
