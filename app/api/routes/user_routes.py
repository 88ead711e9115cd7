"""
User Routes - authentication, session lifecycle and profile

POST   /user/register              - Register (multipart, optional avatar / coverImage), logs in
POST   /user/login                 - Login with email or phone + password + role
POST   /user/logout                - Forget the stored refresh token, clear cookies
POST   /user/refresh-token         - Exchange a refresh token for a new pair
POST   /user/change-password       - Change password (old password required)
POST   /user/forgot-password       - Email a single-use reset link
POST   /user/reset-password        - Consume the reset token, set new password
GET    /user/validate-reset-token  - Check a reset token without consuming it
GET    /user/current-user          - Get current user
PATCH  /user/update-avatar         - Replace avatar image
PATCH  /user/update-cover-image    - Replace cover image
DELETE /user/delete-cover-image    - Remove cover image
PATCH  /user/update-account        - Update account details (multipart, optional resume)

Tokens are returned in the body and as httpOnly cookies (accessToken, refreshToken).
"""

import json
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile
from starlette.concurrency import run_in_threadpool

from app.core.auth import ACCESS_COOKIE, REFRESH_COOKIE, get_current_user
from app.core.config import get_settings
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.result import unwrap
from app.services.auth_service import AuthService, AuthSession, TokenPair, get_auth_service
from app.services.mongo_service import UserStore, public_user
from app.utils.file_upload import remove_upload, save_optional_upload, save_upload
from app.schemas.schemas import (
    AccountUpdate, ApiResponse, AuthPayload, ChangePasswordRequest, ForgotPasswordRequest,
    LoginRequest, RefreshTokenRequest, RegisterRequest, ResetPasswordRequest,
    TokenPairResponse, UserResponse, ValidTokenResponse
)

router = APIRouter(prefix="/user", tags=["User"])

# update-account fields that arrive as JSON strings inside the multipart form
JSON_PROFILE_FIELDS = {
    "location": "location",
    "education": "education",
    "experience": "experience",
    "languages": "languages",
    "certifications": "certifications",
    "socialLinks": "social_links",
    "interests": "interests",
    "preferredJobTypes": "preferred_job_types",
    "expectedSalary": "expected_salary",
}


# ============================================================
# HELPERS
# ============================================================

def set_auth_cookies(response: Response, tokens: TokenPair) -> None:
    settings = get_settings()
    options = dict(
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=settings.cookie_max_age_seconds,
    )
    response.set_cookie(ACCESS_COOKIE, tokens.access_token, **options)
    response.set_cookie(REFRESH_COOKIE, tokens.refresh_token, **options)


def clear_auth_cookies(response: Response) -> None:
    settings = get_settings()
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            name, httponly=True, secure=settings.cookie_secure, samesite=settings.cookie_samesite
        )


def auth_payload(session: AuthSession) -> AuthPayload:
    return AuthPayload(
        user=UserResponse.model_validate(session.user),
        access_token=session.tokens.access_token,
        refresh_token=session.tokens.refresh_token,
    )


def updated_user_response(user_id: str, fields: dict, message: str) -> ApiResponse[UserResponse]:
    user = UserStore().update_fields(user_id, fields)
    if user is None:
        raise NotFoundError("User not found")
    return ApiResponse(status_code=200, data=UserResponse.model_validate(public_user(user)), message=message)


# ============================================================
# AUTH
# ============================================================

@router.post("/register", response_model=ApiResponse[AuthPayload], status_code=201)
async def register(
    response: Response,
    full_name: str = Form(..., alias="fullName"),
    email: str = Form(...),
    password: str = Form(...),
    phone_number: str = Form(..., alias="phoneNumber"),
    role: str = Form(...),
    bio: str = Form(""),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    auth: AuthService = Depends(get_auth_service),
):
    """
    Register a new user and log them in.

    Duplicate email or phone number -> 409.
    """
    data = RegisterRequest(
        full_name=full_name, email=email, password=password,
        phone_number=phone_number, role=role, bio=bio,
    )

    stored = []
    try:
        avatar_file = await save_optional_upload(avatar, "image", "avatars")
        stored.append(avatar_file)
        cover_file = await save_optional_upload(cover_image, "image", "covers")
        stored.append(cover_file)

        result = await run_in_threadpool(
            auth.register,
            full_name=data.full_name,
            email=data.email,
            password=data.password,
            phone_number=data.phone_number,
            role=data.role,
            bio=data.bio,
            avatar=avatar_file.url if avatar_file else None,
            cover_image=cover_file.url if cover_file else None,
        )
        session = unwrap(result)
    except Exception:
        for item in stored:
            remove_upload(item)
        raise

    set_auth_cookies(response, session.tokens)
    return ApiResponse(
        status_code=201,
        data=auth_payload(session),
        message=f"Welcome {session.user['full_name']}! You are registered successfully",
    )


@router.post("/login", response_model=ApiResponse[AuthPayload])
def login(data: LoginRequest, response: Response, auth: AuthService = Depends(get_auth_service)):
    """
    Login and receive access + refresh tokens.

    Include token in requests: Authorization: Bearer <token> (or the accessToken cookie)
    """
    session = unwrap(auth.login(data.identifier, data.password, data.role))
    set_auth_cookies(response, session.tokens)
    return ApiResponse(
        status_code=200,
        data=auth_payload(session),
        message=f"Welcome back, {session.user['full_name']}!",
    )


@router.post("/logout", response_model=ApiResponse[dict])
def logout(
    response: Response,
    user: dict = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    """Invalidate the stored refresh token. Access tokens already issued run until expiry."""
    auth.logout(user["_id"])
    clear_auth_cookies(response)
    return ApiResponse(status_code=200, data={}, message="User logged out successfully")


@router.post("/refresh-token", response_model=ApiResponse[TokenPairResponse])
def refresh_token(
    request: Request,
    response: Response,
    body: Optional[RefreshTokenRequest] = None,
    auth: AuthService = Depends(get_auth_service),
):
    """Rotate tokens. The presented refresh token stops working once this succeeds."""
    presented = request.cookies.get(REFRESH_COOKIE) or (body.refresh_token if body else None)
    tokens = unwrap(auth.refresh(presented))
    set_auth_cookies(response, tokens)
    return ApiResponse(
        status_code=200,
        data=TokenPairResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token),
        message="Access token refreshed",
    )


# ============================================================
# PASSWORDS
# ============================================================

@router.post("/change-password", response_model=ApiResponse[dict])
def change_password(
    data: ChangePasswordRequest,
    user: dict = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    unwrap(auth.change_password(user["_id"], data.old_password, data.new_password))
    return ApiResponse(status_code=200, data={}, message="Password changed successfully")


@router.post("/forgot-password", response_model=ApiResponse[dict])
def forgot_password(data: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    """Send a reset link valid for a few minutes. Unknown email -> 404."""
    unwrap(auth.forgot_password(data.email))
    return ApiResponse(status_code=200, data={}, message="Password reset email sent successfully")


@router.post("/reset-password", response_model=ApiResponse[dict])
def reset_password(data: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    unwrap(auth.reset_password(data.token, data.new_password))
    return ApiResponse(status_code=200, data={}, message="Password reset successful")


@router.get("/validate-reset-token", response_model=ApiResponse[ValidTokenResponse])
def validate_reset_token(
    token: Optional[str] = Query(None),
    auth: AuthService = Depends(get_auth_service),
):
    """Read-only; safe to call on every load of the reset form."""
    unwrap(auth.validate_reset_token(token))
    return ApiResponse(status_code=200, data=ValidTokenResponse(valid=True), message="Token is valid")


# ============================================================
# PROFILE
# ============================================================

@router.get("/current-user", response_model=ApiResponse[UserResponse])
def current_user(user: dict = Depends(get_current_user)):
    return ApiResponse(
        status_code=200, data=UserResponse.model_validate(user), message="User data fetched successfully"
    )


@router.patch("/update-avatar", response_model=ApiResponse[UserResponse])
async def update_avatar(
    avatar: UploadFile = File(...),
    user: dict = Depends(get_current_user),
):
    stored = await save_upload(avatar, "image", "avatars")
    try:
        return await run_in_threadpool(
            updated_user_response, user["_id"], {"profile.avatar": stored.url},
            "User avatar updated successfully",
        )
    except Exception:
        remove_upload(stored)
        raise


@router.patch("/update-cover-image", response_model=ApiResponse[UserResponse])
async def update_cover_image(
    cover_image: UploadFile = File(..., alias="coverImage"),
    user: dict = Depends(get_current_user),
):
    stored = await save_upload(cover_image, "image", "covers")
    try:
        return await run_in_threadpool(
            updated_user_response, user["_id"], {"profile.cover_image": stored.url},
            "Cover image updated successfully",
        )
    except Exception:
        remove_upload(stored)
        raise


@router.delete("/delete-cover-image", response_model=ApiResponse[UserResponse])
def delete_cover_image(user: dict = Depends(get_current_user)):
    return updated_user_response(user["_id"], {"profile.cover_image": ""}, "Cover image removed successfully")


@router.patch("/update-account", response_model=ApiResponse[UserResponse])
async def update_account(
    request: Request,
    resume: Optional[UploadFile] = File(None),
    user: dict = Depends(get_current_user),
):
    """
    Update account details. Only provided fields are updated.

    Plain fields: fullName, email, phoneNumber, bio, skills (comma-separated).
    JSON-encoded fields: location, education, experience, languages,
    certifications, socialLinks, interests, preferredJobTypes, expectedSalary.
    """
    form = await request.form()
    raw = {}
    for field in ("fullName", "email", "phoneNumber", "bio"):
        value = form.get(field)
        if isinstance(value, str) and value:
            raw[field] = value
    skills = form.get("skills")
    if isinstance(skills, str) and skills:
        raw["skills"] = [s.strip() for s in skills.split(",") if s.strip()]
    try:
        for field in JSON_PROFILE_FIELDS:
            value = form.get(field)
            if isinstance(value, str) and value:
                raw[field] = json.loads(value)
    except json.JSONDecodeError:
        raise ValidationError("Invalid JSON data in one or more fields.")

    data = AccountUpdate.model_validate(raw)

    users = UserStore()
    taken = await run_in_threadpool(users.find_conflict, data.email, data.phone_number, user["_id"])
    if taken:
        raise ConflictError(f"User already exists with this {taken}")

    fields = {}
    for name in ("full_name", "email", "phone_number"):
        value = getattr(data, name)
        if value is not None:
            fields[name] = value
    if data.bio is not None:
        fields["profile.bio"] = data.bio
    if data.skills is not None:
        fields["profile.skills"] = data.skills
    for name in JSON_PROFILE_FIELDS.values():
        value = getattr(data, name)
        if value is not None:
            fields[f"profile.{name}"] = (
                [item.model_dump() if hasattr(item, "model_dump") else item for item in value]
                if isinstance(value, list) else value.model_dump()
            )

    stored = await save_optional_upload(resume, "document", "resumes")
    if stored:
        fields["profile.resume"] = stored.url
        fields["profile.resume_original_name"] = stored.original_name

    if not fields:
        raise ValidationError("No fields to update")

    try:
        return await run_in_threadpool(updated_user_response, user["_id"], fields, "Profile updated successfully")
    except Exception:
        remove_upload(stored)
        raise
