# finance_tracker/api/auth_api.py

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field, field_validator

from finance_tracker.api.dependencies import get_auth_service, get_current_user_id
from finance_tracker.business_logic.auth_service import AuthService, SessionGrant

router = APIRouter()

AVATAR_PATTERN = r"^data:image/(png|jpe?g|webp|gif);base64,[a-zA-Z0-9+/=]+$"


# --- Schemas Pydantic ---
class UserPublic(BaseModel):
    id: str
    name: str
    email: str
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")

    class Config:
        from_attributes = True
        populate_by_name = True


class AuthResponse(BaseModel):
    token: str
    user: UserPublic


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_text(cls, value):
        # Passwords are taken verbatim, so whitespace is only trimmed here.
        return value.strip() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginTokenRequest(BaseModel):
    email: EmailStr


class LoginTokenResponse(BaseModel):
    message: str
    dev_token: Optional[str] = Field(None, alias="devToken")

    class Config:
        populate_by_name = True


class LoginTokenVerifyRequest(BaseModel):
    email: EmailStr
    token: str = Field(..., min_length=4, max_length=12)

    class Config:
        str_strip_whitespace = True


class ProfileUpdateRequest(BaseModel):
    name: str = Field(..., min_length=2)
    avatar_url: Optional[str] = Field(None, alias="avatarUrl", max_length=3_000_000, pattern=AVATAR_PATTERN)

    class Config:
        str_strip_whitespace = True
        populate_by_name = True


class PasswordUpdateRequest(BaseModel):
    current_password: str = Field(..., alias="currentPassword", min_length=1)
    new_password: str = Field(..., alias="newPassword", min_length=6)
    confirm_password: str = Field(..., alias="confirmPassword", min_length=6)

    class Config:
        populate_by_name = True

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value, info):
        if "new_password" in info.data and value != info.data["new_password"]:
            raise ValueError("Password confirmation does not match.")
        return value


class MessageResponse(BaseModel):
    message: str


def _auth_response(grant: SessionGrant) -> AuthResponse:
    return AuthResponse(token=grant.token, user=UserPublic.model_validate(grant.user))


# --- Password flow ---

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """Creates the account and its default category, then logs it in."""
    return _auth_response(service.register(body.name, body.email, body.password))


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return _auth_response(service.login(body.email, body.password))


# --- Passwordless flow ---

@router.post("/login-token/request", response_model=LoginTokenResponse, response_model_exclude_none=True)
def request_login_token(body: LoginTokenRequest, service: AuthService = Depends(get_auth_service)):
    """
    Issues a one-time code for the email. Answers 200 whether or not the
    account exists.
    """
    issue = service.request_login_token(body.email)
    return LoginTokenResponse(message=issue.message, dev_token=issue.dev_token)


@router.post("/login-token/verify", response_model=AuthResponse)
def verify_login_token(body: LoginTokenVerifyRequest, service: AuthService = Depends(get_auth_service)):
    return _auth_response(service.verify_login_token(body.email, body.token))


# --- Authenticated profile ---

@router.get("/me", response_model=UserPublic)
def me(user_id: str = Depends(get_current_user_id), service: AuthService = Depends(get_auth_service)):
    return service.get_profile(user_id)


@router.patch("/profile", response_model=UserPublic)
def update_profile(
        body: ProfileUpdateRequest,
        user_id: str = Depends(get_current_user_id),
        service: AuthService = Depends(get_auth_service)
):
    return service.update_profile(user_id, body.name, body.avatar_url)


@router.patch("/password", response_model=MessageResponse)
def update_password(
        body: PasswordUpdateRequest,
        user_id: str = Depends(get_current_user_id),
        service: AuthService = Depends(get_auth_service)
):
    service.change_password(user_id, body.current_password, body.new_password)
    return {"message": "Password updated successfully."}
