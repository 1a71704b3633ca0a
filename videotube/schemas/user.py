import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

PASSWORD_RULES = (
    (r"[a-z]", "one lowercase letter"),
    (r"[A-Z]", "one uppercase letter"),
    (r"\d", "one number"),
    (r"[^A-Za-z0-9]", "one symbol"),
)


def check_password_strength(password: str) -> str:
    missing = [label for pattern, label in PASSWORD_RULES if not re.search(pattern, password)]
    if missing:
        raise ValueError(f"Password must contain at least {', '.join(missing)}")
    return password


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=120)
    password: str = Field(..., min_length=8, max_length=128)
    avatar_url: str = Field(..., min_length=1, description="URL of an already uploaded avatar image")
    cover_image_url: str | None = None

    @field_validator("username", "full_name")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class UserLogin(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def require_identifier(self):
        if not self.username and not self.email:
            raise ValueError("Username or email is required")
        return self


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    full_name: str
    avatar_url: str


class UserResponse(UserPublic):
    email: str
    cover_image_url: str | None = None
    created_at: datetime


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"


class LoginResponse(TokenPair):
    user: UserResponse


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class PasswordChange(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class AccountUpdate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr


class ImageUpdate(BaseModel):
    url: str = Field(..., min_length=1)


class ChannelProfile(BaseModel):
    id: int
    username: str
    full_name: str
    email: str
    avatar_url: str
    cover_image_url: str | None = None
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool
