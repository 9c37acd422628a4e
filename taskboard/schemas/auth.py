import re
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from taskboard.schemas.query import CamelModel

USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,50}$")


class RegisterIn(CamelModel):
    email: EmailStr
    username: str
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        normalized = str(value or "").strip()
        if not USERNAME_RE.fullmatch(normalized):
            raise ValueError("username must be 3-50 letters, digits, dots, dashes or underscores")
        return normalized.lower()


class LoginIn(CamelModel):
    email: EmailStr
    password: str


class RefreshTokenIn(CamelModel):
    refresh_token: str


class UpdateProfileIn(CamelModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=2000)
    profile_image: Optional[str] = Field(default=None, max_length=500)
