from typing import Optional

from pydantic import EmailStr, Field, model_validator

from taskboard.schemas.query import CamelModel


class CreateTeamIn(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class InviteUserIn(CamelModel):
    email: Optional[EmailStr] = None
    username: Optional[str] = Field(default=None, max_length=50)

    @model_validator(mode="after")
    def require_email_or_username(self):
        if not self.email and not str(self.username or "").strip():
            raise ValueError("Either email or username must be provided")
        return self
