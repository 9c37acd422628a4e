from __future__ import annotations

import uuid

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from taskboard.db.session import Base
from taskboard.models.common import UUIDMixin, TimestampMixin
from taskboard.models.user import User

class Team(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "teams"
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(140), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    owner: Mapped[User] = relationship(User)
    members: Mapped[list["TeamMember"]] = relationship(back_populates="team", cascade="all, delete-orphan")
    tasks: Mapped[list["Task"]] = relationship(back_populates="team", cascade="all, delete-orphan")
    invitations: Mapped[list["Invitation"]] = relationship(back_populates="team", cascade="all, delete-orphan")
