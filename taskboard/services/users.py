from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from taskboard.schemas.auth import UpdateProfileIn
from taskboard.schemas.query import success_response
from taskboard.services.access import load_user_or_401
from taskboard.services.serialization import row_to_dict
from taskboard.services.store_errors import store_operation

PROFILE_FIELDS = (
    "id",
    "email",
    "username",
    "firstName",
    "lastName",
    "profileImage",
    "bio",
    "lastLogin",
    "createdAt",
    "updatedAt",
)


def get_profile_service(user_id: UUID, db: Session) -> dict:
    user = load_user_or_401(db, user_id)
    return success_response("Profile retrieved successfully", row_to_dict(user, PROFILE_FIELDS))


def update_profile_service(user_id: UUID, payload: UpdateProfileIn, db: Session) -> dict:
    user = load_user_or_401(db, user_id)
    changes = payload.model_dump(exclude_unset=True)
    for key, value in changes.items():
        if isinstance(value, str):
            value = value.strip()
        setattr(user, key, value)
    with store_operation("updating profile", db):
        db.add(user)
        db.commit()
        db.refresh(user)
    return success_response("Profile updated successfully", row_to_dict(user, PROFILE_FIELDS))
