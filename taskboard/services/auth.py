from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from taskboard.core.config import settings
from taskboard.core.errors import ConflictError, UnauthorizedError
from taskboard.core.security import (
    encode_access_token,
    hash_password,
    hash_refresh_token,
    new_refresh_token,
    verify_password,
)
from taskboard.models.refresh_token import RefreshToken
from taskboard.models.user import User
from taskboard.schemas.auth import LoginIn, RefreshTokenIn, RegisterIn
from taskboard.schemas.query import success_response
from taskboard.services.common import normalize_email, parse_datetime_safe, utcnow
from taskboard.services.entities import USER_PUBLIC_FIELDS
from taskboard.services.serialization import row_to_dict
from taskboard.services.store_errors import store_operation

_LOG = logging.getLogger("taskboard.auth")


def issue_access_token(user_id: UUID) -> str:
    return encode_access_token(user_id, settings.JWT_SECRET, timedelta(minutes=settings.JWT_ACCESS_TTL_MINUTES))


def _issue_refresh_token(db: Session, user_id: UUID) -> str:
    raw = new_refresh_token()
    db.add(
        RefreshToken(
            user_id=user_id,
            token_hash=hash_refresh_token(raw),
            expires_at=utcnow() + timedelta(days=settings.REFRESH_TOKEN_TTL_DAYS),
        )
    )
    return raw


def public_user(user: User) -> dict:
    return row_to_dict(user, USER_PUBLIC_FIELDS)


def register_service(payload: RegisterIn, db: Session) -> dict:
    email = normalize_email(payload.email)
    existing = (
        db.query(User)
        .filter(or_(User.email == email, User.username == payload.username))
        .first()
    )
    if existing is not None:
        if existing.email == email:
            raise ConflictError("User with this email already exists")
        raise ConflictError("User with this username already exists")

    user = User(
        email=email,
        username=payload.username,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
    )
    with store_operation("registering user", db):
        db.add(user)
        db.commit()
        db.refresh(user)
    _LOG.info("user registered id=%s", user.id)
    return success_response("User registered successfully", public_user(user))


def login_service(payload: LoginIn, db: Session) -> dict:
    user = db.query(User).filter(User.email == normalize_email(payload.email)).first()
    if user is None or not verify_password(payload.password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")

    with store_operation("logging in", db):
        refresh_token = _issue_refresh_token(db, user.id)
        user.last_login = utcnow()
        db.add(user)
        db.commit()
        db.refresh(user)
    return success_response(
        "User logged in successfully",
        {
            "user": public_user(user),
            "accessToken": issue_access_token(user.id),
            "refreshToken": refresh_token,
        },
    )


def refresh_service(payload: RefreshTokenIn, db: Session) -> dict:
    token_hash = hash_refresh_token(payload.refresh_token)
    stored = db.query(RefreshToken).filter(RefreshToken.token_hash == token_hash).first()
    if stored is None or stored.is_revoked:
        raise UnauthorizedError("Invalid refresh token")
    expires_at = parse_datetime_safe(stored.expires_at)
    if expires_at is None or expires_at <= utcnow():
        raise UnauthorizedError("Refresh token expired")
    return success_response("Token refreshed successfully", {"accessToken": issue_access_token(stored.user_id)})


def logout_service(user_id: UUID, db: Session) -> dict:
    with store_operation("logging out", db):
        revoked = (
            db.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False))
            .update({RefreshToken.is_revoked: True}, synchronize_session=False)
        )
        db.commit()
    _LOG.info("user logged out id=%s revoked_tokens=%s", user_id, revoked)
    return success_response("User logged out successfully")
