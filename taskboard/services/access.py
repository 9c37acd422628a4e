from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from taskboard.core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from taskboard.models.team import Team
from taskboard.models.team_member import ROLE_ADMIN, TeamMember
from taskboard.models.user import User


def load_user_or_401(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User no longer exists")
    return user


def team_or_404(db: Session, team_id: UUID) -> Team:
    team = db.get(Team, team_id)
    if team is None:
        raise NotFoundError("Team not found")
    return team


def membership(db: Session, team_id: UUID, user_id: UUID) -> TeamMember | None:
    return (
        db.query(TeamMember)
        .filter(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
        .first()
    )


def ensure_team_member_or_403(db: Session, team_id: UUID, user_id: UUID) -> TeamMember:
    member = membership(db, team_id, user_id)
    if member is None:
        raise ForbiddenError("You don't have access to this team")
    return member


def ensure_team_admin_or_403(db: Session, team_id: UUID, user_id: UUID) -> TeamMember:
    member = ensure_team_member_or_403(db, team_id, user_id)
    if str(member.role or "").upper() != ROLE_ADMIN:
        raise ForbiddenError("Only team admins can manage this team")
    return member
