from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from taskboard.core.errors import BadRequestError, ForbiddenError, NotFoundError
from taskboard.models.invitation import (
    STATUS_ACCEPTED,
    STATUS_PENDING,
    STATUS_REJECTED,
    Invitation,
)
from taskboard.models.team import Team
from taskboard.models.team_member import ROLE_ADMIN, ROLE_MEMBER, TeamMember
from taskboard.models.user import User
from taskboard.schemas.query import ListResponse, QueryRequest, success_response
from taskboard.schemas.teams import CreateTeamIn, InviteUserIn
from taskboard.services.access import (
    ensure_team_admin_or_403,
    ensure_team_member_or_403,
    load_user_or_401,
    membership,
    team_or_404,
)
from taskboard.services.common import normalize_email, slugify, utcnow
from taskboard.services.entities import USER_PUBLIC_FIELDS, EntityKind
from taskboard.services.list_executor import fetch_list
from taskboard.services.serialization import row_to_dict
from taskboard.services.store_errors import store_operation

_LOG = logging.getLogger("taskboard.teams")

INVITATION_TEAM_FIELDS = ["id", "name", "slug", "description"]


def _unique_slug(db: Session, name: str) -> str:
    base = slugify(name)
    slug = base
    counter = 1
    while db.query(Team.id).filter(Team.slug == slug).first() is not None:
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def create_team_service(user_id: UUID, payload: CreateTeamIn, db: Session) -> dict:
    owner = load_user_or_401(db, user_id)
    name = payload.name.strip()
    if not name:
        raise BadRequestError("Team name is required")
    duplicate = (
        db.query(Team.id)
        .filter(Team.owner_id == owner.id, func.lower(Team.name) == name.lower(), Team.is_archived.is_(False))
        .first()
    )
    if duplicate is not None:
        raise BadRequestError("You already own a team with this name")

    team = Team(
        name=name,
        slug=_unique_slug(db, name),
        description=(payload.description or "").strip() or None,
        owner_id=owner.id,
    )
    with store_operation("creating team", db):
        db.add(team)
        db.flush()
        db.add(TeamMember(team_id=team.id, user_id=owner.id, role=ROLE_ADMIN, joined_at=utcnow()))
        db.commit()
        db.refresh(team)
    _LOG.info("team created id=%s slug=%s owner=%s", team.id, team.slug, owner.id)
    return success_response("Team created successfully", row_to_dict(team))


def list_user_teams_service(user_id: UUID, query: QueryRequest, db: Session) -> ListResponse:
    return fetch_list(
        db,
        EntityKind.TEAM,
        query,
        scope={"members": {"some": {"userId": str(user_id)}}, "isArchived": False},
        message="User teams retrieved successfully",
    )


def list_team_members_service(team_id: UUID, user_id: UUID, query: QueryRequest, db: Session) -> ListResponse:
    team_or_404(db, team_id)
    ensure_team_member_or_403(db, team_id, user_id)
    return fetch_list(
        db,
        EntityKind.TEAM_MEMBER,
        query,
        scope={"teamId": str(team_id)},
        relations={"user": list(USER_PUBLIC_FIELDS)},
        message="Team members retrieved successfully",
    )


def remove_team_member_service(team_id: UUID, member_user_id: UUID, actor_id: UUID, db: Session) -> dict:
    team = team_or_404(db, team_id)
    ensure_team_admin_or_403(db, team_id, actor_id)
    if team.owner_id == member_user_id:
        raise BadRequestError("The team owner cannot be removed")
    member = membership(db, team_id, member_user_id)
    if member is None:
        raise NotFoundError("Team member not found")
    with store_operation("removing team member", db):
        db.delete(member)
        db.commit()
    _LOG.info("team member removed team=%s user=%s by=%s", team_id, member_user_id, actor_id)
    return success_response("Team member removed successfully")


def _find_invitee(db: Session, payload: InviteUserIn) -> User:
    if payload.email:
        user = db.query(User).filter(User.email == normalize_email(payload.email)).first()
    else:
        username = str(payload.username or "").strip().lower()
        user = db.query(User).filter(User.username == username).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def invite_user_service(team_id: UUID, inviter_id: UUID, payload: InviteUserIn, db: Session) -> dict:
    team_or_404(db, team_id)
    ensure_team_admin_or_403(db, team_id, inviter_id)
    invitee = _find_invitee(db, payload)
    if membership(db, team_id, invitee.id) is not None:
        raise BadRequestError("User is already a member of this team")
    pending = (
        db.query(Invitation.id)
        .filter(
            Invitation.team_id == team_id,
            Invitation.email == invitee.email,
            Invitation.status == STATUS_PENDING,
        )
        .first()
    )
    if pending is not None:
        raise BadRequestError("User already has a pending invitation")

    invitation = Invitation(email=invitee.email, team_id=team_id, invited_by=inviter_id, status=STATUS_PENDING)
    with store_operation("inviting user", db):
        db.add(invitation)
        db.commit()
        db.refresh(invitation)
    _LOG.info("invitation sent team=%s invitation=%s by=%s", team_id, invitation.id, inviter_id)
    return success_response("Invitation sent successfully", row_to_dict(invitation))


def list_invitations_service(
    user_id: UUID,
    query: QueryRequest,
    db: Session,
    *,
    pending_only: bool = False,
) -> ListResponse:
    user = load_user_or_401(db, user_id)
    scope: dict = {"email": user.email}
    if pending_only:
        scope["status"] = STATUS_PENDING
    return fetch_list(
        db,
        EntityKind.INVITATION,
        query,
        scope=scope,
        relations={"team": INVITATION_TEAM_FIELDS},
        message="Pending invitations retrieved successfully" if pending_only else "Invitations retrieved successfully",
    )


def _invitation_for_user(db: Session, invitation_id: UUID, user: User) -> Invitation:
    invitation = db.get(Invitation, invitation_id)
    if invitation is None:
        raise NotFoundError("Invitation not found")
    if invitation.status != STATUS_PENDING:
        raise BadRequestError("Invitation is no longer pending")
    if normalize_email(invitation.email) != normalize_email(user.email):
        raise ForbiddenError("This invitation was sent to another user")
    return invitation


def accept_invitation_service(invitation_id: UUID, user_id: UUID, db: Session) -> dict:
    user = load_user_or_401(db, user_id)
    invitation = _invitation_for_user(db, invitation_id, user)
    if membership(db, invitation.team_id, user.id) is not None:
        raise BadRequestError("You are already a member of this team")

    now = utcnow()
    with store_operation("accepting invitation", db):
        invitation.status = STATUS_ACCEPTED
        invitation.accepted_at = now
        db.add(invitation)
        db.add(
            TeamMember(
                team_id=invitation.team_id,
                user_id=user.id,
                role=ROLE_MEMBER,
                joined_at=now,
                invited_at=invitation.invited_at,
                invited_by=invitation.invited_by,
            )
        )
        db.commit()
        db.refresh(invitation)
    _LOG.info("invitation accepted invitation=%s user=%s", invitation.id, user.id)
    return success_response("Invitation accepted successfully", row_to_dict(invitation))


def decline_invitation_service(invitation_id: UUID, user_id: UUID, db: Session) -> dict:
    user = load_user_or_401(db, user_id)
    invitation = _invitation_for_user(db, invitation_id, user)
    with store_operation("declining invitation", db):
        invitation.status = STATUS_REJECTED
        invitation.rejected_at = utcnow()
        db.add(invitation)
        db.commit()
        db.refresh(invitation)
    return success_response("Invitation declined successfully", row_to_dict(invitation))
