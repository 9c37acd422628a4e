from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskboard.core.deps import get_current_subject, get_list_query
from taskboard.db.session import get_db
from taskboard.schemas.query import ListResponse, QueryRequest
from taskboard.schemas.teams import CreateTeamIn, InviteUserIn
from taskboard.services.teams import (
    accept_invitation_service,
    create_team_service,
    decline_invitation_service,
    invite_user_service,
    list_invitations_service,
    list_team_members_service,
    list_user_teams_service,
    remove_team_member_service,
)

router = APIRouter()


@router.post("", status_code=201)
def create_team(payload: CreateTeamIn, db: Session = Depends(get_db), user_id: UUID = Depends(get_current_subject)):
    return create_team_service(user_id, payload, db)


@router.get("", response_model=ListResponse[dict[str, Any]])
def list_teams(
    query: QueryRequest = Depends(get_list_query),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_subject),
):
    return list_user_teams_service(user_id, query, db)


@router.get("/invitations", response_model=ListResponse[dict[str, Any]])
def list_invitations(
    query: QueryRequest = Depends(get_list_query),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_subject),
):
    return list_invitations_service(user_id, query, db)


@router.get("/invitations/pending", response_model=ListResponse[dict[str, Any]])
def list_pending_invitations(
    query: QueryRequest = Depends(get_list_query),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_subject),
):
    return list_invitations_service(user_id, query, db, pending_only=True)


@router.post("/invitations/{invitation_id}/accept")
def accept_invitation(invitation_id: UUID, db: Session = Depends(get_db), user_id: UUID = Depends(get_current_subject)):
    return accept_invitation_service(invitation_id, user_id, db)


@router.post("/invitations/{invitation_id}/decline")
def decline_invitation(invitation_id: UUID, db: Session = Depends(get_db), user_id: UUID = Depends(get_current_subject)):
    return decline_invitation_service(invitation_id, user_id, db)


@router.get("/{team_id}/members", response_model=ListResponse[dict[str, Any]])
def list_team_members(
    team_id: UUID,
    query: QueryRequest = Depends(get_list_query),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_subject),
):
    return list_team_members_service(team_id, user_id, query, db)


@router.delete("/{team_id}/members/{member_user_id}")
def remove_team_member(
    team_id: UUID,
    member_user_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_subject),
):
    return remove_team_member_service(team_id, member_user_id, user_id, db)


@router.post("/{team_id}/invite", status_code=201)
def invite_user(
    team_id: UUID,
    payload: InviteUserIn,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_subject),
):
    return invite_user_service(team_id, user_id, payload, db)
