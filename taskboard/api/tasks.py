from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from taskboard.core.deps import get_current_subject, get_list_query
from taskboard.db.session import get_db
from taskboard.schemas.query import ListResponse, QueryRequest
from taskboard.schemas.tasks import AssignTaskIn, CreateTaskIn, UpdateTaskIn
from taskboard.services.task_board import get_task_board_service
from taskboard.services.tasks import (
    assign_task_service,
    create_task_service,
    delete_task_service,
    get_task_service,
    list_tasks_service,
    update_task_service,
)

router = APIRouter()


@router.get("", response_model=ListResponse[dict[str, Any]])
def list_tasks(
    team_id: UUID,
    query: QueryRequest = Depends(get_list_query),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_subject),
):
    return list_tasks_service(team_id, user_id, query, db)


@router.get("/board")
def get_task_board(
    team_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_subject),
    filters: str | None = Query(default=None),
    searchKey: str | None = Query(default=None),
    sort_mode: str = Query(default="position", alias="sortMode"),
):
    return get_task_board_service(team_id, user_id, db, filters=filters, search_key=searchKey, sort_mode=sort_mode)


@router.post("", status_code=201)
def create_task(
    team_id: UUID,
    payload: CreateTaskIn,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_subject),
):
    return create_task_service(team_id, user_id, payload, db)


@router.get("/{task_id}")
def get_task(team_id: UUID, task_id: UUID, db: Session = Depends(get_db), user_id: UUID = Depends(get_current_subject)):
    return get_task_service(team_id, task_id, user_id, db)


@router.patch("/{task_id}")
def update_task(
    team_id: UUID,
    task_id: UUID,
    payload: UpdateTaskIn,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_subject),
):
    return update_task_service(team_id, task_id, user_id, payload, db)


@router.delete("/{task_id}")
def delete_task(team_id: UUID, task_id: UUID, db: Session = Depends(get_db), user_id: UUID = Depends(get_current_subject)):
    return delete_task_service(team_id, task_id, user_id, db)


@router.post("/{task_id}/assign")
def assign_task(
    team_id: UUID,
    task_id: UUID,
    payload: AssignTaskIn,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_subject),
):
    return assign_task_service(team_id, task_id, user_id, payload, db)
