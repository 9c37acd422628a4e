from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from taskboard.core.errors import BadRequestError, NotFoundError
from taskboard.models.task import Task
from taskboard.schemas.query import ListResponse, QueryRequest, success_response
from taskboard.schemas.tasks import AssignTaskIn, CreateTaskIn, UpdateTaskIn
from taskboard.services.access import ensure_team_member_or_403, membership, team_or_404
from taskboard.services.common import utcnow
from taskboard.services.entities import USER_PUBLIC_FIELDS, EntityKind
from taskboard.services.list_executor import fetch_list
from taskboard.services.query_plan import build_include_tree
from taskboard.services.serialization import row_to_dict
from taskboard.services.store_errors import store_operation

_LOG = logging.getLogger("taskboard.tasks")

STATUS_DONE = "DONE"
TASK_RELATIONS = {"assignee": list(USER_PUBLIC_FIELDS)}


def _task_dict(task: Task) -> dict:
    return row_to_dict(task, include=build_include_tree(TASK_RELATIONS))


def _ensure_access(db: Session, team_id: UUID, user_id: UUID) -> None:
    team_or_404(db, team_id)
    ensure_team_member_or_403(db, team_id, user_id)


def task_in_team_or_404(db: Session, team_id: UUID, task_id: UUID) -> Task:
    task = db.query(Task).filter(Task.id == task_id, Task.team_id == team_id).first()
    if task is None:
        raise NotFoundError("Task not found")
    return task


def _apply_status(task: Task, status: str) -> None:
    task.status = status
    task.completed_at = utcnow() if status == STATUS_DONE else None


def _next_position(db: Session, team_id: UUID, status: str) -> int:
    current = db.query(func.max(Task.position)).filter(Task.team_id == team_id, Task.status == status).scalar()
    return 0 if current is None else int(current) + 1


def list_tasks_service(team_id: UUID, user_id: UUID, query: QueryRequest, db: Session) -> ListResponse:
    _ensure_access(db, team_id, user_id)
    return fetch_list(
        db,
        EntityKind.TASK,
        query,
        scope={"teamId": str(team_id)},
        relations=TASK_RELATIONS,
        message="Tasks retrieved successfully",
    )


def create_task_service(team_id: UUID, user_id: UUID, payload: CreateTaskIn, db: Session) -> dict:
    _ensure_access(db, team_id, user_id)
    task = Task(
        title=payload.title.strip(),
        description=payload.description,
        priority=payload.priority or "MEDIUM",
        status="TODO",
        due_date=payload.due_date,
        labels=payload.labels or {},
        position=_next_position(db, team_id, "TODO"),
        team_id=team_id,
        created_by=user_id,
    )
    with store_operation("creating task", db):
        db.add(task)
        db.commit()
        db.refresh(task)
    _LOG.info("task created team=%s task=%s by=%s", team_id, task.id, user_id)
    return success_response("Task created successfully", _task_dict(task))


def get_task_service(team_id: UUID, task_id: UUID, user_id: UUID, db: Session) -> dict:
    _ensure_access(db, team_id, user_id)
    task = task_in_team_or_404(db, team_id, task_id)
    return success_response("Task retrieved successfully", _task_dict(task))


def update_task_service(team_id: UUID, task_id: UUID, user_id: UUID, payload: UpdateTaskIn, db: Session) -> dict:
    _ensure_access(db, team_id, user_id)
    task = task_in_team_or_404(db, team_id, task_id)
    changes = payload.model_dump(exclude_unset=True)
    status = changes.pop("status", None)
    if "title" in changes:
        if not str(changes["title"] or "").strip():
            raise BadRequestError("Task title cannot be empty")
        changes["title"] = changes["title"].strip()
    if "labels" in changes and changes["labels"] is None:
        changes["labels"] = {}
    for key, value in changes.items():
        setattr(task, key, value)
    if status is not None and status != task.status:
        if "position" not in changes:
            task.position = _next_position(db, team_id, status)
        _apply_status(task, status)
    with store_operation("updating task", db):
        db.add(task)
        db.commit()
        db.refresh(task)
    return success_response("Task updated successfully", _task_dict(task))


def delete_task_service(team_id: UUID, task_id: UUID, user_id: UUID, db: Session) -> dict:
    _ensure_access(db, team_id, user_id)
    task = task_in_team_or_404(db, team_id, task_id)
    with store_operation("deleting task", db):
        db.delete(task)
        db.commit()
    _LOG.info("task deleted team=%s task=%s by=%s", team_id, task_id, user_id)
    return success_response("Task deleted successfully")


def assign_task_service(team_id: UUID, task_id: UUID, user_id: UUID, payload: AssignTaskIn, db: Session) -> dict:
    _ensure_access(db, team_id, user_id)
    task = task_in_team_or_404(db, team_id, task_id)
    if membership(db, team_id, payload.assignee_id) is None:
        raise BadRequestError("Assignee must be a member of this team")
    with store_operation("assigning task", db):
        task.assigned_to = payload.assignee_id
        db.add(task)
        db.commit()
        db.refresh(task)
    return success_response("Task assigned successfully", _task_dict(task))
