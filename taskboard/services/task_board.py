"""Kanban view of a team's tasks.

The board reuses the list executor for filtering (same ``filters`` and
``searchKey`` grammar as the task list) with pagination switched off, then
groups the rows by status into fixed columns.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from taskboard.schemas.query import QueryRequest, parse_filters_or_400, success_response
from taskboard.services.access import ensure_team_member_or_403, team_or_404
from taskboard.services.common import parse_datetime_safe, utcnow
from taskboard.services.entities import EntityKind
from taskboard.services.list_executor import fetch_list
from taskboard.services.tasks import STATUS_DONE, TASK_RELATIONS

BOARD_COLUMNS = [
    ("TODO", "To do"),
    ("IN_PROGRESS", "In progress"),
    ("DONE", "Done"),
]
ALLOWED_BOARD_SORT_MODES = {"position", "due_date", "priority", "created_newest"}
PRIORITY_RANK = {"HIGH": 0, "MEDIUM": 1, "LOW": 2}


def is_overdue(item: dict[str, Any], now: datetime) -> bool:
    if item.get("status") == STATUS_DONE:
        return False
    due = parse_datetime_safe(item.get("dueDate"))
    return bool(due and due < now)


def sort_board_items(items: list[dict[str, Any]], sort_mode: str) -> list[dict[str, Any]]:
    mode = sort_mode if sort_mode in ALLOWED_BOARD_SORT_MODES else "position"
    epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)

    if mode == "due_date":
        far_future = datetime(9999, 12, 31, tzinfo=timezone.utc)
        return sorted(
            items,
            key=lambda row: (parse_datetime_safe(row.get("dueDate")) or far_future, int(row.get("position") or 0)),
        )

    if mode == "priority":
        return sorted(
            items,
            key=lambda row: (PRIORITY_RANK.get(str(row.get("priority") or ""), len(PRIORITY_RANK)), int(row.get("position") or 0)),
        )

    if mode == "created_newest":
        return sorted(
            items,
            key=lambda row: parse_datetime_safe(row.get("createdAt")) or epoch,
            reverse=True,
        )

    return sorted(
        items,
        key=lambda row: (int(row.get("position") or 0), parse_datetime_safe(row.get("createdAt")) or epoch),
    )


def get_task_board_service(
    team_id: UUID,
    user_id: UUID,
    db: Session,
    *,
    filters: str | None = None,
    search_key: str | None = None,
    sort_mode: str = "position",
) -> dict[str, Any]:
    team_or_404(db, team_id)
    ensure_team_member_or_403(db, team_id, user_id)

    query = QueryRequest(page=1, limit=0, search_key=search_key, filters=parse_filters_or_400(filters))
    listing = fetch_list(
        db,
        EntityKind.TASK,
        query,
        scope={"teamId": str(team_id)},
        relations=TASK_RELATIONS,
        message="Task board retrieved successfully",
    )

    now = utcnow()
    grouped: dict[str, list[dict[str, Any]]] = {key: [] for key, _ in BOARD_COLUMNS}
    for item in listing.data:
        item["overdue"] = is_overdue(item, now)
        grouped.setdefault(str(item.get("status") or ""), []).append(item)

    columns = []
    for key, label in BOARD_COLUMNS:
        items = sort_board_items(grouped.get(key, []), sort_mode)
        columns.append({"key": key, "label": label, "total": len(items), "tasks": items})

    return success_response(
        listing.message,
        {
            "columns": columns,
            "total": listing.pagination.total_items,
            "overdue": sum(1 for column in columns for item in column["tasks"] if item["overdue"]),
            "sortMode": sort_mode if sort_mode in ALLOWED_BOARD_SORT_MODES else "position",
        },
    )
