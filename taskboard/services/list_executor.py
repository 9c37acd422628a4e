"""Generic list endpoint: one executor for every registered entity kind.

The executor builds a query plan from the request, renders it for the
entity's SQLAlchemy model, runs a count and a page fetch in the caller's
session and wraps the rows in the list envelope. Store failures are turned
into API errors by ``store_operation``; raw driver messages never leave it.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping, Protocol, Sequence

from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm import Session

from taskboard.core.config import settings
from taskboard.schemas.query import ListResponse, QueryRequest
from taskboard.services.entities import EntityDescriptor, EntityKind, get_entity
from taskboard.services.pagination import paginate, unbounded_pagination
from taskboard.services.query_plan import QueryPlan, build_query_plan
from taskboard.services.serialization import row_to_dict
from taskboard.services.sql_predicates import loader_options, render_order_by, render_predicate
from taskboard.services.store_errors import store_operation

_LOG = logging.getLogger("taskboard.query")

RowTransform = Callable[[list[dict[str, Any]]], list[dict[str, Any]]]


class QueryPlanObserver(Protocol):
    def plan_built(self, entity: EntityDescriptor, plan: QueryPlan) -> None: ...


class NullQueryPlanObserver:
    def plan_built(self, entity: EntityDescriptor, plan: QueryPlan) -> None:
        return None


class LoggingQueryPlanObserver:
    def __init__(self, logger: logging.Logger | None = None, level: int = logging.DEBUG):
        self.logger = logger or _LOG
        self.level = level

    def plan_built(self, entity: EntityDescriptor, plan: QueryPlan) -> None:
        if not self.logger.isEnabledFor(self.level):
            return
        self.logger.log(
            self.level,
            "list plan entity=%s plan=%s",
            entity.kind.value,
            json.dumps(plan.describe(), default=str, sort_keys=True),
        )


def default_observer() -> QueryPlanObserver:
    if settings.QUERY_PLAN_LOGGING and not settings.is_production:
        return LoggingQueryPlanObserver()
    return NullQueryPlanObserver()


def _execute_plan(db: Session, model: type, plan: QueryPlan) -> tuple[int, list[Any]]:
    base_query = db.query(model)
    if plan.where is not None:
        base_query = base_query.filter(render_predicate(model, plan.where))
    total = base_query.count()

    query = base_query
    if plan.sort is not None:
        query = query.order_by(render_order_by(model, plan.sort))
    # Primary key tiebreak keeps pages stable between identical requests.
    query = query.order_by(*[column.asc() for column in sa_inspect(model).primary_key])
    if plan.include:
        query = query.options(*loader_options(model, dict(plan.include)))
    if plan.is_paginated:
        query = query.offset(plan.offset).limit(plan.limit)
    return total, query.all()


def fetch_list(
    db: Session,
    entity: EntityDescriptor | EntityKind | str,
    request: QueryRequest,
    *,
    searchable_fields: Sequence[str] | None = None,
    relations: Mapping[str, Any] | None = None,
    selected_fields: Sequence[str] | None = None,
    scope: Mapping[str, Any] | None = None,
    default_sort: str | None = None,
    transform: RowTransform | None = None,
    message: str = "Data fetched successfully",
    observer: QueryPlanObserver | None = None,
) -> ListResponse:
    descriptor = entity if isinstance(entity, EntityDescriptor) else get_entity(entity)
    plan = build_query_plan(
        request,
        descriptor.searchable_fields if searchable_fields is None else searchable_fields,
        relations,
        selected_fields,
        scope=scope,
        default_sort=default_sort or descriptor.default_sort,
    )
    (observer or default_observer()).plan_built(descriptor, plan)

    with store_operation(f"listing {descriptor.kind.value}"):
        total, rows = _execute_plan(db, descriptor.model, plan)
        data = [row_to_dict(row, plan.projection, plan.include) for row in rows]
        if transform is not None:
            data = transform(data)

    pagination = paginate(total, request.page, request.limit) if plan.is_paginated else unbounded_pagination(total)
    return ListResponse(message=message, data=data, pagination=pagination)
