from __future__ import annotations

import json
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from taskboard.core.errors import BadRequestError

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QueryRequest(CamelModel):
    page: int = Field(default=1, ge=1)
    # Not range-checked: zero or negative means "no pagination".
    limit: int = 10
    search_key: Optional[str] = None
    filters: Optional[dict[str, Any]] = None
    sort: Optional[str] = None

    @property
    def is_paginated(self) -> bool:
        return self.limit > 0


class PaginationResult(CamelModel):
    total_items: int
    page: int
    limit: int
    total_pages: int
    has_more: bool
    page_size: int


class ResponseModel(CamelModel, Generic[T]):
    success: bool = True
    message: str
    data: Optional[T] = None


class ListResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str
    data: List[T]
    pagination: PaginationResult


def parse_filters_or_400(raw_filters: str | None) -> dict[str, Any] | None:
    if raw_filters is None or not raw_filters.strip():
        return None
    try:
        parsed = json.loads(raw_filters)
    except json.JSONDecodeError as exc:
        raise BadRequestError("Filters must be a valid JSON object") from exc
    if not isinstance(parsed, dict):
        raise BadRequestError("Filters must be a JSON object keyed by field name")
    return parsed


def success_response(message: str, data: Any = None) -> dict[str, Any]:
    return {"success": True, "message": message, "data": data}
