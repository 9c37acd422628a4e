from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from taskboard.schemas.query import QueryRequest
from taskboard.services.filter_predicates import (
    Predicate,
    combine_and,
    compile_filters,
    describe_predicate,
    search_condition,
)
from taskboard.services.pagination import page_offset


@dataclass(frozen=True)
class SortSpec:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class IncludeNode:
    fields: tuple = ()
    children: Mapping[str, "IncludeNode"] = field(default_factory=dict)

    def describe(self) -> dict[str, Any]:
        return {
            "fields": list(self.fields),
            "children": {name: child.describe() for name, child in self.children.items()},
        }


@dataclass(frozen=True)
class QueryPlan:
    where: Predicate | None = None
    sort: SortSpec | None = None
    offset: int | None = None
    limit: int | None = None
    projection: tuple = ()
    include: Mapping[str, IncludeNode] = field(default_factory=dict)

    @property
    def is_paginated(self) -> bool:
        return self.limit is not None

    def describe(self) -> dict[str, Any]:
        return {
            "where": describe_predicate(self.where),
            "sort": {"field": self.sort.field, "descending": self.sort.descending} if self.sort else None,
            "offset": self.offset,
            "limit": self.limit,
            "projection": list(self.projection),
            "include": {name: node.describe() for name, node in self.include.items()},
        }


def parse_sort(raw: str | None) -> SortSpec | None:
    text = str(raw or "").strip()
    if not text:
        return None
    field_name, sep, direction = text.partition(":")
    if not sep:
        return SortSpec(text)
    return SortSpec(field_name.strip(), descending=direction.strip().lower() == "desc")


def _include_node(spec: Any) -> IncludeNode:
    if isinstance(spec, Mapping):
        select = spec.get("select", spec)
        if not isinstance(select, Mapping):
            return IncludeNode()
        plain: list[str] = []
        children: dict[str, IncludeNode] = {}
        for name, value in select.items():
            if value is True:
                plain.append(str(name))
            elif isinstance(value, (Mapping, list, tuple)):
                children[str(name)] = _include_node(value)
        return IncludeNode(tuple(plain), children)
    if isinstance(spec, (list, tuple)):
        return IncludeNode(tuple(str(item) for item in spec))
    return IncludeNode()


def build_include_tree(relations: Mapping[str, Any] | None) -> dict[str, IncludeNode]:
    """Turn a relations descriptor into include nodes.

    Each entry is either a list of sub-fields, ``True`` for every column of the
    relation, or ``{"select": {...}}`` whose values may again be lists or
    nested selects.
    """
    if not relations:
        return {}
    return {str(name): _include_node(spec) for name, spec in relations.items()}


def build_query_plan(
    request: QueryRequest,
    searchable_fields: Sequence[str] = (),
    relations: Mapping[str, Any] | None = None,
    selected_fields: Sequence[str] | None = None,
    *,
    scope: Mapping[str, Any] | None = None,
    default_sort: str | None = None,
) -> QueryPlan:
    where = combine_and(
        compile_filters(scope),
        compile_filters(request.filters),
        search_condition(request.search_key, searchable_fields),
    )
    sort = parse_sort(request.sort) or parse_sort(default_sort)
    offset = limit = None
    if request.limit > 0:
        offset = page_offset(request.page, request.limit)
        limit = request.limit
    return QueryPlan(
        where=where,
        sort=sort,
        offset=offset,
        limit=limit,
        projection=tuple(str(item) for item in selected_fields or ()),
        include=build_include_tree(relations),
    )
