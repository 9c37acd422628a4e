from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping

from pydantic.alias_generators import to_camel
from sqlalchemy.inspection import inspect as sa_inspect

from taskboard.services.entities import GLOBAL_HIDDEN_FIELDS
from taskboard.services.query_plan import IncludeNode
from taskboard.services.sql_predicates import (
    InvalidFieldError,
    expand_include,
    is_relationship,
    related_model,
    resolve_attribute,
)


def serialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: serialize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def _column_keys(model: type, projection: tuple) -> list[str]:
    if not projection:
        return [attr.key for attr in sa_inspect(model).column_attrs]
    keys: list[str] = []
    for name in projection:
        attr = resolve_attribute(model, name)
        if is_relationship(attr):
            raise InvalidFieldError(f'Field "{name}" is a relation, include it instead')
        keys.append(attr.key)
    return keys


def row_to_dict(
    row: Any,
    projection: tuple = (),
    include: Mapping[str, IncludeNode] | None = None,
) -> dict[str, Any]:
    """API view of an ORM row: camelCase keys, JSON-ready values."""
    model = type(row)
    payload = {
        to_camel(key): serialize_value(getattr(row, key))
        for key in _column_keys(model, projection)
        if key not in GLOBAL_HIDDEN_FIELDS
    }
    for name, node in (include or {}).items():
        attr = resolve_attribute(model, name)
        related = getattr(row, attr.key)
        node = expand_include(related_model(attr), node)
        if related is None:
            payload[to_camel(attr.key)] = None
        elif isinstance(related, list):
            payload[to_camel(attr.key)] = [row_to_dict(item, node.fields, node.children) for item in related]
        else:
            payload[to_camel(attr.key)] = row_to_dict(related, node.fields, node.children)
    return payload
