"""Store-agnostic filter predicates.

A list request's ``filters`` mapping is compiled into a small tree of frozen
dataclasses. Each field gets a ``FieldCondition`` holding one fragment per
operator; conditions are combined with ``And`` / ``Or``. Nothing here touches
the database: rendering to SQL happens in ``sql_predicates``.

Compilation never fails. Operators that are not recognised are kept as
``Passthrough`` fragments and are only rejected when rendered.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, is_dataclass
from datetime import date, datetime, timezone
from typing import Any, Union

TEXT_MATCH_OPERATORS = {"contains", "startsWith", "endsWith"}
RANGE_OPERATORS = {"gt", "gte", "lt", "lte"}
RELATION_QUANTIFIERS = {"some", "every", "none", "is"}


@dataclass(frozen=True)
class Equals:
    value: Any
    case_insensitive: bool = True


@dataclass(frozen=True)
class Not:
    fragment: "Fragment"


@dataclass(frozen=True)
class Contains:
    value: Any
    mode: str = "contains"  # contains|startsWith|endsWith


@dataclass(frozen=True)
class Range:
    op: str  # gt|gte|lt|lte
    value: Any


@dataclass(frozen=True)
class Between:
    min: Any = None
    max: Any = None


@dataclass(frozen=True)
class SetMembership:
    values: tuple
    negate: bool = False


@dataclass(frozen=True)
class Null:
    is_null: bool


@dataclass(frozen=True)
class JsonHasKey:
    key: str


@dataclass(frozen=True)
class RelationQuantifier:
    kind: str  # some|every|none|is
    where: "Predicate | None" = None


@dataclass(frozen=True)
class RelationPresence:
    present: bool


@dataclass(frozen=True)
class Passthrough:
    operator: str
    operand: Any


Fragment = Union[
    Equals,
    Not,
    Contains,
    Range,
    Between,
    SetMembership,
    Null,
    JsonHasKey,
    RelationQuantifier,
    RelationPresence,
    Passthrough,
]


@dataclass(frozen=True)
class FieldCondition:
    field: str
    fragments: tuple
    json_path: tuple | None = None


@dataclass(frozen=True)
class And:
    items: tuple


@dataclass(frozen=True)
class Or:
    items: tuple


Predicate = Union[FieldCondition, And, Or]


def _parse_temporal_operand(value: Any) -> Any:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time(), tzinfo=timezone.utc)
    text = str(value or "").strip()
    if not text:
        return value
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        # Left as-is; the store adapter rejects it when coercing.
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_tuple(value: Any) -> tuple:
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(value)
    return (value,)


def compile_operator(operator: str, operand: Any) -> Fragment:
    """Compile one ``operator: operand`` pair of a field's filter mapping."""
    if operator == "eq":
        return Equals(operand, case_insensitive=True)
    if operator == "neq":
        return Not(Equals(operand, case_insensitive=True))
    if operator in TEXT_MATCH_OPERATORS:
        return Contains(operand, mode=operator)
    if operator in RANGE_OPERATORS:
        return Range(operator, operand)
    if operator == "in":
        return SetMembership(_as_tuple(operand))
    if operator == "notIn":
        return SetMembership(_as_tuple(operand), negate=True)
    if operator == "not":
        return Not(Equals(operand, case_insensitive=False))
    if operator == "between" and isinstance(operand, Mapping):
        return Between(operand.get("min"), operand.get("max"))
    if operator == "isNull":
        return Null(operand is True)
    if operator == "before":
        return Range("lt", _parse_temporal_operand(operand))
    if operator == "after":
        return Range("gt", _parse_temporal_operand(operand))
    if operator == "hasKey":
        return JsonHasKey(str(operand))
    if operator == "is" and operand is None:
        return RelationPresence(False)
    if operator in RELATION_QUANTIFIERS and isinstance(operand, Mapping):
        return RelationQuantifier(operator, compile_filters(operand))
    if operator == "isSet":
        return RelationPresence(operand is True)
    return Passthrough(operator, operand)


def compile_field_filter(field: str, value: Any) -> FieldCondition:
    """Compile the filter value of a single field.

    A mapping is read as ``{operator: operand}`` pairs that all have to hold.
    ``path`` is not a condition of its own: it points the other operators of
    the same mapping at a value nested inside a JSON column. A bare scalar is
    an implicit ``eq``.
    """
    if isinstance(value, Mapping):
        json_path = None
        fragments: list[Fragment] = []
        for operator, operand in value.items():
            if operator == "path":
                json_path = tuple(str(part) for part in _as_tuple(operand))
                continue
            fragments.append(compile_operator(str(operator), operand))
        return FieldCondition(field, tuple(fragments), json_path)
    if value is None:
        return FieldCondition(field, (Null(True),))
    if isinstance(value, (list, tuple, set, frozenset)):
        return FieldCondition(field, (Passthrough("equals", value),))
    return FieldCondition(field, (Equals(value, case_insensitive=True),))


def compile_filters(filters: Mapping[str, Any] | None) -> And | None:
    if not filters:
        return None
    return And(tuple(compile_field_filter(str(field), value) for field, value in filters.items()))


def search_condition(search_key: str | None, searchable_fields) -> Or | None:
    """Case-insensitive ``contains`` across every searchable field."""
    text = str(search_key or "")
    if not text or not searchable_fields:
        return None
    return Or(tuple(FieldCondition(str(field), (Contains(text),)) for field in searchable_fields))


def combine_and(*predicates: Predicate | None) -> Predicate | None:
    items = tuple(p for p in predicates if p is not None)
    if not items:
        return None
    if len(items) == 1:
        return items[0]
    return And(items)


def describe_predicate(node: Any) -> Any:
    """JSON-friendly view of a predicate tree, tagged by variant name."""
    if is_dataclass(node) and not isinstance(node, type):
        out: dict[str, Any] = {"type": type(node).__name__}
        for item in fields(node):
            out[item.name] = describe_predicate(getattr(node, item.name))
        return out
    if isinstance(node, (list, tuple)):
        return [describe_predicate(item) for item in node]
    if isinstance(node, Mapping):
        return {str(key): describe_predicate(val) for key, val in node.items()}
    if isinstance(node, (datetime, date)):
        return node.isoformat()
    return node
