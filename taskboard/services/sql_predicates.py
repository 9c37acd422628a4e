import operator as _op
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import and_, false, func, not_, or_, true
from sqlalchemy.orm import RelationshipProperty, selectinload
from sqlalchemy.orm.attributes import QueryableAttribute
from sqlalchemy.sql.operators import ColumnOperators

from taskboard.services.entities import GLOBAL_HIDDEN_FIELDS
from taskboard.services.filter_predicates import (
    And,
    Between,
    Contains,
    Equals,
    FieldCondition,
    JsonHasKey,
    Not,
    Null,
    Or,
    Passthrough,
    Range,
    RelationPresence,
    RelationQuantifier,
    SetMembership,
)
from taskboard.services.query_plan import IncludeNode, SortSpec


class StoreQueryError(Exception):
    pass


class InvalidFieldError(StoreQueryError):
    pass


class InvalidFilterValueError(StoreQueryError):
    pass


RANGE_OPS = {"gt": _op.gt, "gte": _op.ge, "lt": _op.lt, "lte": _op.le}


_TRUE_WORDS = {"1", "true", "yes", "y", "on"}
_FALSE_WORDS = {"0", "false", "no", "n", "off"}


def _operand_text(value) -> str:
    return str(value if value is not None else "").strip()


def _is_date_only_literal(value) -> bool:
    if isinstance(value, date) and not isinstance(value, datetime):
        return True
    if not isinstance(value, str):
        return False
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


def _to_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    word = _operand_text(value).lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(value)


def _to_number(python_type):
    def convert(value):
        if isinstance(value, bool):
            raise TypeError(value)
        if isinstance(value, (int, float, Decimal)):
            return Decimal(str(value)) if python_type is Decimal else python_type(value)
        # "3,5" is accepted as a decimal comma.
        return python_type(_operand_text(value).replace(",", "."))

    return convert


def _to_datetime(value) -> datetime:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date) or _is_date_only_literal(value):
        day = value if isinstance(value, date) else date.fromisoformat(value.strip())
        moment = datetime.combine(day, time.min)
    else:
        moment = datetime.fromisoformat(_operand_text(value).replace("Z", "+00:00"))
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _to_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if _is_date_only_literal(value):
        return value if isinstance(value, date) else date.fromisoformat(value.strip())
    return _to_datetime(value).date()


def _to_uuid(value) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(_operand_text(value))


# Column python type -> (name used in error messages, converter).
_CONVERTERS = {
    bool: ("boolean", _to_bool),
    int: ("integer", _to_number(int)),
    float: ("number", _to_number(float)),
    Decimal: ("decimal", _to_number(Decimal)),
    date: ("date", _to_date),
    datetime: ("timestamp", _to_datetime),
    uuid.UUID: ("UUID", _to_uuid),
}


def _column_python_type(column):
    try:
        return column.type.python_type
    except (AttributeError, NotImplementedError):
        return None


def camel_to_snake(name: str) -> str:
    raw = (name or "").strip().replace("-", "_")
    chars: list[str] = []
    for index, ch in enumerate(raw):
        if ch.isupper() and index > 0 and raw[index - 1].isalnum() and raw[index - 1] != "_":
            chars.append("_")
        chars.append(ch.lower())
    return "".join(chars)


def resolve_attribute(model, name: str) -> QueryableAttribute:
    """Mapped attribute of ``model`` by API (camelCase) or attribute name.

    Hidden columns resolve like unknown ones, so they cannot be filtered,
    sorted or projected on any path.
    """
    text = str(name or "").strip()
    for candidate in (text, camel_to_snake(text)):
        if not candidate or candidate.startswith("_"):
            continue
        attr = getattr(model, candidate, None)
        if isinstance(attr, QueryableAttribute) and attr.key not in GLOBAL_HIDDEN_FIELDS:
            return attr
    raise InvalidFieldError(f'Unknown field "{text}" on {model.__name__}')


def is_relationship(attr: QueryableAttribute) -> bool:
    return isinstance(attr.property, RelationshipProperty)


def related_model(attr: QueryableAttribute):
    return attr.property.mapper.class_


class _Target:
    """Column expression a fragment is applied to, plain or inside JSON."""

    def __init__(self, column: QueryableAttribute, json_path: tuple | None):
        self.column = column
        self.json_path = json_path

    @property
    def key(self) -> str:
        return self.column.key

    def _json_element(self, path: tuple):
        return self.column[path[0]] if len(path) == 1 else self.column[path]

    def expr(self, sample=None):
        if not self.json_path:
            return self.column
        element = self._json_element(self.json_path)
        if isinstance(sample, bool):
            return element.as_boolean()
        if isinstance(sample, int):
            return element.as_integer()
        if isinstance(sample, (float, Decimal)):
            return element.as_float()
        return element.as_string()

    def has_key(self, key: str):
        return self._json_element(tuple(self.json_path or ()) + (key,)).as_string().is_not(None)

    def coerce(self, value):
        if value is None or self.json_path:
            return value
        kind, convert = _CONVERTERS.get(_column_python_type(self.column), (None, None))
        if convert is None:
            return value
        try:
            return convert(value)
        except (TypeError, ValueError, ArithmeticError) as exc:
            raise InvalidFilterValueError(f'"{self.key}" expects a {kind} filter value, got {value!r}') from exc

    def is_text(self, value) -> bool:
        if self.json_path:
            return isinstance(value, str)
        return _column_python_type(self.column) is str and isinstance(value, str)

    def is_timestamp(self) -> bool:
        return not self.json_path and _column_python_type(self.column) is datetime


def _render_equals(target: _Target, fragment: Equals):
    if fragment.value is None:
        return target.expr().is_(None)
    if target.is_timestamp() and _is_date_only_literal(fragment.value):
        day_start = target.coerce(fragment.value)
        day_end = day_start + timedelta(days=1)
        return and_(target.column >= day_start, target.column < day_end)
    value = target.coerce(fragment.value)
    expr = target.expr(value)
    if fragment.case_insensitive and target.is_text(value):
        return func.lower(expr) == value.lower()
    return expr == value


def _render_passthrough(target: _Target, fragment: Passthrough):
    expr = target.expr(fragment.operand)
    if fragment.operator == "equals":
        return expr == fragment.operand
    name = fragment.operator
    if name.startswith("_") or not callable(getattr(ColumnOperators, name, None)):
        raise InvalidFieldError(f'Unsupported filter operator "{name}" for field "{target.key}"')
    try:
        return getattr(expr, name)(fragment.operand)
    except (TypeError, ValueError) as exc:
        raise InvalidFilterValueError(f'Invalid operand for "{name}" on field "{target.key}"') from exc


def _render_column_fragment(target: _Target, fragment):
    if isinstance(fragment, Equals):
        return _render_equals(target, fragment)
    if isinstance(fragment, Not):
        return not_(_render_column_fragment(target, fragment.fragment))
    if isinstance(fragment, Contains):
        expr = target.expr("")
        text = str(fragment.value if fragment.value is not None else "")
        if fragment.mode == "startsWith":
            return expr.istartswith(text, autoescape=True)
        if fragment.mode == "endsWith":
            return expr.iendswith(text, autoescape=True)
        return expr.icontains(text, autoescape=True)
    if isinstance(fragment, Range):
        value = target.coerce(fragment.value)
        return RANGE_OPS[fragment.op](target.expr(value), value)
    if isinstance(fragment, Between):
        conditions = []
        if fragment.min is not None:
            low = target.coerce(fragment.min)
            conditions.append(target.expr(low) >= low)
        if fragment.max is not None:
            high = target.coerce(fragment.max)
            conditions.append(target.expr(high) <= high)
        return and_(true(), *conditions)
    if isinstance(fragment, SetMembership):
        values = [target.coerce(item) for item in fragment.values]
        sample = values[0] if values else None
        expr = target.expr(sample)
        if values and all(target.is_text(item) for item in values):
            expr = func.lower(expr)
            values = [item.lower() for item in values]
        return expr.not_in(values) if fragment.negate else expr.in_(values)
    if isinstance(fragment, Null):
        expr = target.expr()
        return expr.is_(None) if fragment.is_null else expr.is_not(None)
    if isinstance(fragment, JsonHasKey):
        return target.has_key(fragment.key)
    if isinstance(fragment, Passthrough):
        return _render_passthrough(target, fragment)
    raise InvalidFieldError(f'Field "{target.key}" is not a relation')


def _render_relation_fragment(attr: QueryableAttribute, fragment):
    many = bool(attr.property.uselist)
    exists = attr.any if many else attr.has
    if isinstance(fragment, RelationPresence):
        return exists() if fragment.present else ~exists()
    if isinstance(fragment, RelationQuantifier):
        if fragment.kind == "is" and many:
            raise InvalidFieldError(f'"is" needs a to-one relation, "{attr.key}" is a collection')
        inner = render_predicate(related_model(attr), fragment.where) if fragment.where is not None else None
        if fragment.kind in {"some", "is"}:
            return exists(inner) if inner is not None else exists()
        if fragment.kind == "none":
            return ~exists(inner) if inner is not None else ~exists()
        # every: no related row fails the condition
        return ~exists(not_(inner)) if inner is not None else true()
    if isinstance(fragment, Passthrough):
        raise InvalidFieldError(f'Unsupported relation operator "{fragment.operator}" for "{attr.key}"')
    raise InvalidFieldError(f'Relation "{attr.key}" needs a relation operator')


def _render_field_condition(model, condition: FieldCondition):
    head, sep, rest = condition.field.partition(".")
    if sep:
        attr = resolve_attribute(model, head)
        if not is_relationship(attr):
            raise InvalidFieldError(f'Field "{head}" is not a relation')
        inner = _render_field_condition(
            related_model(attr),
            FieldCondition(rest, condition.fragments, condition.json_path),
        )
        return attr.any(inner) if attr.property.uselist else attr.has(inner)

    attr = resolve_attribute(model, condition.field)
    if not condition.fragments:
        return true()
    if is_relationship(attr):
        return and_(*[_render_relation_fragment(attr, fragment) for fragment in condition.fragments])
    target = _Target(attr, condition.json_path)
    return and_(*[_render_column_fragment(target, fragment) for fragment in condition.fragments])


def render_predicate(model, predicate):
    """SQLAlchemy boolean expression for a compiled predicate tree."""
    if isinstance(predicate, FieldCondition):
        return _render_field_condition(model, predicate)
    if isinstance(predicate, And):
        return and_(true(), *[render_predicate(model, item) for item in predicate.items])
    if isinstance(predicate, Or):
        if not predicate.items:
            return false()
        return or_(*[render_predicate(model, item) for item in predicate.items])
    raise InvalidFieldError(f"Unsupported predicate {type(predicate).__name__}")


def render_order_by(model, sort: SortSpec):
    attr = resolve_attribute(model, sort.field)
    if is_relationship(attr):
        raise InvalidFieldError(f'Cannot sort by relation "{sort.field}"')
    return attr.desc() if sort.descending else attr.asc()


def expand_include(model, node: IncludeNode) -> IncludeNode:
    """Move relation names selected with ``True`` into child includes of ``node``."""
    fields: list[str] = []
    children = dict(node.children)
    for name in node.fields:
        if is_relationship(resolve_attribute(model, name)):
            children.setdefault(name, IncludeNode())
        else:
            fields.append(name)
    return IncludeNode(tuple(fields), children)


def loader_options(model, include: dict[str, IncludeNode], parent=None) -> list:
    options = []
    for name, node in include.items():
        attr = resolve_attribute(model, name)
        if not is_relationship(attr):
            raise InvalidFieldError(f'Field "{name}" is not a relation')
        loader = parent.selectinload(attr) if parent is not None else selectinload(attr)
        options.append(loader)
        node = expand_include(related_model(attr), node)
        if node.children:
            options.extend(loader_options(related_model(attr), dict(node.children), loader))
    return options
