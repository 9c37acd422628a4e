from __future__ import annotations

import re
import unicodedata
from datetime import datetime, timezone

from taskboard.models.common import utcnow

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9]+")

__all__ = ["normalize_email", "parse_datetime_safe", "slugify", "utcnow"]


def parse_datetime_safe(value: object) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def slugify(text: str, *, fallback: str = "team") -> str:
    normalized = unicodedata.normalize("NFKD", str(text or ""))
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii").lower()
    slug = _SLUG_STRIP_RE.sub("-", ascii_text).strip("-")
    return slug or fallback


def normalize_email(value: object) -> str:
    return str(value or "").strip().lower()
