"""
Request shaping

Turns raw request input into store filters, update documents and order
records. Nothing here talks to the database; every client error is raised
as RequestError so the route layer can map it to a status code.
"""

import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId

from schemas import Order

ALLOWED_LESSON_FIELDS = frozenset({"topic", "price", "location", "space", "desc"})

# . * + ? ^ $ { } ( ) | [ ] \
_PATTERN_SPECIALS = re.compile(r"[.*+?^${}()|\[\]\\]")
_PREFIXED_INT = re.compile(r"^0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")

Number = Union[int, float]


class RequestError(ValueError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def is_truthy(value: Any) -> bool:
    """JSON-style truthiness: empty arrays and objects still count as set."""
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def _tidy_number(value: float) -> Number:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def parse_number(term: str) -> Optional[Number]:
    """Parse a search term as a finite number, or return None."""
    text = term.strip()
    if not text or "_" in text or not text.isascii():
        return None
    try:
        value = float(text)
    except ValueError:
        if not _PREFIXED_INT.match(text):
            return None
        value = float(int(text, 0))
    if not math.isfinite(value):
        return None
    return _tidy_number(value)


def coerce_quantity(value: Any) -> Number:
    """Best-effort numeric value of an item quantity; unusable input counts as 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return 0 if math.isnan(value) else value
    if isinstance(value, str):
        if not value.strip():
            return 0
        parsed = parse_number(value)
        return 0 if parsed is None else parsed
    return 0


def _id_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(_tidy_number(value))
    return str(value)


def escape_pattern(term: str) -> str:
    return _PATTERN_SPECIALS.sub(lambda m: "\\" + m.group(0), term)


def build_search_filter(q: Optional[str]) -> Dict[str, Any]:
    raw = (q or "").strip()
    if not raw:
        raise RequestError("q is required")

    pattern = escape_pattern(raw)
    clauses: List[Dict[str, Any]] = [
        {"topic": {"$regex": pattern, "$options": "i"}},
        {"location": {"$regex": pattern, "$options": "i"}},
    ]
    number = parse_number(raw)
    if number is not None:
        clauses.append({"price": number})
        clauses.append({"space": number})
    return {"$or": clauses}


def _derive_from_items(items: List[Any]):
    lesson_ids: List[str] = []
    total: Number = 0
    for item in items:
        if not isinstance(item, dict):
            continue
        lesson_id = item.get("lessonId")
        qty = item.get("qty")
        if not is_truthy(lesson_id) or not is_truthy(qty):
            continue
        lesson_ids.append(_id_text(lesson_id))
        total += coerce_quantity(qty)
    return lesson_ids, _tidy_number(total)


def normalize_order(body: Optional[Dict[str, Any]], now: Optional[datetime] = None) -> Order:
    """
    Accept either {name, phone, lessonIds, spaces} or {name, phone, items}.

    A non-empty items list always wins over lessonIds/spaces sent alongside it.
    """
    body = body or {}
    name = body.get("name")
    phone = body.get("phone")
    if not is_truthy(name) or not is_truthy(phone):
        raise RequestError("name and phone are required")

    lesson_ids = body.get("lessonIds")
    spaces = body.get("spaces")

    items = body.get("items")
    if isinstance(items, list) and items:
        lesson_ids, spaces = _derive_from_items(items)

    if not isinstance(lesson_ids, list) or isinstance(spaces, bool) or not isinstance(spaces, (int, float)):
        raise RequestError("lessonIds(Array) and spaces(Number) are required")

    record = {"name": name, "phone": phone, "lessonIds": lesson_ids, "spaces": spaces}
    if now is not None:
        record["createdAt"] = now
    return Order(**record)


def filter_lesson_updates(body: Any) -> Dict[str, Any]:
    if not isinstance(body, dict):
        body = {}
    updates = {k: v for k, v in body.items() if k in ALLOWED_LESSON_FIELDS}
    if not updates:
        raise RequestError("No valid fields to update")
    return updates


def parse_object_id(value: str) -> ObjectId:
    if not ObjectId.is_valid(value):
        raise RequestError("Invalid lesson id")
    return ObjectId(value)
