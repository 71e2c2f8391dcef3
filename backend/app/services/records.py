from datetime import datetime, timezone
from typing import Any, Iterable

from bson import ObjectId
from bson.errors import InvalidId

from ..errors import InvalidRecordIdError

MASK_CHAR = "*"
VISIBLE_DIGITS = 4


def is_valid_record_id(value: Any) -> bool:
    if isinstance(value, ObjectId):
        return True
    return isinstance(value, str) and ObjectId.is_valid(value)


def parse_record_id(value: Any) -> ObjectId:
    if not is_valid_record_id(value):
        raise InvalidRecordIdError(value)
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as exc:
        raise InvalidRecordIdError(value) from exc


def mask_card_number(card_number: str) -> str:
    """Replace every digit except the trailing four characters with MASK_CHAR.

    Already-masked input passes through unchanged.
    """
    head, tail = card_number[:-VISIBLE_DIGITS], card_number[-VISIBLE_DIGITS:]
    return "".join(MASK_CHAR if ch.isdigit() else ch for ch in head) + tail


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    # naive values are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def serialize_record(document: dict[str, Any], hidden: Iterable[str] = ()) -> dict[str, Any]:
    hidden_fields = set(hidden)
    row: dict[str, Any] = {}
    if "_id" in document:
        row["id"] = str(document["_id"])
    for key, value in document.items():
        if key == "_id" or key in hidden_fields:
            continue
        if isinstance(value, ObjectId):
            value = str(value)
        elif isinstance(value, datetime):
            value = ensure_utc(value)
        row[key] = value
    return row
