import math
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from biketrails.core.errors import InvalidField, InvalidIdentifier

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Markup tags, including an unterminated tag running to the end of the string.
# "<" followed by whitespace is plain text ("speed < 20")
_TAG_PATTERN = re.compile(r"<(?!\s)[^>]*(>|$)")
# Canonical 8-4-4-4-12 form only; uuid.UUID() alone also takes bare hex,
# stray hyphens and int() syntax
_UUID_PATTERN = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")
# ASCII control characters other than tab/newline/carriage return
_CONTROL_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_HEX_PATTERN = re.compile(r"^[0-9a-f]+$")


def validate_uuid(value: Any) -> uuid.UUID:
    """
    Return the canonical UUID for a UUID instance or a UUID string.

    Raises InvalidIdentifier for anything else, including malformed strings.
    No I/O happens here, so lookups can reject bad ids before touching the store.
    """
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        raise InvalidIdentifier(f"identifier must be a UUID or string, not {type(value).__name__}")
    candidate = value.strip()
    if not _UUID_PATTERN.match(candidate):
        raise InvalidIdentifier(f"{candidate!r} is not a valid UUID")
    try:
        return uuid.UUID(candidate)
    except ValueError as exc:
        raise InvalidIdentifier(f"{candidate!r} is not a valid UUID") from exc


def sanitize_string(value: str) -> str:
    """Trim, then remove markup tags and control characters"""
    value = _TAG_PATTERN.sub("", value.strip())
    value = _CONTROL_PATTERN.sub("", value)
    return value.strip()


def require_string(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise InvalidField(f"{field} must be a string", field=field)
    return value


def is_hex(value: str) -> bool:
    return bool(_HEX_PATTERN.match(value))


def truncate_to_millis(value: datetime) -> datetime:
    """Canonical timestamp: UTC, millisecond precision. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=value.microsecond - value.microsecond % 1000)


def epoch_millis_to_datetime(value: Any, field: str = "commentDate") -> datetime:
    """
    Convert epoch milliseconds (as sent by the browser's Date.now()) to a UTC datetime.

    Malformed values are rejected rather than coerced: bools, strings and
    fractional numbers raise InvalidField, as do values outside datetime's range.
    """
    if isinstance(value, bool):
        raise InvalidField(f"{field} must be epoch milliseconds", field=field)
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidField(f"{field} must be a whole number of milliseconds", field=field)
        value = int(value)
    if not isinstance(value, int):
        raise InvalidField(f"{field} must be epoch milliseconds", field=field)
    try:
        return _EPOCH + timedelta(milliseconds=value)
    except OverflowError as exc:
        raise InvalidField(f"{field} is out of the representable range", field=field) from exc


def datetime_to_epoch_millis(value: datetime) -> int:
    value = truncate_to_millis(value)
    return (value - _EPOCH) // timedelta(milliseconds=1)
