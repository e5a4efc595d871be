"""
Request validation helpers and the error types every endpoint raises.

Handlers in main.py turn these into JSON responses:
ValidationError -> 400, NotFoundError -> 404, PersistenceError -> 500.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_RE = re.compile(r"[0-9\s\-+()]+")


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ApiError):
    status_code = 400


class NotFoundError(ApiError):
    status_code = 404


class PersistenceError(ApiError):
    status_code = 500


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def validate_required_fields(payload: Dict[str, Any], fields: Iterable[str]) -> None:
    """Raise ValidationError listing every field that is absent or blank."""
    missing: List[str] = [f for f in fields if is_blank(payload.get(f))]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            {"missing_fields": missing},
        )


def is_valid_email(value: str) -> bool:
    return isinstance(value, str) and EMAIL_RE.fullmatch(value) is not None


def is_valid_phone(value: str) -> bool:
    return isinstance(value, str) and PHONE_RE.fullmatch(value) is not None


def parse_object_id(value: str, label: str = "record") -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {label} ID")
