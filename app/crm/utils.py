from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str


def parse_positive_int(raw: Any) -> int | None:
    """Coerce ints and digit strings; anything else (bools included) is None."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw >= 1 else None
    if isinstance(raw, str) and raw.strip().isdigit():
        value = int(raw.strip())
        return value if value >= 1 else None
    return None


def check_text(
    errs: list[ValidationError],
    payload: dict[str, Any],
    field: str,
    *,
    required: bool = False,
    max_length: int | None = None,
) -> None:
    value = payload.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            errs.append(ValidationError(field, f"{field} is required."))
        return
    if not isinstance(value, str):
        errs.append(ValidationError(field, f"{field} must be a string."))
        return
    if max_length is not None and len(value) > max_length:
        errs.append(ValidationError(field, f"{field} must be at most {max_length} characters."))


def clean_text(value: Any) -> str | None:
    return (str(value) if value is not None else "").strip() or None


def parse_date(raw: Any) -> date | None:
    """Accept YYYY-MM-DD (or a full ISO timestamp, keeping its date part)."""
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return raw
    text = (str(raw) if raw is not None else "").strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_local_datetime(raw: Any, tz: ZoneInfo) -> datetime | None:
    """
    ISO timestamp -> naive datetime in the business timezone.
    Offset-aware input is converted; naive input is taken as already local.
    """
    text = (str(raw) if raw is not None else "").strip()
    if not text:
        return None
    try:
        value = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(tz).replace(tzinfo=None)
    return value


def local_now(tz: ZoneInfo) -> datetime:
    return datetime.now(tz).replace(tzinfo=None)


def iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def json_payload() -> dict[str, Any]:
    """Request body as a dict; a non-object body is a validation failure."""
    from flask import request

    from app.crm.errors import InvalidPayload

    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise InvalidPayload([ValidationError("body", "Request body must be a JSON object.")])
    return payload
