from __future__ import annotations

from zoneinfo import ZoneInfo

from flask import Blueprint, current_app, request

from app.crm.db import atomic, db_session
from app.crm.errors import InvalidPayload
from app.crm.modules.shipping_instructions.service import (
    SEARCH_CATEGORIES,
    create_printout,
    delete_printout,
    printout_key,
    resolve_search_window,
    search_printouts,
    serialize_printout,
    validate_printout_payload,
)
from app.crm.utils import ValidationError, json_payload, local_now, parse_date, parse_local_datetime

bp = Blueprint("shipping_instructions", __name__)


def _tz() -> ZoneInfo:
    return ZoneInfo(current_app.config["APP_TIMEZONE"])


def _optional_date(errs: list[ValidationError], name: str):
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    d = parse_date(raw)
    if d is None:
        errs.append(ValidationError(name, f"{name} must be YYYY-MM-DD."))
    return d


@bp.get("")
def printouts_search():
    errs: list[ValidationError] = []
    category = (request.args.get("category") or "").strip()
    if category not in SEARCH_CATEGORIES:
        errs.append(ValidationError("category", f"category must be one of: {', '.join(SEARCH_CATEGORIES)}."))
    date_a = _optional_date(errs, "date_a")
    date_b = _optional_date(errs, "date_b")
    if errs:
        raise InvalidPayload(errs)

    window = resolve_search_window(
        date_a,
        date_b,
        today=local_now(_tz()).date(),
        limit_days=int(current_app.config["SEARCH_RANGE_LIMIT_DAYS"]),
    )
    rows = search_printouts(db_session(), category=category, window=window)
    return [serialize_printout(p) for p in rows]


@bp.post("")
def printout_create():
    s = db_session()
    tz = _tz()
    payload = json_payload()
    errs = validate_printout_payload(payload, tz)
    if errs:
        raise InvalidPayload(errs)
    with atomic(s, label="printout.create"):
        record = create_printout(s, payload, tz)
    return printout_key(record), 201


@bp.delete("")
def printout_delete():
    errs: list[ValidationError] = []
    delivery_date = parse_date(request.args.get("delivery_date"))
    if delivery_date is None:
        errs.append(ValidationError("delivery_date", "delivery_date is required (YYYY-MM-DD)."))
    printed_at = parse_local_datetime(request.args.get("printed_at"), _tz())
    if printed_at is None:
        errs.append(ValidationError("printed_at", "printed_at is required (ISO 8601 timestamp)."))
    if errs:
        raise InvalidPayload(errs)

    s = db_session()
    with atomic(s, label="printout.delete"):
        deleted = delete_printout(s, delivery_date=delivery_date, printed_at=printed_at)
    return {"command": "DELETE", "rowCount": deleted}
