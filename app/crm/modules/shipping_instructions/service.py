"""
Shipping-instruction print history.

Search semantics (category = delivery_date | shipping_date | printed_at):
- no dates            -> today (business timezone)
- one date / same date -> that single day
- two dates            -> inclusive range min..max, at most SEARCH_RANGE_LIMIT_DAYS wide
printed_at is a timestamp and is always matched as [start 00:00, day after end 00:00).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.crm.errors import DataBaseError
from app.crm.modules.shipping_instructions.models import ShippingInstructionPrintout
from app.crm.utils import ValidationError, check_text, iso, local_now, parse_date, parse_local_datetime

logger = logging.getLogger(__name__)

SEARCH_CATEGORIES = ("delivery_date", "shipping_date", "printed_at")

REQUIRED_FIELDS = ("customer_name", "customer_address", "items_of_order")

TEXT_LIMITS = {
    "delivery_time_str": 32,
    "page_num_str": 8,
    "customer_name": 60,
    "customer_address": 96,
    "wholesaler": 32,
    "order_number": 64,
    "carrier": 32,
}


@dataclass(frozen=True)
class SearchWindow:
    start: date
    end: date | None  # None = single day

    @property
    def day_after_end(self) -> date:
        return (self.end or self.start) + timedelta(days=1)


def _parse_package_count(raw: Any) -> tuple[int | None, bool]:
    """-> (value, ok). Missing/empty is (None, True)."""
    if raw is None or raw == "":
        return None, True
    if isinstance(raw, bool):
        return None, False
    if isinstance(raw, int):
        return (raw, True) if raw >= 0 else (None, False)
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip()), True
    return None, False


def validate_printout_payload(payload: dict[str, Any], tz: ZoneInfo) -> list[ValidationError]:
    errs: list[ValidationError] = []
    if parse_date(payload.get("delivery_date")) is None:
        errs.append(ValidationError("delivery_date", "delivery_date is required (YYYY-MM-DD)."))
    for field in REQUIRED_FIELDS:
        check_text(errs, payload, field, required=True, max_length=TEXT_LIMITS.get(field))
    for field, limit in TEXT_LIMITS.items():
        if field not in REQUIRED_FIELDS:
            check_text(errs, payload, field, max_length=limit)

    shipping_date = payload.get("shipping_date")
    if shipping_date not in (None, "") and parse_date(shipping_date) is None:
        errs.append(ValidationError("shipping_date", "shipping_date must be empty or YYYY-MM-DD."))
    printed_at = payload.get("printed_at")
    if printed_at not in (None, "") and parse_local_datetime(printed_at, tz) is None:
        errs.append(ValidationError("printed_at", "printed_at must be an ISO 8601 timestamp."))
    _, ok = _parse_package_count(payload.get("package_count"))
    if not ok:
        errs.append(ValidationError("package_count", "package_count must be a non-negative integer."))
    return errs


def create_printout(s: Session, payload: dict[str, Any], tz: ZoneInfo) -> ShippingInstructionPrintout:
    package_count, _ = _parse_package_count(payload.get("package_count"))
    record = ShippingInstructionPrintout(
        delivery_date=parse_date(payload.get("delivery_date")),
        printed_at=parse_local_datetime(payload.get("printed_at"), tz) or local_now(tz),
        delivery_time_str=(payload.get("delivery_time_str") or "").strip(),
        page_num_str=(payload.get("page_num_str") or "").strip(),
        customer_name=payload["customer_name"].strip(),
        customer_address=payload["customer_address"].strip(),
        wholesaler=(payload.get("wholesaler") or "").strip(),
        order_number=(payload.get("order_number") or "").strip(),
        # empty shipping_date and a zero package count fall back to the column default (NULL)
        shipping_date=parse_date(payload.get("shipping_date")),
        carrier=(payload.get("carrier") or "").strip(),
        package_count=package_count or None,
        items_of_order=payload["items_of_order"],
    )
    s.add(record)
    s.flush()
    logger.info("printout.create delivery_date=%s printed_at=%s", record.delivery_date, record.printed_at)
    return record


def resolve_search_window(
    date_a: date | None,
    date_b: date | None,
    *,
    today: date,
    limit_days: int,
) -> SearchWindow:
    if date_a == date_b:
        return SearchWindow(start=date_a if date_a is not None else today, end=None)
    if date_a is not None and date_b is not None:
        start, end = sorted((date_a, date_b))
        if (end - start).days > limit_days:
            raise DataBaseError(f"Search range is limited to {limit_days} days.", 400)
        return SearchWindow(start=start, end=end)
    return SearchWindow(start=date_a or date_b, end=None)  # type: ignore[arg-type]


def search_printouts(s: Session, *, category: str, window: SearchWindow) -> list[ShippingInstructionPrintout]:
    if category not in SEARCH_CATEGORIES:
        raise ValueError(f"Unknown search category: {category}")
    col = getattr(ShippingInstructionPrintout, category)
    query = s.query(ShippingInstructionPrintout)
    if category == "printed_at":
        query = query.filter(
            col >= datetime.combine(window.start, time.min),
            col < datetime.combine(window.day_after_end, time.min),
        )
    elif window.end is None:
        query = query.filter(col == window.start)
    else:
        query = query.filter(col >= window.start, col < window.day_after_end)
    return query.order_by(col.asc(), ShippingInstructionPrintout.printed_at.asc()).all()


def delete_printout(s: Session, *, delivery_date: date, printed_at: datetime) -> int:
    result = s.execute(
        delete(ShippingInstructionPrintout).where(
            ShippingInstructionPrintout.delivery_date == delivery_date,
            ShippingInstructionPrintout.printed_at == printed_at,
        )
    )
    deleted = result.rowcount or 0
    logger.info("printout.delete delivery_date=%s printed_at=%s deleted=%s", delivery_date, printed_at, deleted)
    return deleted


def printout_key(p: ShippingInstructionPrintout) -> dict[str, Any]:
    return {"delivery_date": iso(p.delivery_date), "printed_at": iso(p.printed_at)}


def serialize_printout(p: ShippingInstructionPrintout) -> dict[str, Any]:
    return {
        **printout_key(p),
        "delivery_time_str": p.delivery_time_str,
        "page_num_str": p.page_num_str,
        "customer_name": p.customer_name,
        "customer_address": p.customer_address,
        "wholesaler": p.wholesaler,
        "order_number": p.order_number,
        "shipping_date": iso(p.shipping_date),
        "carrier": p.carrier,
        "package_count": p.package_count,
        "items_of_order": p.items_of_order,
    }
