from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.crm.modules.customers.models import Customer
from app.crm.modules.notes.models import Note
from app.crm.utils import ValidationError, check_text, clean_text, iso, parse_positive_int

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "name_kana", "zip_code", "address1", "address2", "phone", "email")

_ZIP_RE = re.compile(r"^\d{3}-?\d{4}$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def get_customer_by_id(s: Session, customer_id: int) -> Customer | None:
    return s.query(Customer).filter(Customer.id == customer_id).one_or_none()


def lock_customer(s: Session, customer_id: int) -> Customer | None:
    """
    SELECT ... FOR UPDATE on the customer row.
    Held until the enclosing transaction ends; serializes note rank writes per customer.
    """
    return s.execute(
        select(Customer)
        .where(Customer.id == customer_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def list_customers(s: Session, *, q: str | None = None) -> list[Customer]:
    query = s.query(Customer)
    if q:
        like = f"%{q}%"
        query = query.filter((Customer.name.ilike(like)) | (Customer.name_kana.ilike(like)))
    return query.order_by(Customer.id.asc()).all()


def validate_customer_payload(payload: dict[str, Any], *, partial: bool = False) -> list[ValidationError]:
    errs: list[ValidationError] = []
    if not partial or "name" in payload:
        check_text(errs, payload, "name", required=True, max_length=100)
    check_text(errs, payload, "name_kana", max_length=100)
    check_text(errs, payload, "address1", max_length=200)
    check_text(errs, payload, "address2", max_length=200)
    check_text(errs, payload, "phone", max_length=32)

    zip_code = clean_text(payload.get("zip_code"))
    if zip_code and not _ZIP_RE.match(zip_code):
        errs.append(ValidationError("zip_code", "Zip code must be 7 digits (hyphen optional)."))
    email = clean_text(payload.get("email"))
    if email and not _EMAIL_RE.match(email):
        errs.append(ValidationError("email", "Email address is invalid."))

    raw_type = payload.get("invoice_type_id")
    if raw_type not in (None, "") and parse_positive_int(raw_type) is None:
        errs.append(ValidationError("invoice_type_id", "Invoice type id must be a positive number."))
    if "notes" in payload:
        errs.append(ValidationError("notes", "notes is maintained by the server and cannot be set."))
    return errs


def _apply(c: Customer, payload: dict[str, Any]) -> None:
    for field in EDITABLE_FIELDS:
        if field in payload:
            value = clean_text(payload.get(field))
            if field == "zip_code" and value:
                value = value.replace("-", "")
            setattr(c, field, value)
    if "invoice_type_id" in payload:
        c.invoice_type_id = parse_positive_int(payload.get("invoice_type_id"))


def create_customer(s: Session, payload: dict[str, Any]) -> Customer:
    c = Customer(notes=0, updated_at=datetime.utcnow())
    _apply(c, payload)
    s.add(c)
    s.flush()
    s.expire(c, ["invoice_type"])
    logger.info("customer.create id=%s", c.id)
    return c


def update_customer(s: Session, c: Customer, payload: dict[str, Any]) -> Customer:
    _apply(c, payload)
    c.updated_at = datetime.utcnow()
    s.flush()
    s.expire(c, ["invoice_type"])
    logger.info("customer.update id=%s fields=%s", c.id, sorted(k for k in payload if k in EDITABLE_FIELDS))
    return c


def delete_customer(s: Session, c: Customer) -> None:
    # notes rows go with the customer even where the backend does not cascade
    s.execute(delete(Note).where(Note.customer_id == c.id))
    s.delete(c)
    s.flush()
    logger.info("customer.delete id=%s", c.id)


def serialize_customer(c: Customer) -> dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "name_kana": c.name_kana,
        "zip_code": c.zip_code,
        "address1": c.address1,
        "address2": c.address2,
        "phone": c.phone,
        "email": c.email,
        "invoice_type_id": c.invoice_type_id,
        "invoice_type": c.invoice_type.name if c.invoice_type else None,
        "notes": c.notes,
        "created_at": iso(c.created_at),
        "updated_at": iso(c.updated_at),
    }
