from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app.crm.modules.invoice_types.models import InvoiceType
from app.crm.utils import ValidationError, check_text, clean_text, iso

logger = logging.getLogger(__name__)


def get_invoice_type_by_id(s: Session, invoice_type_id: int) -> InvoiceType | None:
    return s.query(InvoiceType).filter(InvoiceType.id == invoice_type_id).one_or_none()


def list_invoice_types(s: Session) -> list[InvoiceType]:
    return s.query(InvoiceType).order_by(InvoiceType.id.asc()).all()


def validate_invoice_type_payload(payload: dict[str, Any]) -> list[ValidationError]:
    errs: list[ValidationError] = []
    check_text(errs, payload, "name", required=True, max_length=64)
    check_text(errs, payload, "description", max_length=500)
    return errs


def create_invoice_type(s: Session, payload: dict[str, Any]) -> InvoiceType:
    it = InvoiceType(
        name=clean_text(payload.get("name")),
        description=clean_text(payload.get("description")),
        updated_at=datetime.utcnow(),
    )
    s.add(it)
    s.flush()
    logger.info("invoice_type.create id=%s name=%s", it.id, it.name)
    return it


def update_invoice_type(s: Session, it: InvoiceType, payload: dict[str, Any]) -> InvoiceType:
    it.name = clean_text(payload.get("name"))
    it.description = clean_text(payload.get("description"))
    it.updated_at = datetime.utcnow()
    s.flush()
    logger.info("invoice_type.update id=%s", it.id)
    return it


def delete_invoice_type(s: Session, it: InvoiceType) -> None:
    s.delete(it)
    s.flush()
    logger.info("invoice_type.delete id=%s", it.id)


def serialize_invoice_type(it: InvoiceType) -> dict[str, Any]:
    return {
        "id": it.id,
        "name": it.name,
        "description": it.description,
        "created_at": iso(it.created_at),
        "updated_at": iso(it.updated_at),
    }
