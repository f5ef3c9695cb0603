from __future__ import annotations

from flask import Blueprint

from app.crm.db import atomic, db_session
from app.crm.errors import InvalidPayload, NotFoundError
from app.crm.modules.invoice_types.models import InvoiceType
from app.crm.modules.invoice_types.service import (
    create_invoice_type,
    delete_invoice_type,
    get_invoice_type_by_id,
    list_invoice_types,
    serialize_invoice_type,
    update_invoice_type,
    validate_invoice_type_payload,
)
from app.crm.utils import json_payload

bp = Blueprint("invoice_types", __name__)


def _get_or_404(s, invoice_type_id: int) -> InvoiceType:
    it = get_invoice_type_by_id(s, invoice_type_id)
    if not it:
        raise NotFoundError(f"Invoice type {invoice_type_id} not found.")
    return it


@bp.get("")
def invoice_types_list():
    return [serialize_invoice_type(it) for it in list_invoice_types(db_session())]


@bp.get("/<int:invoice_type_id>")
def invoice_type_detail(invoice_type_id: int):
    return serialize_invoice_type(_get_or_404(db_session(), invoice_type_id))


@bp.post("")
def invoice_type_create():
    s = db_session()
    payload = json_payload()
    errs = validate_invoice_type_payload(payload)
    if errs:
        raise InvalidPayload(errs)
    with atomic(s, label="invoice_type.create"):
        it = create_invoice_type(s, payload)
    return serialize_invoice_type(it), 201


@bp.put("/<int:invoice_type_id>")
def invoice_type_update(invoice_type_id: int):
    s = db_session()
    it = _get_or_404(s, invoice_type_id)
    payload = json_payload()
    errs = validate_invoice_type_payload(payload)
    if errs:
        raise InvalidPayload(errs)
    with atomic(s, label="invoice_type.update"):
        update_invoice_type(s, it, payload)
    return serialize_invoice_type(it)


@bp.delete("/<int:invoice_type_id>")
def invoice_type_delete(invoice_type_id: int):
    s = db_session()
    it = _get_or_404(s, invoice_type_id)
    # a type still referenced by a customer fails on the FK and surfaces as DataBaseError
    with atomic(s, label="invoice_type.delete"):
        delete_invoice_type(s, it)
    return {"command": "DELETE", "rowCount": 1}
