from __future__ import annotations

from flask import Blueprint, request

from app.crm.db import atomic, db_session
from app.crm.errors import InvalidPayload, NotFoundError
from app.crm.modules.customers.models import Customer
from app.crm.modules.customers.service import (
    create_customer,
    delete_customer,
    get_customer_by_id,
    list_customers,
    serialize_customer,
    update_customer,
    validate_customer_payload,
)
from app.crm.modules.invoice_types.service import get_invoice_type_by_id
from app.crm.utils import ValidationError, json_payload, parse_positive_int

bp = Blueprint("customers", __name__)


def _get_or_404(s, customer_id: int) -> Customer:
    c = get_customer_by_id(s, customer_id)
    if not c:
        raise NotFoundError(f"Customer {customer_id} not found.")
    return c


def _validated(s, *, partial: bool) -> dict:
    payload = json_payload()
    errs = validate_customer_payload(payload, partial=partial)
    type_id = parse_positive_int(payload.get("invoice_type_id"))
    if not errs and type_id is not None and get_invoice_type_by_id(s, type_id) is None:
        errs.append(ValidationError("invoice_type_id", "Invoice type not found."))
    if errs:
        raise InvalidPayload(errs)
    return payload


@bp.get("")
def customers_list():
    s = db_session()
    q = (request.args.get("q") or "").strip()
    return [serialize_customer(c) for c in list_customers(s, q=q or None)]


@bp.get("/<int:customer_id>")
def customer_detail(customer_id: int):
    s = db_session()
    return serialize_customer(_get_or_404(s, customer_id))


@bp.post("")
def customer_create():
    s = db_session()
    payload = _validated(s, partial=False)
    with atomic(s, label="customer.create"):
        c = create_customer(s, payload)
    return serialize_customer(c), 201


@bp.put("/<int:customer_id>")
def customer_update(customer_id: int):
    s = db_session()
    c = _get_or_404(s, customer_id)
    payload = _validated(s, partial=True)
    with atomic(s, label="customer.update"):
        update_customer(s, c, payload)
    return serialize_customer(c)


@bp.delete("/<int:customer_id>")
def customer_delete(customer_id: int):
    s = db_session()
    c = _get_or_404(s, customer_id)
    with atomic(s, label="customer.delete"):
        delete_customer(s, c)
    return {"command": "DELETE", "rowCount": 1}
