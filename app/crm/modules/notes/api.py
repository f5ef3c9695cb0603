from __future__ import annotations

from flask import Blueprint

from app.crm.db import db_session
from app.crm.errors import InvalidPayload, NotFoundError
from app.crm.modules.customers.service import get_customer_by_id
from app.crm.modules.notes.service import (
    create_note,
    delete_note,
    list_notes,
    reposition_note,
    serialize_note,
    validate_note_payload,
)
from app.crm.utils import ValidationError, json_payload

bp = Blueprint("notes", __name__)


def _require_rank(rank: int) -> None:
    if rank < 1:
        raise InvalidPayload([ValidationError("rank", "rank must be a positive integer.")])


@bp.get("/<int:customer_id>")
def notes_list(customer_id: int):
    s = db_session()
    if get_customer_by_id(s, customer_id) is None:
        raise NotFoundError(f"Customer {customer_id} not found.")
    return [serialize_note(n) for n in list_notes(s, customer_id)]


@bp.post("/<int:customer_id>")
def notes_create(customer_id: int):
    payload = json_payload()
    errs = validate_note_payload(payload)
    if errs:
        raise InvalidPayload(errs)
    note = create_note(db_session(), customer_id, int(payload["rank"]), payload)
    return serialize_note(note), 201


@bp.put("/<int:customer_id>/<int:rank>")
def notes_update(customer_id: int, rank: int):
    _require_rank(rank)
    payload = json_payload()
    errs = validate_note_payload(payload)
    if errs:
        raise InvalidPayload(errs)
    note = reposition_note(db_session(), customer_id, rank, int(payload["rank"]), payload)
    return serialize_note(note)


@bp.delete("/<int:customer_id>/<int:rank>")
def notes_delete(customer_id: int, rank: int):
    _require_rank(rank)
    deleted = delete_note(db_session(), customer_id, rank)
    return {"command": "DELETE", "rowCount": deleted}
