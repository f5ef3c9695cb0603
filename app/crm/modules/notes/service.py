"""
Note operations that keep each customer's ranks dense (1..N).

Every mutating operation here owns exactly one transaction on the session it
is given (see ``app.crm.db.atomic``) and starts by locking the customer row,
so concurrent rank writes for the same customer are serialized by the
database; different customers never wait on each other.

create:      count -> customer.notes, slide over, push aside, insert
reposition:  same rank -> in-place update only;
             an omitted title keeps the stored title on either path;
             otherwise delete old, slide over, push aside, insert
delete:      delete the (customer, rank) row; the gap is closed by the next
             create/reposition
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.crm.db import atomic
from app.crm.errors import NotFoundError
from app.crm.modules.customers.models import Customer
from app.crm.modules.customers.service import lock_customer
from app.crm.modules.notes.models import Note
from app.crm.modules.notes.ranking import push_aside_ranks, slide_over_ranks
from app.crm.utils import ValidationError, check_text, iso, parse_positive_int

logger = logging.getLogger(__name__)


def validate_note_payload(payload: dict[str, Any]) -> list[ValidationError]:
    errs: list[ValidationError] = []
    if parse_positive_int(payload.get("rank")) is None:
        errs.append(ValidationError("rank", "rank must be a positive integer."))
    check_text(errs, payload, "title", max_length=100)
    check_text(errs, payload, "content", required=True)
    return errs


def list_notes(s: Session, customer_id: int) -> list[Note]:
    return list(s.scalars(select(Note).where(Note.customer_id == customer_id).order_by(Note.rank.asc())))


def count_notes(s: Session, customer_id: int) -> int:
    return int(s.scalar(select(func.count()).select_from(Note).where(Note.customer_id == customer_id)) or 0)


def get_note(s: Session, customer_id: int, rank: int) -> Note | None:
    return s.execute(select(Note).where(Note.customer_id == customer_id, Note.rank == rank)).scalar_one_or_none()


def _locked_customer(s: Session, customer_id: int) -> Customer:
    c = lock_customer(s, customer_id)
    if c is None:
        raise NotFoundError(f"Customer {customer_id} not found.")
    return c


def _clamp_rank(desired: int, occupied: int) -> int:
    # ranks are 1..occupied after slide_over_ranks; occupied + 1 appends
    return max(1, min(desired, occupied + 1))


def _insert_note(
    s: Session,
    customer_id: int,
    rank: int,
    payload: dict[str, Any],
    *,
    created_at: datetime | None = None,
) -> Note:
    now = datetime.utcnow()
    n = Note(
        customer_id=customer_id,
        rank=rank,
        title=payload.get("title"),
        content=payload.get("content"),
        created_at=created_at or now,
        updated_at=now,
    )
    s.add(n)
    s.flush()
    return n


def _place_note(
    s: Session,
    customer_id: int,
    desired_rank: int,
    payload: dict[str, Any],
    *,
    created_at: datetime | None = None,
) -> Note:
    occupied = count_notes(s, customer_id)
    slide_over_ranks(s, customer_id)
    rank = _clamp_rank(desired_rank, occupied)
    push_aside_ranks(s, customer_id, rank)
    return _insert_note(s, customer_id, rank, payload, created_at=created_at)


def create_note(s: Session, customer_id: int, desired_rank: int, payload: dict[str, Any]) -> Note:
    with atomic(s, label="note.create"):
        customer = _locked_customer(s, customer_id)
        customer.notes = count_notes(s, customer_id) + 1
        s.flush()
        note = _place_note(s, customer_id, desired_rank, payload)
    logger.info("note.create customer_id=%s desired_rank=%s rank=%s", customer_id, desired_rank, note.rank)
    return note


def reposition_note(
    s: Session,
    customer_id: int,
    old_rank: int,
    new_rank: int,
    payload: dict[str, Any],
) -> Note:
    if old_rank == new_rank:
        with atomic(s, label="note.update"):
            note = get_note(s, customer_id, old_rank)
            if note is None:
                raise NotFoundError(f"Note {old_rank} of customer {customer_id} not found.")
            if "title" in payload:
                note.title = payload.get("title")
            note.content = payload.get("content")
            note.updated_at = datetime.utcnow()
            s.flush()
        logger.info("note.update customer_id=%s rank=%s", customer_id, old_rank)
        return note

    with atomic(s, label="note.reposition"):
        _locked_customer(s, customer_id)
        old = get_note(s, customer_id, old_rank)
        if old is None:
            raise NotFoundError(f"Note {old_rank} of customer {customer_id} not found.")
        created_at = old.created_at
        payload = {"title": old.title, **payload}
        s.delete(old)
        s.flush()
        note = _place_note(s, customer_id, new_rank, payload, created_at=created_at)
    logger.info(
        "note.reposition customer_id=%s old_rank=%s new_rank=%s rank=%s",
        customer_id,
        old_rank,
        new_rank,
        note.rank,
    )
    return note


def delete_note(s: Session, customer_id: int, rank: int) -> int:
    with atomic(s, label="note.delete"):
        customer = _locked_customer(s, customer_id)
        result = s.execute(delete(Note).where(Note.customer_id == customer_id, Note.rank == rank))
        deleted = result.rowcount or 0
        if not deleted:
            raise NotFoundError(f"Note {rank} of customer {customer_id} not found.")
        customer.notes = count_notes(s, customer_id)
        s.flush()
    logger.info("note.delete customer_id=%s rank=%s", customer_id, rank)
    return deleted


def serialize_note(n: Note) -> dict[str, Any]:
    return {
        "id": n.id,
        "customer_id": n.customer_id,
        "rank": n.rank,
        "title": n.title,
        "content": n.content,
        "created_at": iso(n.created_at),
        "updated_at": iso(n.updated_at),
    }
