"""
Rank maintenance for a customer's notes.

Both helpers run inside the caller's open transaction and never commit.
Ranks are moved one row per UPDATE, keyed by (customer_id, rank), so the
unique constraint on that pair holds after every single statement:

- slide_over_ranks walks ascending and only ever moves a row DOWN into a
  slot that is already free.
- push_aside_ranks walks descending and only ever moves a row UP into a slot
  that was vacated by the previous step (or was never occupied).
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.crm.modules.notes.models import Note

logger = logging.getLogger(__name__)


def current_ranks(s: Session, customer_id: int, *, descending: bool = False) -> list[int]:
    order = Note.rank.desc() if descending else Note.rank.asc()
    return list(s.scalars(select(Note.rank).where(Note.customer_id == customer_id).order_by(order)))


def _move_rank(s: Session, customer_id: int, old_rank: int, new_rank: int) -> None:
    s.execute(
        update(Note).where(Note.customer_id == customer_id, Note.rank == old_rank).values(rank=new_rank)
    )


def slide_over_ranks(s: Session, customer_id: int) -> int:
    """
    Close gaps so the customer's ranks become 1..N, keeping relative order.
    Rows already in place are not written. Returns the number of rows moved.
    """
    moved = 0
    for expected, rank in enumerate(current_ranks(s, customer_id), start=1):
        if rank != expected:
            _move_rank(s, customer_id, rank, expected)
            moved += 1
    logger.debug("slide_over_ranks customer_id=%s moved=%s", customer_id, moved)
    return moved


def push_aside_ranks(s: Session, customer_id: int, target_rank: int) -> int:
    """
    Vacate ``target_rank`` by shifting every rank >= target up by one.
    Expects contiguous ranks (run slide_over_ranks first in the same transaction).
    Returns the number of rows moved.
    """
    moved = 0
    for rank in current_ranks(s, customer_id, descending=True):
        if rank < target_rank:
            break
        _move_rank(s, customer_id, rank, rank + 1)
        moved += 1
    logger.debug("push_aside_ranks customer_id=%s target=%s moved=%s", customer_id, target_rank, moved)
    return moved
