from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.crm.models import Base


class Note(Base):
    """
    One ordered note of a customer.

    For every customer with N notes the committed ranks are exactly 1..N.
    (customer_id, rank) is unique; rank changes go through notes.ranking only.
    """

    __tablename__ = "notes"
    __table_args__ = (
        UniqueConstraint("customer_id", "rank", name="uq_notes_customer_id_rank"),
        CheckConstraint("rank >= 1", name="ck_notes_rank_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)

    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
