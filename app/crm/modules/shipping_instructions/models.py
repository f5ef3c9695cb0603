from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.crm.models import Base


class ShippingInstructionPrintout(Base):
    """
    One printed shipping instruction.
    Identified by (delivery_date, printed_at); printed_at is naive business-local time.
    """

    __tablename__ = "shipping_instruction_print_history"
    __table_args__ = (
        Index("idx_sipr_printed_at", "printed_at"),
        Index("idx_sipr_shipping_date", "shipping_date"),
    )

    delivery_date: Mapped[date] = mapped_column(Date, primary_key=True)
    printed_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), primary_key=True)

    delivery_time_str: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    page_num_str: Mapped[str] = mapped_column(String(8), nullable=False, default="")
    customer_name: Mapped[str] = mapped_column(String(60), nullable=False)
    customer_address: Mapped[str] = mapped_column(String(96), nullable=False)
    wholesaler: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    order_number: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    shipping_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    carrier: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    package_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    items_of_order: Mapped[str] = mapped_column(Text, nullable=False)
