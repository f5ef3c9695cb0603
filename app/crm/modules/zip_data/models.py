from __future__ import annotations

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.crm.models import Base


class ZipCode(Base):
    __tablename__ = "zip_codes"
    __table_args__ = (
        Index("idx_zip_codes_zip_code", "zip_code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    zip_code: Mapped[str] = mapped_column(String(7), nullable=False)  # 7 digits, no hyphen
    prefecture: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(Text, nullable=False)
    town: Mapped[str | None] = mapped_column(Text, nullable=True)
