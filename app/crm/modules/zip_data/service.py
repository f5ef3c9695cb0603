from __future__ import annotations

import re
from typing import Any

from sqlalchemy.orm import Session

from app.crm.modules.zip_data.models import ZipCode

_ZIP_RE = re.compile(r"^\d{7}$")


def normalize_zip_code(raw: str | None) -> str | None:
    """'123-4567' / '1234567' -> '1234567'; anything else -> None."""
    code = (raw or "").strip().replace("-", "")
    return code if _ZIP_RE.match(code) else None


def lookup_zip_code(s: Session, zip_code: str) -> list[ZipCode]:
    return s.query(ZipCode).filter(ZipCode.zip_code == zip_code).order_by(ZipCode.id.asc()).all()


def serialize_zip_code(z: ZipCode) -> dict[str, Any]:
    return {
        "zip_code": z.zip_code,
        "prefecture": z.prefecture,
        "city": z.city,
        "town": z.town,
    }
