from __future__ import annotations

from flask import Blueprint

from app.crm.db import db_session
from app.crm.errors import InvalidPayload
from app.crm.modules.zip_data.service import lookup_zip_code, normalize_zip_code, serialize_zip_code
from app.crm.utils import ValidationError

bp = Blueprint("zip_data", __name__)


@bp.get("/<zip_code>")
def zip_lookup(zip_code: str):
    code = normalize_zip_code(zip_code)
    if code is None:
        raise InvalidPayload([ValidationError("zip_code", "Zip code must be 7 digits (hyphen optional).")])
    return [serialize_zip_code(z) for z in lookup_zip_code(db_session(), code)]
