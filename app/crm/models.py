from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.crm.modules.invoice_types.models import InvoiceType  # noqa: E402,F401
from app.crm.modules.customers.models import Customer  # noqa: E402,F401
from app.crm.modules.notes.models import Note  # noqa: E402,F401
from app.crm.modules.shipping_instructions.models import ShippingInstructionPrintout  # noqa: E402,F401
from app.crm.modules.zip_data.models import ZipCode  # noqa: E402,F401
