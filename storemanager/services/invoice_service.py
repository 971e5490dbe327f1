"""Invoice number generation (per-owner sequence)."""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from storemanager.models import InvoiceSequence

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = 'INV'


def format_invoice_number(value: int, issued_at: datetime, prefix: str = DEFAULT_PREFIX) -> str:
    """
    Human-readable invoice number.

    Examples:
        format_invoice_number(42, datetime(2024, 1, 5)) -> "INV-20240105-00042"
    """
    return f"{prefix}-{issued_at.strftime('%Y%m%d')}-{value:05d}"


def generate_invoice_number(session: Session, owner_id: int, issued_at: Optional[datetime] = None,
                            prefix: Optional[str] = None) -> str:
    """
    Reserve the next invoice number for an owner.

    Locks the owner's sequence row FOR UPDATE, so it must run inside the
    caller's transaction; a rollback of that transaction releases the number.
    The row is created with an INSERT ... ON CONFLICT DO NOTHING first, so
    concurrent first sales of an owner also queue on the same lock.
    """
    if prefix is None:
        prefix = _configured_prefix()
    issued_at = issued_at or datetime.now()

    _ensure_sequence_row(session, owner_id)

    sequence = session.query(InvoiceSequence).filter(
        InvoiceSequence.owner_id == owner_id
    ).with_for_update().one()

    sequence.last_value = (sequence.last_value or 0) + 1
    session.flush()

    number = format_invoice_number(sequence.last_value, issued_at, prefix)
    logger.debug(f"Invoice number reserved: owner={owner_id}, number={number}")
    return number


def _ensure_sequence_row(session: Session, owner_id: int) -> None:
    dialect = session.get_bind().dialect.name
    if dialect == 'postgresql':
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == 'sqlite':
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f"Unsupported database for invoice numbering: {dialect}")

    session.execute(
        insert(InvoiceSequence)
        .values(owner_id=owner_id, last_value=0)
        .on_conflict_do_nothing(index_elements=[InvoiceSequence.owner_id])
    )


def _configured_prefix() -> str:
    try:
        from flask import current_app
        return current_app.config.get('INVOICE_PREFIX', DEFAULT_PREFIX)
    except RuntimeError:
        return DEFAULT_PREFIX
