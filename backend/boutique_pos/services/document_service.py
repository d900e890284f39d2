# Overview: Sequential document numbers (invoices, orders, returns).

from __future__ import annotations

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence

INVOICE = "INVOICE"
ORDER = "ORDER"
RETURN = "RETURN"


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def allocate_number(document_type: str, *, start: int = 1) -> int:
    """
    Atomically allocate the next integer for a document type.

    Must run inside the caller's transaction: the increment is a single
    UPDATE ... SET next_number = next_number + 1, so two writers can never
    read the same value, and a rolled-back caller gives its number back.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")

    stmt = (
        update(DocumentSequence)
        .where(DocumentSequence.document_type == document_type)
        .values(next_number=DocumentSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    def _current() -> int:
        value = (
            db.session.query(DocumentSequence.next_number)
            .filter_by(document_type=document_type)
            .scalar()
        )
        return value - 1

    result = db.session.execute(stmt)
    if result.rowcount:
        return _current()

    seq = DocumentSequence(document_type=document_type, next_number=start + 1)
    try:
        with db.session.begin_nested():
            db.session.add(seq)
        return start
    except IntegrityError:
        # Another writer created the row first
        result = db.session.execute(stmt)
        if not result.rowcount:
            raise
        return _current()


def format_prefixed(prefix: str, number: int, pad: int) -> str:
    return f"{prefix}-{number:0{pad}d}"


def next_invoice_number() -> str:
    """Plain integer string, starting at INVOICE_NUMBER_START (e.g. "7000001")."""
    start = current_app.config["INVOICE_NUMBER_START"]
    return str(allocate_number(INVOICE, start=start))


def next_order_number() -> str:
    """Prefixed zero-padded counter, e.g. "ORD-001"."""
    number = allocate_number(ORDER)
    return format_prefixed(
        current_app.config["ORDER_NUMBER_PREFIX"], number, current_app.config["DOCUMENT_NUMBER_PAD"]
    )


def next_return_number() -> str:
    number = allocate_number(RETURN)
    return format_prefixed(
        current_app.config["RETURN_NUMBER_PREFIX"], number, current_app.config["DOCUMENT_NUMBER_PAD"]
    )


def list_sequences() -> list[dict]:
    rows = db.session.query(DocumentSequence).order_by(DocumentSequence.document_type.asc()).all()
    return [row.to_dict() for row in rows]
