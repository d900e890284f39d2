from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow, to_utc_z


class DocumentSequence(db.Model):
    """
    Atomic counters for human-readable document numbers.

    One row per document type (INVOICE, ORDER, RETURN); `next_number` is the
    value the next allocation hands out.
    """
    __tablename__ = "document_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_type": self.document_type,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
