from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow, to_utc_z

ACTIVITY_CONTEXTS = ("boutique", "online")


class Activity(db.Model):
    """
    Append-only audit trail of state-changing actions.

    Rows are written in the same DB transaction as the change they describe
    and are never updated or deleted.
    """
    __tablename__ = "activities"
    __table_args__ = (
        db.Index("ix_activities_context_created", "context", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(32), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    employee_name = db.Column(db.String(120), nullable=True)
    context = db.Column(db.String(16), nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_json = db.Column("metadata", db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "description": self.description,
            "employee_name": self.employee_name,
            "context": self.context,
            "metadata": self.metadata_json or {},
            "created_at": to_utc_z(self.created_at),
        }
