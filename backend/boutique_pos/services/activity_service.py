# Overview: Append-only activity log writes and reads.

from __future__ import annotations

from ..extensions import db
from ..models import Activity
"""
Activity log invariants

- Append-only: no update or delete paths exist.
- Entries are flushed inside the same DB transaction as the change they record,
  so a rolled-back change leaves no entry behind.
- No domain logic lives here.
"""

MAX_ACTIVITY_LIMIT = 500
DEFAULT_ACTIVITY_LIMIT = 50


def log_activity(
    *,
    type: str,
    description: str,
    employee_name: str | None = None,
    context: str | None = None,
    metadata: dict | None = None,
) -> Activity:
    entry = Activity(
        type=type,
        description=description,
        employee_name=employee_name,
        context=context,
        metadata_json=metadata or {},
    )
    db.session.add(entry)
    db.session.flush()  # ensures entry.id is assigned without committing
    return entry


def list_activities(
    *,
    context: str | None = None,
    activity_type: str | None = None,
    limit: int | None = None,
) -> list[Activity]:
    limit = min(max(limit or DEFAULT_ACTIVITY_LIMIT, 1), MAX_ACTIVITY_LIMIT)

    query = db.session.query(Activity)
    if context:
        query = query.filter(Activity.context == context)
    if activity_type:
        query = query.filter(Activity.type == activity_type)

    return query.order_by(Activity.created_at.desc(), Activity.id.desc()).limit(limit).all()
