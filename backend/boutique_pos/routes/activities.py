# Overview: Read-only activity feed.

from flask import Blueprint, request, jsonify

from ..models import ACTIVITY_CONTEXTS
from ..services.activity_service import list_activities

activities_bp = Blueprint("activities", __name__, url_prefix="/api/activities")


@activities_bp.get("")
def list_activities_route():
    """
    Newest first.

    Query params: context (boutique | online), type, limit (default 50, max 500)
    """
    context = request.args.get("context")
    if context and context not in ACTIVITY_CONTEXTS:
        return jsonify({"error": "context must be boutique or online"}), 400

    activities = list_activities(
        context=context,
        activity_type=request.args.get("type"),
        limit=request.args.get("limit", type=int),
    )
    return jsonify({"items": [a.to_dict() for a in activities], "count": len(activities)}), 200
