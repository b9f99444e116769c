import logging
from flask import Blueprint, jsonify, request, session

from utils.auth_utils import role_required
from utils.filter_utils import FilterSelection, resolve_filter_options
from utils.statistics_utils import get_overview_counts

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__)


# API: GET "/api/admin/filters"
# Used by: admin filter bar; refreshed whenever one dropdown changes
# Purpose: Options every filter dropdown may offer given the current selection.
@admin_bp.route("/api/admin/filters", methods=["GET"], endpoint="get_filter_options")
@role_required("admin")
def get_filter_options():
    selection = FilterSelection.from_args(request.args)
    try:
        options = resolve_filter_options(selection)
        return jsonify({"filters": selection.to_dict(), "options": options}), 200
    except Exception as e:
        logger.error(
            f"Failed to resolve filter options for admin {session.get('user_id')}: {str(e)}"
        )
        return jsonify({"error": "failed_to_resolve_filters", "message": str(e)}), 500


# API: GET "/api/admin/overview"
# Used by: admin overview page cards
# Purpose: Filter-scoped counts of classes, enrollments, assessments and submissions.
@admin_bp.route("/api/admin/overview", methods=["GET"], endpoint="get_overview")
@role_required("admin")
def get_overview():
    selection = FilterSelection.from_args(request.args)
    try:
        counts = get_overview_counts(selection)
        return jsonify({"filters": selection.to_dict(), "counts": counts}), 200
    except Exception as e:
        logger.error(
            f"Failed to build overview for admin {session.get('user_id')}: {str(e)}"
        )
        return jsonify({"error": "failed_to_build_overview", "message": str(e)}), 500
