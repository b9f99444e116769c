import logging
from flask import Blueprint, jsonify

from models import Class
from utils.auth_utils import current_user_id, role_required
from utils.filter_utils import FilterSelection, build_class_filters
from utils.gradebook_utils import build_gradebook

logger = logging.getLogger(__name__)

professor_bp = Blueprint("professor", __name__)


def _professor_owns_class(class_id: str, professor_id: str) -> bool:
    selection = FilterSelection(class_id=class_id, professor_id=professor_id)
    return Class.query.filter(*build_class_filters(selection)).first() is not None


# API: GET "/api/professor/classes/<class_id>/gradebook"
# Used by: gradebook modal on the professor grading page
# Purpose: Dense student x assessment grid with category roll-ups.
@professor_bp.route(
    "/api/professor/classes/<class_id>/gradebook",
    methods=["GET"],
    endpoint="get_class_gradebook",
)
@role_required("professor")
def get_class_gradebook(class_id):
    professor_id = current_user_id()
    try:
        if not _professor_owns_class(class_id, professor_id):
            logger.warning(
                f"Professor {professor_id} requested gradebook for class {class_id} they do not own"
            )
            return jsonify({"error": "Class not found"}), 404

        gradebook = build_gradebook(class_id)
        return jsonify(gradebook), 200
    except Exception as e:
        logger.error(f"Error fetching gradebook for class {class_id}: {str(e)}")
        return jsonify({"error": "Failed to fetch gradebook", "message": str(e)}), 500
