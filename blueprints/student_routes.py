import logging
from flask import Blueprint, jsonify

from models import User, db
from utils.auth_utils import current_user_id, role_required
from utils.grade_calculation import build_student_grades

logger = logging.getLogger(__name__)

student_bp = Blueprint("student", __name__)


@student_bp.route("/api/student/grades", methods=["GET"], endpoint="get_student_grades")
@role_required("student")
def get_student_grades():
    try:
        student = db.session.get(User, current_user_id())
        if student is None:
            return jsonify({"error": "Student profile not found"}), 404

        report = build_student_grades(student.id)
        report["student"] = {"name": student.display_name, "email": student.email}
        return jsonify(report), 200
    except Exception as e:
        logger.error(f"Error fetching grades for student {current_user_id()}: {str(e)}")
        return jsonify({"error": "Failed to fetch grades", "message": str(e)}), 500
