import logging

from models import Assessment, Class, Course, Enrollment, Submission, User, db
from utils.filter_utils import (
    FilterSelection,
    build_assessment_filters,
    build_class_filters,
    build_enrollment_filters,
    build_submission_filters,
)

logger = logging.getLogger(__name__)


def get_overview_counts(selection: FilterSelection) -> dict:
    """Platform snapshot for the admin overview.

    Class, enrollment, assessment and submission counts follow the filter
    selection; user and course counts are platform wide.
    """
    role_counts = dict(
        db.session.query(User.role, db.func.count(User.id)).group_by(User.role).all()
    )

    professors_without_classes = User.query.filter(
        User.role == "professor", ~User.professor_classes.any()
    ).count()
    students_without_enrollments = User.query.filter(
        User.role == "student", ~User.enrollments.any()
    ).count()

    counts = {
        "users": {
            "total": sum(role_counts.values()),
            "admin": role_counts.get("admin", 0),
            "professor": role_counts.get("professor", 0),
            "student": role_counts.get("student", 0),
        },
        "courses": Course.query.count(),
        "classes": Class.query.filter(*build_class_filters(selection)).count(),
        "enrollments": Enrollment.query.filter(
            *build_enrollment_filters(selection)
        ).count(),
        "assessments": Assessment.query.filter(
            *build_assessment_filters(selection)
        ).count(),
        "submissions": Submission.query.filter(
            *build_submission_filters(selection)
        ).count(),
        "professors_without_classes": professors_without_classes,
        "students_without_enrollments": students_without_enrollments,
    }
    logger.info(f"Overview counts for {selection.to_dict()}: {counts}")
    return counts
