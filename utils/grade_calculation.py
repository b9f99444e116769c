import logging
from collections import defaultdict
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import joinedload

from models import Assessment, Class, Enrollment, Submission

logger = logging.getLogger(__name__)

STATUS_GRADED = "GRADED"

# graded first, then pending, then not submitted
_REPORT_STATUS_ORDER = {"graded": 0, "pending": 1, "not_submitted": 2}


def to_decimal(value) -> Optional[Decimal]:
    """Normalize a stored score to Decimal without going through float rounding."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_number(value):
    """Convert a Decimal total to a JSON friendly float (None passes through)."""
    if value is None:
        return None
    return float(value)


def percentage(earned, possible) -> float:
    """Percentage of earned over possible; 0 when nothing is possible."""
    earned = to_decimal(earned) or Decimal(0)
    possible = to_decimal(possible) or Decimal(0)
    if possible <= 0:
        return 0.0
    return float(earned / possible * 100)


def empty_category_stats() -> dict:
    return {"earned": Decimal(0), "possible": Decimal(0), "count": 0}


def add_scored_cell(stats: dict, score, max_points) -> dict:
    """Accumulate one scored cell. Unscored cells must not be passed in."""
    stats["earned"] += to_decimal(score)
    stats["possible"] += to_decimal(max_points)
    stats["count"] += 1
    return stats


def export_category_stats(stats: dict) -> dict:
    return {
        "earned": to_number(stats["earned"]),
        "possible": to_number(stats["possible"]),
        "count": stats["count"],
    }


def classify_submission(submission) -> str:
    """Report status of a student's submission: graded, pending or not_submitted."""
    if submission is None:
        return "not_submitted"
    if submission.status == STATUS_GRADED and submission.total_score is not None:
        return "graded"
    return "pending"


def _new_tally() -> dict:
    return {"earned": Decimal(0), "possible": Decimal(0), "graded": 0, "total": 0}


def _tally(tally: dict, status: str, score, max_points):
    tally["total"] += 1
    if status == "graded":
        tally["earned"] += score
        tally["possible"] += max_points
        tally["graded"] += 1


def _export_tally(tally: dict) -> dict:
    return {
        "average": percentage(tally["earned"], tally["possible"]),
        "earned": to_number(tally["earned"]),
        "possible": to_number(tally["possible"]),
        "graded": tally["graded"],
        "total": tally["total"],
        "completion_rate": (
            tally["graded"] / tally["total"] * 100 if tally["total"] > 0 else 0.0
        ),
    }


def build_student_grades(student_id: str) -> dict:
    """Summarize one student's gradebook assessments across enrolled classes.

    Only graded work (status GRADED with a score) counts toward averages.
    Submitted but ungraded work is reported as pending; everything else as
    not submitted. Returns overall totals, a per-type breakdown and a
    per-class summary whose grades list graded items first.
    """
    enrollments = Enrollment.query.filter_by(student_id=student_id).all()
    class_ids = [e.class_id for e in enrollments]

    assessments = []
    submissions = {}
    if class_ids:
        assessments = (
            Assessment.query.options(
                joinedload(Assessment.class_obj).joinedload(Class.course)
            )
            .filter(
                Assessment.class_id.in_(class_ids),
                Assessment.include_in_gradebook.is_(True),
            )
            .order_by(Assessment.due_at.desc(), Assessment.order_index, Assessment.id)
            .all()
        )
        rows = Submission.query.filter(
            Submission.student_id == student_id,
            Submission.class_id.in_(class_ids),
        ).all()
        submissions = {s.assessment_id: s for s in rows}

    overall = _new_tally()
    by_type = defaultdict(_new_tally)
    by_class = {}

    for assessment in assessments:
        submission = submissions.get(assessment.id)
        status = classify_submission(submission)
        max_points = to_decimal(assessment.max_points)
        score = to_decimal(submission.total_score) if status == "graded" else None

        _tally(overall, status, score, max_points)
        _tally(by_type[assessment.type], status, score, max_points)

        class_obj = assessment.class_obj
        if class_obj.id not in by_class:
            by_class[class_obj.id] = {
                "class_id": class_obj.id,
                "title": class_obj.title,
                "class_code": class_obj.class_code,
                "course_code": class_obj.course.code,
                "course_title": class_obj.course.title,
                "tally": _new_tally(),
                "grades": [],
            }
        entry = by_class[class_obj.id]
        _tally(entry["tally"], status, score, max_points)
        entry["grades"].append(
            {
                "assessment_id": assessment.id,
                "submission_id": submission.id if submission else None,
                "title": assessment.title,
                "type": assessment.type,
                "score": to_number(score),
                "max_points": to_number(max_points),
                "percentage": (
                    percentage(score, max_points) if status == "graded" else None
                ),
                "submitted_at": (
                    submission.submitted_at.isoformat()
                    if submission and submission.submitted_at
                    else None
                ),
                "feedback": submission.feedback if submission else None,
                "status": status,
            }
        )

    classes = []
    for entry in by_class.values():
        summary = {k: v for k, v in entry.items() if k not in ("tally", "grades")}
        summary.update(_export_tally(entry["tally"]))
        summary["grades"] = sorted(
            entry["grades"], key=lambda g: _REPORT_STATUS_ORDER[g["status"]]
        )
        classes.append(summary)

    overall_summary = _export_tally(overall)
    logger.info(
        f"Built grade report for student {student_id}: "
        f"{overall_summary['graded']}/{overall_summary['total']} graded"
    )

    return {
        "overall": {
            "average": overall_summary["average"],
            "total_earned": overall_summary["earned"],
            "total_possible": overall_summary["possible"],
            "graded_count": overall_summary["graded"],
            "total_count": overall_summary["total"],
            "completion_rate": overall_summary["completion_rate"],
        },
        "type_breakdown": [
            dict(type=t, **_export_tally(by_type[t])) for t in sorted(by_type)
        ],
        "classes": classes,
    }
