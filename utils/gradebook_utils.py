import logging
from decimal import Decimal
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import contains_eager

from models import (
    ENROLLMENT_ACTIVE,
    Assessment,
    Enrollment,
    Module,
    ModuleItem,
    Submission,
)
from utils.grade_calculation import (
    add_scored_cell,
    empty_category_stats,
    export_category_stats,
    percentage,
    to_decimal,
    to_number,
)

logger = logging.getLogger(__name__)

NOT_SUBMITTED = "NOT_SUBMITTED"


def _empty_cell() -> dict:
    return {
        "submission_id": None,
        "score": None,
        "status": NOT_SUBMITTED,
        "is_late": False,
    }


def get_active_enrollments(class_id: str) -> List[Enrollment]:
    """Active enrollments of a class ordered by student display name.

    The key is User.display_name, so an empty full_name sorts by email.
    """
    enrollments = (
        Enrollment.query.join(Enrollment.student)
        .options(contains_eager(Enrollment.student))
        .filter(
            Enrollment.class_id == class_id,
            Enrollment.status == ENROLLMENT_ACTIVE,
        )
        .all()
    )
    return sorted(enrollments, key=lambda e: (e.student.display_name, e.student.id))


def get_gradable_assessments(class_id: str) -> List[Assessment]:
    """Gradebook columns: ordered by type then due date, undated last.

    order_index, created_at and id break the remaining ties so the column
    order does not change between requests.
    """
    return (
        Assessment.query.filter(
            Assessment.class_id == class_id,
            Assessment.include_in_gradebook.is_(True),
        )
        .order_by(
            Assessment.type,
            Assessment.due_at.is_(None),
            Assessment.due_at,
            Assessment.order_index,
            Assessment.created_at,
            Assessment.id,
        )
        .all()
    )


def get_submission_index(class_id: str) -> Dict[Tuple[str, str], Submission]:
    """All submissions of a class keyed by (student_id, assessment_id).

    The schema allows one submission per pair. Should duplicates exist anyway,
    the most recently updated one is kept.
    """
    submissions = (
        Submission.query.filter(Submission.class_id == class_id)
        .order_by(Submission.updated_at, Submission.id)
        .all()
    )
    return index_submissions(submissions, class_id)


def index_submissions(
    submissions: Iterable[Submission], class_id: Optional[str] = None
) -> Dict[Tuple[str, str], Submission]:
    """Key submissions by (student_id, assessment_id); later updated_at wins."""
    ordered = sorted(
        submissions,
        key=lambda s: (s.updated_at is not None, s.updated_at or datetime.min, s.id or ""),
    )
    index = {}
    for submission in ordered:
        key = (submission.student_id, submission.assessment_id)
        if key in index:
            logger.warning(
                f"Duplicate submissions for student {key[0]} on assessment {key[1]} "
                f"in class {class_id}; keeping {submission.id}, ignoring {index[key].id}"
            )
        index[key] = submission
    return index


def get_assessment_modules(class_id: str, assessment_ids: List[str]) -> Dict[str, dict]:
    """First published module linking each assessment.

    An assessment may sit in several modules; the first by module order,
    then item order, is the one reported.
    """
    if not assessment_ids:
        return {}
    items = (
        ModuleItem.query.join(ModuleItem.module)
        .options(contains_eager(ModuleItem.module))
        .filter(
            Module.class_id == class_id,
            Module.is_published.is_(True),
            ModuleItem.is_published.is_(True),
            ModuleItem.assessment_id.in_(assessment_ids),
        )
        .order_by(Module.order_index, Module.id, ModuleItem.order_index, ModuleItem.id)
        .all()
    )
    modules = {}
    for item in items:
        if item.assessment_id not in modules:
            modules[item.assessment_id] = {
                "id": item.module.id,
                "title": item.module.title,
                "order_index": item.module.order_index,
            }
    return modules


def build_gradebook(class_id: str) -> dict:
    """Dense gradebook for one class.

    Every active student gets a cell for every gradable assessment, with a
    NOT_SUBMITTED placeholder where no submission exists. Category stats only
    count cells that have a score; percentages are 0 when nothing is scored.
    Callers are responsible for checking access to the class.
    """
    enrollments = get_active_enrollments(class_id)
    assessments = get_gradable_assessments(class_id)
    submissions = get_submission_index(class_id)
    modules = get_assessment_modules(class_id, [a.id for a in assessments])

    categories = []
    for assessment in assessments:
        if assessment.type not in categories:
            categories.append(assessment.type)

    rows = []
    for enrollment in enrollments:
        student = enrollment.student
        grades = {}
        stats = {category: empty_category_stats() for category in categories}

        for assessment in assessments:
            submission = submissions.get((student.id, assessment.id))
            if submission is None:
                grades[assessment.id] = _empty_cell()
                continue

            score = to_decimal(submission.total_score)
            grades[assessment.id] = {
                "submission_id": submission.id,
                "score": to_number(score),
                "status": submission.status,
                "is_late": bool(submission.is_late),
            }
            if score is not None:
                add_scored_cell(stats[assessment.type], score, assessment.max_points)

        total_earned = sum((s["earned"] for s in stats.values()), Decimal(0))
        total_possible = sum((s["possible"] for s in stats.values()), Decimal(0))

        rows.append(
            {
                "student": {
                    "id": student.id,
                    "name": student.display_name,
                    "email": student.email,
                },
                "grades": grades,
                "category_percentages": {
                    category: percentage(s["earned"], s["possible"])
                    for category, s in stats.items()
                },
                "category_stats": {
                    category: export_category_stats(s) for category, s in stats.items()
                },
                "overall_percentage": percentage(total_earned, total_possible),
                "total_earned": to_number(total_earned),
                "total_possible": to_number(total_possible),
            }
        )

    columns = [
        {
            "id": a.id,
            "title": a.title,
            "type": a.type,
            "max_points": to_number(to_decimal(a.max_points)),
            "due_at": a.due_at.isoformat() if a.due_at else None,
            "module": modules.get(a.id),
        }
        for a in assessments
    ]

    logger.info(
        f"Built gradebook for class {class_id}: {len(rows)} students x {len(columns)} assessments"
    )
    return {"students": rows, "assessments": columns}
