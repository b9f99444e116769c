"""Cascading filters for the admin portal.

A filter selection narrows classes by term, year, professor, course and
class, and narrows submissions further by student and assessment. The
``build_*_filters`` helpers turn a selection into lists of SQLAlchemy
clauses meant for ``Query.filter(*clauses)``; an empty list means
"no constraint".

``resolve_filter_options`` computes the options each filter dropdown may
offer given the current selection. Only the class-level fields narrow the
option lists. Choosing a student or an assessment never hides that
student's (or assessment's) own class, so the cascade is resolved in one
pass without iterating to a fixed point.
"""

import logging
from dataclasses import dataclass, fields
from typing import List, Mapping, Optional

from sqlalchemy import and_
from sqlalchemy.orm import joinedload

from models import Assessment, Class, Enrollment, Submission

logger = logging.getLogger(__name__)

# Presentation-layer placeholder for "no constraint" in query strings
ALL_SENTINEL = "all"

# Years must fit a signed 32-bit INTEGER column
MIN_YEAR = -(2**31)
MAX_YEAR = 2**31 - 1


@dataclass(frozen=True)
class FilterSelection:
    term: Optional[str] = None
    year: Optional[int] = None
    professor_id: Optional[str] = None
    course_id: Optional[str] = None
    class_id: Optional[str] = None
    student_id: Optional[str] = None
    assessment_id: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping) -> "FilterSelection":
        """Build a selection from request args.

        Empty strings and ``"all"`` mean unset. A year that is not an
        integer, or falls outside the INTEGER column range, is ignored rather
        than rejected.
        """
        values = {}
        for field in fields(cls):
            raw = args.get(field.name)
            if raw is None:
                continue
            if isinstance(raw, str):
                raw = raw.strip()
                if not raw or raw.lower() == ALL_SENTINEL:
                    continue
            if field.name == "year":
                try:
                    raw = int(raw)
                except (TypeError, ValueError):
                    logger.info(f"Ignoring malformed year filter: {raw!r}")
                    continue
                if not MIN_YEAR <= raw <= MAX_YEAR:
                    logger.info(f"Ignoring out-of-range year filter: {raw!r}")
                    continue
            values[field.name] = raw
        return cls(**values)

    def has_class_filters(self) -> bool:
        return bool(build_class_filters(self))

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def build_class_filters(selection: FilterSelection) -> List:
    """Equality clauses on Class for every class-level field that is set."""
    clauses = []
    if selection.term is not None:
        clauses.append(Class.term == selection.term)
    if selection.year is not None:
        clauses.append(Class.year == selection.year)
    if selection.professor_id is not None:
        clauses.append(Class.professor_id == selection.professor_id)
    if selection.course_id is not None:
        clauses.append(Class.course_id == selection.course_id)
    if selection.class_id is not None:
        clauses.append(Class.id == selection.class_id)
    return clauses


def build_assessment_filters(selection: FilterSelection) -> List:
    """Class filters applied to assessments through their owning class."""
    class_filters = build_class_filters(selection)
    if not class_filters:
        return []
    return [Assessment.class_obj.has(and_(*class_filters))]


def build_enrollment_filters(selection: FilterSelection) -> List:
    """Class filters applied to enrollments through their class."""
    class_filters = build_class_filters(selection)
    if not class_filters:
        return []
    return [Enrollment.class_obj.has(and_(*class_filters))]


def build_submission_filters(selection: FilterSelection) -> List:
    """Assessment filters plus direct student/assessment equality.

    Student and assessment are columns of the submission itself, so they are
    added alongside the nested class constraint, not folded into it.
    """
    clauses = []
    assessment_filters = build_assessment_filters(selection)
    if assessment_filters:
        clauses.append(Submission.assessment.has(and_(*assessment_filters)))
    if selection.student_id is not None:
        clauses.append(Submission.student_id == selection.student_id)
    if selection.assessment_id is not None:
        clauses.append(Submission.assessment_id == selection.assessment_id)
    return clauses


def resolve_filter_options(selection: FilterSelection) -> dict:
    """Return the valid options for every filter dimension.

    Terms sort lexically, years newest first, professors and students by
    display name, courses and classes by code. Impossible selections give
    empty lists.
    """
    matching_classes = (
        Class.query.options(joinedload(Class.professor), joinedload(Class.course))
        .filter(*build_class_filters(selection))
        .all()
    )

    terms = sorted({c.term for c in matching_classes})
    years = sorted({c.year for c in matching_classes}, reverse=True)

    professors = {}
    courses = {}
    for c in matching_classes:
        if c.professor_id not in professors:
            professors[c.professor_id] = {
                "id": c.professor_id,
                "name": c.professor.display_name,
            }
        if c.course_id not in courses:
            courses[c.course_id] = {
                "id": c.course_id,
                "code": c.course.code,
                "title": c.course.title,
            }

    classes = sorted(
        ({"id": c.id, "code": c.class_code, "title": c.title} for c in matching_classes),
        key=lambda c: c["code"],
    )

    class_ids = [c.id for c in matching_classes]
    students = _enrolled_student_options(class_ids)
    assessments = _assessment_options(class_ids)

    logger.info(
        f"Resolved filter options for {selection.to_dict()}: "
        f"{len(classes)} classes, {len(students)} students, {len(assessments)} assessments"
    )

    return {
        "terms": terms,
        "years": years,
        "professors": sorted(professors.values(), key=lambda p: (p["name"], p["id"])),
        "courses": sorted(courses.values(), key=lambda c: c["code"]),
        "classes": classes,
        "students": students,
        "assessments": assessments,
    }


def _enrolled_student_options(class_ids: List[str]) -> List[dict]:
    if not class_ids:
        return []
    enrollments = (
        Enrollment.query.options(joinedload(Enrollment.student))
        .filter(Enrollment.class_id.in_(class_ids))
        .all()
    )
    students = {}
    for enrollment in enrollments:
        student = enrollment.student
        if student.id not in students:
            students[student.id] = {"id": student.id, "name": student.display_name}
    return sorted(students.values(), key=lambda s: (s["name"], s["id"]))


def _assessment_options(class_ids: List[str]) -> List[dict]:
    if not class_ids:
        return []
    assessments = (
        Assessment.query.options(
            joinedload(Assessment.class_obj).joinedload(Class.course)
        )
        .filter(Assessment.class_id.in_(class_ids))
        .order_by(Assessment.order_index, Assessment.created_at, Assessment.id)
        .all()
    )
    return [
        {
            "id": a.id,
            "title": a.title,
            "course_code": a.class_obj.course.code,
        }
        for a in assessments
    ]
