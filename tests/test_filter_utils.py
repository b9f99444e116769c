# tests/test_filter_utils.py

from werkzeug.datastructures import MultiDict

from models import Assessment, Class, Enrollment, Submission, db
from utils.filter_utils import (
    FilterSelection,
    build_assessment_filters,
    build_class_filters,
    build_enrollment_filters,
    build_submission_filters,
    resolve_filter_options,
)


def _ids(rows):
    return sorted(r.id for r in rows)


# --- selection parsing ---


def test_from_args_drops_empty_and_all_values():
    args = MultiDict({"term": "", "year": "all", "course_id": "  ", "professor_id": "p1"})
    selection = FilterSelection.from_args(args)
    assert selection == FilterSelection(professor_id="p1")


def test_from_args_parses_year_and_ignores_malformed_year():
    assert FilterSelection.from_args({"year": "2025"}).year == 2025
    assert FilterSelection.from_args({"year": "twenty"}).year is None


def test_from_args_ignores_year_outside_integer_range():
    assert FilterSelection.from_args({"year": "99999999999999999999"}).year is None
    assert FilterSelection.from_args({"year": "-2147483649"}).year is None
    assert FilterSelection.from_args({"year": "2147483647"}).year == 2147483647


def test_out_of_range_year_resolves_like_no_year(two_class_catalog):
    selection = FilterSelection.from_args({"year": "99999999999999999999"})
    assert resolve_filter_options(selection) == resolve_filter_options(FilterSelection())


def test_from_args_ignores_unknown_keys():
    selection = FilterSelection.from_args({"colour": "red", "term": "Fall"})
    assert selection.to_dict() == {
        "term": "Fall",
        "year": None,
        "professor_id": None,
        "course_id": None,
        "class_id": None,
        "student_id": None,
        "assessment_id": None,
    }


def test_has_class_filters_ignores_student_and_assessment():
    assert not FilterSelection(student_id="s", assessment_id="a").has_class_filters()
    assert FilterSelection(year=2025).has_class_filters()


# --- predicate builders ---


def test_empty_selection_builds_unconstrained_filters():
    selection = FilterSelection()
    assert build_class_filters(selection) == []
    assert build_assessment_filters(selection) == []
    assert build_enrollment_filters(selection) == []
    assert build_submission_filters(selection) == []


def test_class_filters_are_a_conjunction(two_class_catalog):
    data = two_class_catalog
    selection = FilterSelection(term="Fall", professor_id=data["p1"].id)
    assert len(build_class_filters(selection)) == 2

    rows = Class.query.filter(*build_class_filters(selection)).all()
    assert _ids(rows) == sorted([data["x"].id, data["z"].id])

    selection = FilterSelection(term="Fall", year=2025, professor_id=data["p1"].id)
    rows = Class.query.filter(*build_class_filters(selection)).all()
    assert _ids(rows) == [data["x"].id]


def test_assessment_and_enrollment_filters_go_through_class(two_class_catalog):
    data = two_class_catalog
    selection = FilterSelection(course_id=data["c1"].id)

    assessments = Assessment.query.filter(*build_assessment_filters(selection)).all()
    assert _ids(assessments) == sorted([data["lab_x"].id, data["quiz_y"].id])

    enrollments = Enrollment.query.filter(*build_enrollment_filters(selection)).all()
    assert sorted(e.student_id for e in enrollments) == sorted(
        [data["alice"].id, data["bob"].id]
    )


def test_submission_filters_combine_class_and_direct_fields(make, two_class_catalog):
    data = two_class_catalog
    make.enroll(data["x"], data["bob"])
    s1 = make.submission(data["lab_x"], data["alice"], score=5)
    s2 = make.submission(data["lab_x"], data["bob"], score=7)
    s3 = make.submission(data["quiz_y"], data["bob"], score=9)
    db.session.commit()

    # Student only: no class constraint at all
    selection = FilterSelection(student_id=data["bob"].id)
    assert len(build_submission_filters(selection)) == 1
    rows = Submission.query.filter(*build_submission_filters(selection)).all()
    assert _ids(rows) == sorted([s2.id, s3.id])

    # Both kinds apply together
    selection = FilterSelection(term="Fall", student_id=data["bob"].id)
    rows = Submission.query.filter(*build_submission_filters(selection)).all()
    assert _ids(rows) == [s2.id]

    selection = FilterSelection(term="Fall", assessment_id=data["lab_x"].id)
    rows = Submission.query.filter(*build_submission_filters(selection)).all()
    assert _ids(rows) == sorted([s1.id, s2.id])


def test_unknown_ids_match_nothing(two_class_catalog):
    selection = FilterSelection(professor_id="no-such-professor")
    assert Class.query.filter(*build_class_filters(selection)).count() == 0
    assert Assessment.query.filter(*build_assessment_filters(selection)).count() == 0


# --- option resolution ---


def test_resolve_options_for_shared_course(two_class_catalog):
    data = two_class_catalog
    options = resolve_filter_options(FilterSelection(course_id=data["c1"].id))

    assert options["terms"] == ["Fall", "Spring"]
    assert options["years"] == [2025]
    assert options["professors"] == [
        {"id": data["p1"].id, "name": "Prof One"},
        {"id": data["p2"].id, "name": "Prof Two"},
    ]
    assert options["courses"] == [
        {"id": data["c1"].id, "code": "CS101", "title": "CS101 title"}
    ]
    assert [c["code"] for c in options["classes"]] == ["CS101-X", "CS101-Y"]
    assert [s["name"] for s in options["students"]] == ["Alice", "Bob"]
    assert options["assessments"] == [
        {"id": data["lab_x"].id, "title": "Lab X", "course_code": "CS101"},
        {"id": data["quiz_y"].id, "title": "Quiz Y", "course_code": "CS101"},
    ]


def test_resolve_options_without_filters_lists_everything(two_class_catalog):
    data = two_class_catalog
    options = resolve_filter_options(FilterSelection())

    assert options["terms"] == ["Fall", "Spring"]
    assert options["years"] == [2025, 2024]
    assert [c["code"] for c in options["courses"]] == ["CS101", "MATH200"]
    assert [c["code"] for c in options["classes"]] == ["CS101-X", "CS101-Y", "MATH200-Z"]
    # Student without a full name falls back to email
    assert [s["name"] for s in options["students"]] == [
        "Alice",
        "Bob",
        "cara@example.edu",
    ]
    assert [a["id"] for a in options["assessments"]] == [
        data["lab_x"].id,
        data["quiz_y"].id,
        data["exam_z"].id,
    ]


def test_resolve_options_deduplicates_professors_and_students(make, two_class_catalog):
    data = two_class_catalog
    make.enroll(data["z"], data["alice"])
    db.session.commit()

    options = resolve_filter_options(FilterSelection(professor_id=data["p1"].id))
    assert options["professors"] == [{"id": data["p1"].id, "name": "Prof One"}]
    assert [s["name"] for s in options["students"]] == ["Alice", "cara@example.edu"]


def test_same_named_options_are_ordered_by_id(make, two_class_catalog):
    data = two_class_catalog
    twins = [make.user("professor", full_name="Prof Twin") for _ in range(2)]
    for professor in twins:
        make.class_(data["c2"], professor, term="Winter", year=2026)
    namesakes = [make.user("student", full_name="Sam Same") for _ in range(2)]
    for student in namesakes:
        make.enroll(data["x"], student)
    db.session.commit()

    options = resolve_filter_options(FilterSelection())
    twin_ids = [p["id"] for p in options["professors"] if p["name"] == "Prof Twin"]
    assert twin_ids == sorted(p.id for p in twins)
    same_ids = [s["id"] for s in options["students"] if s["name"] == "Sam Same"]
    assert same_ids == sorted(s.id for s in namesakes)


def test_adding_a_constraint_never_grows_classes(two_class_catalog):
    data = two_class_catalog
    base = FilterSelection(year=2025)
    narrowed = FilterSelection(year=2025, professor_id=data["p2"].id)

    base_ids = {c["id"] for c in resolve_filter_options(base)["classes"]}
    narrowed_ids = {c["id"] for c in resolve_filter_options(narrowed)["classes"]}
    assert narrowed_ids <= base_ids
    assert narrowed_ids == {data["y"].id}


def test_student_filter_does_not_narrow_student_options(two_class_catalog):
    data = two_class_catalog
    without = resolve_filter_options(FilterSelection())
    with_student = resolve_filter_options(FilterSelection(student_id=data["bob"].id))
    assert with_student["students"] == without["students"]
    assert with_student["classes"] == without["classes"]


def test_assessment_filter_does_not_narrow_assessment_options(two_class_catalog):
    data = two_class_catalog
    options = resolve_filter_options(FilterSelection(assessment_id=data["lab_x"].id))
    assert len(options["assessments"]) == 3


def test_impossible_selection_yields_empty_options(two_class_catalog):
    data = two_class_catalog
    options = resolve_filter_options(
        FilterSelection(term="Spring", professor_id=data["p1"].id)
    )
    assert options == {
        "terms": [],
        "years": [],
        "professors": [],
        "courses": [],
        "classes": [],
        "students": [],
        "assessments": [],
    }


def test_assessment_options_follow_order_index(make, two_class_catalog):
    data = two_class_catalog
    first = make.assessment(data["x"], "Pre-lab", order_index=-1)
    db.session.commit()

    options = resolve_filter_options(FilterSelection(class_id=data["x"].id))
    assert [a["id"] for a in options["assessments"]] == [first.id, data["lab_x"].id]
