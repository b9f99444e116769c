# tests/conftest.py

import os
import sys
from datetime import datetime
from decimal import Decimal
from itertools import count

import pytest

# Ensure project root is on sys.path so tests can import app.py
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app import create_app
from models import (
    Assessment,
    Class,
    Course,
    Enrollment,
    Module,
    ModuleItem,
    Submission,
    User,
    db,
)

_seq = count(1)


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "WTF_CSRF_ENABLED": False,
            "SECRET_KEY": "test",
        }
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


class Factory:
    """Small helpers that insert rows and flush so ids are populated."""

    def _save(self, obj):
        db.session.add(obj)
        db.session.flush()
        return obj

    def user(self, role="student", full_name=None, email=None):
        n = next(_seq)
        return self._save(
            User(
                email=email or f"{role}{n}@example.edu",
                full_name=full_name,
                role=role,
            )
        )

    def course(self, code, title=None):
        return self._save(Course(code=code, title=title or f"{code} title"))

    def class_(self, course, professor, term="Fall", year=2025, section="01", code=None):
        n = next(_seq)
        return self._save(
            Class(
                course_id=course.id,
                professor_id=professor.id,
                title=f"{course.code} {term} {year}",
                class_code=code or f"{course.code}-{n}",
                term=term,
                year=year,
                section=section,
            )
        )

    def enroll(self, class_obj, student, status="active"):
        return self._save(
            Enrollment(class_id=class_obj.id, student_id=student.id, status=status)
        )

    def assessment(
        self,
        class_obj,
        title,
        type="LAB",
        max_points=10,
        include_in_gradebook=True,
        due_at=None,
        order_index=0,
        created_at=None,
    ):
        return self._save(
            Assessment(
                class_id=class_obj.id,
                title=title,
                type=type,
                max_points=Decimal(str(max_points)),
                include_in_gradebook=include_in_gradebook,
                due_at=due_at,
                order_index=order_index,
                created_at=created_at or datetime(2025, 1, 1),
            )
        )

    def submission(self, assessment, student, score=None, status="GRADED", is_late=False):
        return self._save(
            Submission(
                assessment_id=assessment.id,
                student_id=student.id,
                class_id=assessment.class_id,
                total_score=None if score is None else Decimal(str(score)),
                status=status,
                is_late=is_late,
            )
        )

    def module(self, class_obj, title, order_index=0, is_published=True):
        return self._save(
            Module(
                class_id=class_obj.id,
                title=title,
                order_index=order_index,
                is_published=is_published,
            )
        )

    def module_item(self, module, assessment, order_index=0, is_published=True):
        return self._save(
            ModuleItem(
                module_id=module.id,
                assessment_id=assessment.id,
                title=assessment.title,
                order_index=order_index,
                is_published=is_published,
            )
        )


@pytest.fixture
def make(app):
    return Factory()


@pytest.fixture
def two_class_catalog(make):
    """Class X (Fall 2025, P1, C1) and Class Y (Spring 2025, P2, C1), plus
    Class Z (Fall 2024, P1, C2) as an unrelated offering."""
    p1 = make.user("professor", full_name="Prof One")
    p2 = make.user("professor", full_name="Prof Two")
    c1 = make.course("CS101")
    c2 = make.course("MATH200")
    x = make.class_(c1, p1, term="Fall", year=2025, code="CS101-X")
    y = make.class_(c1, p2, term="Spring", year=2025, code="CS101-Y")
    z = make.class_(c2, p1, term="Fall", year=2024, code="MATH200-Z")

    alice = make.user("student", full_name="Alice")
    bob = make.user("student", full_name="Bob")
    cara = make.user("student", full_name=None, email="cara@example.edu")
    make.enroll(x, alice)
    make.enroll(y, bob)
    make.enroll(z, cara)

    lab_x = make.assessment(x, "Lab X", order_index=0)
    quiz_y = make.assessment(y, "Quiz Y", type="QUIZ", order_index=1)
    exam_z = make.assessment(z, "Exam Z", type="EXAM", order_index=2)

    db.session.commit()
    return {
        "p1": p1,
        "p2": p2,
        "c1": c1,
        "c2": c2,
        "x": x,
        "y": y,
        "z": z,
        "alice": alice,
        "bob": bob,
        "cara": cara,
        "lab_x": lab_x,
        "quiz_y": quiz_y,
        "exam_z": exam_z,
    }


@pytest.fixture
def lab_class(make):
    """Class X with students A and B and two labs worth 10 and 15 points."""
    professor = make.user("professor", full_name="Prof Lab")
    course = make.course("LAB100")
    x = make.class_(course, professor, code="LAB100-X")
    a = make.user("student", full_name="Student A")
    b = make.user("student", full_name="Student B")
    make.enroll(x, a)
    make.enroll(x, b)
    lab1 = make.assessment(x, "Lab1", max_points=10, due_at=datetime(2025, 2, 1))
    lab2 = make.assessment(x, "Lab2", max_points=15, due_at=datetime(2025, 2, 8))
    make.submission(lab1, a, score=10)
    make.submission(lab1, b, score=8)
    make.submission(lab2, b, score=12)
    db.session.commit()
    return {"professor": professor, "x": x, "a": a, "b": b, "lab1": lab1, "lab2": lab2}
