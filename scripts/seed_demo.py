#!/usr/bin/env python3
"""
Demo data seeder for the course portal.

Creates professors, students, courses, classes, modules, assessments and
submissions so the gradebook and admin filters have something to show.
Run from the repo root:

    python scripts/seed_demo.py [--students 12] [--seed 42]
"""

import argparse
import logging
import os
import random
import sys
from datetime import datetime, timedelta
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from models import (
    Assessment,
    Class,
    Course,
    Enrollment,
    Module,
    ModuleItem,
    Submission,
    TERMS,
    User,
    db,
)
from utils.db_conn import init_database_with_app

logger = logging.getLogger(__name__)

FIRST_NAMES = ["Ana", "Ben", "Carla", "Dmitri", "Elena", "Farid", "Grace", "Hiro"]
LAST_NAMES = ["Reyes", "Okafor", "Lindqvist", "Nakamura", "Santos", "Weber"]
COURSES = [
    ("CS101", "Introduction to Programming"),
    ("CS201", "Data Structures"),
    ("NET110", "Networking Fundamentals"),
]
# (type, title prefix, max points, how many)
ASSESSMENT_PLAN = [
    ("LAB", "Lab", 10, 3),
    ("QUIZ", "Quiz", 20, 2),
    ("EXAM", "Exam", 100, 1),
]


class DataGenerator:
    """Generate random data for different tables"""

    def __init__(self, rng: random.Random):
        self.rng = rng
        self.used_emails = set()

    def person(self, role):
        while True:
            first = self.rng.choice(FIRST_NAMES)
            last = self.rng.choice(LAST_NAMES)
            email = f"{first}.{last}{self.rng.randint(1, 999)}@example.edu".lower()
            if email not in self.used_emails:
                self.used_emails.add(email)
                break
        # Leave some names blank so the email fallback shows up in the UI
        full_name = f"{first} {last}" if self.rng.random() > 0.1 else None
        return User(email=email, full_name=full_name, role=role)

    def submission_for(self, assessment, student_id):
        roll = self.rng.random()
        if roll < 0.15:
            return None
        max_points = float(assessment.max_points)
        if roll < 0.3:
            return Submission(
                assessment_id=assessment.id,
                student_id=student_id,
                class_id=assessment.class_id,
                status="SUBMITTED",
                submitted_at=datetime.utcnow(),
            )
        score = Decimal(str(round(self.rng.uniform(0.5, 1.0) * max_points, 2)))
        is_late = roll > 0.9
        return Submission(
            assessment_id=assessment.id,
            student_id=student_id,
            class_id=assessment.class_id,
            total_score=score,
            status="GRADED",
            is_late=is_late,
            submitted_at=datetime.utcnow(),
        )


def seed(student_count: int, rng_seed: int):
    gen = DataGenerator(random.Random(rng_seed))

    professors = [gen.person("professor") for _ in range(2)]
    students = [gen.person("student") for _ in range(student_count)]
    courses = [Course(code=code, title=title) for code, title in COURSES]
    db.session.add_all(professors + students + courses)
    db.session.flush()

    classes = []
    for i, course in enumerate(courses):
        for j, professor in enumerate(professors):
            term = TERMS[(i + j) % 2]
            classes.append(
                Class(
                    course_id=course.id,
                    professor_id=professor.id,
                    title=f"{course.title} ({term})",
                    class_code=f"{course.code}-{term[:2].upper()}-{j + 1}",
                    term=term,
                    year=2025 - (i % 2),
                    section=f"0{j + 1}",
                )
            )
    db.session.add_all(classes)
    db.session.flush()

    start = datetime(2025, 1, 15)
    for class_obj in classes:
        roster = gen.rng.sample(students, k=min(len(students), 8))
        for student in roster:
            status = "dropped" if gen.rng.random() < 0.1 else "active"
            db.session.add(
                Enrollment(class_id=class_obj.id, student_id=student.id, status=status)
            )

        module = Module(
            class_id=class_obj.id, title="Week 1", order_index=0, is_published=True
        )
        db.session.add(module)
        db.session.flush()

        order = 0
        for a_type, prefix, max_points, count in ASSESSMENT_PLAN:
            for n in range(count):
                assessment = Assessment(
                    class_id=class_obj.id,
                    title=f"{prefix} {n + 1}",
                    type=a_type,
                    max_points=Decimal(max_points),
                    is_published=True,
                    due_at=start + timedelta(days=7 * order),
                    order_index=order,
                )
                db.session.add(assessment)
                db.session.flush()
                db.session.add(
                    ModuleItem(
                        module_id=module.id,
                        assessment_id=assessment.id,
                        title=assessment.title,
                        order_index=order,
                    )
                )
                for student in roster:
                    submission = gen.submission_for(assessment, student.id)
                    if submission is not None:
                        db.session.add(submission)
                order += 1

        # Reading material: visible in modules, never a gradebook column
        db.session.add(
            Assessment(
                class_id=class_obj.id,
                title="Syllabus",
                type="PAGE",
                include_in_gradebook=False,
                is_published=True,
                order_index=order,
            )
        )

    db.session.commit()
    logger.info(
        f"Seeded {len(professors)} professors, {len(students)} students, {len(classes)} classes"
    )


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed demo data")
    parser.add_argument("--students", type=int, default=12)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args(argv)

    app = create_app()
    if not init_database_with_app(app):
        logger.error("Database initialization failed; nothing seeded")
        return 1
    with app.app_context():
        seed(args.students, args.seed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
