import uuid
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

TERMS = ("Fall", "Spring", "Summer", "Winter")
ROLES = ("admin", "professor", "student")
ASSESSMENT_TYPES = ("INTERACTIVE_LESSON", "LAB", "EXAM", "QUIZ", "DISCUSSION", "PAGE")
SUBMISSION_STATUSES = ("NOT_SUBMITTED", "SUBMITTED", "GRADED", "LATE")
ENROLLMENT_ACTIVE = "active"


def generate_id():
    """Return a new 36-character UUID string primary key."""
    return str(uuid.uuid4())


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    email = db.Column(db.String(255), unique=True, nullable=False)
    full_name = db.Column(db.String(255), nullable=True)
    school_id = db.Column(db.String(50), nullable=True)
    role = db.Column(db.String(20), nullable=False)  # admin, professor, student
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())

    # Relationships
    professor_classes = db.relationship("Class", back_populates="professor")
    enrollments = db.relationship("Enrollment", back_populates="student")

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"

    @property
    def display_name(self):
        """Full name if set, otherwise the email address"""
        return self.full_name or self.email


class Course(db.Model):
    __tablename__ = "courses"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    code = db.Column(db.String(20), unique=True, nullable=False)  # e.g., "CS101"
    title = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())

    classes = db.relationship("Class", back_populates="course")

    def __repr__(self):
        return f"<Course {self.code}>"


class Class(db.Model):
    __tablename__ = "classes"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False)
    professor_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    class_code = db.Column(db.String(36), unique=True, nullable=False)
    term = db.Column(db.String(10), nullable=False)  # Fall, Spring, Summer, Winter
    year = db.Column(db.Integer, nullable=False)
    section = db.Column(db.String(10), nullable=False)  # e.g., "01", "2B"
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())

    # Relationships
    course = db.relationship("Course", back_populates="classes")
    professor = db.relationship("User", back_populates="professor_classes")
    enrollments = db.relationship(
        "Enrollment", back_populates="class_obj", cascade="all, delete-orphan"
    )
    assessments = db.relationship(
        "Assessment", back_populates="class_obj", cascade="all, delete-orphan"
    )
    modules = db.relationship(
        "Module", back_populates="class_obj", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.UniqueConstraint(
            "course_id",
            "professor_id",
            "term",
            "year",
            "section",
            name="unique_class_offering",
        ),
    )

    def __repr__(self):
        return f"<Class {self.class_code} {self.term} {self.year} {self.section}>"


class Enrollment(db.Model):
    """Student membership in a class"""

    __tablename__ = "enrollments"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    class_id = db.Column(db.String(36), db.ForeignKey("classes.id"), nullable=False)
    student_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    status = db.Column(
        db.String(20), nullable=False, default=ENROLLMENT_ACTIVE
    )  # active, dropped, ...
    joined_at = db.Column(db.DateTime, default=db.func.current_timestamp())

    class_obj = db.relationship("Class", back_populates="enrollments")
    student = db.relationship("User", back_populates="enrollments")

    __table_args__ = (
        db.UniqueConstraint("class_id", "student_id", name="unique_class_student"),
    )

    def __repr__(self):
        return f"<Enrollment student:{self.student_id} class:{self.class_id} ({self.status})>"


class Assessment(db.Model):
    __tablename__ = "assessments"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    class_id = db.Column(db.String(36), db.ForeignKey("classes.id"), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(30), nullable=False)  # LAB, QUIZ, EXAM, ...
    max_points = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    include_in_gradebook = db.Column(db.Boolean, nullable=False, default=True)
    is_published = db.Column(db.Boolean, nullable=False, default=False)
    due_at = db.Column(db.DateTime, nullable=True)
    order_index = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())

    class_obj = db.relationship("Class", back_populates="assessments")

    submissions = db.relationship(
        "Submission", back_populates="assessment", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Assessment {self.title} ({self.max_points} pts)>"


class Submission(db.Model):
    __tablename__ = "submissions"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    assessment_id = db.Column(
        db.String(36), db.ForeignKey("assessments.id"), nullable=False
    )
    student_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    # Owning class, copied from the assessment so a class can be read in one pass
    class_id = db.Column(db.String(36), db.ForeignKey("classes.id"), nullable=False)
    total_score = db.Column(db.Numeric(10, 2), nullable=True)
    status = db.Column(
        db.String(20), nullable=False, default="SUBMITTED"
    )  # NOT_SUBMITTED, SUBMITTED, GRADED, LATE
    is_late = db.Column(db.Boolean, nullable=False, default=False)
    feedback = db.Column(db.Text, nullable=True)
    submitted_at = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(
        db.DateTime,
        default=db.func.current_timestamp(),
        onupdate=db.func.current_timestamp(),
    )

    assessment = db.relationship("Assessment", back_populates="submissions")
    student = db.relationship("User")

    __table_args__ = (
        db.UniqueConstraint(
            "assessment_id", "student_id", name="unique_assessment_student"
        ),
    )

    def __repr__(self):
        return f"<Submission assessment:{self.assessment_id} student:{self.student_id} {self.status}>"


class Module(db.Model):
    __tablename__ = "modules"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    class_id = db.Column(db.String(36), db.ForeignKey("classes.id"), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    order_index = db.Column(db.Integer, nullable=False, default=0)
    is_published = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())

    class_obj = db.relationship("Class", back_populates="modules")

    items = db.relationship(
        "ModuleItem", back_populates="module", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Module {self.title}>"


class ModuleItem(db.Model):
    __tablename__ = "module_items"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    module_id = db.Column(db.String(36), db.ForeignKey("modules.id"), nullable=False)
    assessment_id = db.Column(
        db.String(36), db.ForeignKey("assessments.id"), nullable=True
    )
    title = db.Column(db.String(255), nullable=False)
    order_index = db.Column(db.Integer, nullable=False, default=0)
    is_published = db.Column(db.Boolean, nullable=False, default=True)

    module = db.relationship("Module", back_populates="items")
    assessment = db.relationship("Assessment")

    def __repr__(self):
        return f"<ModuleItem {self.title}>"
