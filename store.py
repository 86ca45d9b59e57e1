import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from models import ClassModel, StudentModel
from records import ClassGroup, Student

logger = logging.getLogger(__name__)


def _to_student(row):
    return Student(
        id=row.id,
        name=row.name,
        class_id=row.class_id,
        note1=row.note1 or 0.0,
        note2=row.note2 or 0.0,
        note3=row.note3 or 0.0,
    )


def _to_class(row):
    return ClassGroup(id=row.id, name=row.name)


class StudentStore:
    """Data store collaborator backed by a SQLAlchemy session.

    Lookups return None for "not found"; database errors are rolled back and
    re-raised for the caller to report.
    """

    def __init__(self, session):
        self.session = session

    def get_student(self, student_id):
        row = self.session.get(StudentModel, student_id)
        return _to_student(row) if row else None

    def get_class(self, class_id):
        if class_id is None:
            return None
        row = self.session.get(ClassModel, class_id)
        return _to_class(row) if row else None

    def list_classes(self):
        rows = self.session.query(ClassModel).order_by(ClassModel.name).all()
        return [_to_class(c) for c in rows]

    def list_students(self, class_id):
        rows = (self.session.query(StudentModel)
                .filter_by(class_id=class_id)
                .order_by(StudentModel.name)
                .all())
        return [_to_student(s) for s in rows]

    def save_student(self, student):
        """Write all fields of ``student`` and return the stored record.

        Returns None when the student row no longer exists.
        """
        saved = self.save_students([student])
        return saved[0] if saved else None

    def save_students(self, students):
        """Write several students in one transaction.

        Either every row is written or none is: returns None (after rolling
        back) when any student row no longer exists, and rolls back and
        re-raises on database errors.
        """
        rows = []
        try:
            for student in students:
                row = self._stage(student)
                if row is None:
                    self.session.rollback()
                    logger.warning("Student %s no longer exists, nothing saved", student.id)
                    return None
                rows.append(row)
        except Exception:
            self.session.rollback()
            raise
        self._commit()
        return [_to_student(row) for row in rows]

    def _stage(self, student):
        row = self.session.get(StudentModel, student.id) if student.id is not None else None
        if row is None:
            return None
        row.name = student.name
        row.class_id = student.class_id
        row.note1 = student.note1
        row.note2 = student.note2
        row.note3 = student.note3
        return row

    def create_class(self, name):
        """Get or create a class by name (case-insensitive)."""
        name = (name or "").strip()
        if not name:
            raise ValueError("Class name is required")
        row = self.session.query(ClassModel).filter(func.lower(ClassModel.name) == name.lower()).first()
        if not row:
            row = ClassModel(name=name)
            self.session.add(row)
            self._commit()
            logger.info("Created class %s", name)
        return _to_class(row)

    def add_students(self, class_id, names):
        """Add names to a class roster, skipping students already enrolled. Returns the count added."""
        names_added = 0
        for raw in names:
            name = str(raw).strip().title()
            if not name:
                continue
            if self.session.query(StudentModel).filter_by(class_id=class_id, name=name).first():
                continue
            self.session.add(StudentModel(class_id=class_id, name=name))
            # flush so a repeated name later in this batch is seen as enrolled
            self.session.flush()
            names_added += 1
        self._commit()
        return names_added

    def _commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Database commit failed")
            raise
