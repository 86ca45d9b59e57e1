"""Student profile workflow: derived average, partial edits, save, and
matching grades read off a sheet back onto the class roster."""
import dataclasses
import logging

from thefuzz import fuzz, process

from errors import InvalidStudent, SaveFailed
from parsers import to_number
from records import (
    GradeReconciliation,
    Profile,
    UNASSIGNED_CLASS_LABEL,
    UnmatchedGrade,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "class_id", "note1", "note2", "note3")
NOTE_FIELDS = ("note1", "note2", "note3")

MATCH_THRESHOLD = 85
AMBIGUITY_MARGIN = 5


def compute_average(student):
    total = sum(to_number(n) for n in student.notes)
    return round(total / 3, 2)


def format_average(student):
    return "{:.2f}".format(compute_average(student))


def class_label(class_group):
    if class_group is None or not class_group.name:
        return UNASSIGNED_CLASS_LABEL
    return class_group.name


def load_profile(store, student_id):
    """Fetch a student and its class. None when the student does not exist;
    a dangling class_id just gives an unassigned profile."""
    student = store.get_student(student_id)
    if student is None:
        return None
    class_group = store.get_class(student.class_id) if student.class_id is not None else None
    if student.class_id is not None and class_group is None:
        logger.info("Student %s references unknown class %s", student.id, student.class_id)
    return Profile(student=student, class_group=class_group)


def _class_id(value):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidStudent("class_id must be an integer, got {!r}".format(value))


def merge_edits(student, edits):
    """Return a copy of ``student`` with the known fields from ``edits`` applied."""
    changes = {}
    for key in EDITABLE_FIELDS:
        if key not in edits:
            continue
        value = edits[key]
        if key in NOTE_FIELDS:
            value = to_number(value)
        elif key == "name":
            value = "" if value is None else str(value)
        elif key == "class_id":
            value = _class_id(value)
        changes[key] = value
    return dataclasses.replace(student, **changes)


def save(store, student):
    """Persist ``student`` and return the canonical stored record.

    Raises SaveFailed (InvalidStudent for a blank name) and never mutates the
    object it was given.
    """
    candidate = _normalized(student)
    try:
        updated = store.save_student(candidate)
    except Exception as e:
        logger.error("Failed to save student %s: %s", student.id, e)
        raise SaveFailed("Failed to save changes.") from e
    if updated is None:
        logger.error("Failed to save student %s: store returned nothing", student.id)
        raise SaveFailed("Failed to save changes.")
    return updated


def save_all(store, students):
    """Persist several students at once; all of them are written or none is.

    Same validation and failure signalling as ``save``.
    """
    candidates = [_normalized(s) for s in students]
    if not candidates:
        return []
    try:
        updated = store.save_students(candidates)
    except Exception as e:
        logger.error("Failed to save %d students: %s", len(candidates), e)
        raise SaveFailed("Failed to save changes. No grades were written.") from e
    if updated is None:
        logger.error("Failed to save %d students: store returned nothing", len(candidates))
        raise SaveFailed("Failed to save changes. No grades were written.")
    return updated


def _normalized(student):
    name = (student.name or "").strip()
    if not name:
        raise InvalidStudent("Student name is required.")
    return dataclasses.replace(
        student,
        name=name,
        note1=to_number(student.note1),
        note2=to_number(student.note2),
        note3=to_number(student.note3),
    )


def _match_roster_name(name, roster_names):
    """Return (matched_name, suggestions). matched_name is None when unsure."""
    lowered = {n.lower(): n for n in roster_names}
    if name.lower() in lowered:
        return lowered[name.lower()], []

    best_matches = process.extract(name, roster_names, scorer=fuzz.token_set_ratio, limit=3)
    if best_matches and best_matches[0][1] >= MATCH_THRESHOLD:
        # Only auto-correct when the top match is clearly ahead of the runner-up
        if len(best_matches) == 1 or best_matches[0][1] > best_matches[1][1] + AMBIGUITY_MARGIN:
            return best_matches[0][0], []
    return None, [(m[0], m[1]) for m in best_matches]


def reconcile_grades(roster, records):
    """Apply extracted grade records to the matching roster students.

    Returns the updated (unsaved) students and the records that could not be
    pinned to a single student, each with its closest roster suggestions.
    """
    result = GradeReconciliation()
    by_name = {}
    for student in roster:
        by_name.setdefault(student.name.lower(), []).append(student)
    roster_names = [students[0].name for students in by_name.values()]

    # keyed by student id; a later row for the same student wins
    updated = {}
    for record in records:
        matched, suggestions = (None, [])
        if roster_names:
            matched, suggestions = _match_roster_name(record.name, roster_names)
        if matched is None:
            result.unmatched.append(UnmatchedGrade(record=record, suggestions=suggestions))
            continue

        candidates = by_name[matched.lower()]
        if len(candidates) > 1:
            logger.warning("Grade row %r matches %d students named %s; not applied",
                           record.name, len(candidates), matched)
            result.unmatched.append(UnmatchedGrade(
                record=record,
                suggestions=[(s.name, 100) for s in candidates],
                candidate_ids=[s.id for s in candidates],
            ))
            continue

        student = candidates[0]
        updated[student.id] = merge_edits(student, {
            "note1": record.note1,
            "note2": record.note2,
            "note3": record.note3,
        })
    result.updated = list(updated.values())
    return result
