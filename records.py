from dataclasses import dataclass, field, asdict
from typing import List, Optional, Tuple


UNASSIGNED_CLASS_LABEL = "Unassigned Class"


@dataclass(frozen=True)
class Student:
    id: Optional[int]
    name: str
    class_id: Optional[int] = None
    note1: float = 0.0
    note2: float = 0.0
    note3: float = 0.0

    @property
    def notes(self):
        return (self.note1, self.note2, self.note3)

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class ClassGroup:
    id: int
    name: str

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class ExtractedGradeRecord:
    """One row read off a grade sheet: a name and the three term scores."""
    name: str
    note1: float = 0.0
    note2: float = 0.0
    note3: float = 0.0

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class Profile:
    student: Student
    class_group: Optional[ClassGroup] = None

    @property
    def class_label(self):
        if self.class_group and self.class_group.name:
            return self.class_group.name
        return UNASSIGNED_CLASS_LABEL


@dataclass
class UnmatchedGrade:
    record: ExtractedGradeRecord
    suggestions: List[Tuple[str, int]] = field(default_factory=list)
    # set when several roster students share the matched name
    candidate_ids: List[int] = field(default_factory=list)

    def to_dict(self):
        return {
            "record": self.record.to_dict(),
            "fuzzy_matches": [[name, score] for name, score in self.suggestions],
            "candidate_ids": list(self.candidate_ids),
        }


@dataclass
class GradeReconciliation:
    updated: List[Student] = field(default_factory=list)
    unmatched: List[UnmatchedGrade] = field(default_factory=list)
