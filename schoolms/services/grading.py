"""
NEB (National Examination Board) grading.

Single source of truth for converting marks to letter grades and grade points,
and for aggregating per-subject marks into an exam result with GPA and rank.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

DEFAULT_CREDIT_HOURS = Decimal("4")
NON_GRADED = "NG"

# (minimum percentage, grade, grade point), highest band first
NEB_GRADE_BANDS: list[tuple[int, str, Decimal]] = [
    (90, "A+", Decimal("4.0")),
    (80, "A", Decimal("3.6")),
    (70, "B+", Decimal("3.2")),
    (60, "B", Decimal("2.8")),
    (50, "C+", Decimal("2.4")),
    (40, "C", Decimal("2.0")),
    (30, "D+", Decimal("1.6")),
    (20, "D", Decimal("1.2")),
    (0, NON_GRADED, Decimal("0.0")),
]

# (minimum GPA, overall grade), highest band first
GPA_GRADE_BANDS: list[tuple[Decimal, str]] = [
    (Decimal("3.6"), "A+"),
    (Decimal("3.2"), "A"),
    (Decimal("2.8"), "B+"),
    (Decimal("2.4"), "B"),
    (Decimal("2.0"), "C+"),
    (Decimal("1.6"), "C"),
    (Decimal("1.2"), "D+"),
    (Decimal("0.8"), "D"),
]

GRADES = [grade for _, grade, _ in NEB_GRADE_BANDS]

_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class GradeResult:
    grade: str
    grade_point: Decimal


def _round2(value: Decimal) -> Decimal:
    return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def percentage_of(marks: Decimal | float | int, full_marks: Decimal | float | int) -> Decimal:
    full = Decimal(str(full_marks))
    if full <= 0:
        raise ValueError("Full marks must be greater than zero")
    return Decimal(str(marks)) / full * 100


def grade_for_marks(marks: Decimal | float | int, full_marks: Decimal | float | int) -> GradeResult:
    """Map obtained marks out of full marks to an NEB grade and grade point."""
    percentage = percentage_of(marks, full_marks)
    for minimum, grade, grade_point in NEB_GRADE_BANDS:
        if percentage >= minimum:
            return GradeResult(grade=grade, grade_point=grade_point)
    # Negative marks fall below every band
    return GradeResult(grade=NON_GRADED, grade_point=Decimal("0.0"))


def overall_grade(gpa: Decimal | float) -> str:
    gpa = Decimal(str(gpa))
    for minimum, grade in GPA_GRADE_BANDS:
        if gpa >= minimum:
            return grade
    return NON_GRADED


def validate_marks(
    theory_marks: Optional[Decimal],
    practical_marks: Optional[Decimal],
    full_marks: int,
) -> Decimal:
    """Return the total of theory and practical marks, rejecting out-of-range values."""
    for label, value in (("Theory", theory_marks), ("Practical", practical_marks)):
        if value is not None and value < 0:
            raise ValueError(f"{label} marks cannot be negative")

    total = (theory_marks or Decimal("0")) + (practical_marks or Decimal("0"))
    if total > full_marks:
        raise ValueError(f"Total marks {total} exceed full marks {full_marks}")
    return total


@dataclass
class SubjectMark:
    subject_name: str
    marks: Decimal
    full_marks: int
    grade: str
    grade_point: Decimal
    credit_hours: Decimal = DEFAULT_CREDIT_HOURS


@dataclass
class ExamResultRow:
    student_id: int
    student_name: str
    roll_number: Optional[int]
    total_marks: Decimal
    total_full_marks: int
    percentage: Decimal
    gpa: Decimal
    grade: str
    subjects: list[SubjectMark] = field(default_factory=list)
    rank: Optional[int] = None

    @property
    def total_subjects(self) -> int:
        return len(self.subjects)

    @property
    def passed_subjects(self) -> int:
        return sum(1 for s in self.subjects if s.grade != NON_GRADED)

    @property
    def passed(self) -> bool:
        return all(s.grade != NON_GRADED for s in self.subjects)


def calculate_gpa(subjects: Iterable[SubjectMark]) -> Decimal:
    weighted = Decimal("0")
    credits = Decimal("0")
    for subject in subjects:
        weighted += subject.grade_point * subject.credit_hours
        credits += subject.credit_hours
    if credits == 0:
        return Decimal("0.00")
    return _round2(weighted / credits)


def build_result(
    student_id: int,
    student_name: str,
    roll_number: Optional[int],
    subjects: list[SubjectMark],
) -> ExamResultRow:
    total_marks = sum((s.marks for s in subjects), Decimal("0"))
    total_full_marks = sum(s.full_marks for s in subjects)
    percentage = _round2(total_marks / total_full_marks * 100) if total_full_marks > 0 else Decimal("0.00")
    gpa = calculate_gpa(subjects)

    return ExamResultRow(
        student_id=student_id,
        student_name=student_name,
        roll_number=roll_number,
        total_marks=total_marks,
        total_full_marks=total_full_marks,
        percentage=percentage,
        gpa=gpa,
        grade=overall_grade(gpa),
        subjects=subjects,
    )


def assign_ranks(results: list[ExamResultRow]) -> list[ExamResultRow]:
    """
    Rank by GPA descending. Students sharing a GPA share a rank and the next
    rank skips accordingly (1, 1, 3).

    Returns the results ordered by roll number, students without a roll number last.
    """
    by_gpa = sorted(results, key=lambda r: r.gpa, reverse=True)
    previous_gpa = None
    previous_rank = 0
    for position, result in enumerate(by_gpa, start=1):
        if result.gpa != previous_gpa:
            previous_rank = position
            previous_gpa = result.gpa
        result.rank = previous_rank

    return sorted(results, key=lambda r: (r.roll_number is None, r.roll_number or 0, r.student_name))


def compute_exam_results(
    students: Iterable[tuple[int, str, Optional[int], list[SubjectMark]]],
) -> list[ExamResultRow]:
    """Build and rank results for (student_id, name, roll_number, subjects) rows with at least one subject."""
    results = [
        build_result(student_id, name, roll_number, subjects)
        for student_id, name, roll_number, subjects in students
        if subjects
    ]
    return assign_ranks(results)
