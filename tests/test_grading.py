from decimal import Decimal
import pytest
from schoolms.services.grading import (
    GRADES,
    NON_GRADED,
    SubjectMark,
    assign_ranks,
    build_result,
    calculate_gpa,
    compute_exam_results,
    grade_for_marks,
    overall_grade,
    validate_marks,
)


def _subject(name, marks, grade_point, grade="B", credit_hours="4", full_marks=100):
    return SubjectMark(
        subject_name=name,
        marks=Decimal(str(marks)),
        full_marks=full_marks,
        grade=grade,
        grade_point=Decimal(grade_point),
        credit_hours=Decimal(credit_hours),
    )


@pytest.mark.parametrize(
    "marks, full_marks, grade, grade_point",
    [
        (100, 100, "A+", "4.0"),
        (90, 100, "A+", "4.0"),
        (89.99, 100, "A", "3.6"),
        (35, 50, "B+", "3.2"),
        (60, 100, "B", "2.8"),
        (40, 100, "C", "2.0"),
        (20, 100, "D", "1.2"),
        (19.5, 100, NON_GRADED, "0.0"),
        (0, 100, NON_GRADED, "0.0"),
    ],
)
def test_grade_bands(marks, full_marks, grade, grade_point):
    result = grade_for_marks(marks, full_marks)
    assert result.grade == grade
    assert result.grade_point == Decimal(grade_point)


def test_zero_full_marks_rejected():
    with pytest.raises(ValueError):
        grade_for_marks(10, 0)


def test_validate_marks_totals_theory_and_practical():
    assert validate_marks(Decimal("60"), Decimal("20"), 100) == Decimal("80")
    assert validate_marks(None, Decimal("20"), 100) == Decimal("20")
    assert validate_marks(None, None, 100) == Decimal("0")


def test_validate_marks_rejects_out_of_range():
    with pytest.raises(ValueError, match="negative"):
        validate_marks(Decimal("-1"), None, 100)
    with pytest.raises(ValueError, match="exceed"):
        validate_marks(Decimal("80"), Decimal("25"), 100)


def test_gpa_is_credit_weighted():
    subjects = [
        _subject("Math", 95, "4.0", credit_hours="4"),
        _subject("Computer", 45, "2.0", credit_hours="2"),
    ]
    assert calculate_gpa(subjects) == Decimal("3.33")


def test_gpa_without_credits_is_zero():
    assert calculate_gpa([]) == Decimal("0.00")


@pytest.mark.parametrize(
    "gpa, grade",
    [("4.0", "A+"), ("3.6", "A+"), ("3.59", "A"), ("2.0", "C+"), ("0.8", "D"), ("0.79", NON_GRADED)],
)
def test_overall_grade(gpa, grade):
    assert overall_grade(Decimal(gpa)) == grade


def test_build_result_totals_and_pass_state():
    result = build_result(
        1,
        "Sita",
        3,
        [_subject("Nepali", 80, "3.6", grade="A"), _subject("Science", 15, "0.0", grade=NON_GRADED)],
    )
    assert result.total_marks == Decimal("95")
    assert result.total_full_marks == 200
    assert result.percentage == Decimal("47.50")
    assert result.total_subjects == 2
    assert result.passed_subjects == 1
    assert not result.passed


def test_ranks_share_ties_and_skip():
    rows = [
        build_result(1, "Asha", 2, [_subject("Math", 95, "4.0", grade="A+")]),
        build_result(2, "Bikash", 1, [_subject("Math", 91, "4.0", grade="A+")]),
        build_result(3, "Chandra", 3, [_subject("Math", 75, "3.2", grade="B+")]),
    ]
    ranked = assign_ranks(rows)

    ranks = {r.student_id: r.rank for r in ranked}
    assert ranks == {1: 1, 2: 1, 3: 3}
    # Returned in roll number order
    assert [r.roll_number for r in ranked] == [1, 2, 3]


def test_students_without_marks_get_no_result():
    results = compute_exam_results([
        (1, "Asha", 1, [_subject("Math", 50, "2.4", grade="C+")]),
        (2, "Bikash", 2, []),
    ])
    assert [r.student_id for r in results] == [1]
    assert results[0].rank == 1


@pytest.mark.parametrize("full_marks", [25, 50, 75, 100, 150])
def test_grade_never_improves_as_marks_drop(full_marks):
    steps = full_marks * 4
    previous_rank = 0
    for step in range(steps, -1, -1):
        marks = Decimal(step) / 4
        result = grade_for_marks(marks, full_marks)
        assert result.grade in GRADES
        rank = GRADES.index(result.grade)
        assert rank >= previous_rank
        previous_rank = rank
    assert previous_rank == GRADES.index(NON_GRADED)
