import logging
from collections import Counter, defaultdict
from decimal import Decimal
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from schoolms.models.academics import Exam, ExamMark, StudentResult, Subject
from schoolms.models.people import Student
from schoolms.models.enums import ResultStatus
from schoolms.schemas.academics import (
    BulkMarksEntry,
    ExamAnalytics,
    StudentResultDetail,
    StudentResultRead,
    SubjectResult,
)
from schoolms.services.activity import record_activity
from schoolms.services.grading import (
    DEFAULT_CREDIT_HOURS,
    GRADES,
    NON_GRADED,
    SubjectMark,
    compute_exam_results,
    grade_for_marks,
    validate_marks,
)

logger = logging.getLogger(__name__)


def _decimal(value) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


async def get_exam(db: AsyncSession, exam_id: int) -> Exam:
    result = await db.execute(select(Exam).where(Exam.id == exam_id))
    exam = result.scalar_one_or_none()
    if not exam:
        raise ValueError(f"Exam with ID {exam_id} not found")
    return exam


async def save_marks(db: AsyncSession, exam_id: int, data: BulkMarksEntry, user_id: int) -> list[ExamMark]:
    """Insert or update marks of one subject for the listed students."""
    student_ids = [entry.student_id for entry in data.marks]
    if len(set(student_ids)) != len(student_ids):
        raise ValueError("Each student may appear only once per marks sheet")

    exam = await get_exam(db, exam_id)

    subject_result = await db.execute(select(Subject).where(Subject.id == data.subject_id))
    subject = subject_result.scalar_one_or_none()
    if not subject:
        raise ValueError(f"Subject with ID {data.subject_id} not found")

    student_result = await db.execute(select(Student.id).where(Student.id.in_(student_ids)))
    missing = set(student_ids) - set(student_result.scalars().all())
    if missing:
        raise ValueError(f"Students not found: {sorted(missing)}")

    existing_result = await db.execute(
        select(ExamMark).where(
            and_(
                ExamMark.exam_id == exam.id,
                ExamMark.subject_id == subject.id,
                ExamMark.student_id.in_(student_ids),
            )
        )
    )
    existing = {m.student_id: m for m in existing_result.scalars().all()}

    saved = []
    for entry in data.marks:
        theory = _decimal(entry.theory_marks)
        practical = _decimal(entry.practical_marks)
        try:
            total = validate_marks(theory, practical, subject.full_marks)
        except ValueError as e:
            raise ValueError(f"Student {entry.student_id}: {e}")
        graded = grade_for_marks(total, subject.full_marks)

        mark = existing.get(entry.student_id)
        if mark is None:
            mark = ExamMark(exam_id=exam.id, subject_id=subject.id, student_id=entry.student_id)
            db.add(mark)

        mark.theory_marks = theory
        mark.practical_marks = practical
        mark.total_marks = total
        mark.grade = graded.grade
        mark.grade_point = graded.grade_point
        mark.remarks = entry.remarks
        mark.entered_by_user_id = user_id
        saved.append(mark)

    record_activity(
        db, user_id, "enter_marks", "exam", exam.id, {"subject_id": subject.id, "count": len(saved)}
    )
    await db.commit()
    for mark in saved:
        await db.refresh(mark)

    logger.info(f"Saved {len(saved)} mark(s) for exam {exam.id}, subject {subject.code}")
    return saved


async def calculate_results(db: AsyncSession, exam_id: int, user_id: int) -> list[StudentResultRead]:
    """Aggregate entered marks into one ranked result per student and store them."""
    exam = await get_exam(db, exam_id)

    marks_result = await db.execute(
        select(ExamMark, Subject, Student)
        .join(Subject, ExamMark.subject_id == Subject.id)
        .join(Student, ExamMark.student_id == Student.id)
        .where(ExamMark.exam_id == exam.id)
        .order_by(Subject.display_order, Subject.id)
    )
    rows = marks_result.all()
    if not rows:
        raise ValueError("No marks have been entered for this exam")

    students: dict[int, Student] = {}
    subjects_by_student: dict[int, list[SubjectMark]] = defaultdict(list)
    for mark, subject, student in rows:
        students[student.id] = student
        subjects_by_student[student.id].append(SubjectMark(
            subject_name=subject.name,
            marks=mark.total_marks or Decimal("0"),
            full_marks=subject.full_marks,
            grade=mark.grade,
            grade_point=mark.grade_point or Decimal("0"),
            credit_hours=subject.credit_hours or DEFAULT_CREDIT_HOURS,
        ))

    computed = compute_exam_results(
        (s.id, s.full_name, s.roll_number, subjects_by_student[s.id]) for s in students.values()
    )

    existing_result = await db.execute(select(StudentResult).where(StudentResult.exam_id == exam.id))
    existing = {r.student_id: r for r in existing_result.scalars().all()}

    stored = []
    for row in computed:
        result = existing.get(row.student_id)
        if result is None:
            result = StudentResult(exam_id=exam.id, student_id=row.student_id)
            db.add(result)
        result.total_marks = row.total_marks
        result.total_full_marks = row.total_full_marks
        result.percentage = row.percentage
        result.gpa = row.gpa
        result.grade = row.grade
        result.rank = row.rank
        result.total_subjects = row.total_subjects
        result.passed_subjects = row.passed_subjects
        result.result_status = ResultStatus.PASS if row.passed else ResultStatus.FAIL
        stored.append((result, row))

    record_activity(db, user_id, "calculate_results", "exam", exam.id, {"students": len(stored)})
    await db.commit()

    response = []
    for result, row in stored:
        await db.refresh(result)
        read = StudentResultRead.model_validate(result)
        read.student_name = row.student_name
        read.roll_number = row.roll_number
        response.append(read)

    logger.info(f"Calculated results for exam {exam.id}: {len(response)} student(s)")
    return response


async def list_results(db: AsyncSession, exam_id: int) -> list[StudentResultRead]:
    result = await db.execute(
        select(StudentResult, Student)
        .join(Student, StudentResult.student_id == Student.id)
        .where(StudentResult.exam_id == exam_id)
    )
    rows = []
    for student_result, student in result.all():
        read = StudentResultRead.model_validate(student_result)
        read.student_name = student.full_name
        read.roll_number = student.roll_number
        rows.append(read)
    return sorted(rows, key=lambda r: (r.roll_number is None, r.roll_number or 0, r.student_name or ""))


def build_analytics(exam_id: int, results: list[StudentResultRead]) -> ExamAnalytics:
    distribution = {grade: 0 for grade in GRADES}
    distribution.update(Counter(r.grade for r in results))
    pass_count = sum(1 for r in results if r.result_status == ResultStatus.PASS)
    average_gpa = round(sum(r.gpa for r in results) / len(results), 2) if results else 0.0
    top = sorted(results, key=lambda r: (r.rank or len(results) + 1, -r.gpa))

    return ExamAnalytics(
        exam_id=exam_id,
        total_students=len(results),
        average_gpa=average_gpa,
        pass_count=pass_count,
        fail_count=len(results) - pass_count,
        grade_distribution=distribution,
        top_performer=top[0] if top else None,
    )


async def result_detail(db: AsyncSession, exam: Exam, student: Student) -> StudentResultDetail:
    result = await db.execute(
        select(StudentResult).where(
            and_(StudentResult.exam_id == exam.id, StudentResult.student_id == student.id)
        )
    )
    student_result = result.scalar_one_or_none()
    if not student_result:
        raise ValueError("Result has not been calculated for this student")

    marks_result = await db.execute(
        select(ExamMark, Subject)
        .join(Subject, ExamMark.subject_id == Subject.id)
        .where(and_(ExamMark.exam_id == exam.id, ExamMark.student_id == student.id))
        .order_by(Subject.display_order, Subject.id)
    )
    subjects = [
        SubjectResult(
            subject_name=subject.name,
            marks=float(mark.total_marks or 0),
            full_marks=subject.full_marks,
            grade=mark.grade or NON_GRADED,
            grade_point=float(mark.grade_point or 0),
        )
        for mark, subject in marks_result.all()
    ]

    data = StudentResultRead.model_validate(student_result).model_dump()
    data.update(student_name=student.full_name, roll_number=student.roll_number)
    return StudentResultDetail(**data, exam_title=exam.title, subjects=subjects)
