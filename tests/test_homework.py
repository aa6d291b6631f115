from datetime import date, datetime, timezone
import pytest
from schoolms.models.enums import SubmissionStatus
from schoolms.models.homework import Homework
from schoolms.models.academics import Subject
from schoolms.schemas.homework import SubmissionCreate, SubmissionGrade
from schoolms.services.homework import grade_submission, is_late_submission, submit_homework
from factories import make_student


async def _homework(db, allow_late=False, section=None) -> Homework:
    subject = Subject(name="Science", code="SCI", full_marks=100, pass_marks=35)
    db.add(subject)
    await db.flush()
    homework = Homework(
        title="Photosynthesis notes",
        class_name="10",
        section=section,
        subject_id=subject.id,
        due_date=date(2025, 6, 10),
        max_marks=20,
        allow_late_submission=allow_late,
        is_published=True,
    )
    db.add(homework)
    await db.commit()
    await db.refresh(homework)
    return homework


def test_lateness_uses_school_timezone():
    homework = Homework(due_date=date(2025, 6, 10))
    # 18:00 UTC is 23:45 in Kathmandu, still on the due date
    assert not is_late_submission(homework, datetime(2025, 6, 10, 18, 0, tzinfo=timezone.utc))
    # 18:30 UTC is 00:15 the next day in Kathmandu
    assert is_late_submission(homework, datetime(2025, 6, 10, 18, 30, tzinfo=timezone.utc))


async def test_late_submission_rejected_unless_allowed(db):
    homework = await _homework(db)
    student = await make_student(db, "REG-001")
    late = datetime(2025, 6, 12, 4, 0, tzinfo=timezone.utc)

    with pytest.raises(ValueError, match="late submissions are not allowed"):
        await submit_homework(db, homework.id, student, SubmissionCreate(submission_text="Done"), submitted_at=late)

    homework.allow_late_submission = True
    await db.commit()
    submission = await submit_homework(
        db, homework.id, student, SubmissionCreate(submission_text="Done"), submitted_at=late
    )
    assert submission.is_late


async def test_other_section_cannot_submit(db):
    homework = await _homework(db, section="A")
    student = await make_student(db, "REG-001", section="B")

    with pytest.raises(ValueError, match="not assigned"):
        await submit_homework(
            db, homework.id, student, SubmissionCreate(submission_text="Done"),
            submitted_at=datetime(2025, 6, 9, 4, 0, tzinfo=timezone.utc),
        )


async def test_empty_submission_rejected(db):
    homework = await _homework(db)
    student = await make_student(db, "REG-001")
    with pytest.raises(ValueError, match="text or a link"):
        await submit_homework(db, homework.id, student, SubmissionCreate())


async def test_resubmit_until_graded(db, admin):
    homework = await _homework(db)
    student = await make_student(db, "REG-001")
    on_time = datetime(2025, 6, 9, 4, 0, tzinfo=timezone.utc)

    first = await submit_homework(db, homework.id, student, SubmissionCreate(submission_text="Draft"), submitted_at=on_time)
    second = await submit_homework(db, homework.id, student, SubmissionCreate(submission_text="Final"), submitted_at=on_time)
    assert second.id == first.id
    assert second.submission_text == "Final"

    with pytest.raises(ValueError, match="maximum of 20"):
        await grade_submission(db, second.id, SubmissionGrade(marks=25), admin.id)

    graded = await grade_submission(db, second.id, SubmissionGrade(marks=18, remarks="Good"), admin.id)
    assert graded.status == SubmissionStatus.GRADED

    with pytest.raises(ValueError, match="already been graded"):
        await submit_homework(db, homework.id, student, SubmissionCreate(submission_text="Again"), submitted_at=on_time)
