import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from schoolms.models.homework import Homework, HomeworkSubmission
from schoolms.models.people import Student
from schoolms.models.enums import SubmissionStatus
from schoolms.models.base import utcnow
from schoolms.schemas.homework import SubmissionCreate, SubmissionGrade
from schoolms.services.activity import record_activity
from schoolms.utils.school_time import school_date

logger = logging.getLogger(__name__)


def is_late_submission(homework: Homework, submitted_at: datetime) -> bool:
    """A submission is late when it arrives after the due date in the school's timezone."""
    return school_date(submitted_at) > homework.due_date


async def submit_homework(
    db: AsyncSession,
    homework_id: int,
    student: Student,
    data: SubmissionCreate,
    submitted_at: Optional[datetime] = None,
) -> HomeworkSubmission:
    """Create the student's submission or replace it while it is still ungraded."""
    if not data.submission_text and not data.submission_url:
        raise ValueError("Submission must include text or a link")

    result = await db.execute(select(Homework).where(Homework.id == homework_id))
    homework = result.scalar_one_or_none()
    if not homework or not homework.is_published:
        raise ValueError(f"Homework with ID {homework_id} not found")
    if homework.class_name != student.class_name or (homework.section and homework.section != student.section):
        raise ValueError("This homework is not assigned to the student's class")

    submitted_at = submitted_at or utcnow()
    late = is_late_submission(homework, submitted_at)
    if late and not homework.allow_late_submission:
        raise ValueError("The due date has passed and late submissions are not allowed")

    existing_result = await db.execute(
        select(HomeworkSubmission).where(
            and_(HomeworkSubmission.homework_id == homework.id, HomeworkSubmission.student_id == student.id)
        )
    )
    submission = existing_result.scalar_one_or_none()
    if submission and submission.status == SubmissionStatus.GRADED:
        raise ValueError("Submission has already been graded")

    if submission is None:
        submission = HomeworkSubmission(homework_id=homework.id, student_id=student.id)
        db.add(submission)

    submission.submission_text = data.submission_text
    submission.submission_url = data.submission_url
    submission.submitted_at = submitted_at
    submission.is_late = late
    submission.status = SubmissionStatus.SUBMITTED

    await db.commit()
    await db.refresh(submission)
    logger.info(f"Student {student.id} submitted homework {homework.id}{' (late)' if late else ''}")
    return submission


async def grade_submission(
    db: AsyncSession, submission_id: int, data: SubmissionGrade, user_id: int
) -> HomeworkSubmission:
    result = await db.execute(select(HomeworkSubmission).where(HomeworkSubmission.id == submission_id))
    submission = result.scalar_one_or_none()
    if not submission:
        raise ValueError(f"Submission with ID {submission_id} not found")

    homework_result = await db.execute(select(Homework).where(Homework.id == submission.homework_id))
    homework = homework_result.scalar_one()
    if data.marks > homework.max_marks:
        raise ValueError(f"Marks cannot exceed the maximum of {homework.max_marks}")

    submission.marks = Decimal(str(data.marks))
    submission.remarks = data.remarks
    submission.status = SubmissionStatus.GRADED
    submission.graded_at = utcnow()
    submission.graded_by_user_id = user_id
    record_activity(db, user_id, "grade", "homework_submission", submission.id, {"marks": data.marks})
    await db.commit()
    await db.refresh(submission)
    return submission
