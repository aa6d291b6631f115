"""
Self-service endpoints for students and parents.

A user sees the student linked to their own account and, when the account
belongs to a parent, every child linked to that parent. No permission codes
are involved: access follows the account links only.
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy import select, and_
from schoolms.models.academics import Exam, StudentResult
from schoolms.models.finance import StudentFee, FeePayment, PaymentVerificationRequest
from schoolms.models.homework import Homework, HomeworkSubmission
from schoolms.models.library import BookIssue, LibraryFine
from schoolms.models.people import Student
from schoolms.models.enums import FineStatus, PaymentStatus
from schoolms.schemas.academics import StudentResultDetail
from schoolms.schemas.attendance import AttendanceStats
from schoolms.schemas.finance import StudentFeeRead, FeePaymentRead, PaymentRequestRead, PaymentRequestCreate
from schoolms.schemas.homework import HomeworkWithSubmission, SubmissionRead, SubmissionCreate
from schoolms.schemas.library import BookIssueRead, LibraryFineRead
from schoolms.schemas.notice import NoticeRead
from schoolms.schemas.portal import PortalFees, PortalLibrary
from schoolms.schemas.student import StudentRead
from schoolms.schemas.common import DataResponse
from schoolms.deps import CurrentUser, DbSession, LinkedStudents, StudentAccount, get_current_user
from schoolms.services.attendance import student_attendance_stats
from schoolms.services.exams import result_detail
from schoolms.services.fees import submit_payment_request
from schoolms.services.homework import submit_homework
from schoolms.services.notices import active_notices
from schoolms.utils.school_time import school_today
from schoolms.utils.grade_sheet_pdf import generate_grade_sheet

router = APIRouter(prefix="/portal", tags=["Portal"])

OPEN_INVOICE_STATUSES = [PaymentStatus.PENDING, PaymentStatus.PARTIAL, PaymentStatus.OVERDUE]


def _student_for(students: list[Student], student_id: int) -> Student:
    for student in students:
        if student.id == student_id:
            return student
    raise HTTPException(status_code=404, detail="Student not found")


async def _published_exam(db: DbSession, exam_id: int) -> Exam:
    result = await db.execute(select(Exam).where(and_(Exam.id == exam_id, Exam.is_published.is_(True))))
    exam = result.scalar_one_or_none()
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    return exam


@router.get("/students", response_model=DataResponse[list[StudentRead]])
async def get_my_students(students: LinkedStudents):
    return DataResponse(data=[StudentRead.model_validate(s) for s in students])


@router.get("/students/{student_id}", response_model=DataResponse[StudentRead])
async def get_profile(student_id: int, students: LinkedStudents):
    return DataResponse(data=StudentRead.model_validate(_student_for(students, student_id)))


@router.get("/students/{student_id}/fees", response_model=DataResponse[PortalFees])
async def get_fees(student_id: int, students: LinkedStudents, db: DbSession):
    student = _student_for(students, student_id)

    invoice_result = await db.execute(
        select(StudentFee).where(StudentFee.student_id == student.id).order_by(StudentFee.due_date.desc())
    )
    invoices = invoice_result.scalars().all()
    payment_result = await db.execute(
        select(FeePayment).where(FeePayment.student_id == student.id).order_by(FeePayment.paid_at.desc())
    )

    return DataResponse(data=PortalFees(
        invoices=[StudentFeeRead.model_validate(i) for i in invoices],
        payments=[FeePaymentRead.model_validate(p) for p in payment_result.scalars().all()],
        total_balance=float(sum(i.balance for i in invoices if i.status in OPEN_INVOICE_STATUSES)),
    ))


@router.get("/students/{student_id}/payment-requests", response_model=DataResponse[list[PaymentRequestRead]])
async def get_payment_requests(student_id: int, students: LinkedStudents, db: DbSession):
    student = _student_for(students, student_id)
    result = await db.execute(
        select(PaymentVerificationRequest)
        .where(PaymentVerificationRequest.student_id == student.id)
        .order_by(PaymentVerificationRequest.created_at.desc(), PaymentVerificationRequest.id.desc())
    )
    return DataResponse(data=[PaymentRequestRead.model_validate(r) for r in result.scalars().all()])


@router.post("/students/{student_id}/payment-requests", response_model=DataResponse[PaymentRequestRead])
async def submit_payment(
    student_id: int, data: PaymentRequestCreate, students: LinkedStudents, user: CurrentUser, db: DbSession
):
    """Students and parents report an online payment; it counts once the accounts office approves it."""
    student = _student_for(students, student_id)
    try:
        request = await submit_payment_request(db, student, data, user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return DataResponse(data=PaymentRequestRead.model_validate(request))


@router.get("/students/{student_id}/results", response_model=DataResponse[list[StudentResultDetail]])
async def get_results(student_id: int, students: LinkedStudents, db: DbSession):
    """Results of published exams only"""
    student = _student_for(students, student_id)

    exam_result = await db.execute(
        select(Exam)
        .join(StudentResult, StudentResult.exam_id == Exam.id)
        .where(and_(StudentResult.student_id == student.id, Exam.is_published.is_(True)))
        .order_by(Exam.start_date.desc(), Exam.id.desc())
    )
    return DataResponse(data=[await result_detail(db, exam, student) for exam in exam_result.scalars().all()])


@router.get("/students/{student_id}/results/{exam_id}/grade-sheet")
async def download_grade_sheet(student_id: int, exam_id: int, students: LinkedStudents, db: DbSession):
    student = _student_for(students, student_id)
    exam = await _published_exam(db, exam_id)
    try:
        detail = await result_detail(db, exam, student)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    pdf = generate_grade_sheet(detail, student.class_name, student.section, student.registration_number)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=grade_sheet_{student.registration_number}_{exam.id}.pdf"},
    )


@router.get("/students/{student_id}/attendance", response_model=DataResponse[AttendanceStats])
async def get_attendance(
    student_id: int,
    students: LinkedStudents,
    db: DbSession,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
):
    student = _student_for(students, student_id)
    to_date = to_date or school_today()
    from_date = from_date or to_date.replace(day=1)
    if from_date > to_date:
        raise HTTPException(status_code=400, detail="from_date cannot be after to_date")
    return DataResponse(data=await student_attendance_stats(db, student.id, from_date, to_date))


@router.get("/students/{student_id}/library", response_model=DataResponse[PortalLibrary])
async def get_library(student_id: int, students: LinkedStudents, db: DbSession):
    student = _student_for(students, student_id)

    issue_result = await db.execute(
        select(BookIssue).where(BookIssue.student_id == student.id).order_by(BookIssue.issue_date.desc())
    )
    fine_result = await db.execute(
        select(LibraryFine).where(LibraryFine.student_id == student.id).order_by(LibraryFine.created_at.desc())
    )
    fines = fine_result.scalars().all()

    return DataResponse(data=PortalLibrary(
        issues=[BookIssueRead.model_validate(i) for i in issue_result.scalars().all()],
        fines=[LibraryFineRead.model_validate(f) for f in fines],
        outstanding_fines=float(sum(f.fine_amount - f.paid_amount for f in fines if f.status == FineStatus.PENDING)),
    ))


@router.get("/students/{student_id}/homework", response_model=DataResponse[list[HomeworkWithSubmission]])
async def get_homework(student_id: int, students: LinkedStudents, db: DbSession):
    student = _student_for(students, student_id)

    conditions = [Homework.class_name == student.class_name, Homework.is_published.is_(True)]
    homework_result = await db.execute(
        select(Homework).where(and_(*conditions)).order_by(Homework.due_date.desc())
    )
    # Section-less homework is for the whole class
    items = [h for h in homework_result.scalars().all() if not h.section or h.section == student.section]

    submission_result = await db.execute(
        select(HomeworkSubmission).where(
            and_(
                HomeworkSubmission.student_id == student.id,
                HomeworkSubmission.homework_id.in_([h.id for h in items]),
            )
        )
    )
    submissions = {s.homework_id: s for s in submission_result.scalars().all()}

    data = []
    for homework in items:
        row = HomeworkWithSubmission.model_validate(homework)
        submission = submissions.get(homework.id)
        row.submission = SubmissionRead.model_validate(submission) if submission else None
        data.append(row)
    return DataResponse(data=data)


@router.post("/homework/{homework_id}/submit", response_model=DataResponse[SubmissionRead])
async def submit(homework_id: int, data: SubmissionCreate, student: StudentAccount, db: DbSession):
    """Only the student's own account may submit"""
    try:
        submission = await submit_homework(db, homework_id, student, data)
        return DataResponse(data=SubmissionRead.model_validate(submission))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/notices", response_model=DataResponse[list[NoticeRead]], dependencies=[Depends(get_current_user)])
async def get_notices(db: DbSession, category: Optional[str] = None):
    notices = await active_notices(db, category)
    return DataResponse(data=[NoticeRead.model_validate(n) for n in notices])
