import logging
from collections import Counter
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from schoolms.core.config import settings
from schoolms.models.attendance import Attendance
from schoolms.models.people import Student
from schoolms.models.enums import AttendanceStatus, StudentStatus
from schoolms.schemas.attendance import (
    AttendanceStats,
    BulkAttendanceCreate,
    BulkAttendanceResult,
    ClassAttendanceSummary,
    StudentAttendanceSummary,
)
from schoolms.services.activity import record_activity
from schoolms.services.notifications import notify_absence

logger = logging.getLogger(__name__)

RATING_BANDS = [(90, "Excellent"), (75, "Good"), (60, "Average")]


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def attendance_rating(percentage: int) -> str:
    for minimum, label in RATING_BANDS:
        if percentage >= minimum:
            return label
    return "Poor"


def attendance_stats(statuses: Iterable[AttendanceStatus]) -> AttendanceStats:
    """Counts per status and the share of days present. Late and excused days do not count as present."""
    counts = Counter(statuses)
    total = sum(counts.values())
    present = counts[AttendanceStatus.PRESENT]
    percentage = _round_half_up(Decimal(present) / Decimal(total) * 100) if total else 0

    return AttendanceStats(
        total_days=total,
        present_days=present,
        absent_days=counts[AttendanceStatus.ABSENT],
        late_days=counts[AttendanceStatus.LATE],
        excused_days=counts[AttendanceStatus.EXCUSED],
        attendance_percentage=percentage,
        rating=attendance_rating(percentage),
    )


async def student_attendance_stats(
    db: AsyncSession, student_id: int, from_date: date, to_date: date
) -> AttendanceStats:
    result = await db.execute(
        select(Attendance.status).where(
            and_(
                Attendance.student_id == student_id,
                Attendance.attendance_date >= from_date,
                Attendance.attendance_date <= to_date,
            )
        )
    )
    return attendance_stats(result.scalars().all())


async def mark_bulk_attendance(db: AsyncSession, data: BulkAttendanceCreate, user_id: int) -> BulkAttendanceResult:
    """Insert or update one row per (student, date) and notify guardians of new absences."""
    student_ids = [entry.student_id for entry in data.entries]
    if len(set(student_ids)) != len(student_ids):
        raise ValueError("Each student may appear only once per attendance sheet")

    student_result = await db.execute(select(Student).where(Student.id.in_(student_ids)))
    students = {s.id: s for s in student_result.scalars().all()}
    missing = set(student_ids) - set(students)
    if missing:
        raise ValueError(f"Students not found: {sorted(missing)}")

    existing_result = await db.execute(
        select(Attendance).where(
            and_(Attendance.student_id.in_(student_ids), Attendance.attendance_date == data.attendance_date)
        )
    )
    existing = {a.student_id: a for a in existing_result.scalars().all()}

    created = 0
    updated = 0
    to_notify: list[Attendance] = []
    for entry in data.entries:
        record = existing.get(entry.student_id)
        if record is None:
            record = Attendance(
                student_id=entry.student_id,
                attendance_date=data.attendance_date,
                notification_sent=False,
            )
            db.add(record)
            created += 1
        else:
            updated += 1

        record.status = entry.status
        record.check_in_time = entry.check_in_time
        record.check_out_time = entry.check_out_time
        record.remarks = entry.remarks
        record.marked_by_user_id = user_id

        if entry.status == AttendanceStatus.ABSENT and not record.notification_sent:
            to_notify.append(record)

    notifications_sent = 0
    if data.notify_guardians:
        for record in to_notify:
            if await notify_absence(students[record.student_id], data.attendance_date):
                record.notification_sent = True
                notifications_sent += 1

    record_activity(
        db, user_id, "mark", "attendance", None,
        {"date": data.attendance_date.isoformat(), "created": created, "updated": updated},
    )
    await db.commit()

    logger.info(
        f"Attendance for {data.attendance_date}: {created} created, {updated} updated, "
        f"{notifications_sent} notification(s) sent"
    )
    return BulkAttendanceResult(created=created, updated=updated, notifications_sent=notifications_sent)


async def class_attendance_summary(
    db: AsyncSession,
    class_name: str,
    from_date: date,
    to_date: date,
    section: Optional[str] = None,
) -> ClassAttendanceSummary:
    conditions = [Student.class_name == class_name, Student.status == StudentStatus.ACTIVE]
    if section:
        conditions.append(Student.section == section)
    student_result = await db.execute(
        select(Student).where(and_(*conditions)).order_by(Student.roll_number, Student.full_name)
    )
    students = student_result.scalars().all()

    attendance_result = await db.execute(
        select(Attendance.student_id, Attendance.status).where(
            and_(
                Attendance.student_id.in_([s.id for s in students]),
                Attendance.attendance_date >= from_date,
                Attendance.attendance_date <= to_date,
            )
        )
    )
    statuses_by_student: dict[int, list[AttendanceStatus]] = {s.id: [] for s in students}
    for student_id, status in attendance_result.all():
        statuses_by_student[student_id].append(status)

    rows = []
    for student in students:
        stats = attendance_stats(statuses_by_student[student.id])
        rows.append(StudentAttendanceSummary(
            student_id=student.id,
            student_name=student.full_name,
            roll_number=student.roll_number,
            **stats.model_dump(),
        ))

    average = (
        _round_half_up(Decimal(sum(r.attendance_percentage for r in rows)) / len(rows)) if rows else 0
    )
    return ClassAttendanceSummary(
        class_name=class_name,
        section=section,
        from_date=from_date,
        to_date=to_date,
        total_students=len(rows),
        average_percentage=average,
        perfect_attendance=sum(1 for r in rows if r.absent_days == 0),
        low_attendance=sum(1 for r in rows if r.attendance_percentage < settings.LOW_ATTENDANCE_THRESHOLD),
        status_totals={
            AttendanceStatus.PRESENT.value: sum(r.present_days for r in rows),
            AttendanceStatus.ABSENT.value: sum(r.absent_days for r in rows),
            AttendanceStatus.LATE.value: sum(r.late_days for r in rows),
            AttendanceStatus.EXCUSED.value: sum(r.excused_days for r in rows),
        },
        students=rows,
    )
