from datetime import date
import pytest
from sqlalchemy import select
from schoolms.models.attendance import Attendance
from schoolms.models.enums import AttendanceStatus
from schoolms.schemas.attendance import AttendanceEntry, BulkAttendanceCreate
from schoolms.services.attendance import (
    attendance_rating,
    attendance_stats,
    class_attendance_summary,
    mark_bulk_attendance,
)
from factories import make_student

P = AttendanceStatus.PRESENT
A = AttendanceStatus.ABSENT
L = AttendanceStatus.LATE
E = AttendanceStatus.EXCUSED


def test_stats_count_only_present_days():
    stats = attendance_stats([P, P, A, L])
    assert stats.total_days == 4
    assert stats.present_days == 2
    assert stats.absent_days == 1
    assert stats.late_days == 1
    assert stats.attendance_percentage == 50
    assert stats.rating == "Poor"


def test_percentage_rounds_half_up():
    stats = attendance_stats([P] * 5 + [E] * 3)
    assert stats.attendance_percentage == 63
    assert stats.rating == "Average"


def test_no_records():
    stats = attendance_stats([])
    assert stats.total_days == 0
    assert stats.attendance_percentage == 0


@pytest.mark.parametrize(
    "percentage, rating",
    [(100, "Excellent"), (90, "Excellent"), (89, "Good"), (75, "Good"), (60, "Average"), (59, "Poor")],
)
def test_rating_bands(percentage, rating):
    assert attendance_rating(percentage) == rating


async def test_bulk_marking_upserts(db, admin):
    first = await make_student(db, "REG-001", guardian_phone="+9779811111111")
    second = await make_student(db, "REG-002")
    day = date(2025, 6, 2)

    result = await mark_bulk_attendance(
        db,
        BulkAttendanceCreate(
            attendance_date=day,
            entries=[AttendanceEntry(student_id=first.id, status=A), AttendanceEntry(student_id=second.id, status=P)],
        ),
        admin.id,
    )
    assert (result.created, result.updated) == (2, 0)
    # No SMS gateway is configured in tests
    assert result.notifications_sent == 0

    result = await mark_bulk_attendance(
        db,
        BulkAttendanceCreate(attendance_date=day, entries=[AttendanceEntry(student_id=first.id, status=L)]),
        admin.id,
    )
    assert (result.created, result.updated) == (0, 1)

    rows = (await db.execute(select(Attendance).where(Attendance.student_id == first.id))).scalars().all()
    assert len(rows) == 1
    assert rows[0].status == L


async def test_bulk_marking_rejects_duplicates_and_unknown_students(db, admin):
    student = await make_student(db, "REG-001")
    day = date(2025, 6, 2)

    with pytest.raises(ValueError, match="only once"):
        await mark_bulk_attendance(
            db,
            BulkAttendanceCreate(
                attendance_date=day,
                entries=[AttendanceEntry(student_id=student.id, status=P), AttendanceEntry(student_id=student.id, status=A)],
            ),
            admin.id,
        )
    with pytest.raises(ValueError, match="not found"):
        await mark_bulk_attendance(
            db,
            BulkAttendanceCreate(attendance_date=day, entries=[AttendanceEntry(student_id=999, status=P)]),
            admin.id,
        )


async def test_class_summary(db, admin):
    regular = await make_student(db, "REG-001", roll_number=1)
    irregular = await make_student(db, "REG-002", roll_number=2)
    await make_student(db, "REG-003", class_name="9")

    for day, irregular_status in [(date(2025, 6, 2), A), (date(2025, 6, 3), A), (date(2025, 6, 4), P)]:
        await mark_bulk_attendance(
            db,
            BulkAttendanceCreate(
                attendance_date=day,
                entries=[
                    AttendanceEntry(student_id=regular.id, status=P),
                    AttendanceEntry(student_id=irregular.id, status=irregular_status),
                ],
                notify_guardians=False,
            ),
            admin.id,
        )

    summary = await class_attendance_summary(db, "10", date(2025, 6, 1), date(2025, 6, 30))
    assert summary.total_students == 2
    assert [s.student_id for s in summary.students] == [regular.id, irregular.id]
    assert summary.students[1].attendance_percentage == 33
    assert summary.average_percentage == 67
    assert summary.perfect_attendance == 1
    assert summary.low_attendance == 1
    assert summary.status_totals == {"present": 4, "absent": 2, "late": 0, "excused": 0}
