"""
Which classes a teacher may work with.

An assignment always names a class. Leaving the section open covers every
section of that class; leaving the subject open, or flagging the teacher as
class teacher, covers every subject.
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_
from schoolms.models.people import Student, Teacher, TeacherAssignment
from schoolms.models.enums import StudentStatus


def assignment_covers(
    assignment: TeacherAssignment,
    class_name: str,
    section: Optional[str] = None,
    subject_id: Optional[int] = None,
) -> bool:
    if assignment.class_name != class_name:
        return False
    if assignment.section and assignment.section != section:
        return False
    if subject_id is None or assignment.subject_id is None or assignment.is_class_teacher:
        return True
    return assignment.subject_id == subject_id


async def teacher_for_user(db: AsyncSession, user_id: int) -> Optional[Teacher]:
    result = await db.execute(select(Teacher).where(Teacher.user_id == user_id))
    return result.scalar_one_or_none()


async def assignments_for(db: AsyncSession, teacher_id: int) -> list[TeacherAssignment]:
    result = await db.execute(
        select(TeacherAssignment)
        .where(TeacherAssignment.teacher_id == teacher_id)
        .order_by(TeacherAssignment.class_name, TeacherAssignment.section, TeacherAssignment.id)
    )
    return list(result.scalars().all())


async def students_for(db: AsyncSession, assignments: list[TeacherAssignment]) -> list[Student]:
    """Active students of every class and section the assignments cover."""
    if not assignments:
        return []
    scopes = [
        and_(Student.class_name == a.class_name, Student.section == a.section)
        if a.section
        else Student.class_name == a.class_name
        for a in assignments
    ]
    result = await db.execute(
        select(Student)
        .where(and_(Student.status == StudentStatus.ACTIVE, or_(*scopes)))
        .order_by(Student.class_name, Student.section, Student.roll_number, Student.full_name)
    )
    return list(result.scalars().all())
