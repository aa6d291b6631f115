"""Initial school schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-04-14 00:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def _user_fk(name: str):
    return sa.Column(name, sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)


def upgrade() -> None:
    # Auth
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('phone', sa.String(20), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('is_super_admin', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_phone', 'users', ['phone'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('is_system', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_roles_id', 'roles', ['id'])

    op.create_table(
        'permissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(100), nullable=False),
        sa.Column('module', sa.String(50), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_permissions_id', 'permissions', ['id'])
    op.create_index('ix_permissions_code', 'permissions', ['code'], unique=True)
    op.create_index('ix_permissions_module', 'permissions', ['module'])

    op.create_table(
        'user_roles',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table(
        'role_permissions',
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('permission_id', sa.Integer(), sa.ForeignKey('permissions.id', ondelete='CASCADE'), primary_key=True),
    )

    # People
    op.create_table(
        'students',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('registration_number', sa.String(50), nullable=False),
        sa.Column('class', sa.String(20), nullable=False),
        sa.Column('section', sa.String(10), nullable=True),
        sa.Column('roll_number', sa.Integer(), nullable=True),
        sa.Column('gender', sa.String(20), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('photo_url', sa.String(500), nullable=True),
        sa.Column('admission_year', sa.Integer(), nullable=True),
        sa.Column('guardian_name', sa.String(255), nullable=True),
        sa.Column('guardian_phone', sa.String(20), nullable=True),
        sa.Column('guardian_email', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, unique=True),
        *_timestamps(),
    )
    op.create_index('ix_students_id', 'students', ['id'])
    op.create_index('ix_students_registration_number', 'students', ['registration_number'], unique=True)
    op.create_index('ix_students_class', 'students', ['class'])
    op.create_index('ix_students_status', 'students', ['status'])

    op.create_table(
        'teachers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('employee_id', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('department', sa.String(100), nullable=True),
        sa.Column('subject', sa.String(100), nullable=True),
        sa.Column('qualification', sa.String(255), nullable=True),
        sa.Column('joined_date', sa.Date(), nullable=True),
        sa.Column('photo_url', sa.String(500), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, unique=True),
        *_timestamps(),
    )
    op.create_index('ix_teachers_id', 'teachers', ['id'])
    op.create_index('ix_teachers_employee_id', 'teachers', ['employee_id'], unique=True)

    op.create_table(
        'parents',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('relationship_type', sa.String(50), nullable=True),
        sa.Column('occupation', sa.String(100), nullable=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, unique=True),
        *_timestamps(),
    )
    op.create_index('ix_parents_id', 'parents', ['id'])
    op.create_index('ix_parents_phone', 'parents', ['phone'])

    op.create_table(
        'parent_students',
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('parents.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), primary_key=True),
    )

    # Academics
    op.create_table(
        'subjects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('full_marks', sa.Integer(), nullable=False),
        sa.Column('pass_marks', sa.Integer(), nullable=False),
        sa.Column('credit_hours', sa.Numeric(4, 2), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('is_optional', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_subjects_id', 'subjects', ['id'])
    op.create_index('ix_subjects_code', 'subjects', ['code'], unique=True)

    op.create_table(
        'exams',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('exam_type', sa.String(20), nullable=False),
        sa.Column('class', sa.String(20), nullable=False),
        sa.Column('section', sa.String(10), nullable=True),
        sa.Column('academic_year', sa.String(20), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        _user_fk('created_by_user_id'),
        *_timestamps(),
    )
    op.create_index('ix_exams_id', 'exams', ['id'])
    op.create_index('ix_exams_class', 'exams', ['class'])

    op.create_table(
        'exam_marks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('theory_marks', sa.Numeric(6, 2), nullable=True),
        sa.Column('practical_marks', sa.Numeric(6, 2), nullable=True),
        sa.Column('total_marks', sa.Numeric(6, 2), nullable=True),
        sa.Column('grade', sa.String(5), nullable=True),
        sa.Column('grade_point', sa.Numeric(3, 1), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('exam_id', sa.Integer(), sa.ForeignKey('exams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
        _user_fk('entered_by_user_id'),
        *_timestamps(),
        sa.UniqueConstraint('exam_id', 'student_id', 'subject_id', name='uq_exam_marks_exam_student_subject'),
    )
    op.create_index('ix_exam_marks_id', 'exam_marks', ['id'])
    op.create_index('ix_exam_marks_exam_id', 'exam_marks', ['exam_id'])
    op.create_index('ix_exam_marks_student_id', 'exam_marks', ['student_id'])

    op.create_table(
        'student_results',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('total_marks', sa.Numeric(8, 2), nullable=False),
        sa.Column('total_full_marks', sa.Integer(), nullable=False),
        sa.Column('percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('gpa', sa.Numeric(3, 2), nullable=False),
        sa.Column('grade', sa.String(5), nullable=False),
        sa.Column('rank', sa.Integer(), nullable=True),
        sa.Column('total_subjects', sa.Integer(), nullable=False),
        sa.Column('passed_subjects', sa.Integer(), nullable=False),
        sa.Column('result_status', sa.String(10), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('exam_id', sa.Integer(), sa.ForeignKey('exams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('exam_id', 'student_id', name='uq_student_results_exam_student'),
    )
    op.create_index('ix_student_results_id', 'student_results', ['id'])
    op.create_index('ix_student_results_exam_id', 'student_results', ['exam_id'])
    op.create_index('ix_student_results_student_id', 'student_results', ['student_id'])

    # Finance
    op.create_table(
        'fee_structures',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('class', sa.String(20), nullable=False),
        sa.Column('fee_type', sa.String(20), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('frequency', sa.String(20), nullable=False),
        sa.Column('due_day', sa.Integer(), nullable=True),
        sa.Column('late_fee_percentage', sa.Numeric(5, 2), nullable=True),
        sa.Column('academic_year', sa.String(20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _user_fk('created_by_user_id'),
        *_timestamps(),
    )
    op.create_index('ix_fee_structures_id', 'fee_structures', ['id'])
    op.create_index('ix_fee_structures_class', 'fee_structures', ['class'])

    op.create_table(
        'student_fees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount_reason', sa.Text(), nullable=True),
        sa.Column('late_fee', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('paid_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('balance', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('month_year', sa.String(7), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('fee_structure_id', sa.Integer(), sa.ForeignKey('fee_structures.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            'student_id', 'fee_structure_id', 'month_year', name='uq_student_fees_student_structure_month'
        ),
    )
    op.create_index('ix_student_fees_id', 'student_fees', ['id'])
    op.create_index('ix_student_fees_status', 'student_fees', ['status'])
    op.create_index('ix_student_fees_due_date', 'student_fees', ['due_date'])
    op.create_index('ix_student_fees_student_id', 'student_fees', ['student_id'])

    op.create_table(
        'fee_payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_method', sa.String(20), nullable=False),
        sa.Column('receipt_number', sa.String(50), nullable=True),
        sa.Column('transaction_id', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('student_fee_id', sa.Integer(), sa.ForeignKey('student_fees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        _user_fk('received_by_user_id'),
    )
    op.create_index('ix_fee_payments_id', 'fee_payments', ['id'])
    op.create_index('ix_fee_payments_receipt_number', 'fee_payments', ['receipt_number'], unique=True)
    op.create_index('ix_fee_payments_paid_at', 'fee_payments', ['paid_at'])
    op.create_index('ix_fee_payments_student_id', 'fee_payments', ['student_id'])

    op.create_table(
        'school_expenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('expense_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('paid_to', sa.String(255), nullable=True),
        sa.Column('payment_method', sa.String(20), nullable=True),
        _user_fk('created_by_user_id'),
        *_timestamps(),
    )
    op.create_index('ix_school_expenses_id', 'school_expenses', ['id'])
    op.create_index('ix_school_expenses_category', 'school_expenses', ['category'])
    op.create_index('ix_school_expenses_expense_date', 'school_expenses', ['expense_date'])

    # Library
    op.create_table(
        'books',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('author', sa.String(255), nullable=False),
        sa.Column('isbn', sa.String(20), nullable=True, unique=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('publisher', sa.String(255), nullable=True),
        sa.Column('published_year', sa.Integer(), nullable=True),
        sa.Column('shelf_location', sa.String(50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('total_copies', sa.Integer(), nullable=False),
        sa.Column('available_copies', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_books_id', 'books', ['id'])
    op.create_index('ix_books_title', 'books', ['title'])

    op.create_table(
        'book_issues',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('return_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('books.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        _user_fk('issued_by_user_id'),
        _user_fk('returned_to_user_id'),
        *_timestamps(),
    )
    op.create_index('ix_book_issues_id', 'book_issues', ['id'])
    op.create_index('ix_book_issues_due_date', 'book_issues', ['due_date'])
    op.create_index('ix_book_issues_status', 'book_issues', ['status'])
    op.create_index('ix_book_issues_student_id', 'book_issues', ['student_id'])

    op.create_table(
        'library_fines',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('fine_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('fine_reason', sa.String(20), nullable=False),
        sa.Column('days_overdue', sa.Integer(), nullable=False),
        sa.Column('paid_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('paid_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('waive_reason', sa.Text(), nullable=True),
        sa.Column('book_issue_id', sa.Integer(), sa.ForeignKey('book_issues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        _user_fk('waived_by_user_id'),
        *_timestamps(),
    )
    op.create_index('ix_library_fines_id', 'library_fines', ['id'])
    op.create_index('ix_library_fines_status', 'library_fines', ['status'])
    op.create_index('ix_library_fines_student_id', 'library_fines', ['student_id'])

    op.create_table(
        'library_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('fine_per_day', sa.Numeric(10, 2), nullable=False),
        sa.Column('max_books_per_student', sa.Integer(), nullable=False),
        sa.Column('default_issue_days', sa.Integer(), nullable=False),
        sa.Column('lost_book_fine_multiplier', sa.Numeric(5, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_library_settings_id', 'library_settings', ['id'])

    op.create_table(
        'library_memberships',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('member_type', sa.String(20), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('membership_number', sa.String(50), nullable=False, unique=True),
        sa.Column('membership_start', sa.Date(), nullable=False),
        sa.Column('membership_end', sa.Date(), nullable=True),
        sa.Column('max_books', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('is_blocked', sa.Boolean(), nullable=False),
        sa.Column('block_reason', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_library_memberships_id', 'library_memberships', ['id'])
    op.create_index('ix_library_memberships_member_id', 'library_memberships', ['member_id'])

    # Attendance
    op.create_table(
        'attendance',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('check_in_time', sa.Time(), nullable=True),
        sa.Column('check_out_time', sa.Time(), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('notification_sent', sa.Boolean(), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        _user_fk('marked_by_user_id'),
        *_timestamps(),
        sa.UniqueConstraint('student_id', 'date', name='uq_attendance_student_date'),
    )
    op.create_index('ix_attendance_id', 'attendance', ['id'])
    op.create_index('ix_attendance_date', 'attendance', ['date'])
    op.create_index('ix_attendance_student_id', 'attendance', ['student_id'])

    # Homework
    op.create_table(
        'homework',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('class', sa.String(20), nullable=False),
        sa.Column('section', sa.String(10), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('max_marks', sa.Integer(), nullable=False),
        sa.Column('allow_late_submission', sa.Boolean(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('attachment_url', sa.String(500), nullable=True),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('teachers.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_homework_id', 'homework', ['id'])
    op.create_index('ix_homework_class', 'homework', ['class'])

    op.create_table(
        'homework_submissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('submission_text', sa.Text(), nullable=True),
        sa.Column('submission_url', sa.String(500), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_late', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('marks', sa.Numeric(6, 2), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('graded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('homework_id', sa.Integer(), sa.ForeignKey('homework.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        _user_fk('graded_by_user_id'),
        *_timestamps(),
        sa.UniqueConstraint('homework_id', 'student_id', name='uq_homework_submissions_homework_student'),
    )
    op.create_index('ix_homework_submissions_id', 'homework_submissions', ['id'])
    op.create_index('ix_homework_submissions_homework_id', 'homework_submissions', ['homework_id'])
    op.create_index('ix_homework_submissions_student_id', 'homework_submissions', ['student_id'])

    # Messaging
    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('subject', sa.String(255), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sender_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recipient_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_message_id', sa.Integer(), sa.ForeignKey('messages.id', ondelete='SET NULL'), nullable=True),
    )
    op.create_index('ix_messages_id', 'messages', ['id'])
    op.create_index('ix_messages_sender_id', 'messages', ['sender_id'])
    op.create_index('ix_messages_recipient_id', 'messages', ['recipient_id'])

    op.create_table(
        'chat_conversations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('visitor_id', sa.String(100), nullable=False),
        sa.Column('visitor_name', sa.String(255), nullable=True),
        sa.Column('visitor_email', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('is_important', sa.Boolean(), nullable=False),
        sa.Column('importance_reason', sa.Text(), nullable=True),
        _user_fk('user_id'),
        *_timestamps(),
    )
    op.create_index('ix_chat_conversations_id', 'chat_conversations', ['id'])
    op.create_index('ix_chat_conversations_visitor_id', 'chat_conversations', ['visitor_id'])

    op.create_table(
        'chat_messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sender_type', sa.String(20), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'conversation_id', sa.Integer(),
            sa.ForeignKey('chat_conversations.id', ondelete='CASCADE'), nullable=False,
        ),
        _user_fk('staff_user_id'),
    )
    op.create_index('ix_chat_messages_id', 'chat_messages', ['id'])
    op.create_index('ix_chat_messages_conversation_id', 'chat_messages', ['conversation_id'])

    # Settings, calendar, activity
    op.create_table(
        'system_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_system_settings_id', 'system_settings', ['id'])
    op.create_index('ix_system_settings_key', 'system_settings', ['key'], unique=True)

    op.create_table(
        'academic_calendar',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('event_type', sa.String(20), nullable=False),
        _user_fk('created_by_user_id'),
        *_timestamps(),
    )
    op.create_index('ix_academic_calendar_id', 'academic_calendar', ['id'])
    op.create_index('ix_academic_calendar_event_date', 'academic_calendar', ['event_date'])

    op.create_table(
        'activity_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(50), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        _user_fk('user_id'),
    )
    op.create_index('ix_activity_logs_id', 'activity_logs', ['id'])
    op.create_index('ix_activity_logs_entity_type', 'activity_logs', ['entity_type'])
    op.create_index('ix_activity_logs_created_at', 'activity_logs', ['created_at'])
    op.create_index('ix_activity_logs_user_id', 'activity_logs', ['user_id'])


def downgrade() -> None:
    for table in [
        'activity_logs',
        'academic_calendar',
        'system_settings',
        'chat_messages',
        'chat_conversations',
        'messages',
        'homework_submissions',
        'homework',
        'attendance',
        'library_memberships',
        'library_settings',
        'library_fines',
        'book_issues',
        'books',
        'school_expenses',
        'fee_payments',
        'student_fees',
        'fee_structures',
        'student_results',
        'exam_marks',
        'exams',
        'subjects',
        'parent_students',
        'parents',
        'teachers',
        'students',
        'role_permissions',
        'user_roles',
        'permissions',
        'roles',
        'users',
    ]:
        op.drop_table(table)
