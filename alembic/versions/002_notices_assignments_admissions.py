"""Notices, teacher assignments, admissions and payment verification

Revision ID: 002_notices_assignments_admissions
Revises: 001_initial_schema
Create Date: 2025-06-20 00:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002_notices_assignments_admissions'
down_revision: Union[str, None] = '001_initial_schema'
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
    op.create_table(
        'notices',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('category', sa.String(50), nullable=True),
        sa.Column('attachment_url', sa.String(500), nullable=True),
        sa.Column('is_pinned', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('expire_at', sa.DateTime(timezone=True), nullable=True),
        _user_fk('created_by_user_id'),
        *_timestamps(),
    )
    op.create_index('ix_notices_id', 'notices', ['id'])
    op.create_index('ix_notices_category', 'notices', ['category'])
    op.create_index('ix_notices_is_published', 'notices', ['is_published'])

    op.create_table(
        'teacher_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('class', sa.String(20), nullable=False),
        sa.Column('section', sa.String(10), nullable=True),
        sa.Column('academic_year', sa.String(20), nullable=False),
        sa.Column('is_class_teacher', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('teachers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            'teacher_id', 'class', 'section', 'subject_id', 'academic_year', name='uq_teacher_assignments_scope'
        ),
    )
    op.create_index('ix_teacher_assignments_id', 'teacher_assignments', ['id'])
    op.create_index('ix_teacher_assignments_class', 'teacher_assignments', ['class'])
    op.create_index('ix_teacher_assignments_teacher_id', 'teacher_assignments', ['teacher_id'])

    op.create_table(
        'admissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('application_number', sa.String(30), nullable=False),
        sa.Column('student_name', sa.String(255), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        sa.Column('gender', sa.String(20), nullable=False),
        sa.Column('applying_for_class', sa.String(20), nullable=False),
        sa.Column('previous_school', sa.String(255), nullable=True),
        sa.Column('guardian_name', sa.String(255), nullable=False),
        sa.Column('guardian_phone', sa.String(20), nullable=False),
        sa.Column('guardian_email', sa.String(255), nullable=True),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('documents_url', sa.String(500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        _user_fk('reviewed_by_user_id'),
        *_timestamps(),
    )
    op.create_index('ix_admissions_id', 'admissions', ['id'])
    op.create_index('ix_admissions_application_number', 'admissions', ['application_number'], unique=True)
    op.create_index('ix_admissions_applying_for_class', 'admissions', ['applying_for_class'])
    op.create_index('ix_admissions_status', 'admissions', ['status'])

    op.create_table(
        'payment_verification_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('gateway', sa.String(20), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('transaction_id', sa.String(255), nullable=True),
        sa.Column('screenshot_url', sa.String(500), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('student_fee_id', sa.Integer(), sa.ForeignKey('student_fees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        _user_fk('submitted_by_user_id'),
        _user_fk('reviewed_by_user_id'),
        sa.Column('fee_payment_id', sa.Integer(), sa.ForeignKey('fee_payments.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_payment_verification_requests_id', 'payment_verification_requests', ['id'])
    op.create_index('ix_payment_verification_requests_status', 'payment_verification_requests', ['status'])
    op.create_index('ix_payment_verification_requests_student_id', 'payment_verification_requests', ['student_id'])


def downgrade() -> None:
    for table in ['payment_verification_requests', 'admissions', 'teacher_assignments', 'notices']:
        op.drop_table(table)
