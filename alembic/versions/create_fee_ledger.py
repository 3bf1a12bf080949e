"""Create students, fee_records, fee_payments and fee_notes

Revision ID: 3a9c1e5b7d20
Revises:
Create Date: 2026-10-19

serial_number and admission_number uniqueness are the store-level backstop
for concurrent creates; (fee_record_id, position) keeps ledgers append-only
under concurrent appends.
"""
from alembic import op
import sqlalchemy as sa

revision = "3a9c1e5b7d20"
down_revision = None
branch_labels = None
depends_on = None

FEE_STATUS_VALUES = ("unpaid", "partial", "paid", "overdue")
FEE_TERM_VALUES = ("Term 1", "Term 2", "Term 3", "Annual")
STUDENT_STATUS_VALUES = ("Active", "Inactive")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "students",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("admission_number", sa.String(64), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("class_id", sa.Uuid(), nullable=False),
        sa.Column("section_id", sa.Uuid(), nullable=False),
        sa.Column("admission_date", sa.Date(), nullable=True),
        sa.Column("contact_number", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("parent_name", sa.String(255), nullable=False),
        sa.Column("parent_contact", sa.String(50), nullable=False),
        sa.Column("status", sa.Enum(*STUDENT_STATUS_VALUES, name="student_status"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_students_id"), "students", ["id"], unique=False)
    op.create_index(op.f("ix_students_admission_number"), "students", ["admission_number"], unique=True)
    op.create_index(op.f("ix_students_class_id"), "students", ["class_id"], unique=False)

    op.create_table(
        "fee_records",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("student_id", sa.Uuid(), nullable=False),
        sa.Column("serial_number", sa.String(64), nullable=False),
        sa.Column("fee_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.Enum(*FEE_STATUS_VALUES, name="fee_status"), nullable=False),
        sa.Column("status_override", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("admission_date", sa.Date(), nullable=False),
        sa.Column("next_payment_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("academic_year", sa.String(20), nullable=False),
        sa.Column("term", sa.Enum(*FEE_TERM_VALUES, name="fee_term"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_fee_records_id"), "fee_records", ["id"], unique=False)
    op.create_index(op.f("ix_fee_records_student_id"), "fee_records", ["student_id"], unique=False)
    op.create_index(op.f("ix_fee_records_serial_number"), "fee_records", ["serial_number"], unique=True)
    op.create_index(op.f("ix_fee_records_status"), "fee_records", ["status"], unique=False)
    op.create_index(op.f("ix_fee_records_due_date"), "fee_records", ["due_date"], unique=False)
    op.create_index(op.f("ix_fee_records_academic_year"), "fee_records", ["academic_year"], unique=False)

    op.create_table(
        "fee_payments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("fee_record_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("method", sa.String(50), nullable=False),
        sa.Column("reference", sa.String(255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["fee_record_id"], ["fee_records.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("fee_record_id", "position", name="uq_fee_payments_record_position"),
    )
    op.create_index(op.f("ix_fee_payments_id"), "fee_payments", ["id"], unique=False)
    op.create_index(op.f("ix_fee_payments_fee_record_id"), "fee_payments", ["fee_record_id"], unique=False)

    op.create_table(
        "fee_notes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("fee_record_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["fee_record_id"], ["fee_records.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("fee_record_id", "position", name="uq_fee_notes_record_position"),
    )
    op.create_index(op.f("ix_fee_notes_id"), "fee_notes", ["id"], unique=False)
    op.create_index(op.f("ix_fee_notes_fee_record_id"), "fee_notes", ["fee_record_id"], unique=False)


def downgrade() -> None:
    op.drop_table("fee_notes")
    op.drop_table("fee_payments")
    op.drop_table("fee_records")
    op.drop_table("students")
    sa.Enum(name="fee_term").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="fee_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="student_status").drop(op.get_bind(), checkfirst=True)
