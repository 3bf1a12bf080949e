"""Fee ledger models: fee records with append-only payment and note ledgers"""

from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, value_enum
from app.models.enums import FeeStatus, FeeTerm


class FeeRecord(BaseModel):
    """
    One billing obligation for a student for a period.

    status is a cache of derive_status(payments, fee_amount, due_date, today).
    status_override marks a value set administratively (bulk import, update);
    the next payment append clears it.
    """
    __tablename__ = "fee_records"

    student_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("students.id"),
        nullable=False,
        index=True,
    )
    serial_number = Column(String(64), unique=True, nullable=False, index=True)
    fee_amount = Column(Numeric(12, 2), nullable=False)

    status = Column(value_enum(FeeStatus, "fee_status"), default=FeeStatus.UNPAID, nullable=False, index=True)
    status_override = Column(Boolean, default=False, nullable=False)

    # Schedule, fixed at creation
    admission_date = Column(Date, nullable=False)
    next_payment_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False, index=True)

    academic_year = Column(String(20), nullable=False, index=True)
    term = Column(value_enum(FeeTerm, "fee_term"), nullable=False)

    # Relationships
    student = relationship("Student", lazy="selectin")
    payments = relationship(
        "FeePayment",
        back_populates="fee_record",
        order_by="FeePayment.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    notes = relationship(
        "FeeNote",
        back_populates="fee_record",
        order_by="FeeNote.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def total_paid(self) -> Decimal:
        return sum((Decimal(str(p.amount)) for p in self.payments), Decimal("0"))

    @property
    def balance(self) -> Decimal:
        return max(Decimal(str(self.fee_amount)) - self.total_paid, Decimal("0"))

    def __repr__(self) -> str:
        return f"<FeeRecord {self.serial_number} - {self.status}>"


class FeePayment(BaseModel):
    """A payment entry. position is the ledger index; unique per record."""
    __tablename__ = "fee_payments"
    __table_args__ = (
        UniqueConstraint("fee_record_id", "position", name="uq_fee_payments_record_position"),
    )

    fee_record_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("fee_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String(50), nullable=False)
    reference = Column(String(255), nullable=True)

    fee_record = relationship("FeeRecord", back_populates="payments")


class FeeNote(BaseModel):
    """An audit note on a fee record."""
    __tablename__ = "fee_notes"
    __table_args__ = (
        UniqueConstraint("fee_record_id", "position", name="uq_fee_notes_record_position"),
    )

    fee_record_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("fee_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    text = Column(Text, nullable=False)

    fee_record = relationship("FeeRecord", back_populates="notes")
