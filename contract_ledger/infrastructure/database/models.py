"""SQLAlchemy ORM models for contracts, installment schedules and transfers"""

import uuid
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

Money = Numeric(14, 2)


class Property(Base):
    """Property registry entry; only availability is written by this service"""

    __tablename__ = "property_info"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    property_title = Column(Text, nullable=True)
    property_price = Column(Money, nullable=False, default=0)
    property_availability = Column(Text, nullable=False, default="available")
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())


class Reservation(Base):
    """Approved property reservation (read-only source for contract creation)"""

    __tablename__ = "property_reservations"

    reservation_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tracking_number = Column(Text, nullable=True)
    property_id = Column(Uuid(as_uuid=True), ForeignKey("property_info.id"), nullable=True)
    property_title = Column(Text, nullable=True)
    property_price = Column(Money, nullable=False, default=0)
    reservation_fee = Column(Money, nullable=False, default=0)
    user_id = Column(Text, nullable=True)
    client_name = Column(Text, nullable=True)
    client_email = Column(Text, nullable=True)
    client_phone = Column(Text, nullable=True)
    client_address = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="pending")  # pending | approved | rejected
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Contract(Base):
    """Contract to sell, one per approved reservation"""

    __tablename__ = "property_contracts"

    contract_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contract_number = Column(Text, nullable=False, index=True)
    # Real unique constraint: concurrent creations for one reservation cannot both insert
    reservation_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("property_reservations.reservation_id"),
        nullable=False,
        unique=True,
    )
    property_id = Column(Uuid(as_uuid=True), nullable=True)
    property_title = Column(Text, nullable=True)
    user_id = Column(Text, nullable=True, index=True)

    client_name = Column(Text, nullable=True)
    client_email = Column(Text, nullable=True)
    client_phone = Column(Text, nullable=True)
    client_address = Column(Text, nullable=True)

    total_contract_price = Column(Money, nullable=False)
    downpayment_total = Column(Money, nullable=False)
    reservation_fee_paid = Column(Money, nullable=False, default=0)
    remaining_downpayment = Column(Money, nullable=False)
    remaining_balance = Column(Money, nullable=False)
    bank_financing_amount = Column(Money, nullable=False)
    payment_plan_months = Column(Integer, nullable=False)
    payment_frequency = Column(Text, nullable=False, default="monthly")
    monthly_installment = Column(Money, nullable=False)

    contract_status = Column(Text, nullable=False, default="active")  # active | voided
    downpayment_status = Column(Text, nullable=False, default="in_progress")  # in_progress | completed
    contract_signed_date = Column(DateTime(timezone=True), nullable=True)
    first_installment_date = Column(Date, nullable=True)
    final_installment_date = Column(Date, nullable=True)
    voided_at = Column(DateTime(timezone=True), nullable=True)
    void_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    schedules = relationship(
        "PaymentSchedule",
        back_populates="contract",
        order_by="PaymentSchedule.installment_number",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PaymentSchedule(Base):
    """Single installment row of a contract's downpayment ledger"""

    __tablename__ = "contract_payment_schedules"

    schedule_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contract_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("property_contracts.contract_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    installment_number = Column(Integer, nullable=False)
    installment_description = Column(Text, nullable=True)
    scheduled_amount = Column(Money, nullable=False)
    paid_amount = Column(Money, nullable=False, default=0)
    remaining_amount = Column(Money, nullable=False)
    penalty_amount = Column(Money, nullable=False, default=0)
    due_date = Column(Date, nullable=False)
    payment_status = Column(Text, nullable=False, default="pending")  # pending | partial | paid
    is_overdue = Column(Boolean, nullable=False, default=False)
    days_overdue = Column(Integer, nullable=False, default=0)
    paid_date = Column(DateTime(timezone=True), nullable=True)
    processed_by_name = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    contract = relationship("Contract", back_populates="schedules")

    __table_args__ = (
        Index("uq_schedule_contract_installment", "contract_id", "installment_number", unique=True),
    )


class PaymentTransaction(Base):
    """Append-only record of a payment against one installment"""

    __tablename__ = "contract_payment_transactions"

    transaction_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # SET NULL so the audit trail outlives schedules purged by a void
    schedule_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("contract_payment_schedules.schedule_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    contract_id = Column(Uuid(as_uuid=True), ForeignKey("property_contracts.contract_id"), nullable=True)
    amount = Column(Money, nullable=False)
    penalty_amount = Column(Money, nullable=False, default=0)
    transaction_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    transaction_status = Column(Text, nullable=False, default="completed")  # completed | reverted
    receipt_number = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    processed_by_name = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())


class TransferRequest(Base):
    """Request to reassign a contract to a new client, decided by an admin"""

    __tablename__ = "contract_transfer_requests"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contract_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("property_contracts.contract_id"),
        nullable=False,
        index=True,
    )

    original_client_name = Column(Text, nullable=True)
    original_client_email = Column(Text, nullable=True)
    original_client_phone = Column(Text, nullable=True)
    original_client_address = Column(Text, nullable=True)

    new_user_id = Column(Text, nullable=True)
    new_client_name = Column(Text, nullable=False)
    new_client_email = Column(Text, nullable=False)
    new_client_phone = Column(Text, nullable=True)
    new_client_address = Column(Text, nullable=True)

    client_relationship = Column("relationship", Text, nullable=False)
    transfer_reason = Column(Text, nullable=False)
    transfer_notes = Column(Text, nullable=True)

    request_status = Column(Text, nullable=False, default="pending")  # pending | approved | rejected
    requested_by_user_id = Column(Text, nullable=True)
    requested_by_name = Column(Text, nullable=True)
    approved_by = Column(Text, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approval_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    contract = relationship("Contract")

    __table_args__ = (
        # At most one pending request per contract
        Index(
            "uq_transfer_pending_per_contract",
            "contract_id",
            unique=True,
            postgresql_where=text("request_status = 'pending'"),
            sqlite_where=text("request_status = 'pending'"),
        ),
    )
