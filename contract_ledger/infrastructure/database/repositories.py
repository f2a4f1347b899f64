"""Data access layer for contract entities"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from sqlalchemy.orm import Session
from contract_ledger.infrastructure.database.models import (
    Contract,
    PaymentSchedule,
    PaymentTransaction,
    Property,
    Reservation,
    TransferRequest,
)
from contract_ledger.domain.models import ScheduledInstallment


class ReservationRepository:
    """Read-only access to the reservation source"""

    def __init__(self, db: Session):
        self.db = db

    def get_approved(self, reservation_id: uuid.UUID) -> Optional[Reservation]:
        return (
            self.db.query(Reservation)
            .filter(Reservation.reservation_id == reservation_id, Reservation.status == "approved")
            .first()
        )


class PropertyRepository:
    """Property registry; this service only flips availability"""

    def __init__(self, db: Session):
        self.db = db

    def set_availability(self, property_id: uuid.UUID, availability: str) -> bool:
        """Returns False when the property is not in the registry"""
        updated = (
            self.db.query(Property)
            .filter(Property.id == property_id)
            .update({Property.property_availability: availability}, synchronize_session=False)
        )
        return updated > 0


class ContractRepository:
    """Repository for contracts"""

    def __init__(self, db: Session):
        self.db = db

    def create_contract(self, **fields: Any) -> Contract:
        db_contract = Contract(**fields)
        self.db.add(db_contract)
        self.db.flush()  # Get ID without committing
        return db_contract

    def get_contract(self, contract_id: uuid.UUID) -> Optional[Contract]:
        return self.db.query(Contract).filter(Contract.contract_id == contract_id).first()

    def get_by_reservation(self, reservation_id: uuid.UUID) -> Optional[Contract]:
        return self.db.query(Contract).filter(Contract.reservation_id == reservation_id).first()

    def delete_contract(self, contract_id: uuid.UUID) -> int:
        return (
            self.db.query(Contract)
            .filter(Contract.contract_id == contract_id)
            .delete(synchronize_session=False)
        )


class ScheduleRepository:
    """Repository for installment schedule rows"""

    def __init__(self, db: Session):
        self.db = db

    def bulk_create(self, contract_id: uuid.UUID, ledger: List[ScheduledInstallment]) -> List[PaymentSchedule]:
        """Insert a whole generated ledger for a contract"""
        rows = [
            PaymentSchedule(
                contract_id=contract_id,
                installment_number=inst.installment_number,
                installment_description=inst.installment_description,
                scheduled_amount=inst.scheduled_amount,
                paid_amount=Decimal("0"),
                remaining_amount=inst.scheduled_amount,
                penalty_amount=Decimal("0"),
                due_date=inst.due_date,
                payment_status="pending",
                is_overdue=False,
                days_overdue=0,
            )
            for inst in ledger
        ]
        self.db.add_all(rows)
        self.db.flush()
        return rows

    def get_schedule(self, schedule_id: uuid.UUID) -> Optional[PaymentSchedule]:
        return self.db.query(PaymentSchedule).filter(PaymentSchedule.schedule_id == schedule_id).first()

    def list_for_contract(self, contract_id: uuid.UUID) -> List[PaymentSchedule]:
        return (
            self.db.query(PaymentSchedule)
            .filter(PaymentSchedule.contract_id == contract_id)
            .order_by(PaymentSchedule.installment_number)
            .all()
        )

    def paid_amounts(self, contract_id: uuid.UUID, exclude_schedule_id: Optional[uuid.UUID] = None) -> List[Decimal]:
        """paid_amount of every schedule of a contract, optionally skipping one"""
        query = self.db.query(PaymentSchedule.paid_amount).filter(PaymentSchedule.contract_id == contract_id)
        if exclude_schedule_id is not None:
            query = query.filter(PaymentSchedule.schedule_id != exclude_schedule_id)
        return [row.paid_amount for row in query.all()]

    def all_paid(self, contract_id: uuid.UUID) -> bool:
        """True when no schedule of the contract is left pending or partial"""
        open_rows = (
            self.db.query(PaymentSchedule)
            .filter(PaymentSchedule.contract_id == contract_id, PaymentSchedule.payment_status != "paid")
            .count()
        )
        return open_rows == 0


class BillingRepository:
    """
    Dependent billing store of a contract.

    Older deployments spread installments over several billing tables; all of
    them are represented by the schedule table here, so purging a contract is
    a single call.
    """

    def __init__(self, db: Session):
        self.db = db

    def purge(self, contract_id: uuid.UUID) -> int:
        """Delete every billing row of the contract, returning the row count"""
        return (
            self.db.query(PaymentSchedule)
            .filter(PaymentSchedule.contract_id == contract_id)
            .delete(synchronize_session=False)
        )


class TransactionRepository:
    """Repository for payment transactions (never deleted)"""

    def __init__(self, db: Session):
        self.db = db

    def create_transaction(
        self,
        schedule: PaymentSchedule,
        amount: Decimal,
        penalty_amount: Decimal,
        transaction_date: datetime,
        receipt_number: str,
        notes: Optional[str] = None,
        processed_by_name: Optional[str] = None,
    ) -> PaymentTransaction:
        db_transaction = PaymentTransaction(
            schedule_id=schedule.schedule_id,
            contract_id=schedule.contract_id,
            amount=amount,
            penalty_amount=penalty_amount,
            transaction_date=transaction_date,
            transaction_status="completed",
            receipt_number=receipt_number,
            notes=notes,
            processed_by_name=processed_by_name,
        )
        self.db.add(db_transaction)
        self.db.flush()
        return db_transaction

    def completed_for_schedule(self, schedule_id: uuid.UUID) -> List[PaymentTransaction]:
        """Completed transactions of a schedule, most recent first"""
        return (
            self.db.query(PaymentTransaction)
            .filter(
                PaymentTransaction.schedule_id == schedule_id,
                PaymentTransaction.transaction_status == "completed",
            )
            .order_by(PaymentTransaction.transaction_date.desc())
            .all()
        )

    def list_for_schedule(self, schedule_id: uuid.UUID) -> List[PaymentTransaction]:
        return (
            self.db.query(PaymentTransaction)
            .filter(PaymentTransaction.schedule_id == schedule_id)
            .order_by(PaymentTransaction.transaction_date.desc())
            .all()
        )


class TransferRepository:
    """Repository for contract transfer requests"""

    def __init__(self, db: Session):
        self.db = db

    def create_request(self, **fields: Any) -> TransferRequest:
        db_request = TransferRequest(**fields)
        self.db.add(db_request)
        self.db.flush()
        return db_request

    def get_request(self, request_id: uuid.UUID) -> Optional[TransferRequest]:
        return self.db.query(TransferRequest).filter(TransferRequest.id == request_id).first()

    def get_pending_for_contract(self, contract_id: uuid.UUID) -> Optional[TransferRequest]:
        return (
            self.db.query(TransferRequest)
            .filter(TransferRequest.contract_id == contract_id, TransferRequest.request_status == "pending")
            .first()
        )

    def list_by_status(self, status: str, limit: int = 100) -> List[TransferRequest]:
        return (
            self.db.query(TransferRequest)
            .filter(TransferRequest.request_status == status)
            .order_by(TransferRequest.created_at.desc())
            .limit(limit)
            .all()
        )
