"""Service tests for contract creation and its compensating rollback"""

import uuid
import pytest
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contract_ledger.domain.exceptions import (
    ContractAlreadyExists,
    InvalidFrequency,
    InvalidPlanRange,
    LedgerMaterializationFailed,
    ReservationNotFound,
)
from contract_ledger.infrastructure.database.models import Contract, PaymentSchedule
from contract_ledger.infrastructure.database.repositories import ContractRepository, ScheduleRepository
from contract_ledger.services.contract_factory import ContractFactory
from contract_ledger.utils.date_utils import add_months


def test_create_monthly_contract(db: Session, reservation, notifier):
    created = ContractFactory(db, notifier).create(reservation.reservation_id, 12, "monthly")
    contract = created.contract

    assert contract.contract_number == f"CTS-{date.today().year}-2024-0001"
    assert contract.contract_status == "active"
    assert contract.downpayment_status == "in_progress"
    assert contract.total_contract_price == Decimal("1000000.00")
    assert contract.downpayment_total == Decimal("100000.00")
    assert contract.bank_financing_amount == Decimal("900000.00")
    assert contract.remaining_downpayment == Decimal("90000.00")
    assert contract.remaining_balance == contract.remaining_downpayment
    assert contract.monthly_installment == Decimal("7500.00")
    assert contract.client_name == "Maria Santos"

    assert len(created.schedules) == 12
    assert [s.installment_number for s in created.schedules] == list(range(1, 13))
    assert all(s.scheduled_amount == Decimal("7500.00") for s in created.schedules)
    assert all(s.payment_status == "pending" for s in created.schedules)

    first = add_months(date.today(), 1)
    assert contract.first_installment_date == first
    assert created.schedules[0].due_date == first
    assert contract.final_installment_date == created.schedules[-1].due_date

    assert notifier.types == ["contract_created"]
    assert notifier.notifications[0].recipient_role == "admin"


def test_create_weekly_contract(db: Session, reservation):
    created = ContractFactory(db).create(reservation.reservation_id, 12, "weekly")

    assert len(created.schedules) == 52
    assert sum(s.scheduled_amount for s in created.schedules) == Decimal("90000.00")
    # Month-equivalent amount regardless of frequency
    assert created.contract.monthly_installment == Decimal("7500.00")
    assert created.contract.final_installment_date == created.contract.first_installment_date + timedelta(weeks=51)


def test_fee_covering_downpayment_creates_completed_contract(db: Session, make_reservation):
    reservation = make_reservation(reservation_fee=Decimal("150000.00"), tracking_number=None)

    created = ContractFactory(db).create(reservation.reservation_id, 6, "monthly")

    assert created.schedules == []
    assert created.contract.remaining_downpayment == Decimal("0")
    assert created.contract.downpayment_status == "completed"
    assert created.contract.contract_number.endswith(str(reservation.reservation_id)[:8].upper())


def test_unknown_or_unapproved_reservation(db: Session, make_reservation):
    pending = make_reservation(status="pending")

    with pytest.raises(ReservationNotFound):
        ContractFactory(db).create(pending.reservation_id, 12)
    with pytest.raises(ReservationNotFound):
        ContractFactory(db).create(uuid.uuid4(), 12)


def test_invalid_plan_is_rejected_before_any_write(db: Session, reservation):
    with pytest.raises(InvalidFrequency):
        ContractFactory(db).create(reservation.reservation_id, 12, "biweekly")
    with pytest.raises(InvalidPlanRange):
        ContractFactory(db).create(reservation.reservation_id, 61)

    assert db.query(Contract).count() == 0


def test_second_contract_for_reservation_conflicts(db: Session, created_contract, reservation):
    with pytest.raises(ContractAlreadyExists) as exc_info:
        ContractFactory(db).create(reservation.reservation_id, 6)

    assert exc_info.value.kind == "conflict"
    assert exc_info.value.data["contract_number"] == created_contract.contract.contract_number
    assert db.query(Contract).count() == 1


def test_unique_constraint_catches_concurrent_creation(db: Session, created_contract, reservation):
    """Pre-check misses the other writer; the unique constraint still refuses the insert"""
    existing = created_contract.contract
    with patch.object(ContractRepository, "get_by_reservation", side_effect=[None, existing]):
        with pytest.raises(ContractAlreadyExists):
            ContractFactory(db).create(reservation.reservation_id, 6)

    assert db.query(Contract).count() == 1


def test_ledger_failure_removes_contract(db: Session, reservation, notifier):
    with patch(
        "contract_ledger.services.contract_factory.generate_ledger",
        side_effect=RuntimeError("generator crashed"),
    ):
        with pytest.raises(LedgerMaterializationFailed):
            ContractFactory(db, notifier).create(reservation.reservation_id, 12)

    assert db.query(Contract).count() == 0
    assert db.query(PaymentSchedule).count() == 0
    assert notifier.notifications == []


def test_schedule_insert_failure_removes_contract(db: Session, reservation):
    with patch.object(ScheduleRepository, "bulk_create", side_effect=SQLAlchemyError("disk I/O error")):
        with pytest.raises(LedgerMaterializationFailed) as exc_info:
            ContractFactory(db).create(reservation.reservation_id, 12)

    assert exc_info.value.kind == "persistence_failure"
    assert db.query(Contract).count() == 0

    # Reservation is free again for a retry
    created = ContractFactory(db).create(reservation.reservation_id, 12)
    assert len(created.schedules) == 12


def test_failing_notifier_does_not_fail_creation(db: Session, reservation):
    class BrokenNotifier:
        def notify(self, notification):
            raise ConnectionError("notification service down")

    created = ContractFactory(db, BrokenNotifier()).create(reservation.reservation_id, 3)
    assert len(created.schedules) == 3
