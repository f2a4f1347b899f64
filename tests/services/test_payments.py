"""Service tests for payment recording and revert"""

import re
import uuid
import pytest
from decimal import Decimal
from unittest.mock import patch
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contract_ledger.domain.exceptions import (
    InvalidPaymentAmount,
    NothingToRevert,
    PaymentExceedsBalance,
    RevertFailed,
    ScheduleNotFound,
)
from contract_ledger.infrastructure.database.repositories import TransactionRepository
from contract_ledger.services.payments import PaymentService


def test_record_full_payment(db: Session, created_contract, notifier):
    schedule = created_contract.schedules[0]

    receipt = PaymentService(db, notifier).record(schedule.schedule_id, Decimal("7500"), processed_by_name="Cashier Reyes")

    assert receipt.payment_status == "paid"
    assert receipt.paid_amount == Decimal("7500.00")
    assert receipt.remaining_amount == Decimal("0.00")
    assert re.fullmatch(r"RCP-\d{8}-[0-9A-F]{8}", receipt.receipt_number)
    # Balance is measured against the full downpayment
    assert receipt.new_remaining_balance == Decimal("92500.00")

    assert schedule.payment_status == "paid"
    assert schedule.processed_by_name == "Cashier Reyes"
    assert schedule.paid_date is not None
    assert created_contract.contract.remaining_balance == Decimal("92500.00")
    assert created_contract.contract.remaining_downpayment == Decimal("92500.00")

    assert notifier.types == ["payment_recorded"]
    assert notifier.notifications[0].recipient_id == "client-001"


def test_partial_payments_accumulate(db: Session, created_contract):
    service = PaymentService(db)
    schedule = created_contract.schedules[1]

    first = service.record(schedule.schedule_id, Decimal("3000"))
    assert first.payment_status == "partial"
    assert first.remaining_amount == Decimal("4500.00")

    second = service.record(schedule.schedule_id, Decimal("4500"), receipt_number="OR-000123")
    assert second.payment_status == "paid"
    assert second.receipt_number == "OR-000123"
    assert len(TransactionRepository(db).list_for_schedule(schedule.schedule_id)) == 2


def test_later_payment_keeps_cashier_name(db: Session, created_contract):
    service = PaymentService(db)
    schedule = created_contract.schedules[2]

    service.record(schedule.schedule_id, Decimal("3000"), processed_by_name="Cashier Reyes")
    service.record(schedule.schedule_id, Decimal("1000"))

    assert schedule.processed_by_name == "Cashier Reyes"
    transactions = TransactionRepository(db).list_for_schedule(schedule.schedule_id)
    assert sorted(t.processed_by_name or "" for t in transactions) == ["", "Cashier Reyes"]


def test_downpayment_completes_when_every_installment_is_paid(db: Session, created_contract):
    service = PaymentService(db)
    contract = created_contract.contract

    for schedule in created_contract.schedules[:-1]:
        service.record(schedule.schedule_id, Decimal("7500"))
    assert contract.downpayment_status == "in_progress"

    receipt = service.record(created_contract.schedules[-1].schedule_id, Decimal("7500"))

    # The reservation fee stays on the balance
    assert receipt.new_remaining_balance == Decimal("10000.00")
    assert contract.downpayment_status == "completed"

    service.revert(created_contract.schedules[5].schedule_id)
    assert contract.downpayment_status == "in_progress"
    assert contract.remaining_balance == Decimal("17500.00")


def test_record_rejects_bad_amounts(db: Session, created_contract):
    service = PaymentService(db)
    schedule_id = created_contract.schedules[0].schedule_id

    with pytest.raises(InvalidPaymentAmount):
        service.record(schedule_id, Decimal("0"))
    with pytest.raises(InvalidPaymentAmount):
        service.record(schedule_id, Decimal("100"), penalty_amount=Decimal("-1"))
    with pytest.raises(PaymentExceedsBalance):
        service.record(schedule_id, Decimal("7500.01"))
    with pytest.raises(ScheduleNotFound):
        service.record(uuid.uuid4(), Decimal("100"))


def test_revert_paid_schedule_with_penalty(db: Session, created_contract, notifier):
    """7,500 paid with a 200 penalty comes back as a pending 7,500 installment"""
    service = PaymentService(db, notifier)
    schedule = created_contract.schedules[0]
    service.record(schedule.schedule_id, Decimal("7500"), penalty_amount=Decimal("200"))

    result = service.revert(schedule.schedule_id)

    assert result.paid_amount_reverted == Decimal("7500.00")
    assert result.penalty_amount_reverted == Decimal("200.00")
    assert result.transactions_reverted == 1
    assert result.total_paid_after_revert == Decimal("0.00")
    assert result.new_remaining_balance == Decimal("100000.00")

    assert schedule.paid_amount == Decimal("0")
    assert schedule.remaining_amount == Decimal("7500.00")
    assert schedule.penalty_amount == Decimal("0")
    assert schedule.payment_status == "pending"
    assert schedule.paid_date is None

    transactions = TransactionRepository(db).list_for_schedule(schedule.schedule_id)
    assert [t.transaction_status for t in transactions] == ["reverted"]
    assert transactions[0].notes.startswith("Payment reverted on ")

    assert notifier.types == ["payment_recorded", "payment_reverted"]


def test_revert_counts_other_schedules(db: Session, created_contract):
    service = PaymentService(db)
    first, second = created_contract.schedules[0], created_contract.schedules[1]
    service.record(first.schedule_id, Decimal("7500"))
    service.record(second.schedule_id, Decimal("2000"), notes="GCash ref 88123")

    result = service.revert(second.schedule_id)

    assert result.total_paid_after_revert == Decimal("7500.00")
    assert result.new_remaining_balance == Decimal("92500.00")
    assert created_contract.contract.downpayment_status == "in_progress"

    notes = TransactionRepository(db).list_for_schedule(second.schedule_id)[0].notes
    assert notes.startswith("GCash ref 88123\nPayment reverted on ")


def test_reverting_every_payment_restores_downpayment(db: Session, created_contract):
    service = PaymentService(db)
    touched = created_contract.schedules[:3]
    service.record(touched[0].schedule_id, Decimal("7500"))
    service.record(touched[1].schedule_id, Decimal("7500"))
    service.record(touched[2].schedule_id, Decimal("1234.56"))

    for schedule in touched:
        service.revert(schedule.schedule_id)

    contract = created_contract.contract
    assert contract.remaining_balance == contract.downpayment_total
    assert all(s.payment_status == "pending" and s.paid_amount == 0 for s in created_contract.schedules)


def test_revert_reverts_only_completed_transactions(db: Session, created_contract):
    service = PaymentService(db)
    schedule_id = created_contract.schedules[0].schedule_id
    service.record(schedule_id, Decimal("3000"))
    service.record(schedule_id, Decimal("4500"))
    assert service.revert(schedule_id).transactions_reverted == 2

    service.record(schedule_id, Decimal("1000"))
    assert service.revert(schedule_id).transactions_reverted == 1


def test_revert_pending_schedule_is_rejected(db: Session, created_contract):
    with pytest.raises(NothingToRevert) as exc_info:
        PaymentService(db).revert(created_contract.schedules[0].schedule_id)
    assert exc_info.value.kind == "validation"

    with pytest.raises(ScheduleNotFound):
        PaymentService(db).revert(uuid.uuid4())


def test_failed_revert_leaves_nothing_half_applied(db: Session, created_contract):
    service = PaymentService(db)
    schedule = created_contract.schedules[0]
    service.record(schedule.schedule_id, Decimal("7500"))

    with patch.object(PaymentService, "_store_balance", side_effect=SQLAlchemyError("connection reset")):
        with pytest.raises(RevertFailed):
            service.revert(schedule.schedule_id)

    db.expire_all()
    assert schedule.payment_status == "paid"
    assert schedule.paid_amount == Decimal("7500.00")
    transactions = TransactionRepository(db).list_for_schedule(schedule.schedule_id)
    assert [t.transaction_status for t in transactions] == ["completed"]
    assert created_contract.contract.remaining_balance == Decimal("92500.00")
