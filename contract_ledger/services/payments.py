"""Installment payment recording and revert"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contract_ledger.domain.exceptions import (
    ContractVoided,
    InvalidPaymentAmount,
    NothingToRevert,
    PaymentExceedsBalance,
    PaymentRecordFailed,
    RevertFailed,
    ScheduleNotFound,
)
from contract_ledger.domain.models import (
    ContractStatus,
    DownpaymentStatus,
    Notification,
    PaymentReceipt,
    PaymentStatus,
    RevertResult,
    TransactionStatus,
)
from contract_ledger.domain.terms import remaining_balance
from contract_ledger.infrastructure.database.models import Contract
from contract_ledger.infrastructure.database.repositories import (
    ScheduleRepository,
    TransactionRepository,
)
from contract_ledger.infrastructure.observability.logging import log_payment_reverted
from contract_ledger.infrastructure.observability.metrics import (
    payments_recorded_counter,
    payments_reverted_counter,
)
from contract_ledger.services.notifications import NotificationDispatcher, dispatch_safely
from contract_ledger.utils.money import ZERO, round_money, sum_money


def generate_receipt_number(paid_at: datetime) -> str:
    return f"RCP-{paid_at:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


class PaymentService:
    """
    Records and reverts installment payments.

    The contract balance is never adjusted by a delta: after every change it
    is recomputed from the paid amounts of all the contract's schedules.
    """

    def __init__(self, db: Session, notifier: Optional[NotificationDispatcher] = None):
        self.db = db
        self.notifier = notifier
        self.schedules = ScheduleRepository(db)
        self.transactions = TransactionRepository(db)

    def record(
        self,
        schedule_id: uuid.UUID,
        amount,
        penalty_amount=ZERO,
        payment_date: Optional[datetime] = None,
        receipt_number: Optional[str] = None,
        notes: Optional[str] = None,
        processed_by_name: Optional[str] = None,
    ) -> PaymentReceipt:
        """
        Apply a payment to one installment.

        Raises:
            InvalidPaymentAmount: amount <= 0 or negative penalty
            ScheduleNotFound: unknown schedule
            ContractVoided: the owning contract is voided
            PaymentExceedsBalance: amount larger than what is left on the installment
            PaymentRecordFailed: the store rejected the write (nothing applied)
        """
        amount = round_money(amount)
        penalty = round_money(penalty_amount)
        if amount <= 0:
            raise InvalidPaymentAmount("Payment amount must be greater than zero")
        if penalty < 0:
            raise InvalidPaymentAmount("Penalty amount cannot be negative")

        schedule = self.schedules.get_schedule(schedule_id)
        if schedule is None:
            raise ScheduleNotFound("Payment schedule not found")

        contract = schedule.contract
        if contract.contract_status == ContractStatus.VOIDED.value:
            raise ContractVoided(f"Contract {contract.contract_number} is voided")

        scheduled = round_money(schedule.scheduled_amount)
        outstanding = scheduled - round_money(schedule.paid_amount)
        if amount > outstanding:
            raise PaymentExceedsBalance(
                f"Payment of {amount} exceeds the remaining {outstanding} on installment "
                f"{schedule.installment_number}"
            )

        paid_at = payment_date or datetime.now(timezone.utc)
        receipt_number = receipt_number or generate_receipt_number(paid_at)

        try:
            paid = round_money(schedule.paid_amount) + amount
            schedule.paid_amount = paid
            schedule.remaining_amount = scheduled - paid
            schedule.penalty_amount = round_money(schedule.penalty_amount) + penalty
            schedule.payment_status = (
                PaymentStatus.PAID.value if paid >= scheduled else PaymentStatus.PARTIAL.value
            )
            schedule.paid_date = paid_at
            if processed_by_name is not None:
                schedule.processed_by_name = processed_by_name

            transaction = self.transactions.create_transaction(
                schedule,
                amount=amount,
                penalty_amount=penalty,
                transaction_date=paid_at,
                receipt_number=receipt_number,
                notes=notes,
                processed_by_name=processed_by_name,
            )
            new_balance = self._refresh_contract_balance(contract)

            receipt = PaymentReceipt(
                schedule_id=str(schedule.schedule_id),
                transaction_id=str(transaction.transaction_id),
                receipt_number=receipt_number,
                amount=amount,
                penalty_amount=penalty,
                paid_amount=paid,
                remaining_amount=scheduled - paid,
                payment_status=schedule.payment_status,
                new_remaining_balance=new_balance,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PaymentRecordFailed(f"Failed to record payment: {e}") from e

        payments_recorded_counter.inc()
        logging.info(
            "Payment recorded",
            extra={
                "step": "payment_recorded",
                "schedule_id": receipt.schedule_id,
                "receipt_number": receipt_number,
                "amount": str(amount),
                "new_remaining_balance": str(new_balance),
            },
        )
        dispatch_safely(
            self.notifier,
            Notification(
                notification_type="payment_recorded",
                title="Payment Received",
                message=(
                    f"Payment of {amount} was recorded for installment {schedule.installment_number} "
                    f"of contract {contract.contract_number}. Receipt: {receipt_number}."
                ),
                recipient_id=contract.user_id,
                action_url="/client-contract-to-sell",
                data={
                    "contract_id": str(contract.contract_id),
                    "schedule_id": receipt.schedule_id,
                    "receipt_number": receipt_number,
                    "amount": str(amount),
                },
            ),
        )
        return receipt

    def revert(self, schedule_id: uuid.UUID) -> RevertResult:
        """
        Undo every recorded payment of one installment.

        Flow:
        1. Load the schedule and its contract
        2. Load the schedule's completed transactions, most recent first
        3. Capture paid and penalty amounts for the response
        4. Sum paid_amount of every other schedule of the contract
        5. New balance = max(0, downpayment_total - that sum)
        6. Reset the schedule to pending
        7. Mark the transactions reverted with a timestamped note
        8. Store the new balance on the contract

        Steps 6-8 commit together; if any of them fails nothing is applied
        and RevertFailed is raised.

        Raises:
            ScheduleNotFound: unknown schedule
            NothingToRevert: schedule is neither paid nor has a paid amount
            RevertFailed: the store rejected the write
        """
        schedule = self.schedules.get_schedule(schedule_id)
        if schedule is None:
            raise ScheduleNotFound("Payment schedule not found")

        if schedule.payment_status != PaymentStatus.PAID.value and round_money(schedule.paid_amount) == 0:
            raise NothingToRevert("Payment schedule has no paid amount to revert")

        contract = schedule.contract
        transactions = self.transactions.completed_for_schedule(schedule.schedule_id)

        reverted_amount = round_money(schedule.paid_amount)
        reverted_penalty = round_money(schedule.penalty_amount)

        other_paid = self.schedules.paid_amounts(contract.contract_id, exclude_schedule_id=schedule.schedule_id)
        total_paid_after_revert = sum_money(other_paid)
        new_balance = remaining_balance(contract.downpayment_total, other_paid)

        reverted_at = datetime.now(timezone.utc)
        note = f"Payment reverted on {reverted_at.isoformat()}"

        try:
            schedule.payment_status = PaymentStatus.PENDING.value
            schedule.paid_amount = ZERO
            schedule.remaining_amount = round_money(schedule.scheduled_amount)
            schedule.penalty_amount = ZERO
            schedule.paid_date = None

            for transaction in transactions:
                transaction.transaction_status = TransactionStatus.REVERTED.value
                transaction.notes = f"{transaction.notes}\n{note}" if transaction.notes else note

            self._store_balance(contract, new_balance)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RevertFailed(f"Failed to revert payment: {e}") from e

        result = RevertResult(
            schedule_id=str(schedule_id),
            paid_amount_reverted=reverted_amount,
            penalty_amount_reverted=reverted_penalty,
            transactions_reverted=len(transactions),
            new_remaining_balance=new_balance,
            total_paid_after_revert=total_paid_after_revert,
        )

        payments_reverted_counter.inc()
        log_payment_reverted(
            result.schedule_id,
            str(contract.contract_id),
            str(reverted_amount),
            result.transactions_reverted,
            str(new_balance),
        )
        dispatch_safely(
            self.notifier,
            Notification(
                notification_type="payment_reverted",
                title="Payment Reverted",
                message=(
                    f"Payment of {reverted_amount} on installment {schedule.installment_number} "
                    f"of contract {contract.contract_number} was reverted to pending."
                ),
                recipient_role="admin",
                action_url="/loans",
                data={
                    "contract_id": str(contract.contract_id),
                    "schedule_id": result.schedule_id,
                    "paid_amount_reverted": str(reverted_amount),
                },
            ),
        )
        return result

    def _refresh_contract_balance(self, contract: Contract) -> Decimal:
        """Recompute the balance from every schedule of the contract"""
        self.db.flush()
        balance = remaining_balance(
            contract.downpayment_total,
            self.schedules.paid_amounts(contract.contract_id),
        )
        self._store_balance(contract, balance)
        return balance

    def _store_balance(self, contract: Contract, balance: Decimal) -> None:
        """
        Store the balance and derive downpayment_status from the ledger.

        The balance is measured against downpayment_total and so never
        reaches zero when a reservation fee was paid; the downpayment is
        complete once every installment is paid.
        """
        # remaining_downpayment mirrors remaining_balance
        contract.remaining_balance = balance
        contract.remaining_downpayment = balance
        self.db.flush()
        contract.downpayment_status = (
            DownpaymentStatus.COMPLETED.value
            if self.schedules.all_paid(contract.contract_id)
            else DownpaymentStatus.IN_PROGRESS.value
        )
