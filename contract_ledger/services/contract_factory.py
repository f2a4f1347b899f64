"""Contract creation from an approved reservation, with compensating rollback"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from contract_ledger.config import settings
from contract_ledger.domain.exceptions import (
    ContractAlreadyExists,
    DomainException,
    LedgerMaterializationFailed,
    PersistenceFailure,
    ReservationNotFound,
)
from contract_ledger.domain.installments import (
    generate_ledger,
    installment_count,
    parse_frequency,
    validate_plan_months,
)
from contract_ledger.domain.models import (
    ContractStatus,
    Notification,
    PaymentFrequency,
)
from contract_ledger.domain.terms import compute_contract_terms
from contract_ledger.infrastructure.database.models import Contract, PaymentSchedule
from contract_ledger.infrastructure.database.repositories import (
    ContractRepository,
    ReservationRepository,
    ScheduleRepository,
)
from contract_ledger.infrastructure.observability.logging import log_contract_created
from contract_ledger.infrastructure.observability.metrics import (
    contract_rollback_counter,
    record_contract_created,
)
from contract_ledger.services.notifications import NotificationDispatcher, dispatch_safely
from contract_ledger.utils.date_utils import add_months, shift_by_periods


@dataclass
class CreatedContract:
    contract: Contract
    schedules: List[PaymentSchedule]


def already_exists_error(contract: Contract) -> ContractAlreadyExists:
    return ContractAlreadyExists(
        f"Contract {contract.contract_number} already exists for this reservation",
        data={
            "contract_id": str(contract.contract_id),
            "contract_number": contract.contract_number,
        },
    )


class ContractFactory:
    """
    Creates a contract and its installment ledger.

    There is no transaction spanning both writes: the contract row is
    committed first, then the schedules. If the schedules cannot be stored
    the contract row is deleted again before the error is raised, so no
    contract is left without its ledger.
    """

    def __init__(self, db: Session, notifier: Optional[NotificationDispatcher] = None):
        self.db = db
        self.notifier = notifier
        self.reservations = ReservationRepository(db)
        self.contracts = ContractRepository(db)
        self.schedules = ScheduleRepository(db)

    def create(
        self,
        reservation_id: uuid.UUID,
        payment_plan_months: int,
        payment_frequency: Union[str, PaymentFrequency] = PaymentFrequency.MONTHLY,
        allow_partial_payments: bool = False,
    ) -> CreatedContract:
        """
        Raises:
            InvalidFrequency / InvalidPlanRange: bad plan parameters
            ReservationNotFound: reservation missing or not approved
            ContractAlreadyExists: reservation already has a contract
            LedgerMaterializationFailed: schedules could not be stored
        """
        frequency = parse_frequency(payment_frequency)
        validate_plan_months(payment_plan_months)

        reservation = self.reservations.get_approved(reservation_id)
        if reservation is None:
            raise ReservationNotFound("Reservation not found or not approved")

        existing = self.contracts.get_by_reservation(reservation_id)
        if existing is not None:
            raise already_exists_error(existing)

        today = date.today()
        terms = compute_contract_terms(
            reservation_id=str(reservation.reservation_id),
            tracking_number=reservation.tracking_number,
            property_price=reservation.property_price,
            reservation_fee_paid=reservation.reservation_fee,
            payment_plan_months=payment_plan_months,
            today=today,
            tracking_prefix=settings.reservation_tracking_prefix,
        )

        first_installment_date = add_months(today, 1)
        count = installment_count(payment_plan_months, frequency) if terms.remaining_downpayment > 0 else 0
        final_installment_date = shift_by_periods(first_installment_date, max(count - 1, 0), frequency.value)

        # Phase 1: contract row
        try:
            contract = self.contracts.create_contract(
                contract_number=terms.contract_number,
                reservation_id=reservation.reservation_id,
                property_id=reservation.property_id,
                property_title=reservation.property_title,
                user_id=reservation.user_id,
                client_name=reservation.client_name,
                client_email=reservation.client_email,
                client_phone=reservation.client_phone,
                client_address=reservation.client_address,
                total_contract_price=terms.total_contract_price,
                downpayment_total=terms.downpayment_total,
                reservation_fee_paid=terms.reservation_fee_paid,
                remaining_downpayment=terms.remaining_downpayment,
                remaining_balance=terms.remaining_downpayment,
                bank_financing_amount=terms.bank_financing_amount,
                payment_plan_months=payment_plan_months,
                payment_frequency=frequency.value,
                monthly_installment=terms.monthly_installment,
                contract_status=ContractStatus.ACTIVE.value,
                downpayment_status=terms.downpayment_status.value,
                contract_signed_date=datetime.now(timezone.utc),
                first_installment_date=first_installment_date,
                final_installment_date=final_installment_date,
            )
            self.db.commit()
        except IntegrityError as e:
            # Lost the race against a concurrent creation for the same reservation
            self.db.rollback()
            existing = self.contracts.get_by_reservation(reservation_id)
            if existing is not None:
                raise already_exists_error(existing) from e
            raise PersistenceFailure(f"Failed to create contract: {e}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceFailure(f"Failed to create contract: {e}") from e

        contract_id = contract.contract_id

        # Phase 2: installment ledger
        try:
            ledger = generate_ledger(
                terms.remaining_downpayment,
                payment_plan_months,
                frequency,
                first_installment_date,
            )
            self.schedules.bulk_create(contract_id, ledger)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logging.error(
                f"Payment schedule creation failed, removing contract: {e}",
                extra={"contract_id": str(contract_id)},
            )
            self._remove_contract(contract_id)
            if isinstance(e, DomainException):
                raise
            raise LedgerMaterializationFailed(f"Failed to create payment schedules: {e}") from e

        # One query reloads every row expired by the commit
        schedules = self.schedules.list_for_contract(contract_id)

        record_contract_created(frequency.value, len(schedules))
        log_contract_created(
            str(contract_id),
            contract.contract_number,
            str(reservation_id),
            frequency.value,
            len(schedules),
            allow_partial_payments,
        )

        dispatch_safely(
            self.notifier,
            Notification(
                notification_type="contract_created",
                title="New Contract Created",
                message=(
                    f"Contract {contract.contract_number} was created for {contract.client_name} "
                    f"with {len(schedules)} {frequency.value} installments."
                ),
                priority="normal",
                recipient_role="admin",
                action_url="/contracts",
                data={
                    "contract_id": str(contract_id),
                    "contract_number": contract.contract_number,
                    "reservation_id": str(reservation_id),
                },
            ),
        )

        return CreatedContract(contract=contract, schedules=schedules)

    def _remove_contract(self, contract_id: uuid.UUID) -> None:
        """Compensating delete for a contract whose ledger was not stored"""
        try:
            self.contracts.delete_contract(contract_id)
            self.db.commit()
            contract_rollback_counter.inc()
        except SQLAlchemyError as e:
            self.db.rollback()
            logging.error(
                f"Compensating delete failed, contract left without schedules: {e}",
                extra={"contract_id": str(contract_id)},
            )
