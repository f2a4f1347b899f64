"""Contract void with best-effort cascade of dependent billing artifacts"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contract_ledger.config import settings
from contract_ledger.domain.exceptions import (
    PARTIAL_FAILURE,
    ContractAlreadyVoided,
    ContractNotFound,
    VoidUpdateFailed,
)
from contract_ledger.domain.models import ContractStatus, Notification, VoidResult
from contract_ledger.infrastructure.database.repositories import (
    BillingRepository,
    ContractRepository,
    PropertyRepository,
)
from contract_ledger.infrastructure.observability.logging import log_contract_voided
from contract_ledger.infrastructure.observability.metrics import (
    cleanup_failure_counter,
    contracts_voided_counter,
)
from contract_ledger.services.notifications import NotificationDispatcher, dispatch_safely

PROPERTY_AVAILABLE = "available"


class VoidController:
    """
    Moves a contract to the terminal voided state.

    Only the status update can fail the operation. Purging billing rows and
    releasing the property run afterwards, each committed on its own; their
    failures are logged and reported back as cleanup warnings.
    """

    def __init__(self, db: Session, notifier: Optional[NotificationDispatcher] = None):
        self.db = db
        self.notifier = notifier
        self.contracts = ContractRepository(db)
        self.billing = BillingRepository(db)
        self.properties = PropertyRepository(db)

    def void(self, contract_id: uuid.UUID, reason: Optional[str] = None) -> VoidResult:
        """
        Raises:
            ContractNotFound: unknown contract
            ContractAlreadyVoided: contract is already voided
            VoidUpdateFailed: status update rejected by the store
        """
        contract = self.contracts.get_contract(contract_id)
        if contract is None:
            raise ContractNotFound("Contract not found")

        if contract.contract_status == ContractStatus.VOIDED.value:
            raise ContractAlreadyVoided(f"Contract {contract.contract_number} is already voided")

        voided_at = datetime.now(timezone.utc)
        void_reason = reason or settings.default_void_reason
        property_id = contract.property_id
        contract_number = contract.contract_number

        try:
            contract.contract_status = ContractStatus.VOIDED.value
            contract.voided_at = voided_at
            contract.void_reason = void_reason
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise VoidUpdateFailed(f"Failed to void contract: {e}") from e

        result = VoidResult(
            contract_id=str(contract_id),
            status=ContractStatus.VOIDED.value,
            voided_at=voided_at,
            void_reason=void_reason,
        )

        deleted = self._cleanup("billing", lambda: self.billing.purge(contract_id), result)
        result.schedules_deleted = deleted or 0

        if property_id is not None:
            released = self._cleanup(
                "property",
                lambda: self.properties.set_availability(property_id, PROPERTY_AVAILABLE),
                result,
            )
            result.property_released = bool(released)
            if released is False:
                result.cleanup_warnings.append(f"Property {property_id} not found in registry")

        contracts_voided_counter.inc()
        log_contract_voided(result.contract_id, void_reason, len(result.cleanup_warnings))

        dispatch_safely(
            self.notifier,
            Notification(
                notification_type="contract_voided",
                title="Contract Voided",
                message=f"Contract {contract_number} was voided. Reason: {void_reason}",
                priority="high",
                recipient_role="admin",
                action_url="/contracts",
                data={
                    "contract_id": result.contract_id,
                    "contract_number": contract_number,
                    "void_reason": void_reason,
                },
            ),
        )
        return result

    def _cleanup(self, step: str, action: Callable[[], Any], result: VoidResult) -> Any:
        """Run one cascade step in its own commit; failures become warnings"""
        try:
            outcome = action()
            self.db.commit()
            return outcome
        except Exception as e:
            self.db.rollback()
            message = f"Cleanup step '{step}' failed: {e}"
            cleanup_failure_counter.labels(step=step).inc()
            logging.warning(
                message,
                extra={"contract_id": result.contract_id, "step": step, "kind": PARTIAL_FAILURE},
            )
            result.cleanup_warnings.append(message)
            return None
