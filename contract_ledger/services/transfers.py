"""Contract ownership transfer requests: pending -> approved | rejected"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from contract_ledger.domain.exceptions import (
    ContractNotFound,
    MissingFields,
    TransferAlreadyDecided,
    TransferAlreadyPending,
    TransferRequestNotFound,
    TransferUpdateFailed,
    ValidationError,
)
from contract_ledger.domain.models import Notification, TransferStatus
from contract_ledger.infrastructure.database.models import TransferRequest
from contract_ledger.infrastructure.database.repositories import (
    ContractRepository,
    TransferRepository,
)
from contract_ledger.infrastructure.observability.logging import log_transfer_decided
from contract_ledger.infrastructure.observability.metrics import transfer_decision_counter
from contract_ledger.services.notifications import NotificationDispatcher, dispatch_safely

DEFAULT_REJECTION_REASON = "No reason provided"

CLIENT_FIELDS = ("client_name", "client_email", "client_phone", "client_address")


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class TransferService:
    """Create, decide and list ownership transfer requests"""

    def __init__(self, db: Session, notifier: Optional[NotificationDispatcher] = None):
        self.db = db
        self.notifier = notifier
        self.contracts = ContractRepository(db)
        self.transfers = TransferRepository(db)

    def create(
        self,
        contract_id: Optional[uuid.UUID],
        new_client_name: Optional[str],
        new_client_email: Optional[str],
        relationship: Optional[str],
        transfer_reason: Optional[str],
        new_client_phone: Optional[str] = None,
        new_client_address: Optional[str] = None,
        new_user_id: Optional[str] = None,
        transfer_notes: Optional[str] = None,
        requested_by_user_id: Optional[str] = None,
        requested_by_name: Optional[str] = None,
    ) -> TransferRequest:
        """
        Open a pending transfer request, snapshotting the current client.

        Raises:
            MissingFields: a required field is absent or blank
            ContractNotFound: unknown contract
            TransferAlreadyPending: the contract already has a pending request
        """
        required = {
            "contract_id": contract_id,
            "new_client_name": new_client_name,
            "new_client_email": new_client_email,
            "relationship": relationship,
            "transfer_reason": transfer_reason,
        }
        missing = [name for name, value in required.items() if _is_blank(value)]
        if missing:
            raise MissingFields(missing)

        contract = self.contracts.get_contract(contract_id)
        if contract is None:
            raise ContractNotFound("Contract not found")

        if self.transfers.get_pending_for_contract(contract_id) is not None:
            raise TransferAlreadyPending(
                "A transfer request for this contract is already pending admin approval"
            )

        try:
            request = self.transfers.create_request(
                contract_id=contract_id,
                original_client_name=contract.client_name,
                original_client_email=contract.client_email,
                original_client_phone=contract.client_phone,
                original_client_address=contract.client_address,
                new_user_id=new_user_id,
                new_client_name=new_client_name,
                new_client_email=new_client_email,
                new_client_phone=new_client_phone,
                new_client_address=new_client_address,
                client_relationship=relationship,
                transfer_reason=transfer_reason,
                transfer_notes=transfer_notes,
                requested_by_user_id=requested_by_user_id,
                requested_by_name=requested_by_name,
                request_status=TransferStatus.PENDING.value,
            )
            self.db.commit()
        except IntegrityError as e:
            # Partial unique index: another pending request won the race
            self.db.rollback()
            raise TransferAlreadyPending(
                "A transfer request for this contract is already pending admin approval"
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise TransferUpdateFailed(f"Failed to create transfer request: {e}") from e

        dispatch_safely(
            self.notifier,
            Notification(
                notification_type="transfer_request_pending",
                title="New Contract Transfer Request",
                message=(
                    f"{requested_by_name or 'Customer service'} has requested to transfer contract "
                    f"{contract.contract_number} from {contract.client_name} to {new_client_name}. "
                    f"Reason: {transfer_reason}"
                ),
                priority="high",
                recipient_role="admin",
                action_url="/contracts/transfer-requests",
                data={
                    "transfer_request_id": str(request.id),
                    "contract_id": str(contract_id),
                    "contract_number": contract.contract_number,
                    "property_title": contract.property_title,
                    "requested_by": requested_by_name,
                    "reason": transfer_reason,
                },
            ),
        )
        return request

    def decide(
        self,
        transfer_request_id: uuid.UUID,
        approved: bool,
        approved_by_name: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> TransferRequest:
        """
        Approve or reject a pending request.

        Approval overwrites the contract's client fields with the requested
        ones; the original_* snapshot on the request is left as it was.

        Raises:
            TransferRequestNotFound: unknown request
            TransferAlreadyDecided: request is no longer pending
            ContractNotFound: approved request whose contract is gone
        """
        request = self.transfers.get_request(transfer_request_id)
        if request is None:
            raise TransferRequestNotFound("Transfer request not found")

        if request.request_status != TransferStatus.PENDING.value:
            raise TransferAlreadyDecided(f"Transfer request is already {request.request_status}")

        decided_at = datetime.now(timezone.utc)
        contract_number = None

        try:
            if approved:
                contract = self.contracts.get_contract(request.contract_id)
                if contract is None:
                    raise ContractNotFound("Contract not found")
                contract_number = contract.contract_number

                for field in CLIENT_FIELDS:
                    setattr(contract, field, getattr(request, f"new_{field}"))

                request.request_status = TransferStatus.APPROVED.value
                request.approval_notes = rejection_reason
            else:
                request.request_status = TransferStatus.REJECTED.value
                request.approval_notes = rejection_reason or DEFAULT_REJECTION_REASON

            request.approved_by = approved_by_name
            request.approved_at = decided_at
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise TransferUpdateFailed(f"Failed to update transfer request: {e}") from e

        outcome = request.request_status
        transfer_decision_counter.labels(outcome=outcome).inc()
        log_transfer_decided(str(request.id), str(request.contract_id), outcome, approved_by_name)

        if approved:
            notification = Notification(
                notification_type="transfer_approved",
                title="Contract Transfer Approved",
                message=(
                    f"Your transfer request for contract {contract_number} has been approved by "
                    f"{approved_by_name}. The contract has been transferred to {request.new_client_name}."
                ),
                data={"contract_number": contract_number},
            )
        else:
            notification = Notification(
                notification_type="transfer_rejected",
                title="Contract Transfer Rejected",
                message=(
                    f"Your transfer request for contract {request.contract_id} has been rejected by "
                    f"{approved_by_name}. Reason: {request.approval_notes}"
                ),
                data={"rejection_reason": request.approval_notes},
            )

        notification.priority = "high"
        notification.recipient_role = "customer_service"
        notification.recipient_id = request.requested_by_user_id
        notification.action_url = "/contracts/transfers"
        notification.data.update(
            {
                "transfer_request_id": str(request.id),
                "contract_id": str(request.contract_id),
                "approved_by": approved_by_name,
            }
        )
        dispatch_safely(self.notifier, notification)
        return request

    def list_requests(self, status: str = TransferStatus.PENDING.value) -> List[TransferRequest]:
        """Requests in one status, newest first"""
        try:
            status = TransferStatus(status).value
        except ValueError:
            raise ValidationError(f"Unknown transfer request status: {status!r}") from None
        return self.transfers.list_by_status(status)
