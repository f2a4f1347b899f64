"""Domain-specific exceptions

Every exception carries a ``kind`` (the error taxonomy callers branch on) and a
machine-readable ``code``. The API layer maps kinds to HTTP status codes.
"""

from typing import Any, Dict, List, Optional

NOT_FOUND = "not_found"
CONFLICT = "conflict"
VALIDATION = "validation"
PERSISTENCE_FAILURE = "persistence_failure"
PARTIAL_FAILURE = "partial_failure"


class DomainException(Exception):
    """Base exception for domain layer"""

    kind: str = PERSISTENCE_FAILURE
    code: str = "domain_error"

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data


# Not found


class NotFoundError(DomainException):
    kind = NOT_FOUND
    code = "not_found"


class ReservationNotFound(NotFoundError):
    """Reservation does not exist or is not approved"""

    code = "reservation_not_found"


class ContractNotFound(NotFoundError):
    code = "contract_not_found"


class ScheduleNotFound(NotFoundError):
    code = "schedule_not_found"


class TransferRequestNotFound(NotFoundError):
    code = "transfer_request_not_found"


# Conflict


class ConflictError(DomainException):
    kind = CONFLICT
    code = "conflict"


class ContractAlreadyExists(ConflictError):
    """A contract was already created for the reservation; ``data`` holds it"""

    code = "contract_already_exists"


class TransferAlreadyPending(ConflictError):
    code = "transfer_already_pending"


class TransferAlreadyDecided(ConflictError):
    """Approved and rejected requests are immutable"""

    code = "transfer_already_decided"


class ContractAlreadyVoided(ConflictError):
    code = "contract_already_voided"


class ContractVoided(ConflictError):
    """Operation is not allowed on a voided contract"""

    code = "contract_voided"


# Validation


class ValidationError(DomainException):
    kind = VALIDATION
    code = "validation_error"


class InvalidFrequency(ValidationError):
    code = "invalid_frequency"


class InvalidPlanRange(ValidationError):
    code = "invalid_plan_range"


class MissingFields(ValidationError):
    code = "missing_fields"

    def __init__(self, fields: List[str]):
        super().__init__(
            f"Missing required fields: {', '.join(fields)}",
            data={"missing_fields": fields},
        )
        self.fields = fields


class InvalidPaymentAmount(ValidationError):
    code = "invalid_payment_amount"


class PaymentExceedsBalance(ValidationError):
    code = "payment_exceeds_balance"


class NothingToRevert(ValidationError):
    """Schedule has no recorded payment"""

    code = "nothing_to_revert"


# Persistence


class PersistenceFailure(DomainException):
    kind = PERSISTENCE_FAILURE
    code = "persistence_failure"


class LedgerMaterializationFailed(PersistenceFailure):
    """Schedules could not be stored; the contract row was removed again"""

    code = "ledger_materialization_failed"


class RevertFailed(PersistenceFailure):
    code = "revert_failed"


class VoidUpdateFailed(PersistenceFailure):
    code = "void_update_failed"


class PaymentRecordFailed(PersistenceFailure):
    code = "payment_record_failed"


class TransferUpdateFailed(PersistenceFailure):
    code = "transfer_update_failed"
