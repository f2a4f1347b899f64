"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


class PaymentFrequency(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    DAILY = "daily"


class ContractStatus(str, Enum):
    ACTIVE = "active"
    VOIDED = "voided"


class DownpaymentStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class TransactionStatus(str, Enum):
    COMPLETED = "completed"
    REVERTED = "reverted"


class TransferStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class ScheduledInstallment:
    """Single row of a generated ledger, before it is persisted"""

    installment_number: int
    installment_description: str
    due_date: date
    scheduled_amount: Decimal
    grace_period_end: date  # advisory only, not stored


@dataclass
class ContractTerms:
    """Financial split derived from a reservation"""

    contract_number: str
    total_contract_price: Decimal
    downpayment_total: Decimal
    reservation_fee_paid: Decimal
    remaining_downpayment: Decimal
    bank_financing_amount: Decimal
    monthly_installment: Decimal
    downpayment_status: DownpaymentStatus


@dataclass
class PaymentReceipt:
    """Outcome of recording one installment payment"""

    schedule_id: str
    transaction_id: str
    receipt_number: str
    amount: Decimal
    penalty_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    payment_status: str
    new_remaining_balance: Decimal


@dataclass
class RevertResult:
    """Outcome of reverting one installment payment"""

    schedule_id: str
    paid_amount_reverted: Decimal
    penalty_amount_reverted: Decimal
    transactions_reverted: int
    new_remaining_balance: Decimal
    total_paid_after_revert: Decimal


@dataclass
class VoidResult:
    """Outcome of voiding a contract, including best-effort cleanup status"""

    contract_id: str
    status: str
    voided_at: datetime
    void_reason: str
    schedules_deleted: int = 0
    property_released: bool = False
    cleanup_warnings: List[str] = field(default_factory=list)


@dataclass
class Notification:
    """Message handed to the notification dispatcher"""

    notification_type: str
    title: str
    message: str
    priority: str = "normal"
    recipient_role: Optional[str] = None
    recipient_id: Optional[str] = None
    action_url: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
