"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PlainSerializer

# Amounts travel as JSON numbers, not Decimal strings
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope shared by every endpoint"""

    success: bool = True
    data: T
    message: str


class ErrorResponse(BaseModel):
    """Error envelope: ``error`` is the machine code, ``kind`` the error category"""

    success: bool = False
    error: str
    kind: str
    message: str
    data: Optional[Dict[str, Any]] = None


# Contracts


class CreateContractRequest(BaseModel):
    """Request body for POST /v1/contracts"""

    reservation_id: uuid.UUID
    payment_plan_months: int = Field(..., description="Plan length in months (1-60)")
    payment_frequency: str = Field("monthly", description="monthly, weekly or daily")
    allow_partial_payments: bool = Field(False, description="Accepted, not enforced yet")


class ScheduleSchema(BaseModel):
    """Single installment row"""

    model_config = ConfigDict(from_attributes=True)

    schedule_id: uuid.UUID
    contract_id: uuid.UUID
    installment_number: int
    installment_description: Optional[str] = None
    scheduled_amount: Money
    paid_amount: Money
    remaining_amount: Money
    penalty_amount: Money
    due_date: date
    payment_status: str
    is_overdue: bool = False
    days_overdue: int = 0
    paid_date: Optional[datetime] = None
    processed_by_name: Optional[str] = None


class ContractSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    contract_id: uuid.UUID
    contract_number: str
    reservation_id: uuid.UUID
    property_id: Optional[uuid.UUID] = None
    property_title: Optional[str] = None
    user_id: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    client_address: Optional[str] = None
    total_contract_price: Money
    downpayment_total: Money
    reservation_fee_paid: Money
    remaining_downpayment: Money
    remaining_balance: Money
    bank_financing_amount: Money
    payment_plan_months: int
    payment_frequency: str
    monthly_installment: Money
    contract_status: str
    downpayment_status: str
    contract_signed_date: Optional[datetime] = None
    first_installment_date: Optional[date] = None
    final_installment_date: Optional[date] = None
    voided_at: Optional[datetime] = None
    void_reason: Optional[str] = None


class ContractWithSchedules(BaseModel):
    contract: ContractSchema
    payment_schedules: List[ScheduleSchema]


class VoidContractRequest(BaseModel):
    """Request body for POST /v1/contracts/void"""

    contract_id: uuid.UUID
    reason: Optional[str] = None


class VoidResultSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    contract_id: str
    status: str
    voided_at: datetime
    void_reason: str
    schedules_deleted: int
    property_released: bool
    cleanup_warnings: List[str]


# Payments


class RecordPaymentRequest(BaseModel):
    """Request body for POST /v1/payments"""

    schedule_id: uuid.UUID
    amount: Decimal = Field(..., gt=0, description="Amount paid against the installment")
    penalty_amount: Decimal = Field(Decimal("0"), ge=0)
    payment_date: Optional[datetime] = None
    receipt_number: Optional[str] = None
    notes: Optional[str] = None
    processed_by_name: Optional[str] = None


class PaymentReceiptSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    schedule_id: str
    transaction_id: str
    receipt_number: str
    amount: Money
    penalty_amount: Money
    paid_amount: Money
    remaining_amount: Money
    payment_status: str
    new_remaining_balance: Money


class RevertPaymentRequest(BaseModel):
    """Request body for POST /v1/payments/revert"""

    schedule_id: uuid.UUID


class RevertResultSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    schedule_id: str
    paid_amount_reverted: Money
    penalty_amount_reverted: Money
    transactions_reverted: int
    new_remaining_balance: Money
    total_paid_after_revert: Money


# Transfers


class CreateTransferRequest(BaseModel):
    """
    Request body for POST /v1/transfer-requests.

    Required fields are checked by the transfer service so a missing one is
    reported with every other missing field by name.
    """

    contract_id: Optional[uuid.UUID] = None
    new_client_name: Optional[str] = None
    new_client_email: Optional[str] = None
    new_client_phone: Optional[str] = None
    new_client_address: Optional[str] = None
    new_user_id: Optional[str] = None
    relationship: Optional[str] = None
    transfer_reason: Optional[str] = None
    transfer_notes: Optional[str] = None
    requested_by_user_id: Optional[str] = None
    requested_by_name: Optional[str] = None


class TransferDecisionRequest(BaseModel):
    """Request body for POST /v1/transfer-requests/decision"""

    transfer_request_id: uuid.UUID
    approved: bool
    approved_by_name: Optional[str] = None
    rejection_reason: Optional[str] = None


class TransferRequestSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    contract_id: uuid.UUID
    original_client_name: Optional[str] = None
    original_client_email: Optional[str] = None
    original_client_phone: Optional[str] = None
    original_client_address: Optional[str] = None
    new_user_id: Optional[str] = None
    new_client_name: str
    new_client_email: str
    new_client_phone: Optional[str] = None
    new_client_address: Optional[str] = None
    relationship: str = Field(validation_alias=AliasChoices("client_relationship", "relationship"))
    transfer_reason: str
    transfer_notes: Optional[str] = None
    request_status: str
    requested_by_user_id: Optional[str] = None
    requested_by_name: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    approval_notes: Optional[str] = None
    created_at: Optional[datetime] = None
