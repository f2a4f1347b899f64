"""Installment payment endpoints: record and revert"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from contract_ledger.api.v1.schemas import (
    ApiResponse,
    PaymentReceiptSchema,
    RecordPaymentRequest,
    RevertPaymentRequest,
    RevertResultSchema,
)
from contract_ledger.api.dependencies import get_notifier, get_request_id
from contract_ledger.domain.exceptions import DomainException
from contract_ledger.infrastructure.database.session import get_db
from contract_ledger.services.notifications import NotificationDispatcher
from contract_ledger.services.payments import PaymentService

router = APIRouter()


@router.post("/payments", response_model=ApiResponse[PaymentReceiptSchema], status_code=201)
def record_payment(
    request_body: RecordPaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Apply a payment to one installment and return the receipt"""
    request_id = get_request_id(request)

    try:
        receipt = PaymentService(db, notifier).record(
            schedule_id=request_body.schedule_id,
            amount=request_body.amount,
            penalty_amount=request_body.penalty_amount,
            payment_date=request_body.payment_date,
            receipt_number=request_body.receipt_number,
            notes=request_body.notes,
            processed_by_name=request_body.processed_by_name,
        )
    except DomainException:
        raise
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error recording payment: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return ApiResponse(
        data=PaymentReceiptSchema.model_validate(receipt),
        message="Payment recorded successfully",
    )


@router.post("/payments/revert", response_model=ApiResponse[RevertResultSchema])
def revert_payment(
    request_body: RevertPaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """
    Reset an installment to pending, mark its transactions reverted and
    recompute the contract balance. All three changes apply together or
    not at all.
    """
    request_id = get_request_id(request)

    try:
        result = PaymentService(db, notifier).revert(request_body.schedule_id)
    except DomainException:
        raise
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error reverting payment: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return ApiResponse(
        data=RevertResultSchema.model_validate(result),
        message="Payment reverted to pending successfully",
    )
