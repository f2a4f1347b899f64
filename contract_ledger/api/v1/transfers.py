"""Contract ownership transfer request endpoints"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from contract_ledger.api.v1.schemas import (
    ApiResponse,
    CreateTransferRequest,
    TransferDecisionRequest,
    TransferRequestSchema,
)
from contract_ledger.api.dependencies import get_notifier, get_request_id
from contract_ledger.domain.exceptions import DomainException
from contract_ledger.infrastructure.database.session import get_db
from contract_ledger.services.notifications import NotificationDispatcher
from contract_ledger.services.transfers import TransferService

router = APIRouter()


@router.get("/transfer-requests", response_model=ApiResponse[List[TransferRequestSchema]])
def list_transfer_requests(
    status: str = Query("pending", description="pending, approved or rejected"),
    db: Session = Depends(get_db),
):
    """Transfer requests in one status, newest first"""
    requests = TransferService(db).list_requests(status)
    return ApiResponse(
        data=[TransferRequestSchema.model_validate(r) for r in requests],
        message=f"Found {len(requests)} {status} transfer request(s)",
    )


@router.post("/transfer-requests", response_model=ApiResponse[TransferRequestSchema], status_code=201)
def create_transfer_request(
    request_body: CreateTransferRequest,
    request: Request,
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Open a pending transfer request; at most one may be pending per contract"""
    request_id = get_request_id(request)

    try:
        transfer = TransferService(db, notifier).create(**request_body.model_dump())
    except DomainException:
        raise
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error creating transfer request: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return ApiResponse(
        data=TransferRequestSchema.model_validate(transfer),
        message="Transfer request submitted successfully. Awaiting admin approval.",
    )


@router.post("/transfer-requests/decision", response_model=ApiResponse[TransferRequestSchema])
def decide_transfer_request(
    request_body: TransferDecisionRequest,
    request: Request,
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Approve (client fields move to the contract) or reject a pending request"""
    request_id = get_request_id(request)

    try:
        transfer = TransferService(db, notifier).decide(
            transfer_request_id=request_body.transfer_request_id,
            approved=request_body.approved,
            approved_by_name=request_body.approved_by_name,
            rejection_reason=request_body.rejection_reason,
        )
    except DomainException:
        raise
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error deciding transfer request: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    message = (
        "Transfer approved successfully. Contract has been transferred."
        if request_body.approved
        else "Transfer request rejected."
    )
    return ApiResponse(data=TransferRequestSchema.model_validate(transfer), message=message)
