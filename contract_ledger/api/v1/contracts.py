"""Contract endpoints: creation with payment schedule, lookup, void"""

import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from contract_ledger.api.v1.schemas import (
    ApiResponse,
    ContractSchema,
    ContractWithSchedules,
    CreateContractRequest,
    ScheduleSchema,
    VoidContractRequest,
    VoidResultSchema,
)
from contract_ledger.api.dependencies import get_notifier, get_request_id
from contract_ledger.domain.exceptions import ContractNotFound, DomainException
from contract_ledger.infrastructure.database.session import get_db
from contract_ledger.infrastructure.database.repositories import ContractRepository, ScheduleRepository
from contract_ledger.services.contract_factory import ContractFactory
from contract_ledger.services.notifications import NotificationDispatcher
from contract_ledger.services.voiding import VoidController

router = APIRouter()


@router.post("/contracts", response_model=ApiResponse[ContractWithSchedules], status_code=201)
def create_contract(
    request_body: CreateContractRequest,
    request: Request,
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """
    Create a contract from an approved reservation.

    Flow:
    1. Validate plan length and payment frequency
    2. Load the approved reservation, reject if it already has a contract
    3. Derive downpayment, financing and installment terms
    4. Store the contract, then its installment ledger
    5. Remove the contract again if the ledger cannot be stored
    """
    request_id = get_request_id(request)

    try:
        created = ContractFactory(db, notifier).create(
            reservation_id=request_body.reservation_id,
            payment_plan_months=request_body.payment_plan_months,
            payment_frequency=request_body.payment_frequency,
            allow_partial_payments=request_body.allow_partial_payments,
        )
    except DomainException:
        raise
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error creating contract: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return ApiResponse(
        data=ContractWithSchedules(
            contract=ContractSchema.model_validate(created.contract),
            payment_schedules=[ScheduleSchema.model_validate(s) for s in created.schedules],
        ),
        message="Contract created successfully with payment schedule!",
    )


@router.get("/contracts/{contract_id}", response_model=ApiResponse[ContractWithSchedules])
def get_contract(contract_id: uuid.UUID, db: Session = Depends(get_db)):
    """Contract with its installment rows in installment order"""
    contract = ContractRepository(db).get_contract(contract_id)
    if contract is None:
        raise ContractNotFound("Contract not found")

    schedules = ScheduleRepository(db).list_for_contract(contract_id)
    return ApiResponse(
        data=ContractWithSchedules(
            contract=ContractSchema.model_validate(contract),
            payment_schedules=[ScheduleSchema.model_validate(s) for s in schedules],
        ),
        message="Contract retrieved successfully",
    )


@router.post("/contracts/void", response_model=ApiResponse[VoidResultSchema])
def void_contract(
    request_body: VoidContractRequest,
    request: Request,
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """
    Void a contract. Billing cleanup and property release are best effort;
    anything that could not be cleaned up is listed in cleanup_warnings.
    """
    request_id = get_request_id(request)

    try:
        result = VoidController(db, notifier).void(request_body.contract_id, request_body.reason)
    except DomainException:
        raise
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error voiding contract: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    message = "Contract voided successfully and billing records deleted"
    if result.cleanup_warnings:
        message = "Contract voided; some billing cleanup steps failed"

    return ApiResponse(data=VoidResultSchema.model_validate(result), message=message)
