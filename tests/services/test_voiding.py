"""Service tests for contract void and its best-effort cleanup"""

import uuid
import pytest
from decimal import Decimal
from unittest.mock import patch
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contract_ledger.domain.exceptions import (
    ContractAlreadyVoided,
    ContractNotFound,
    ContractVoided,
    VoidUpdateFailed,
)
from contract_ledger.infrastructure.database.models import PaymentSchedule, PaymentTransaction
from contract_ledger.infrastructure.database.repositories import BillingRepository, PropertyRepository
from contract_ledger.services.payments import PaymentService
from contract_ledger.services.voiding import VoidController


def test_void_purges_billing_and_releases_property(db: Session, created_contract, property_row, notifier):
    contract = created_contract.contract
    PaymentService(db).record(created_contract.schedules[0].schedule_id, Decimal("7500"))

    result = VoidController(db, notifier).void(contract.contract_id, "Client requested cancellation")

    assert result.status == "voided"
    assert result.void_reason == "Client requested cancellation"
    assert result.schedules_deleted == 12
    assert result.property_released is True
    assert result.cleanup_warnings == []

    assert contract.contract_status == "voided"
    assert contract.voided_at is not None
    assert db.query(PaymentSchedule).count() == 0
    # Transactions are the audit trail and survive the purge
    assert db.query(PaymentTransaction).count() == 1
    assert property_row.property_availability == "available"

    assert notifier.types == ["contract_voided"]
    assert notifier.notifications[0].priority == "high"


def test_void_uses_default_reason(db: Session, created_contract):
    result = VoidController(db).void(created_contract.contract.contract_id)
    assert result.void_reason == "Non-payment for 3 consecutive months"


def test_property_released_when_billing_purge_fails(db: Session, created_contract, property_row):
    with patch.object(BillingRepository, "purge", side_effect=SQLAlchemyError("relation is locked")):
        result = VoidController(db).void(created_contract.contract.contract_id)

    assert result.status == "voided"
    assert result.schedules_deleted == 0
    assert result.cleanup_warnings == ["Cleanup step 'billing' failed: relation is locked"]

    assert result.property_released is True
    assert property_row.property_availability == "available"
    assert created_contract.contract.contract_status == "voided"
    assert db.query(PaymentSchedule).count() == 12


def test_property_release_failure_is_a_warning(db: Session, created_contract):
    with patch.object(PropertyRepository, "set_availability", side_effect=RuntimeError("registry offline")):
        result = VoidController(db).void(created_contract.contract.contract_id)

    assert result.status == "voided"
    assert result.schedules_deleted == 12
    assert result.property_released is False
    assert len(result.cleanup_warnings) == 1


def test_missing_property_is_reported(db: Session, created_contract):
    created_contract.contract.property_id = uuid.uuid4()
    db.commit()

    result = VoidController(db).void(created_contract.contract.contract_id)

    assert result.property_released is False
    assert result.cleanup_warnings == [f"Property {created_contract.contract.property_id} not found in registry"]


def test_void_is_terminal(db: Session, created_contract):
    contract_id = created_contract.contract.contract_id
    schedule_id = created_contract.schedules[0].schedule_id

    # Keep the schedules around so a payment attempt reaches the status check
    with patch.object(BillingRepository, "purge", side_effect=SQLAlchemyError("relation is locked")):
        VoidController(db).void(contract_id)

    with pytest.raises(ContractAlreadyVoided):
        VoidController(db).void(contract_id, "second attempt")
    with pytest.raises(ContractVoided):
        PaymentService(db).record(schedule_id, Decimal("100"))

    assert created_contract.contract.contract_status == "voided"


def test_void_unknown_contract(db: Session):
    with pytest.raises(ContractNotFound):
        VoidController(db).void(uuid.uuid4())


def test_status_update_failure_fails_the_void(db: Session, created_contract, notifier):
    with patch.object(db, "commit", side_effect=SQLAlchemyError("could not serialize access")):
        with pytest.raises(VoidUpdateFailed):
            VoidController(db, notifier).void(created_contract.contract.contract_id)

    assert created_contract.contract.contract_status == "active"
    assert db.query(PaymentSchedule).count() == 12
    assert notifier.notifications == []
