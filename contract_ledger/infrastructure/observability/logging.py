"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service_name: str = "contract-ledger", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "contract-ledger") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_contract_created(
    contract_id: str,
    contract_number: str,
    reservation_id: str,
    payment_frequency: str,
    installment_count: int,
    allow_partial_payments: bool,
) -> None:
    logging.info(
        "Contract created",
        extra={
            "step": "contract_created",
            "contract_id": contract_id,
            "contract_number": contract_number,
            "reservation_id": reservation_id,
            "payment_frequency": payment_frequency,
            "installment_count": installment_count,
            "allow_partial_payments": allow_partial_payments,
        },
    )


def log_payment_reverted(
    schedule_id: str,
    contract_id: str,
    paid_amount_reverted: str,
    transactions_reverted: int,
    new_remaining_balance: str,
) -> None:
    """Log structured revert outcome for reconciliation"""
    logging.info(
        "Payment reverted",
        extra={
            "step": "payment_reverted",
            "schedule_id": schedule_id,
            "contract_id": contract_id,
            "paid_amount_reverted": paid_amount_reverted,
            "transactions_reverted": transactions_reverted,
            "new_remaining_balance": new_remaining_balance,
        },
    )


def log_contract_voided(contract_id: str, void_reason: str, cleanup_warnings: int) -> None:
    logging.info(
        "Contract voided",
        extra={
            "step": "contract_voided",
            "contract_id": contract_id,
            "void_reason": void_reason,
            "cleanup_warnings": cleanup_warnings,
        },
    )


def log_transfer_decided(
    transfer_request_id: str,
    contract_id: str,
    outcome: str,
    approved_by: Optional[str],
) -> None:
    logging.info(
        "Transfer request decided",
        extra={
            "step": "transfer_decided",
            "transfer_request_id": transfer_request_id,
            "contract_id": contract_id,
            "outcome": outcome,
            "approved_by": approved_by,
        },
    )
