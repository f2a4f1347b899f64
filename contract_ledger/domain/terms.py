"""Contract financial terms - downpayment / bank financing split"""

from datetime import date
from decimal import Decimal
from typing import Optional

from contract_ledger.domain.models import ContractTerms, DownpaymentStatus
from contract_ledger.utils.money import ZERO, round_money, to_decimal

DOWNPAYMENT_RATE = Decimal("0.10")
BANK_FINANCING_RATE = Decimal("0.90")


def build_contract_number(
    reservation_id: str,
    tracking_number: Optional[str],
    year: int,
    tracking_prefix: str = "TRK-",
) -> str:
    """
    CTS-<year>-<suffix>, where the suffix is the tracking number without its
    prefix, or the first 8 characters of the reservation id uppercased.
    """
    if tracking_number:
        suffix = tracking_number.replace(tracking_prefix, "", 1)
    else:
        suffix = str(reservation_id)[:8].upper()
    return f"CTS-{year}-{suffix}"


def compute_contract_terms(
    reservation_id: str,
    tracking_number: Optional[str],
    property_price,
    reservation_fee_paid,
    payment_plan_months: int,
    today: Optional[date] = None,
    tracking_prefix: str = "TRK-",
) -> ContractTerms:
    """
    Derive the financial split of a contract.

    - downpayment_total = 10% of price, bank financing = 90%
    - remaining_downpayment = downpayment_total - reservation fee, floored at 0
    - monthly_installment is always the month-equivalent amount, whatever
      the payment frequency (kept for older clients)
    """
    today = today or date.today()
    price = round_money(property_price)
    fee = round_money(reservation_fee_paid)

    downpayment_total = round_money(price * DOWNPAYMENT_RATE)
    bank_financing = round_money(price * BANK_FINANCING_RATE)
    remaining = max(ZERO, round_money(downpayment_total - fee))
    monthly = round_money(remaining / to_decimal(payment_plan_months))

    return ContractTerms(
        contract_number=build_contract_number(
            reservation_id, tracking_number, today.year, tracking_prefix
        ),
        total_contract_price=price,
        downpayment_total=downpayment_total,
        reservation_fee_paid=fee,
        remaining_downpayment=remaining,
        bank_financing_amount=bank_financing,
        monthly_installment=monthly,
        downpayment_status=(
            DownpaymentStatus.IN_PROGRESS if remaining > 0 else DownpaymentStatus.COMPLETED
        ),
    )


def remaining_balance(downpayment_total, paid_amounts) -> Decimal:
    """Contract balance: max(0, downpayment_total - everything paid on its schedules)"""
    total_paid = round_money(sum((to_decimal(p) for p in paid_amounts), Decimal("0")))
    return max(ZERO, round_money(to_decimal(downpayment_total) - total_paid))
